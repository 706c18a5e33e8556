"""Backend selection from configuration."""

import logging
import threading
from enum import Enum
from typing import Dict, Optional

from .base import AbstractTranscriptionBackend
from ..config import VoiceMacroConfig

logger = logging.getLogger(__name__)


class BackendKind(Enum):
    CLOUD = "cloud"
    LOCAL = "local"


def select_backend_kind(config: VoiceMacroConfig) -> BackendKind:
    """Cloud only when UseOpenAIApi is set and a key exists; otherwise local."""
    if config.use_openai_api and config.openai_api_key:
        return BackendKind.CLOUD
    return BackendKind.LOCAL


def create_backend(config: VoiceMacroConfig,
                   kind: Optional[BackendKind] = None) -> AbstractTranscriptionBackend:
    """Construct the backend for ``kind`` (or the configured one). Nothing else is built."""
    kind = kind or select_backend_kind(config)
    language = config.whisper_language
    sample_rate = config.get('audio.sample_rate', 16000)
    channels = config.get('audio.channels', 1)

    if kind is BackendKind.CLOUD:
        from .openai_backend import OPENAI_TRANSCRIPTIONS_URL, OpenAITranscriptionBackend

        logger.info("Creating OpenAI transcription backend")
        return OpenAITranscriptionBackend(
            api_key=config.openai_api_key,
            language=language,
            model=config.get('transcription.openai.model', 'whisper-1'),
            base_url=config.get('transcription.openai.base_url') or OPENAI_TRANSCRIPTIONS_URL,
            timeout_seconds=config.get('transcription.openai.timeout_seconds', 30.0),
            sample_rate=sample_rate,
            channels=channels,
        )

    from .whisper_backend import LocalWhisperBackend

    logger.info("Creating local Whisper transcription backend")
    return LocalWhisperBackend(
        model_size=config.get('transcription.local.model_size', 'base'),
        language=language,
        device=config.get('transcription.local.device', 'cpu'),
        compute_type=config.get('transcription.local.compute_type', 'int8'),
        beam_size=config.get('transcription.local.beam_size', 5),
        download_root=config.get('transcription.local.download_root'),
        sample_rate=sample_rate,
        channels=channels,
    )


class BackendRegistry:
    """Keeps one backend per kind so the local model is loaded only once."""

    def __init__(self, factory=create_backend):
        self.factory = factory
        self._backends: Dict[BackendKind, AbstractTranscriptionBackend] = {}
        self._lock = threading.Lock()

    def get(self, config: VoiceMacroConfig) -> AbstractTranscriptionBackend:
        kind = select_backend_kind(config)
        with self._lock:
            backend = self._backends.get(kind)
            if backend is None:
                backend = self.factory(config, kind)
                self._backends[kind] = backend
                logger.info(f"Using {backend.service_name} for transcription")
            return backend

    def cleanup(self) -> None:
        with self._lock:
            backends = list(self._backends.values())
            self._backends.clear()
        for backend in backends:
            try:
                backend.cleanup()
                logger.debug(f"Cleaned up {backend.__class__.__name__}")
            except Exception as e:
                logger.error(f"Error cleaning up {backend.__class__.__name__}: {e}")
