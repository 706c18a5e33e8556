"""Local faster-whisper transcription backend."""

import asyncio
import logging
import threading
from math import gcd
from typing import Any, Callable, Optional

import numpy as np
from scipy.signal import resample_poly
from faster_whisper import WhisperModel

from .base import AbstractTranscriptionBackend, normalize_language
from ..cancellation import CancellationToken
from ..errors import LocalInferenceError, ModelLoadError, OperationCancelledError

logger = logging.getLogger(__name__)

# faster-whisper expects 16kHz mono float32 when given an array
WHISPER_SAMPLE_RATE = 16000


def pcm16_to_float32(audio: bytes, sample_rate: int = WHISPER_SAMPLE_RATE,
                     channels: int = 1) -> np.ndarray:
    """Convert 16-bit PCM bytes into 16kHz mono float32 samples in [-1, 1]."""
    usable = len(audio) - len(audio) % (2 * channels)
    samples = np.frombuffer(audio[:usable], dtype=np.int16).astype(np.float32) / 32768.0
    if channels > 1:
        samples = samples.reshape(-1, channels).mean(axis=1)
    if sample_rate != WHISPER_SAMPLE_RATE and samples.size:
        divisor = gcd(WHISPER_SAMPLE_RATE, sample_rate)
        samples = resample_poly(samples, WHISPER_SAMPLE_RATE // divisor, sample_rate // divisor)
    return samples.astype(np.float32)


class LocalWhisperBackend(AbstractTranscriptionBackend):
    """Runs a Whisper model on this machine.

    Cancellation is best-effort: it is checked before the model is loaded,
    before inference starts and between decoded segments. A segment that is
    already being decoded runs to completion.
    """

    service_name = "Local Whisper"

    def __init__(self,
                 model_size: str = "base",
                 language: Optional[str] = None,
                 device: str = "cpu",
                 compute_type: str = "int8",
                 beam_size: int = 5,
                 download_root: Optional[str] = None,
                 sample_rate: int = 16000,
                 channels: int = 1,
                 model_factory: Callable[..., Any] = WhisperModel):
        """Initialize local backend. The model itself is loaded lazily.

        Args:
            model_size: faster-whisper model name or path (e.g. 'base', 'small')
            language: Language hint, None to auto-detect
            device: 'cpu', 'cuda' or 'auto'
            compute_type: CTranslate2 compute type (e.g. 'int8', 'float16')
        """
        super().__init__(language)
        self.model_size = model_size
        self.device = device
        self.compute_type = compute_type
        self.beam_size = beam_size
        self.download_root = download_root
        self.sample_rate = sample_rate
        self.channels = channels
        self.model_factory = model_factory

        self._model = None
        self._model_lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    def initialize(self) -> bool:
        """Load the model now instead of on the first request."""
        self._get_model()
        return True

    def _get_model(self):
        if self._model is None:
            with self._model_lock:
                if self._model is None:
                    logger.info(f"Loading Whisper model {self.model_size!r} "
                                f"on {self.device} ({self.compute_type})...")
                    try:
                        self._model = self.model_factory(
                            self.model_size,
                            device=self.device,
                            compute_type=self.compute_type,
                            download_root=self.download_root,
                        )
                    except Exception as e:
                        logger.error(f"Failed to load Whisper model {self.model_size!r}: {e}")
                        raise ModelLoadError(
                            f"Could not load Whisper model '{self.model_size}': {e}", self.service_name
                        ) from e
                    logger.info("Whisper model ready")
        return self._model

    async def transcribe(self, audio: bytes, language: Optional[str] = None,
                         cancel_token: Optional[CancellationToken] = None) -> str:
        if not audio:
            return ""
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        language = normalize_language(language) or self.language
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, self._transcribe_blocking, audio, language, cancel_token
        )

    def _transcribe_blocking(self, audio: bytes, language: Optional[str],
                             cancel_token: Optional[CancellationToken]) -> str:
        model = self._get_model()
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        samples = pcm16_to_float32(audio, self.sample_rate, self.channels)
        duration = samples.size / float(WHISPER_SAMPLE_RATE)

        parts = []
        try:
            segments, info = model.transcribe(
                samples,
                language=language,
                beam_size=self.beam_size,
                vad_filter=False,
                condition_on_previous_text=False,
            )
            # segments is a lazy generator; decoding happens while iterating
            for segment in segments:
                parts.append(segment.text.strip())
                if cancel_token is not None and cancel_token.is_cancelled:
                    raise OperationCancelledError("Local transcription cancelled")
        except OperationCancelledError:
            logger.info(f"Local transcription cancelled after {len(parts)} segments")
            raise
        except Exception as e:
            logger.error(f"Local Whisper inference failed: {e}", exc_info=True)
            raise LocalInferenceError(f"Local Whisper inference failed: {e}", self.service_name) from e

        text = " ".join(part for part in parts if part).strip()
        logger.info(f"Transcribed {duration:.1f}s -> {text!r} "
                    f"(lang={getattr(info, 'language', None)})")
        return text

    def cleanup(self) -> None:
        """Release the loaded model."""
        with self._model_lock:
            self._model = None
