"""Abstract base classes for transcription backends."""

import time
from abc import ABC, abstractmethod
from typing import Optional
import logging

from ..cancellation import CancellationToken
from ..models.transcription import TranscriptionRequest, TranscriptionResult

logger = logging.getLogger(__name__)

# Hints that mean "let the engine detect the language"
AUTO_LANGUAGE_HINTS = {"", "auto", "detect"}


def normalize_language(language: Optional[str]) -> Optional[str]:
    """Return a language code to send to an engine, or None for auto-detect."""
    if language is None:
        return None
    language = language.strip()
    if language.lower() in AUTO_LANGUAGE_HINTS:
        return None
    return language


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for transcription backends."""

    service_name = "abstract"

    def __init__(self, language: Optional[str] = None):
        """Initialize backend with a default language hint."""
        self.language = normalize_language(language)

    @abstractmethod
    async def transcribe(self, audio: bytes, language: Optional[str] = None,
                         cancel_token: Optional[CancellationToken] = None) -> str:
        """Transcribe raw 16-bit PCM audio and return the recognised text.

        Args:
            audio: Raw audio data in bytes
            language: Language hint, overriding the backend default
            cancel_token: Cancellation handle for the call

        Returns:
            Recognised text, empty if no speech was recognised
        """
        pass

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize backend resources and verify configuration.

        Returns:
            True if initialization successful, False otherwise
        """
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Clean up backend resources."""
        pass

    async def transcribe_request(self, request: TranscriptionRequest) -> TranscriptionResult:
        """Run one request and wrap the text with timing metadata."""
        language = normalize_language(request.language) or self.language
        start_time = time.time()
        text = await self.transcribe(request.audio, language, request.cancel_token)
        processing_time = time.time() - start_time

        logger.debug(f"{self.service_name}: {len(request.audio)} bytes -> '{text}' "
                     f"({processing_time:.3f}s)")
        return TranscriptionResult(
            text=text or "",
            service=self.service_name,
            processing_time=processing_time,
            language=language,
        )
