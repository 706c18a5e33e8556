"""OpenAI Whisper API transcription backend."""

import asyncio
import json
import logging
from typing import Any, Callable, Optional

import aiohttp

from .base import AbstractTranscriptionBackend, normalize_language
from ..audio.wav import encode_wav
from ..cancellation import CancellationToken, run_cancellable
from ..errors import (
    ApiResponseError,
    AuthenticationError,
    NetworkError,
    RateLimitError,
    TranscriptionTimeoutError,
)

logger = logging.getLogger(__name__)

OPENAI_TRANSCRIPTIONS_URL = "https://api.openai.com/v1/audio/transcriptions"


class OpenAITranscriptionBackend(AbstractTranscriptionBackend):
    """Sends captured audio to the OpenAI speech-to-text endpoint."""

    service_name = "OpenAI Whisper API"

    def __init__(self,
                 api_key: str,
                 language: Optional[str] = None,
                 model: str = "whisper-1",
                 base_url: str = OPENAI_TRANSCRIPTIONS_URL,
                 timeout_seconds: float = 30.0,
                 sample_rate: int = 16000,
                 channels: int = 1,
                 session_factory: Callable[..., Any] = aiohttp.ClientSession):
        """Initialize OpenAI backend.

        Args:
            api_key: OpenAI API key
            language: ISO-639-1 language hint (e.g. 'ko', 'en'), None to auto-detect
            model: Transcription model name
            timeout_seconds: Total timeout for one request
            session_factory: Creates the aiohttp client session for each request
        """
        super().__init__(language)
        if not api_key or not api_key.strip():
            raise ValueError("OpenAI API key is required - cannot initialize without credentials")
        self.api_key = api_key.strip()
        self.model = model
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self.sample_rate = sample_rate
        self.channels = channels
        self.session_factory = session_factory

        logger.info(f"OpenAITranscriptionBackend initialized with model: {model}")

    def initialize(self) -> bool:
        # Credentials are only verified by the first request
        return True

    async def transcribe(self, audio: bytes, language: Optional[str] = None,
                         cancel_token: Optional[CancellationToken] = None) -> str:
        """Transcribe audio through the API, aborting the request on cancellation."""
        if not audio:
            return ""
        language = normalize_language(language) or self.language
        return await run_cancellable(self._request_transcription(audio, language), cancel_token)

    async def _request_transcription(self, audio: bytes, language: Optional[str]) -> str:
        wav_data = encode_wav(audio, sample_rate=self.sample_rate, channels=self.channels)

        form = aiohttp.FormData()
        form.add_field("file", wav_data, filename="speech.wav", content_type="audio/wav")
        form.add_field("model", self.model)
        form.add_field("response_format", "json")
        if language:
            form.add_field("language", language)

        headers = {"Authorization": f"Bearer {self.api_key}"}
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)

        logger.debug(f"Audio size: {len(audio)} bytes; WAV size: {len(wav_data)} bytes; "
                     f"Language: {language or 'auto'}; Model: {self.model}")
        try:
            async with self.session_factory(timeout=timeout) as session:
                async with session.post(self.base_url, headers=headers, data=form) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise self._error_for_status(response.status, error_text, response.headers)

                    result = await response.json()
        except asyncio.TimeoutError as e:
            logger.error(f"OpenAI transcription request timed out after {self.timeout_seconds}s")
            raise TranscriptionTimeoutError("timeout", self.service_name) from e
        except aiohttp.ClientError as e:
            logger.error(f"OpenAI transcription network error: {e}")
            raise NetworkError(f"OpenAI network error: {e}", self.service_name) from e

        text = (result or {}).get("text") or ""
        return text.strip()

    def _error_for_status(self, status: int, error_text: str, headers) -> Exception:
        message = _extract_error_message(error_text)
        logger.error(f"OpenAI API error: {status} - {message}")

        if status in (401, 403):
            return AuthenticationError(f"OpenAI authentication failed: {message}", self.service_name)
        if status == 429:
            retry_after = None
            if headers is not None and headers.get("Retry-After"):
                try:
                    retry_after = float(headers.get("Retry-After"))
                except ValueError:
                    retry_after = None
            return RateLimitError(f"OpenAI rate limit exceeded: {message}", self.service_name,
                                  retry_after=retry_after)
        return ApiResponseError(f"OpenAI API error: {status} - {message}", self.service_name,
                                status=status)

    def cleanup(self) -> None:
        """Nothing persistent to release; sessions are per request."""
        pass


def _extract_error_message(error_text: str) -> str:
    """Pull ``error.message`` out of an OpenAI error body when it is JSON."""
    try:
        body = json.loads(error_text)
    except (TypeError, ValueError):
        return (error_text or "").strip()
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"].get("message") or error_text
    return (error_text or "").strip()
