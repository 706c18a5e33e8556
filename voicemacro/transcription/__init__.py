"""Transcription module for VoiceMacro."""

from .base import AbstractTranscriptionBackend, normalize_language
from ..models.transcription import TranscriptionRequest, TranscriptionResult
from .selector import BackendKind, BackendRegistry, create_backend, select_backend_kind

__all__ = [
    "AbstractTranscriptionBackend",
    "normalize_language",
    "TranscriptionRequest",
    "TranscriptionResult",
    "BackendKind",
    "BackendRegistry",
    "create_backend",
    "select_backend_kind",
]
