"""Transcription-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ..cancellation import CancellationToken


@dataclass(frozen=True)
class TranscriptionRequest:
    """Audio handed to exactly one backend call."""
    audio: bytes
    language: Optional[str] = None
    cancel_token: Optional[CancellationToken] = None
    sample_rate: int = 16000
    channels: int = 1


@dataclass
class TranscriptionResult:
    """Result of a transcription operation."""
    text: str
    service: str
    processing_time: float
    language: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_empty(self) -> bool:
        return not self.text or not self.text.strip()


class OutcomeKind(Enum):
    OK = "ok"
    EMPTY = "empty"
    ERROR = "error"


class ErrorKind(Enum):
    NO_MICROPHONE = "no_microphone"
    CAPTURE_FAULT = "capture_fault"
    TRANSCRIPTION_FAILURE = "transcription_failure"
    CANCELLED = "cancelled"


# Reasons attached to EMPTY outcomes
REASON_NO_AUDIO = "no audio"
REASON_NO_MICROPHONE = "no microphone"
REASON_NO_SPEECH = "no speech"


@dataclass(frozen=True)
class RecordingOutcome:
    """The single terminal outcome of one capture-and-transcribe attempt."""
    kind: OutcomeKind
    text: str = ""
    reason: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None
    service: Optional[str] = None

    @classmethod
    def ok(cls, text: str, service: Optional[str] = None) -> "RecordingOutcome":
        return cls(kind=OutcomeKind.OK, text=text, service=service)

    @classmethod
    def empty(cls, reason: str, service: Optional[str] = None) -> "RecordingOutcome":
        return cls(kind=OutcomeKind.EMPTY, reason=reason, service=service)

    @classmethod
    def error(cls, error_kind: ErrorKind, message: str,
              service: Optional[str] = None) -> "RecordingOutcome":
        return cls(kind=OutcomeKind.ERROR, error_kind=error_kind, message=message, service=service)

    @property
    def is_ok(self) -> bool:
        return self.kind is OutcomeKind.OK

    @property
    def is_empty(self) -> bool:
        return self.kind is OutcomeKind.EMPTY

    @property
    def is_error(self) -> bool:
        return self.kind is OutcomeKind.ERROR
