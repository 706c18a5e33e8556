"""Data models for the VoiceMacro capture pipeline."""

from .audio import AudioStats, AudioFrame, AudioLevelSample
from .session import RecordingSession, SessionStatus
from .transcription import (
    TranscriptionRequest,
    TranscriptionResult,
    RecordingOutcome,
    OutcomeKind,
    ErrorKind,
    REASON_NO_AUDIO,
    REASON_NO_MICROPHONE,
    REASON_NO_SPEECH,
)

__all__ = [
    "AudioStats",
    "AudioFrame",
    "AudioLevelSample",
    "RecordingSession",
    "SessionStatus",
    "TranscriptionRequest",
    "TranscriptionResult",
    "RecordingOutcome",
    "OutcomeKind",
    "ErrorKind",
    "REASON_NO_AUDIO",
    "REASON_NO_MICROPHONE",
    "REASON_NO_SPEECH",
]
