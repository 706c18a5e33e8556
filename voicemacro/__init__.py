"""VoiceMacro: record a spoken keyword and transcribe it locally or in the cloud."""

from .cancellation import CancellationToken
from .config import VoiceMacroConfig
from .models.transcription import RecordingOutcome, OutcomeKind, ErrorKind
from .services import AudioRecordingService, RecordingOrchestrator

__version__ = "0.1.0"

__all__ = [
    "CancellationToken",
    "VoiceMacroConfig",
    "RecordingOutcome",
    "OutcomeKind",
    "ErrorKind",
    "AudioRecordingService",
    "RecordingOrchestrator",
]
