"""Services layer for VoiceMacro application logic."""

from .recording_service import AudioRecordingService
from .orchestrator import RecordingOrchestrator

__all__ = [
    "AudioRecordingService",
    "RecordingOrchestrator",
]
