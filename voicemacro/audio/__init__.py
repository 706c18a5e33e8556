"""Audio capture and processing module."""

from .buffer import CaptureBuffer
from .capture import AudioCapture, AudioInputStream
from .probe import MicrophoneProbe
from .level import LevelMonitor, compute_db, db_to_percentage
from .speech_detector import SpeechEndDetector, SpeechDetectorConfig
from .audio_pub import RecordingEventPublisher

__all__ = [
    'CaptureBuffer',
    'AudioCapture',
    'AudioInputStream',
    'MicrophoneProbe',
    'LevelMonitor',
    'compute_db',
    'db_to_percentage',
    'SpeechEndDetector',
    'SpeechDetectorConfig',
    'RecordingEventPublisher',
]
