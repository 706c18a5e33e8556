"""Energy-based end-of-speech detection for capture sessions."""

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class SpeechDetectorConfig:
    """Thresholds for ending a capture without an explicit stop."""
    speech_threshold_db: float = -40.0
    silence_timeout_seconds: float = 1.5
    max_duration_seconds: float = 10.0
    no_speech_timeout_seconds: float = 0.0  # 0 disables
    enabled: bool = True


# Reasons returned by SpeechEndDetector.update()
END_SILENCE = "silence"
END_MAX_DURATION = "max_duration"
END_NO_SPEECH = "no_speech"


class SpeechEndDetector:
    """Decides when an utterance has finished.

    Time is counted in audio seconds (from chunk sizes), not wall-clock time,
    so the same audio always ends at the same place.
    """

    def __init__(self, config: Optional[SpeechDetectorConfig] = None):
        self.config = config or SpeechDetectorConfig()
        self.reset()

    def reset(self) -> None:
        self.elapsed_seconds = 0.0
        self.silence_seconds = 0.0
        self.speech_detected = False

    def update(self, db: float, chunk_seconds: float) -> Optional[str]:
        """Feed one chunk's level; return an end reason or None to keep recording."""
        self.elapsed_seconds += chunk_seconds

        if db >= self.config.speech_threshold_db:
            if not self.speech_detected:
                logger.debug(f"Speech detected at {self.elapsed_seconds:.2f}s ({db:.1f} dB)")
            self.speech_detected = True
            self.silence_seconds = 0.0
        else:
            self.silence_seconds += chunk_seconds

        if self.config.max_duration_seconds and self.elapsed_seconds >= self.config.max_duration_seconds:
            return END_MAX_DURATION

        if not self.config.enabled:
            return None

        if self.speech_detected and self.silence_seconds >= self.config.silence_timeout_seconds:
            return END_SILENCE

        if (not self.speech_detected
                and self.config.no_speech_timeout_seconds
                and self.elapsed_seconds >= self.config.no_speech_timeout_seconds):
            return END_NO_SPEECH

        return None
