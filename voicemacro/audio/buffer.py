"""Accumulating audio buffer for a single capture session."""

import time
import logging
import threading
from typing import List, Optional

from ..models.audio import AudioFrame

logger = logging.getLogger(__name__)


class CaptureBuffer:
    """Ordered, thread-safe store of the PCM chunks captured in one session.

    Unlike a rolling buffer nothing is evicted: the whole utterance is kept
    until the session releases it.
    """

    def __init__(self, sample_rate: int = 16000, channels: int = 1, sample_width: int = 2):
        """Initialize capture buffer.

        Args:
            sample_rate: Audio sample rate
            channels: Number of audio channels
            sample_width: Bytes per sample (2 for 16-bit audio)
        """
        self.sample_rate = sample_rate
        self.channels = channels
        self.sample_width = sample_width
        self.bytes_per_second = sample_rate * channels * sample_width

        self._frames: List[AudioFrame] = []
        self._lock = threading.Lock()
        self.total_bytes = 0
        self.frame_counter = 0
        self.start_time: Optional[float] = None

    def add_audio_chunk(self, audio_data: bytes) -> None:
        """Append a captured chunk. Empty chunks are ignored."""
        if not audio_data:
            return

        current_time = time.time()
        with self._lock:
            if self.start_time is None:
                self.start_time = current_time
            self._frames.append(AudioFrame(
                data=bytes(audio_data),
                timestamp=current_time,
                frame_number=self.frame_counter
            ))
            self.frame_counter += 1
            self.total_bytes += len(audio_data)

    def to_bytes(self) -> bytes:
        """Return all captured audio in capture order."""
        with self._lock:
            return b''.join(frame.data for frame in self._frames)

    @property
    def duration_seconds(self) -> float:
        if not self.bytes_per_second:
            return 0.0
        return self.total_bytes / self.bytes_per_second

    def __len__(self) -> int:
        return self.total_bytes

    def is_empty(self) -> bool:
        return self.total_bytes == 0

    def clear(self) -> None:
        """Clear the buffer."""
        with self._lock:
            self._frames.clear()
            self.total_bytes = 0
            self.frame_counter = 0
            self.start_time = None
        logger.debug("Capture buffer cleared")
