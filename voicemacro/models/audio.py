"""Audio-related data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class AudioStats:
    """Audio recording statistics."""
    is_recording: bool
    duration_seconds: float
    total_bytes: int
    sample_rate: int
    chunk_size: int
    total_chunks: int
    peak_db: Optional[float] = None


@dataclass
class AudioFrame:
    """A single captured chunk with timestamp."""
    data: bytes
    timestamp: float  # Time when this frame was captured
    frame_number: int


@dataclass(frozen=True)
class AudioLevelSample:
    """One level measurement used for live feedback only."""
    db: float
    percentage: int  # 0..100, -60dB floor to 0dB full scale
    timestamp: float
