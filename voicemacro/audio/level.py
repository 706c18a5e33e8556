"""Signal level measurement for live recording feedback."""

import math
import time
import logging
from typing import Callable, Optional

import numpy as np

from ..models.audio import AudioLevelSample

logger = logging.getLogger(__name__)

# -60dB is shown as an empty meter, 0dB as a full one
SILENCE_FLOOR_DB = -60.0
FULL_SCALE_DB = 0.0
# Reported for digital silence instead of -inf
MIN_DB = -120.0


def compute_db(audio_chunk: bytes) -> float:
    """RMS level of a 16-bit PCM chunk in dB relative to full scale."""
    if not audio_chunk:
        return MIN_DB

    samples = np.frombuffer(audio_chunk[:len(audio_chunk) - len(audio_chunk) % 2], dtype=np.int16)
    if samples.size == 0:
        return MIN_DB

    normalized = samples.astype(np.float64) / 32768.0
    rms = float(np.sqrt(np.mean(normalized ** 2)))
    if rms <= 0.0:
        return MIN_DB
    return max(MIN_DB, 20.0 * math.log10(rms))


def db_to_percentage(db: float) -> int:
    """Map a dB value onto the 0-100 meter scale.

    ``percentage = clamp(round((db + 60) * 100 / 60), 0, 100)``
    """
    if db is None or math.isnan(db):
        return 0
    span = FULL_SCALE_DB - SILENCE_FLOOR_DB
    value = (db - SILENCE_FLOOR_DB) * 100.0 / span
    if value <= 0:
        return 0
    if value >= 100:
        return 100
    return int(round(value))


class LevelMonitor:
    """Turns captured chunks into level samples and forwards them."""

    def __init__(self, callback: Optional[Callable[[AudioLevelSample], None]] = None):
        self.callback = callback
        self.peak_db = MIN_DB
        self.last_sample: Optional[AudioLevelSample] = None
        self.sample_count = 0

    def process_chunk(self, audio_chunk: bytes) -> AudioLevelSample:
        db = compute_db(audio_chunk)
        sample = AudioLevelSample(db=db, percentage=db_to_percentage(db), timestamp=time.time())

        self.sample_count += 1
        self.last_sample = sample
        if db > self.peak_db:
            self.peak_db = db

        if self.callback:
            self.callback(sample)
        return sample

    def reset(self) -> None:
        self.peak_db = MIN_DB
        self.last_sample = None
        self.sample_count = 0
