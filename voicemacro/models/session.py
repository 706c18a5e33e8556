"""Recording session model and its lifecycle state machine."""

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..audio.buffer import CaptureBuffer
from ..cancellation import CancellationToken
from ..errors import InvalidSessionTransition


class SessionStatus(Enum):
    """Lifecycle states of a capture attempt."""
    IDLE = "idle"
    RECORDING = "recording"
    STOPPING = "stopping"
    COMPLETED = "completed"
    FAILED = "failed"


_ALLOWED_TRANSITIONS = {
    SessionStatus.IDLE: {SessionStatus.RECORDING, SessionStatus.COMPLETED},
    SessionStatus.RECORDING: {SessionStatus.STOPPING, SessionStatus.FAILED},
    SessionStatus.STOPPING: {SessionStatus.COMPLETED, SessionStatus.FAILED},
    SessionStatus.COMPLETED: set(),
    SessionStatus.FAILED: set(),
}


@dataclass
class RecordingSession:
    """One capture attempt, owned by a single recording service call."""
    session_id: str
    cancel_token: CancellationToken
    sample_rate: int = 16000
    channels: int = 1
    buffer: CaptureBuffer = field(default_factory=CaptureBuffer)
    status: SessionStatus = SessionStatus.IDLE
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None
    end_reason: Optional[str] = None  # "cancelled", "stopped", "silence", "max_duration", ...
    stop_event: threading.Event = field(default_factory=threading.Event, repr=False)

    def transition(self, new_status: SessionStatus) -> None:
        if new_status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidSessionTransition(
                f"Session {self.session_id}: cannot go from {self.status.value} to {new_status.value}"
            )
        self.status = new_status
        if new_status in (SessionStatus.COMPLETED, SessionStatus.FAILED):
            self.end_time = time.time()

    @property
    def is_terminal(self) -> bool:
        return self.status in (SessionStatus.COMPLETED, SessionStatus.FAILED)

    @property
    def duration_seconds(self) -> float:
        end = self.end_time if self.end_time is not None else time.time()
        return end - self.start_time

    def release(self) -> None:
        """Drop the captured audio once it is no longer needed."""
        self.buffer.clear()
