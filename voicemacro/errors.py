"""Exception taxonomy for VoiceMacro capture and transcription."""

from typing import Optional


class VoiceMacroError(Exception):
    """Base class for all VoiceMacro errors."""


class NoMicrophoneError(VoiceMacroError):
    """No usable input device was found."""


class CaptureFaultError(VoiceMacroError):
    """The audio device failed while a session was recording."""


class RecordingInProgressError(CaptureFaultError):
    """A second capture was requested while one is still active."""


class InvalidSessionTransition(VoiceMacroError):
    """A recording session was moved into a state it cannot reach."""


class OperationCancelledError(VoiceMacroError):
    """The caller cancelled a long-running operation."""


class TranscriptionError(VoiceMacroError):
    """A transcription backend failed to turn audio into text."""

    kind = "transcription"

    def __init__(self, message: str, service: Optional[str] = None):
        super().__init__(message)
        self.service = service


class NetworkError(TranscriptionError):
    kind = "network"


class TranscriptionTimeoutError(TranscriptionError):
    kind = "timeout"

    def __init__(self, message: str = "timeout", service: Optional[str] = None):
        super().__init__(message, service)


class AuthenticationError(TranscriptionError):
    kind = "auth"


class RateLimitError(TranscriptionError):
    kind = "rate_limit"

    def __init__(self, message: str, service: Optional[str] = None,
                 retry_after: Optional[float] = None):
        super().__init__(message, service)
        self.retry_after = retry_after


class ApiResponseError(TranscriptionError):
    kind = "api"

    def __init__(self, message: str, service: Optional[str] = None,
                 status: Optional[int] = None):
        super().__init__(message, service)
        self.status = status


class ModelLoadError(TranscriptionError):
    kind = "model_load"


class LocalInferenceError(TranscriptionError):
    kind = "inference"
