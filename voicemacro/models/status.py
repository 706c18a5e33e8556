"""Human-readable status strings published to observers."""

STATUS_READY = "ready"
STATUS_NO_MICROPHONE = "microphone not detected"
STATUS_LISTENING = "listening"
STATUS_RECORDING = "recording"
STATUS_STOPPING = "stopping"
STATUS_RECOGNIZING = "recognizing"
STATUS_RECOGNIZED = "recognized"
STATUS_NOT_RECOGNIZED = "recognition failed"
STATUS_NO_AUDIO = "recording failed"
STATUS_CANCELLED = "cancelled"
STATUS_ERROR = "error"
