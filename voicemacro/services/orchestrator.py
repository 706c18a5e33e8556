"""Recording orchestrator: probe, capture and transcription as one operation."""

import asyncio
import logging
from typing import Callable, Optional

from ..cancellation import CancellationToken
from ..config import VoiceMacroConfig
from ..errors import CaptureFaultError, NoMicrophoneError, OperationCancelledError, TranscriptionError
from ..models import status
from ..models.session import RecordingSession
from ..models.transcription import (
    ErrorKind,
    RecordingOutcome,
    TranscriptionRequest,
    REASON_NO_AUDIO,
    REASON_NO_MICROPHONE,
    REASON_NO_SPEECH,
)
from ..transcription.base import normalize_language
from ..transcription.selector import BackendRegistry
from .recording_service import AudioRecordingService

logger = logging.getLogger(__name__)


class RecordingOrchestrator:
    """Captures one utterance and turns it into text.

    Every fault is converted into a ``RecordingOutcome``; nothing but the
    caller's own task cancellation escapes ``capture_and_transcribe``.
    """

    def __init__(self,
                 config: VoiceMacroConfig,
                 recording_service: Optional[AudioRecordingService] = None,
                 backends: Optional[BackendRegistry] = None):
        """Initialize orchestrator.

        Args:
            config: Application configuration (backend selection, language hint)
            recording_service: Capture service, created from config if omitted
            backends: Backend cache, created if omitted
        """
        self.config = config
        self.recording_service = recording_service or AudioRecordingService(config)
        self.publisher = self.recording_service.publisher
        self.backends = backends or BackendRegistry()

    def subscribe_status(self, callback: Callable[[str], None]) -> None:
        self.publisher.subscribe_status(callback)

    def subscribe_level(self, callback: Callable[[int], None]) -> None:
        self.publisher.subscribe_level(callback)

    def stop_recording(self) -> None:
        """End the current capture early; the audio so far is still transcribed."""
        self.recording_service.stop()

    async def capture_and_transcribe(self,
                                     cancel_token: Optional[CancellationToken] = None) -> RecordingOutcome:
        """Record one utterance and transcribe it with the configured backend.

        ``cancel_token`` first ends the recording. If the recording ended on its
        own (silence or max duration), cancelling it afterwards aborts the
        transcription instead.
        """
        token = cancel_token or CancellationToken()
        session: Optional[RecordingSession] = None
        stage = "probe"
        service_name = None

        try:
            if not self.recording_service.has_microphone():
                logger.warning("No microphone detected")
                self.publisher.publish_status(status.STATUS_NO_MICROPHONE)
                return RecordingOutcome.empty(REASON_NO_MICROPHONE)

            stage = "capture"
            session = await self.recording_service.capture_session(token, check_microphone=False)
            audio = session.buffer.to_bytes()
            if not audio:
                logger.info("Capture produced no audio, skipping transcription")
                self.publisher.publish_status(status.STATUS_NO_AUDIO)
                return RecordingOutcome.empty(REASON_NO_AUDIO)

            stage = "transcribe"
            # A token that already ended the recording must not abort the transcription
            transcription_token = CancellationToken() if token.is_cancelled else token
            request = TranscriptionRequest(
                audio=audio,
                language=normalize_language(self.config.whisper_language),
                cancel_token=transcription_token,
                sample_rate=session.sample_rate,
                channels=session.channels,
            )
            session.release()
            del audio

            backend = self.backends.get(self.config)
            service_name = backend.service_name
            self.publisher.publish_status(status.STATUS_RECOGNIZING)

            result = await backend.transcribe_request(request)
            text = (result.text or "").strip()
            if not text:
                logger.info(f"{service_name} recognised no speech")
                self.publisher.publish_status(status.STATUS_NOT_RECOGNIZED)
                return RecordingOutcome.empty(REASON_NO_SPEECH, service=service_name)

            logger.info(f"Recognised text via {service_name}: '{text}'")
            self.publisher.publish_status(status.STATUS_RECOGNIZED)
            return RecordingOutcome.ok(text, service=service_name)

        except OperationCancelledError as e:
            logger.info(f"Operation cancelled during {stage}: {e}")
            self.publisher.publish_status(status.STATUS_CANCELLED)
            return RecordingOutcome.error(ErrorKind.CANCELLED, "cancelled", service=service_name)
        except NoMicrophoneError as e:
            logger.warning(f"Microphone unavailable: {e}")
            self.publisher.publish_status(status.STATUS_NO_MICROPHONE)
            return RecordingOutcome.error(ErrorKind.NO_MICROPHONE, str(e))
        except CaptureFaultError as e:
            logger.error(f"Capture failed: {e}")
            self.publisher.publish_status(status.STATUS_ERROR)
            return RecordingOutcome.error(ErrorKind.CAPTURE_FAULT, str(e))
        except TranscriptionError as e:
            logger.error(f"Transcription failed ({e.kind}): {e}")
            self.publisher.publish_status(status.STATUS_ERROR)
            return RecordingOutcome.error(ErrorKind.TRANSCRIPTION_FAILURE, str(e),
                                          service=e.service or service_name)
        except asyncio.CancelledError:
            self.publisher.publish_status(status.STATUS_CANCELLED)
            raise
        except Exception as e:
            logger.error(f"Unexpected error during {stage}: {e}", exc_info=True)
            self.publisher.publish_status(status.STATUS_ERROR)
            kind = ErrorKind.TRANSCRIPTION_FAILURE if stage == "transcribe" else ErrorKind.CAPTURE_FAULT
            return RecordingOutcome.error(kind, str(e) or e.__class__.__name__, service=service_name)
        finally:
            if session is not None:
                session.release()

    def run(self, cancel_token: Optional[CancellationToken] = None) -> RecordingOutcome:
        """Blocking wrapper for callers without an event loop."""
        return asyncio.run(self.capture_and_transcribe(cancel_token))

    def close(self) -> None:
        """Release backends and stop the notification dispatcher."""
        self.recording_service.close()
        self.backends.cleanup()
        self.publisher.close()
        logger.info("RecordingOrchestrator closed")
