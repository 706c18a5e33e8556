"""Audio recording service that owns the capture session lifecycle."""

import asyncio
import concurrent.futures
import logging
import threading
import uuid
from typing import Callable, Optional

from ..audio.audio_pub import RecordingEventPublisher
from ..audio.buffer import CaptureBuffer
from ..audio.capture import AudioCapture
from ..audio.level import LevelMonitor
from ..audio.probe import MicrophoneProbe
from ..audio.speech_detector import SpeechDetectorConfig, SpeechEndDetector
from ..cancellation import CancellationToken
from ..config import VoiceMacroConfig
from ..errors import CaptureFaultError, NoMicrophoneError, RecordingInProgressError
from ..models.audio import AudioLevelSample, AudioStats
from ..models.session import RecordingSession, SessionStatus
from ..models import status

logger = logging.getLogger(__name__)

# Seconds to wait for the capture thread after the awaiting task was cancelled
STOP_JOIN_TIMEOUT = 2.0


class AudioRecordingService:
    """Records one utterance at a time and reports level and status while doing so."""

    def __init__(self,
                 config: VoiceMacroConfig,
                 publisher: Optional[RecordingEventPublisher] = None,
                 probe: Optional[MicrophoneProbe] = None,
                 audio_capture: Optional[AudioCapture] = None):
        """Initialize recording service.

        Args:
            config: Application configuration
            publisher: Where status and level notifications go
            probe: Microphone availability check
            audio_capture: Device wrapper used for every session
        """
        self.config = config
        self.sample_rate = config.get('audio.sample_rate', 16000)
        self.chunk_size = config.get('audio.chunk_size', 1024)
        self.channels = config.get('audio.channels', 1)
        device_index = config.get('audio.device_index')

        self.publisher = publisher or RecordingEventPublisher()
        self.probe = probe or MicrophoneProbe(device_index=device_index)
        self.audio_capture = audio_capture or AudioCapture(
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            channels=self.channels,
            device_index=device_index,
        )
        self.detector_config = SpeechDetectorConfig(
            speech_threshold_db=config.get('capture.speech_threshold_db', -40.0),
            silence_timeout_seconds=config.get('capture.silence_timeout_seconds', 1.5),
            max_duration_seconds=config.get('capture.max_duration_seconds', 10.0),
            no_speech_timeout_seconds=config.get('capture.no_speech_timeout_seconds', 0.0),
            enabled=config.get_bool('capture.auto_stop', True),
        )

        self._session_lock = threading.Lock()
        # One read loop at a time; a loop outliving its caller keeps this thread busy
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="voicemacro-capture")
        self.current_session: Optional[RecordingSession] = None
        self.last_stats: Optional[AudioStats] = None

        logger.info(f"AudioRecordingService ready: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk, {self.channels} channel(s)")

    def has_microphone(self) -> bool:
        """Fast capability check; never raises."""
        return self.probe.has_microphone()

    @property
    def is_recording(self) -> bool:
        session = self.current_session
        return session is not None and session.status is SessionStatus.RECORDING

    def subscribe_status(self, callback: Callable[[str], None]) -> None:
        self.publisher.subscribe_status(callback)

    def subscribe_level(self, callback: Callable[[int], None]) -> None:
        self.publisher.subscribe_level(callback)

    def stop(self) -> None:
        """Ask the active session to finish; its audio so far is kept."""
        session = self.current_session
        if session is not None:
            logger.info("Stop requested for active recording")
            session.stop_event.set()

    def close(self) -> None:
        """Stop the active session and let the capture thread exit on its own."""
        self.stop()
        self._executor.shutdown(wait=False)

    async def record_speech(self, cancel_token: Optional[CancellationToken] = None) -> bytes:
        """Record one utterance and return the raw PCM (possibly empty, never None)."""
        session = await self.capture_session(cancel_token)
        try:
            return session.buffer.to_bytes()
        finally:
            session.release()

    async def capture_session(self, cancel_token: Optional[CancellationToken] = None,
                              check_microphone: bool = True) -> RecordingSession:
        """Run a capture session to a terminal state and return it.

        The caller owns the returned session and should ``release()`` it.

        Raises:
            RecordingInProgressError: if another session is active
            NoMicrophoneError: if the input device could not be opened
            CaptureFaultError: if the device failed while recording
        """
        token = cancel_token or CancellationToken()
        if not self._session_lock.acquire(blocking=False):
            raise RecordingInProgressError("A recording session is already active")

        session = None
        handed_off = False
        try:
            session = RecordingSession(
                session_id=uuid.uuid4().hex[:8],
                cancel_token=token,
                sample_rate=self.sample_rate,
                channels=self.channels,
                buffer=CaptureBuffer(self.sample_rate, self.channels),
            )
            self.current_session = session

            if check_microphone and not self.has_microphone():
                logger.warning("No microphone detected, returning empty capture")
                self.publisher.publish_status(status.STATUS_NO_MICROPHONE)
                session.end_reason = "no_microphone"
                session.transition(SessionStatus.COMPLETED)
                return session

            session.transition(SessionStatus.RECORDING)
            logger.info(f"Started recording session {session.session_id}")
            self.publisher.publish_status(status.STATUS_LISTENING)

            capture_future = self._executor.submit(self._record_blocking, session)
            future = asyncio.wrap_future(capture_future)
            try:
                await asyncio.shield(future)
            except asyncio.CancelledError:
                # The awaiting task went away: stop the loop so the device is released
                session.stop_event.set()
                await asyncio.wait({future}, timeout=STOP_JOIN_TIMEOUT)
                if not capture_future.done():
                    logger.warning(f"Capture thread of session {session.session_id} still reading "
                                   f"after {STOP_JOIN_TIMEOUT}s, device stays busy until it returns")
                    handed_off = True
                    future.cancel()
                    capture_future.add_done_callback(lambda _: self._finish_session(session))
                raise

            session.transition(SessionStatus.COMPLETED)
            logger.info(f"Recording session {session.session_id} completed "
                        f"({session.end_reason}): {len(session.buffer)} bytes, "
                        f"{session.buffer.duration_seconds:.2f}s of audio")
            return session
        finally:
            if not handed_off:
                self._finish_session(session)

    def _finish_session(self, session: Optional[RecordingSession]) -> None:
        # The lock goes first so a caller that sees no current session can start one
        self._session_lock.release()
        if self.current_session is session:
            self.current_session = None

    def _record_blocking(self, session: RecordingSession) -> None:
        """Internal method: read loop on an executor thread."""
        detector = SpeechEndDetector(self.detector_config)
        monitor = LevelMonitor(callback=self._publish_level)
        bytes_per_second = session.buffer.bytes_per_second
        speaking = False
        total_chunks = 0

        try:
            with self.audio_capture.open_stream() as stream:
                while True:
                    if session.cancel_token.is_cancelled:
                        session.end_reason = "cancelled"
                        break
                    if session.stop_event.is_set():
                        session.end_reason = "stopped"
                        break

                    audio_chunk = stream.read_chunk()
                    total_chunks += 1
                    session.buffer.add_audio_chunk(audio_chunk)
                    sample = monitor.process_chunk(audio_chunk)

                    end_reason = detector.update(sample.db, len(audio_chunk) / float(bytes_per_second))
                    if detector.speech_detected and not speaking:
                        speaking = True
                        self.publisher.publish_status(status.STATUS_RECORDING)
                    if end_reason:
                        session.end_reason = end_reason
                        break

                session.transition(SessionStatus.STOPPING)
                self.publisher.publish_status(status.STATUS_STOPPING)
        except NoMicrophoneError as e:
            logger.warning(f"Input device went away before session {session.session_id}: {e}")
            session.end_reason = "no_microphone"
            session.transition(SessionStatus.FAILED)
            raise
        except Exception as e:
            logger.error(f"Audio capture failed in session {session.session_id}: {e}", exc_info=True)
            session.end_reason = "fault"
            session.transition(SessionStatus.FAILED)
            raise CaptureFaultError(f"Audio capture failed: {e}") from e
        finally:
            self.last_stats = AudioStats(
                is_recording=False,
                duration_seconds=session.buffer.duration_seconds,
                total_bytes=len(session.buffer),
                sample_rate=self.sample_rate,
                chunk_size=self.chunk_size,
                total_chunks=total_chunks,
                peak_db=monitor.peak_db if monitor.sample_count else None,
            )
            if session.status is SessionStatus.FAILED:
                session.release()

    def _publish_level(self, sample: AudioLevelSample) -> None:
        self.publisher.publish_level(sample.percentage)

    def get_recording_stats(self) -> Optional[AudioStats]:
        """Statistics of the last finished capture, if any."""
        return self.last_stats
