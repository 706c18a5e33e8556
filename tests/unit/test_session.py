"""Unit tests for the recording session state machine."""

import pytest

from voicemacro.cancellation import CancellationToken
from voicemacro.errors import InvalidSessionTransition
from voicemacro.models.session import RecordingSession, SessionStatus


def new_session():
    return RecordingSession(session_id="test", cancel_token=CancellationToken())


@pytest.mark.unit
class TestRecordingSession:

    def test_happy_path(self):
        session = new_session()
        assert session.status is SessionStatus.IDLE

        session.transition(SessionStatus.RECORDING)
        session.transition(SessionStatus.STOPPING)
        session.transition(SessionStatus.COMPLETED)

        assert session.is_terminal
        assert session.end_time is not None

    def test_idle_can_complete_without_recording(self):
        session = new_session()
        session.transition(SessionStatus.COMPLETED)

        assert session.status is SessionStatus.COMPLETED

    @pytest.mark.parametrize("path", [
        [SessionStatus.STOPPING],
        [SessionStatus.FAILED],
        [SessionStatus.RECORDING, SessionStatus.COMPLETED],
        [SessionStatus.RECORDING, SessionStatus.FAILED, SessionStatus.COMPLETED],
        [SessionStatus.COMPLETED, SessionStatus.RECORDING],
    ])
    def test_illegal_transitions(self, path):
        session = new_session()
        with pytest.raises(InvalidSessionTransition):
            for status in path:
                session.transition(status)

    def test_release_drops_audio(self, sample_audio_chunk):
        session = new_session()
        session.buffer.add_audio_chunk(sample_audio_chunk)
        session.release()

        assert session.buffer.is_empty()
