"""Unit tests for the console helpers."""

import asyncio
import io
import logging
import sys
import time
from types import SimpleNamespace

import pytest
from rich.console import Console

from voicemacro.cancellation import CancellationToken
from voicemacro.config import VoiceMacroConfig
from voicemacro.main import CaptureRunner, print_outcome, setup_logging
from voicemacro.models.transcription import ErrorKind, RecordingOutcome


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=120, color_system=None)


@pytest.fixture
def restore_root_logger():
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


class FakeOrchestrator:
    """Orchestrator that waits for its token and records how it was driven."""

    def __init__(self):
        self.status_callbacks = []
        self.level_callbacks = []
        self.tokens = []
        self.closed = False
        self.publisher = SimpleNamespace(flush=lambda timeout=2.0: True)

    def subscribe_status(self, callback):
        self.status_callbacks.append(callback)

    def subscribe_level(self, callback):
        self.level_callbacks.append(callback)

    async def capture_and_transcribe(self, cancel_token=None):
        self.tokens.append(cancel_token)
        deadline = time.monotonic() + 5.0
        while not cancel_token.is_cancelled and time.monotonic() < deadline:
            await asyncio.sleep(0.01)
        return RecordingOutcome.empty("no audio")

    def close(self):
        self.closed = True


@pytest.mark.unit
class TestPrintOutcome:

    def test_ok(self, console):
        assert print_outcome(console, RecordingOutcome.ok("안녕하세요", service="fake")) == 0
        assert "안녕하세요" in console.file.getvalue()

    def test_empty_is_not_an_error(self, console):
        assert print_outcome(console, RecordingOutcome.empty("no speech")) == 0
        assert "no speech" in console.file.getvalue()

    def test_error(self, console):
        outcome = RecordingOutcome.error(ErrorKind.TRANSCRIPTION_FAILURE, "timeout")

        assert print_outcome(console, outcome) == 1
        assert "timeout" in console.file.getvalue()


@pytest.mark.unit
def test_setup_logging_writes_debug_to_file(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "voicemacro.log"
    config = VoiceMacroConfig.from_dict({
        "logging": {"file_path": str(log_file), "console_output": False},
    })

    setup_logging(config, "DEBUG")
    logging.getLogger("voicemacro.test").debug("debug line")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert log_file.exists()
    assert "debug line" in log_file.read_text(encoding="utf-8")


@pytest.mark.unit
class TestCaptureRunner:

    def test_duration_cancels_token(self, test_config, console, monkeypatch):
        monkeypatch.setattr(sys, "stdin", io.StringIO(""))
        orchestrator = FakeOrchestrator()
        runner = CaptureRunner(test_config, console=console, orchestrator=orchestrator)

        started = time.monotonic()
        outcome = runner.run(duration=0.05)

        assert outcome.reason == "no audio"
        assert orchestrator.tokens[0].is_cancelled
        assert time.monotonic() - started < 4.0
        assert orchestrator.closed
        assert orchestrator.status_callbacks == [runner.on_status]
        assert orchestrator.level_callbacks == [runner.on_level]
        assert "Speak now" in console.file.getvalue()

    def test_enter_cancels_token(self, test_config, console, monkeypatch):
        monkeypatch.setattr(sys, "stdin", io.StringIO("\n"))
        orchestrator = FakeOrchestrator()
        runner = CaptureRunner(test_config, console=console, orchestrator=orchestrator)

        runner.run()

        assert orchestrator.tokens[0].is_cancelled
        assert orchestrator.closed

    def test_closed_stdin_does_not_cancel(self, monkeypatch):
        monkeypatch.setattr(sys, "stdin", io.StringIO(""))
        token = CancellationToken()

        CaptureRunner._wait_for_enter(token)

        assert not token.is_cancelled
