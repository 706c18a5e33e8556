"""Pytest configuration and fixtures for VoiceMacro tests."""

import pytest
import threading
import logging
from types import SimpleNamespace
from contextlib import contextmanager
from typing import Callable, List, Optional
from unittest.mock import Mock, patch
import numpy as np

from voicemacro.config import VoiceMacroConfig
from voicemacro.transcription.base import AbstractTranscriptionBackend


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000
CHUNK_SIZE = 1024


def make_tone(samples: int = CHUNK_SIZE, amplitude: float = 0.5, freq: float = 440.0,
              sample_rate: int = SAMPLE_RATE) -> bytes:
    t = np.arange(samples) / sample_rate
    wave_data = amplitude * np.sin(2 * np.pi * freq * t)
    return (wave_data * 32767).astype(np.int16).tobytes()


def make_silence(samples: int = CHUNK_SIZE) -> bytes:
    return b'\x00\x00' * samples


class FakeProbe:
    """Microphone probe with a fixed answer."""

    def __init__(self, available: bool = True):
        self.available = available
        self.calls = 0

    def has_microphone(self) -> bool:
        self.calls += 1
        return self.available


class FakeStream:
    """Input stream that plays back scripted chunks, then silence."""

    def __init__(self, chunks: List[bytes], on_read: Optional[Callable[[int], None]] = None,
                 fail_at: Optional[int] = None):
        self.chunks = list(chunks)
        self.on_read = on_read
        self.fail_at = fail_at
        self.total_chunks = 0

    def read_chunk(self) -> bytes:
        index = self.total_chunks
        self.total_chunks += 1
        if self.fail_at is not None and index >= self.fail_at:
            raise OSError("Input overflowed")
        if self.on_read:
            self.on_read(index)
        if index < len(self.chunks):
            return self.chunks[index]
        return make_silence()


class FakeAudioCapture:
    """Stand-in for AudioCapture that tracks device ownership."""

    def __init__(self, chunks: Optional[List[bytes]] = None, on_read=None, fail_at=None,
                 open_error: Optional[Exception] = None):
        self.chunks = chunks or []
        self.open_error = open_error
        self.on_read = on_read
        self.fail_at = fail_at
        self.open_count = 0
        self.close_count = 0
        self.is_open = False
        self.last_stream: Optional[FakeStream] = None

    @contextmanager
    def open_stream(self):
        if self.is_open:
            raise RuntimeError("Audio device already open")
        if self.open_error is not None:
            raise self.open_error
        self.open_count += 1
        self.is_open = True
        self.last_stream = FakeStream(self.chunks, self.on_read, self.fail_at)
        try:
            yield self.last_stream
        finally:
            self.is_open = False
            self.close_count += 1


class FakeBackend(AbstractTranscriptionBackend):
    """Backend that returns canned text and records what it was given."""

    service_name = "fake"

    def __init__(self, text: str = "hello", error: Optional[Exception] = None):
        super().__init__()
        self.text = text
        self.error = error
        self.calls = []
        self.initialized = False
        self.cleaned_up = False

    async def transcribe(self, audio, language=None, cancel_token=None) -> str:
        self.calls.append({"audio": audio, "language": language, "cancel_token": cancel_token})
        if self.error is not None:
            raise self.error
        return self.text

    def initialize(self) -> bool:
        self.initialized = True
        return True

    def cleanup(self) -> None:
        self.cleaned_up = True


class StatusRecorder:
    """Collects observer notifications; methods are stable listener targets for pubsub."""

    def __init__(self):
        self.statuses: List[str] = []
        self.levels: List[int] = []
        self.lock = threading.Lock()

    def on_status(self, status):
        with self.lock:
            self.statuses.append(status)

    def on_level(self, level):
        with self.lock:
            self.levels.append(level)


@pytest.fixture
def sample_audio_chunk():
    """One chunk of a 440Hz tone, well above the speech threshold."""
    return make_tone()


@pytest.fixture
def silent_chunk():
    return make_silence()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        mock_stream.read.return_value = b'\x00' * 2048  # Silent audio
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_sample_size.return_value = 2
        mock_pyaudio_instance.get_default_input_device_info.return_value = {
            'name': 'Test Microphone', 'maxInputChannels': 1
        }
        mock_pyaudio_instance.get_device_count.return_value = 1
        mock_pyaudio_instance.get_device_info_by_index.return_value = {
            'name': 'Test Microphone', 'maxInputChannels': 1
        }

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def test_config():
    """Configuration with the cloud backend off and short capture limits."""
    return VoiceMacroConfig.from_dict({
        "transcription": {
            "use_openai_api": False,
            "openai_api_key": "",
            "whisper_language": "ko",
        },
        "audio": {
            "sample_rate": SAMPLE_RATE,
            "chunk_size": CHUNK_SIZE,
            "channels": 1,
        },
        "capture": {
            "auto_stop": True,
            "speech_threshold_db": -40.0,
            "silence_timeout_seconds": 0.5,
            "max_duration_seconds": 5.0,
            "no_speech_timeout_seconds": 0.0,
        },
    })


@pytest.fixture
def status_recorder():
    return StatusRecorder()


@pytest.fixture
def fakes():
    """Hardware-free stand-ins for the probe, the capture device and a backend."""
    return SimpleNamespace(
        Probe=FakeProbe,
        Capture=FakeAudioCapture,
        Backend=FakeBackend,
        tone=make_tone,
        silence=make_silence,
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without hardware or network")
    config.addinivalue_line("markers", "integration: capture and transcription wired together")
    config.addinivalue_line("markers", "hardware: needs a real microphone")
