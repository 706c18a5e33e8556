"""PyAudio input stream handling for capture sessions."""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import pyaudio

from ..errors import NoMicrophoneError

logger = logging.getLogger(__name__)


class AudioInputStream:
    """An open input stream. Only valid inside ``AudioCapture.open_stream()``."""

    def __init__(self, stream, chunk_size: int):
        self._stream = stream
        self.chunk_size = chunk_size
        self.total_chunks = 0

    def read_chunk(self) -> bytes:
        audio_chunk = self._stream.read(
            self.chunk_size,
            exception_on_overflow=False
        )
        self.total_chunks += 1
        return audio_chunk


class AudioCapture:
    """Owns the microphone device for the duration of one capture session."""

    def __init__(
        self,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
        device_index: Optional[int] = None,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            sample_rate: Audio sample rate (16kHz for Whisper compatibility)
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono)
            format: Audio format (16-bit signed int)
            device_index: PyAudio input device, None for the system default
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format
        self.device_index = device_index
        self.is_open = False

    @property
    def sample_width(self) -> int:
        return pyaudio.get_sample_size(self.format)

    @property
    def chunk_seconds(self) -> float:
        return self.chunk_size / float(self.sample_rate)

    @contextmanager
    def open_stream(self) -> Iterator[AudioInputStream]:
        """Open the device and guarantee it is released on every exit path."""
        if self.is_open:
            raise RuntimeError("Audio device already open")

        pyaudio_instance = pyaudio.PyAudio()
        stream = None
        try:
            try:
                stream = pyaudio_instance.open(
                    format=self.format,
                    channels=self.channels,
                    rate=self.sample_rate,
                    input=True,
                    input_device_index=self.device_index,
                    frames_per_buffer=self.chunk_size,
                    stream_callback=None
                )
            except OSError as e:
                raise NoMicrophoneError(f"Could not open input device: {e}") from e
            self.is_open = True
            logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                        f"{self.chunk_size} samples/chunk")
            yield AudioInputStream(stream, self.chunk_size)
        finally:
            if stream is not None:
                try:
                    stream.stop_stream()
                    stream.close()
                except Exception as e:
                    logger.warning(f"Error closing audio stream: {e}")
            pyaudio_instance.terminate()
            self.is_open = False
            logger.info("Audio stream released")
