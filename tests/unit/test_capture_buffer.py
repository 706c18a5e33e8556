"""Unit tests for the capture buffer."""

import threading

import pytest

from voicemacro.audio.buffer import CaptureBuffer


@pytest.mark.unit
class TestCaptureBuffer:

    def test_starts_empty(self):
        buffer = CaptureBuffer()

        assert buffer.is_empty()
        assert buffer.to_bytes() == b""
        assert len(buffer) == 0

    def test_keeps_chunks_in_order(self):
        buffer = CaptureBuffer()
        for value in range(5):
            buffer.add_audio_chunk(bytes([value]) * 4)

        assert buffer.to_bytes() == b"".join(bytes([v]) * 4 for v in range(5))
        assert buffer.frame_counter == 5

    def test_ignores_empty_chunks(self):
        buffer = CaptureBuffer()
        buffer.add_audio_chunk(b"")

        assert buffer.is_empty()
        assert buffer.frame_counter == 0

    def test_duration(self, sample_audio_chunk):
        buffer = CaptureBuffer(sample_rate=16000, channels=1)
        for _ in range(10):
            buffer.add_audio_chunk(sample_audio_chunk)

        # 10 chunks of 1024 samples
        assert buffer.duration_seconds == pytest.approx(10 * 1024 / 16000)

    def test_clear(self, sample_audio_chunk):
        buffer = CaptureBuffer()
        buffer.add_audio_chunk(sample_audio_chunk)
        buffer.clear()

        assert buffer.is_empty()
        assert buffer.start_time is None

    def test_concurrent_appends(self):
        buffer = CaptureBuffer()

        def writer():
            for _ in range(200):
                buffer.add_audio_chunk(b"\x01\x02")

        threads = [threading.Thread(target=writer) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(buffer) == 4 * 200 * 2
