"""Unit tests for the local faster-whisper backend with a fake model."""

import asyncio
from types import SimpleNamespace

import numpy as np
import pytest

from voicemacro.cancellation import CancellationToken
from voicemacro.errors import LocalInferenceError, ModelLoadError, OperationCancelledError
from voicemacro.transcription.whisper_backend import LocalWhisperBackend, pcm16_to_float32


class FakeModel:

    def __init__(self, texts, error=None, before_segment=None):
        self.texts = texts
        self.error = error
        self.before_segment = before_segment
        self.calls = []
        self.segments_produced = 0

    def transcribe(self, samples, **kwargs):
        self.calls.append({"samples": samples, **kwargs})
        if self.error is not None:
            raise self.error
        return self._segments(), SimpleNamespace(language=kwargs.get("language") or "en")

    def _segments(self):
        for index, text in enumerate(self.texts):
            if self.before_segment:
                self.before_segment(index)
            self.segments_produced += 1
            yield SimpleNamespace(text=text)


class FakeModelFactory:

    def __init__(self, model=None, error=None):
        self.model = model or FakeModel([" hello", " world "])
        self.error = error
        self.calls = []

    def __call__(self, model_size, **kwargs):
        self.calls.append({"model_size": model_size, **kwargs})
        if self.error is not None:
            raise self.error
        return self.model


@pytest.mark.unit
class TestPcmConversion:

    def test_mono_scaling(self):
        audio = np.array([0, 16384, -32768], dtype=np.int16).tobytes()

        samples = pcm16_to_float32(audio)

        assert samples.dtype == np.float32
        np.testing.assert_allclose(samples, [0.0, 0.5, -1.0])

    def test_stereo_downmix(self):
        audio = np.array([1000, 3000] * 100, dtype=np.int16).tobytes()

        samples = pcm16_to_float32(audio, channels=2)

        assert samples.size == 100
        np.testing.assert_allclose(samples, 2000 / 32768.0, rtol=1e-5)

    def test_resample_to_16k(self):
        audio = np.zeros(48000, dtype=np.int16).tobytes()

        assert pcm16_to_float32(audio, sample_rate=48000).size == 16000

    def test_trailing_partial_sample_dropped(self):
        assert pcm16_to_float32(b"\x00\x01\x02").size == 1


@pytest.mark.unit
class TestLocalWhisperBackend:

    def test_joins_segments(self, sample_audio_chunk):
        factory = FakeModelFactory()
        backend = LocalWhisperBackend(model_size="tiny", model_factory=factory)

        text = asyncio.run(backend.transcribe(sample_audio_chunk, language="ko"))

        assert text == "hello world"
        assert factory.calls[0]["model_size"] == "tiny"
        assert factory.model.calls[0]["language"] == "ko"

    def test_auto_language_means_detect(self, sample_audio_chunk):
        factory = FakeModelFactory()
        backend = LocalWhisperBackend(language="auto", model_factory=factory)

        asyncio.run(backend.transcribe(sample_audio_chunk))

        assert factory.model.calls[0]["language"] is None

    def test_backend_default_language(self, sample_audio_chunk):
        factory = FakeModelFactory()
        backend = LocalWhisperBackend(language="ko", model_factory=factory)

        asyncio.run(backend.transcribe(sample_audio_chunk))

        assert factory.model.calls[0]["language"] == "ko"

    def test_model_loaded_once(self, sample_audio_chunk):
        factory = FakeModelFactory()
        backend = LocalWhisperBackend(model_factory=factory)
        assert backend.is_loaded is False

        asyncio.run(backend.transcribe(sample_audio_chunk))
        asyncio.run(backend.transcribe(sample_audio_chunk))

        assert len(factory.calls) == 1
        assert backend.is_loaded is True

    def test_cleanup_unloads(self):
        backend = LocalWhisperBackend(model_factory=FakeModelFactory())
        backend.initialize()
        backend.cleanup()

        assert backend.is_loaded is False

    def test_empty_audio(self):
        factory = FakeModelFactory()

        assert asyncio.run(LocalWhisperBackend(model_factory=factory).transcribe(b"")) == ""
        assert factory.calls == []

    def test_model_load_failure(self, sample_audio_chunk):
        backend = LocalWhisperBackend(model_factory=FakeModelFactory(error=RuntimeError("no model files")))

        with pytest.raises(ModelLoadError) as excinfo:
            asyncio.run(backend.transcribe(sample_audio_chunk))

        assert excinfo.value.service == "Local Whisper"

    def test_inference_failure(self, sample_audio_chunk):
        model = FakeModel([], error=RuntimeError("CUDA out of memory"))
        backend = LocalWhisperBackend(model_factory=FakeModelFactory(model=model))

        with pytest.raises(LocalInferenceError):
            asyncio.run(backend.transcribe(sample_audio_chunk))

    def test_cancelled_before_start(self, sample_audio_chunk):
        factory = FakeModelFactory()
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            asyncio.run(LocalWhisperBackend(model_factory=factory).transcribe(sample_audio_chunk,
                                                                              cancel_token=token))
        assert factory.calls == []

    def test_cancelled_between_segments(self, sample_audio_chunk):
        token = CancellationToken()

        def cancel_on_first(index):
            if index == 0:
                token.cancel()

        model = FakeModel(["one", "two", "three"], before_segment=cancel_on_first)
        backend = LocalWhisperBackend(model_factory=FakeModelFactory(model=model))

        with pytest.raises(OperationCancelledError):
            asyncio.run(backend.transcribe(sample_audio_chunk, cancel_token=token))

        assert model.segments_produced == 1
