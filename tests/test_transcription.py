"""
Tests for the Whisper transcription adapter.
"""

import asyncio
import threading

import numpy as np
import pytest

from pronunciation_drill.audio.transcription import ModelRegistry, WhisperTranscriber
from pronunciation_drill.errors import ModelLoadError, TranscriptionError
from conftest import CountingLoader, FakeWhisperModel


class TestEnsureReady:
    """Test cases for lazy model loading."""

    def test_loads_once_and_reports_ready(self, make_transcriber):
        async def scenario():
            transcriber, loader = make_transcriber()
            assert not transcriber.is_ready

            await transcriber.ensure_ready()
            await transcriber.ensure_ready()

            assert transcriber.is_ready
            assert not transcriber.is_loading
            assert loader.calls == 1

        asyncio.run(scenario())

    def test_concurrent_callers_share_one_load(self, make_transcriber):
        async def scenario():
            transcriber, loader = make_transcriber(delay=0.05)

            first = asyncio.ensure_future(transcriber.ensure_ready())
            await asyncio.sleep(0)
            assert transcriber.is_loading

            await asyncio.gather(first, transcriber.ensure_ready(), transcriber.ensure_ready())

            assert loader.calls == 1
            assert transcriber.is_ready

        asyncio.run(scenario())

    def test_failure_raises_and_allows_retry(self, make_transcriber):
        async def scenario():
            transcriber, loader = make_transcriber(failures=1)

            with pytest.raises(ModelLoadError) as exc_info:
                await transcriber.ensure_ready()

            assert exc_info.value.processing_error.error_code == "MODEL_003"
            assert not transcriber.is_ready
            assert not transcriber.is_loading

            await transcriber.ensure_ready()
            assert transcriber.is_ready
            assert loader.calls == 2

        asyncio.run(scenario())

    def test_model_is_shared_through_registry(self):
        async def scenario():
            registry = ModelRegistry()
            loader = CountingLoader(FakeWhisperModel())

            first = WhisperTranscriber("tiny", "fr", registry=registry, model_loader=loader)
            second = WhisperTranscriber("tiny", "es", registry=registry, model_loader=loader)

            await first.ensure_ready()
            assert second.is_ready
            await second.ensure_ready()
            assert loader.calls == 1

        asyncio.run(scenario())


class TestTranscribe:
    """Test cases for transcribing samples."""

    def test_returns_trimmed_text_with_language_and_task(self, make_transcriber):
        async def scenario():
            model = FakeWhisperModel(texts=["Bonjour."])
            transcriber, _ = make_transcriber(model=model, language="fr")
            await transcriber.ensure_ready()

            text = await transcriber.transcribe(np.zeros(1600, dtype=np.float64))

            assert text == "Bonjour."
            samples, kwargs = model.calls[0]
            assert samples.dtype == np.float32
            assert kwargs["language"] == "fr"
            assert kwargs["task"] == "transcribe"

        asyncio.run(scenario())

    def test_inference_error_becomes_transcription_error(self, make_transcriber):
        async def scenario():
            model = FakeWhisperModel(errors=[RuntimeError("CUDA error")])
            transcriber, _ = make_transcriber(model=model)
            await transcriber.ensure_ready()

            with pytest.raises(TranscriptionError):
                await transcriber.transcribe(np.zeros(1600, dtype=np.float32))

            # The next attempt works again
            assert await transcriber.transcribe(np.zeros(1600, dtype=np.float32)) == ""

        asyncio.run(scenario())

    def test_error_names_the_failed_window(self, make_transcriber):
        async def scenario():
            model = FakeWhisperModel(errors=[RuntimeError("CUDA error")])
            transcriber, _ = make_transcriber(model=model)
            await transcriber.ensure_ready()

            with pytest.raises(TranscriptionError) as exc_info:
                await transcriber.transcribe(np.zeros(1600, dtype=np.float32), window_index=3)

            error = exc_info.value.processing_error
            assert error.context['window_index'] == 3
            assert "window 3" in error.details
            assert "CUDA error" in error.details

        asyncio.run(scenario())

    def test_transcribe_before_load_fails(self, make_transcriber):
        async def scenario():
            transcriber, _ = make_transcriber()
            with pytest.raises(TranscriptionError):
                await transcriber.transcribe(np.zeros(1600, dtype=np.float32))

        asyncio.run(scenario())

    def test_inference_does_not_block_event_loop(self, make_transcriber):
        async def scenario():
            gate = threading.Event()
            model = FakeWhisperModel(texts=["merci"], gate=gate)
            transcriber, _ = make_transcriber(model=model)
            await transcriber.ensure_ready()

            pending = asyncio.ensure_future(transcriber.transcribe(np.zeros(1600, dtype=np.float32)))
            await asyncio.sleep(0.01)
            assert not pending.done()

            gate.set()
            assert await pending == "merci"

        asyncio.run(scenario())
