"""
Pytest configuration and fixtures for the drill tests.

Provides fake collaborators (microphone, speech model, synthesizer and
display) so the asynchronous engine can be exercised without audio
hardware or a real Whisper model.
"""

import asyncio
import threading
import time

import numpy as np
import pytest
from hypothesis import settings, Verbosity

from pronunciation_drill.audio.transcription import ModelRegistry, WhisperTranscriber
from pronunciation_drill.config import DrillConfig, TimingConfig
from pronunciation_drill.display import DisplayListener
from pronunciation_drill.errors import ErrorHandler, MicrophoneAccessError
from pronunciation_drill.models import WordPair


settings.register_profile("drill",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None
)
settings.load_profile("drill")


def pytest_configure(config):
    config.addinivalue_line("markers", "property: property-based tests using Hypothesis")


class RecordingDisplay(DisplayListener):
    """Display that records every update as a tuple."""

    def __init__(self):
        self.events = []

    def show_card(self, card):
        self.events.append(("card", card))

    def set_flipped(self, flipped, visible_text):
        self.events.append(("flipped", flipped, visible_text))

    def show_success(self, visible):
        self.events.append(("success", visible))

    def show_loading(self, visible):
        self.events.append(("loading", visible))

    def show_status(self, status, text=""):
        self.events.append(("status", status, text))

    def show_error(self, error):
        self.events.append(("error", error))

    def of_kind(self, kind):
        return [e for e in self.events if e[0] == kind]


class FakeMicrophone:
    """Microphone producing a constant low-level signal."""

    def __init__(self, sample_rate=16000, fail_with=None, samples_per_window=1600):
        self.sample_rate = sample_rate
        self.fail_with = fail_with
        self.samples_per_window = samples_per_window
        self.is_open = False
        self.open_calls = 0
        self.close_calls = 0
        self.windows_begun = 0
        self.windows_ended = 0
        self.recording = False
        self.max_concurrent_windows = 0
        self._open_windows = 0

    async def open(self):
        self.open_calls += 1
        await asyncio.sleep(0)
        if self.fail_with is not None:
            raise MicrophoneAccessError(
                ErrorHandler().handle_microphone_error(self.fail_with)
            )
        self.is_open = True

    def begin_window(self):
        assert self.is_open, "window begun on a closed microphone"
        self.windows_begun += 1
        self._open_windows += 1
        self.max_concurrent_windows = max(self.max_concurrent_windows, self._open_windows)
        self.recording = True

    def end_window(self):
        self.windows_ended += 1
        self._open_windows -= 1
        self.recording = False
        return np.full((self.samples_per_window, 1), 0.1, dtype=np.float32)

    def close(self):
        self.close_calls += 1
        self.is_open = False


class FakeWhisperModel:
    """Stands in for a loaded Whisper model."""

    def __init__(self, texts=None, default_text="", errors=None, gate=None):
        self.texts = list(texts or [])
        self.default_text = default_text
        self.errors = list(errors or [])
        self.gate = gate
        self.calls = []
        self._lock = threading.Lock()

    def transcribe(self, samples, **kwargs):
        with self._lock:
            self.calls.append((samples, kwargs))
            error = self.errors.pop(0) if self.errors else None
            text = self.texts.pop(0) if self.texts else self.default_text
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if error is not None:
            raise error
        return {'text': f" {text} "}


class CountingLoader:
    """Model loader that counts calls and can fail a number of times first."""

    def __init__(self, model, failures=0, delay=0.0):
        self.model = model
        self.failures = failures
        self.delay = delay
        self.calls = 0

    def __call__(self, model_name):
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.failures > 0:
            self.failures -= 1
            raise RuntimeError("out of memory")
        return self.model


class RecordingSynthesizer:
    """Synthesizer that records what it was asked to say."""

    def __init__(self):
        self.calls = []

    def speak(self, text, language_tag, rate=1.0):
        self.calls.append((text, language_tag, rate))

    def shutdown(self, wait=False):
        pass


async def wait_until(predicate, timeout=3.0, interval=0.005):
    """Poll ``predicate`` on the event loop until it holds or the timeout expires."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(interval)


@pytest.fixture
def fast_config():
    """Drill configuration with millisecond timings and no VAD."""
    return DrillConfig(
        session_size=10,
        vad_enabled=False,
        timing=TimingConfig(
            window_duration=0.02,
            card_update_guard=0.01,
            flip_guard=0.05,
            unflip_guard=0.02,
            flip_speech_delay=0.005,
            success_feedback=0.02,
            flip_animation=0.01,
            transcript_display=0.05
        )
    )


@pytest.fixture
def french_words():
    """Provide a small English/French vocabulary."""
    return [
        WordPair("hello", "bonjour", "greeting"),
        WordPair("thank you", "merci", "greeting"),
        WordPair("dog", "chien", "noun"),
        WordPair("cat", "chat", "noun"),
        WordPair("house", "maison", "noun"),
    ]


@pytest.fixture
def twenty_words():
    """Provide twenty distinct word pairs."""
    return [WordPair(f"word{i}", f"mot{i}", "noun") for i in range(20)]


@pytest.fixture
def recording_display():
    return RecordingDisplay()


@pytest.fixture
def make_transcriber():
    """Build a transcriber backed by a fake model and a private registry."""
    def factory(model=None, failures=0, delay=0.0, language="fr"):
        model = model or FakeWhisperModel()
        loader = CountingLoader(model, failures=failures, delay=delay)
        transcriber = WhisperTranscriber(
            model_name="tiny",
            language=language,
            registry=ModelRegistry(),
            model_loader=loader
        )
        return transcriber, loader
    return factory
