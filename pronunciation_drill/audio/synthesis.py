"""
Text-to-speech playback of target words.

Playback is fire-and-forget: the drill never waits for speech to finish
and a failure to speak is logged, never raised to the caller.
"""

import logging
import re
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Optional

import pyttsx3

from ..errors import error_handler


logger = logging.getLogger(__name__)


class SpeechSynthesizer:
    """Speaks text aloud in a given language."""

    def speak(self, text: str, language_tag: str, rate: float = 1.0) -> None:
        raise NotImplementedError

    def shutdown(self, wait: bool = False) -> None:
        pass


class Pyttsx3Synthesizer(SpeechSynthesizer):
    """
    Speech synthesis through the platform engine wrapped by pyttsx3.

    pyttsx3 engines are not thread-safe, so the engine is created and
    driven from a single dedicated worker thread.
    """

    def __init__(self, default_rate: Optional[int] = None):
        """
        Args:
            default_rate: Words per minute at rate 1.0, the engine default if None
        """
        self.default_rate = default_rate
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tts")
        self._engine: Any = None
        self._current: Optional[Future] = None

    def speak(self, text: str, language_tag: str, rate: float = 1.0) -> None:
        # Cancel any ongoing speech
        if self._current is not None and not self._current.done():
            self._current.cancel()
            if self._engine is not None:
                self._engine.stop()

        future = self._executor.submit(self._say, text, language_tag, rate)
        future.add_done_callback(lambda f: self._log_failure(f, text))
        self._current = future

    def _say(self, text: str, language_tag: str, rate: float) -> None:
        if self._engine is None:
            self._engine = pyttsx3.init()
            if self.default_rate is None:
                self.default_rate = self._engine.getProperty('rate')

        engine = self._engine
        engine.setProperty('rate', int(self.default_rate * rate))

        voice_id = self._find_voice(language_tag)
        if voice_id is not None:
            engine.setProperty('voice', voice_id)

        engine.say(text)
        engine.runAndWait()

    def _find_voice(self, language_tag: str) -> Optional[str]:
        """Best-effort lookup of an installed voice for the language tag."""
        language = language_tag.split('-')[0].lower()
        for voice in self._engine.getProperty('voices'):
            languages = []
            for lang in getattr(voice, 'languages', None) or []:
                if isinstance(lang, bytes):
                    lang = lang.decode('utf-8', errors='ignore')
                languages.append(str(lang).lower())

            # espeak prefixes its language codes with a priority byte
            if any(lang.lstrip("\x05").startswith(language) for lang in languages):
                return voice.id
            tokens = re.split(r"[^a-z]+", f"{voice.id} {voice.name}".lower())
            if language in tokens:
                return voice.id
        return None

    def _log_failure(self, future: Future, text: str) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            error_handler.add_error(error_handler.handle_synthesis_error(error, text))

    def shutdown(self, wait: bool = False) -> None:
        """Stop the speech worker, blocking until it is idle if ``wait`` is set."""
        self._executor.shutdown(wait=wait)
