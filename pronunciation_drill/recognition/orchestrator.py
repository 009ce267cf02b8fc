"""
Pronunciation recognition driving a flip-card session.

The orchestrator is the single owner of the recognizer phase and of the
suppression guard. It receives finished capture windows, decides whether
they should be transcribed, compares the transcription with the current
card and, on a match, plays the success sequence and moves to the next
card. It also handles the user's intents (flip, navigate, new session,
microphone toggle) so every card transition goes through the guard.
"""

import asyncio
import logging
from typing import Optional, Sequence

from ..audio.capture import AudioCaptureLoop
from ..audio.preprocessing import decode_window
from ..audio.synthesis import SpeechSynthesizer
from ..audio.transcription import WhisperTranscriber
from ..audio.vad import VoiceActivityDetector
from ..config import DrillConfig
from ..display import DisplayListener, RecognitionStatus
from ..errors import (
    AudioDecodeError, ErrorHandler, FatalDrillError, TranscriptionError, error_handler
)
from ..matching import FuzzyMatcher
from ..models import RecordingWindow, WordPair
from ..session.manager import Direction, SessionManager
from ..vocabulary import DEFAULT_VOCABULARY
from .guard import SuppressionGuard
from .state import RecognitionEvent, RecognitionPhase, RecognitionState, transition


logger = logging.getLogger(__name__)


class RecognitionOrchestrator:
    """
    Ties capture, transcription, matching and the session together.
    """

    def __init__(self,
                 session: SessionManager,
                 transcriber: WhisperTranscriber,
                 microphone,
                 synthesizer: Optional[SpeechSynthesizer] = None,
                 display: Optional[DisplayListener] = None,
                 config: Optional[DrillConfig] = None,
                 vocabulary: Sequence[WordPair] = DEFAULT_VOCABULARY,
                 matcher: Optional[FuzzyMatcher] = None,
                 voice_detector: Optional[VoiceActivityDetector] = None,
                 errors: Optional[ErrorHandler] = None):
        """
        Initialize the orchestrator.

        Args:
            session: Session manager holding the cards
            transcriber: Speech-to-text adapter
            microphone: Audio source for the capture loop
            synthesizer: Plays target words aloud; silent if None
            display: Receiver of status updates, the session's display if None
            config: Drill configuration
            vocabulary: Word list new sessions are drawn from
            matcher: Fuzzy matcher, built from the configuration if None
            voice_detector: Skips silent windows before transcription if given
            errors: Error handler recording failures
        """
        self.config = config or DrillConfig()
        self.session = session
        self.transcriber = transcriber
        self.synthesizer = synthesizer
        self.display = display or session.display
        self.vocabulary = vocabulary
        self.matcher = matcher or FuzzyMatcher(substring_match=self.config.substring_match)
        self.voice_detector = voice_detector
        self.errors = errors or error_handler

        self.guard = SuppressionGuard()
        self.capture = AudioCaptureLoop(
            microphone, self.handle_window, self.config.timing.window_duration,
            on_stopped=self._on_capture_stopped
        )

        self._phase = RecognitionPhase.IDLE
        self._generation = 0
        self._starting = False
        self._cancel_start = False
        self._status_timer: Optional[asyncio.TimerHandle] = None

    @property
    def phase(self) -> RecognitionPhase:
        return self._phase

    @property
    def is_listening(self) -> bool:
        return self._phase is not RecognitionPhase.IDLE

    @property
    def state(self) -> RecognitionState:
        return RecognitionState(
            phase=self._phase,
            model_ready=self.transcriber.is_ready,
            model_loading=self.transcriber.is_loading,
            suppress_matching=self.guard.active
        )

    def _dispatch(self, event: RecognitionEvent) -> None:
        new_phase = transition(self._phase, event)
        logger.debug(f"Recognizer: {self._phase.value} --{event.value}--> {new_phase.value}")
        self._phase = new_phase

    # Listening lifecycle

    async def start_listening(self) -> bool:
        """
        Load the model if needed and start capturing windows.

        Returns:
            True if listening, False if startup failed or was cancelled.
            Failures are reported to the display and the error handler.
        """
        if self.is_listening:
            return True
        if self._starting:
            return False

        self._starting = True
        self._cancel_start = False
        try:
            if not self.transcriber.is_ready:
                self.display.show_loading(True)
                try:
                    await self.transcriber.ensure_ready()
                finally:
                    self.display.show_loading(False)

            if not self._cancel_start:
                await self.capture.start()
        except FatalDrillError as e:
            self._report_fatal(e)
            return False
        finally:
            self._starting = False

        if self._cancel_start or not self.capture.is_listening:
            self.capture.stop()
            logger.info("Listening start cancelled")
            return False

        self._generation += 1
        self._dispatch(RecognitionEvent.LISTEN_STARTED)
        self.display.show_status(RecognitionStatus.LISTENING)
        return True

    def stop_listening(self) -> None:
        """Stop listening. No further window is recorded; calling it twice is harmless."""
        if self._starting:
            self._cancel_start = True

        self.capture.stop()
        if self._phase is RecognitionPhase.IDLE:
            return

        self._dispatch(RecognitionEvent.STOP)
        self._cancel_status_timer()
        self.display.show_status(RecognitionStatus.READY)

    async def toggle_listening(self) -> bool:
        """Microphone button: start when idle, stop when listening."""
        if self.is_listening:
            self.stop_listening()
            return False
        return await self.start_listening()

    def _report_fatal(self, error: FatalDrillError) -> None:
        self.capture.stop()
        self.errors.add_error(error.processing_error)
        self.display.show_error(error.processing_error)
        self.display.show_status(RecognitionStatus.READY)

    def _on_capture_stopped(self, error: Optional[BaseException]) -> None:
        """The capture run ended on its own; go back to idle so listening can be restarted."""
        processing_error = self.errors.handle_capture_error(error)
        self.errors.add_error(processing_error)

        if self._phase is not RecognitionPhase.IDLE:
            self._dispatch(RecognitionEvent.STOP)
        self._cancel_status_timer()
        self.display.show_error(processing_error)
        self.display.show_status(RecognitionStatus.READY)

    # Window processing

    async def handle_window(self, window: RecordingWindow) -> None:
        """Process one finished capture window."""
        generation = self._generation

        if self._phase is not RecognitionPhase.LISTENING:
            logger.debug(f"Ignoring window {window.index}: not listening")
            return

        if self.guard.active:
            logger.info("Ignoring audio processing during card transition")
            return

        try:
            samples = decode_window(window, self.config.sample_rate)
        except AudioDecodeError as e:
            self.errors.add_error(e.processing_error)
            return

        if self.voice_detector is not None and not self.voice_detector.contains_speech(samples):
            logger.debug(f"No speech in window {window.index}")
            return

        self._dispatch(RecognitionEvent.WINDOW_ACCEPTED)
        self.display.show_status(RecognitionStatus.TRANSCRIBING)

        try:
            text = await self.transcriber.transcribe(samples, window.index)
        except TranscriptionError as e:
            self.errors.add_error(e.processing_error)
            if self._is_current(generation):
                self._dispatch(RecognitionEvent.TRANSCRIPTION_FAILED)
                self.display.show_status(RecognitionStatus.LISTENING)
            return

        if not self._is_current(generation):
            logger.info(f"Discarding transcription {text!r}: listening stopped")
            return

        self._show_transcript(text)

        if self.guard.active:
            logger.info(f"Discarding transcription {text!r}: card changed while transcribing")
            self._dispatch(RecognitionEvent.RESULT_DISCARDED)
            return

        expected = self.session.current_expected_answer()
        result = self.matcher.compare(text, expected)
        if not result.is_match:
            logger.info(f"No match. Expected: {expected}")
            self._dispatch(RecognitionEvent.NO_MATCH)
            return

        logger.info("Match found!")
        self._dispatch(RecognitionEvent.MATCH_FOUND)
        await self._play_success(expected)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._phase is RecognitionPhase.TRANSCRIBING

    async def _play_success(self, expected: str) -> None:
        """Overlay, spoken answer, reveal, then the next card; recognition stays suppressed throughout."""
        timing = self.config.timing

        with self.guard.suppressing(timing.card_update_guard):
            self.display.show_success(True)
            self._speak(expected)
            await asyncio.sleep(timing.success_feedback)

            self.display.show_success(False)
            self.session.reveal()
            await asyncio.sleep(timing.flip_animation)

            self.session.advance(Direction.NEXT)

        if self._phase is RecognitionPhase.MATCHED:
            self._dispatch(RecognitionEvent.FEEDBACK_COMPLETE)

    def _show_transcript(self, text: str) -> None:
        self.display.show_status(RecognitionStatus.TRANSCRIBED, text)

        self._cancel_status_timer()
        loop = asyncio.get_running_loop()
        self._status_timer = loop.call_later(
            self.config.timing.transcript_display, self._reset_status
        )

    def _reset_status(self) -> None:
        self._status_timer = None
        if self.is_listening:
            self.display.show_status(RecognitionStatus.LISTENING)

    def _cancel_status_timer(self) -> None:
        if self._status_timer is not None:
            self._status_timer.cancel()
            self._status_timer = None

    def _speak(self, text: str) -> None:
        if self.synthesizer is None:
            return
        try:
            self.synthesizer.speak(text, self.config.speech_language_tag, self.config.speech_rate)
        except Exception as e:
            self.errors.add_error(self.errors.handle_synthesis_error(e, text))

    # User intents

    def flip_card(self) -> bool:
        """
        Turn the card over; revealing the answer also speaks it.

        Returns:
            The new flip state
        """
        timing = self.config.timing
        revealing = not self.session.session.flipped

        self.guard.hold(timing.flip_guard if revealing else timing.unflip_guard)
        flipped = self.session.toggle_flip()

        if flipped:
            target = self.session.current_expected_answer()
            loop = asyncio.get_running_loop()
            loop.call_later(timing.flip_speech_delay, self._speak, target)
        return flipped

    async def navigate(self, direction: Direction) -> int:
        """
        Move to another card, turning a flipped card back over first.

        Returns:
            The new position
        """
        timing = self.config.timing

        with self.guard.suppressing(timing.card_update_guard):
            if self.session.session.flipped:
                self.session.toggle_flip()
                await asyncio.sleep(timing.flip_animation)
            return self.session.advance(direction)

    def new_session(self) -> None:
        """Replace the current session with a freshly shuffled one."""
        with self.guard.suppressing(self.config.timing.card_update_guard):
            self.session.start_session(self.vocabulary, self.config.session_size)
