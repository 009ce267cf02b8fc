"""
Continuous capture of fixed-length recording windows.

A listening run is a single repeating task: open a window, wait for it
to elapse, hand it to the window handler, and repeat. The handler for
window N is awaited before window N+1 opens, so windows never overlap and
never queue up behind a slow transcription. Each run owns a cancellation
token that is checked at every iteration boundary.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..config import Config
from ..errors import RecoverableDrillError
from ..models import RecordingWindow


logger = logging.getLogger(__name__)

WindowHandler = Callable[[RecordingWindow], Awaitable[None]]
StoppedHandler = Callable[[Optional[BaseException]], None]


class _CaptureRun:
    """Cancellation token and final-window slot for one listening run."""

    def __init__(self):
        self.cancelled = asyncio.Event()
        self.final_window: Optional[RecordingWindow] = None


class AudioCaptureLoop:
    """
    Records back-to-back windows from a microphone while listening.

    The microphone must provide ``async open()``, ``begin_window()``,
    ``end_window() -> ndarray``, ``close()`` and a ``sample_rate``.
    """

    def __init__(self, microphone, on_window: WindowHandler,
                 window_duration: float = Config.WINDOW_DURATION,
                 on_stopped: Optional[StoppedHandler] = None):
        """
        Args:
            microphone: Audio source
            on_window: Coroutine called with every finished window
            window_duration: Length of each window in seconds
            on_stopped: Called with the error when a run ends without ``stop()``
        """
        self.microphone = microphone
        self.on_window = on_window
        self.window_duration = window_duration
        self.on_stopped = on_stopped

        self._run: Optional[_CaptureRun] = None
        self._task: Optional[asyncio.Task] = None
        self._starting = False
        self._abort_start = False
        self._window_open = False
        self._window_index = 0

    @property
    def is_listening(self) -> bool:
        return self._run is not None

    @property
    def window_open(self) -> bool:
        return self._window_open

    async def start(self) -> None:
        """
        Open the microphone and begin recording windows.

        Raises:
            MicrophoneAccessError: If the microphone cannot be opened
        """
        if self._run is not None or self._starting:
            return

        self._starting = True
        self._abort_start = False
        try:
            await self.microphone.open()
        finally:
            self._starting = False

        if self._abort_start:
            # stop() arrived while the device was opening
            self.microphone.close()
            return

        run = _CaptureRun()
        self._run = run
        self._task = asyncio.create_task(self._capture(run))
        self._task.add_done_callback(self._on_task_done)
        logger.info("Started listening")

    def stop(self) -> None:
        """
        End the open window, release the microphone and cancel the run.

        No window is opened after this returns. The window cut short here is
        still handed to the handler, which must check whether listening
        is still active. Calling ``stop`` when not listening does nothing.
        """
        if self._run is None:
            if self._starting:
                self._abort_start = True
            return

        run, self._run = self._run, None
        if self._window_open:
            run.final_window = self._end_window()
        run.cancelled.set()
        self.microphone.close()
        logger.info("Stopped listening")

    async def wait_stopped(self) -> None:
        """Wait until the last run has handed off its final window and exited."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    async def _capture(self, run: _CaptureRun) -> None:
        error: Optional[BaseException] = None
        try:
            await self._capture_windows(run)
        except Exception as e:
            error = e
            raise
        finally:
            if self._run is run:
                # Loop died without stop(); release the device and tell the owner
                self._run = None
                self._window_open = False
                self.microphone.close()
                if self.on_stopped is not None:
                    self.on_stopped(error)

    async def _capture_windows(self, run: _CaptureRun) -> None:
        while not run.cancelled.is_set():
            self._begin_window()
            try:
                await asyncio.wait_for(run.cancelled.wait(), timeout=self.window_duration)
            except asyncio.TimeoutError:
                pass

            if run.cancelled.is_set():
                window = run.final_window
            else:
                window = self._end_window()

            if window is None:
                break

            try:
                await self.on_window(window)
            except RecoverableDrillError as e:
                logger.warning(f"Discarded window {window.index}: {e}")

        logger.debug("Capture run finished")

    def _begin_window(self) -> None:
        if self._window_open:
            raise RuntimeError("A recording window is already open")
        self._window_open = True
        self.microphone.begin_window()
        logger.debug(f"Recording window {self._window_index}")

    def _end_window(self) -> RecordingWindow:
        samples = self.microphone.end_window()
        self._window_open = False

        sample_rate = self.microphone.sample_rate
        window = RecordingWindow(
            samples=samples,
            sample_rate=sample_rate,
            index=self._window_index,
            duration=len(samples) / sample_rate if sample_rate else 0.0
        )
        self._window_index += 1
        return window

    def _on_task_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Capture loop stopped unexpectedly: {error}", exc_info=error)
