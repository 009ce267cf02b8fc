"""
Suppression of recognition while the card is changing.

A flip, a card change or the success animation can overlap a window
that is still being recorded or transcribed. Speech captured then must
not count against the new card, so every such transition holds the guard
for its full visual duration. Holds are counted: a short transition that
finishes early cannot release a longer one that is still running.
"""

import asyncio
import contextlib
import logging


logger = logging.getLogger(__name__)


class SuppressionGuard:
    """Counted, timer-released hold on match processing."""

    def __init__(self):
        self._holds = 0

    @property
    def active(self) -> bool:
        return self._holds > 0

    def acquire(self) -> None:
        self._holds += 1

    def release_after(self, delay: float) -> None:
        """Release one hold once ``delay`` seconds have passed."""
        loop = asyncio.get_running_loop()
        loop.call_later(max(0.0, delay), self._release)

    def hold(self, duration: float) -> None:
        """Hold for a fixed duration."""
        self.acquire()
        self.release_after(duration)

    @contextlib.contextmanager
    def suppressing(self, release_delay: float):
        """Hold for the body of the block plus ``release_delay`` afterwards."""
        self.acquire()
        try:
            yield self
        finally:
            self.release_after(release_delay)

    def _release(self) -> None:
        if self._holds > 0:
            self._holds -= 1
        if self._holds == 0:
            logger.debug("Recognition resumed")
