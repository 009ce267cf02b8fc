"""
Session management for flip-card practice runs.
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from ..display import DisplayListener
from ..errors import SessionError, VocabularyError, error_handler
from ..models import CardView, WordPair


logger = logging.getLogger(__name__)


class Direction(Enum):
    """Navigation direction through the session."""
    NEXT = 1
    PREVIOUS = -1


@dataclass
class Session:
    """One practice run over a fixed, shuffled subset of the vocabulary."""
    items: Tuple[WordPair, ...]
    position: int = 0
    flipped: bool = False

    @property
    def current(self) -> WordPair:
        return self.items[self.position]

    @property
    def total(self) -> int:
        return len(self.items)


class SessionManager:
    """
    Owns the current session: its cards, position and flip state.

    Every change is pushed to the display. Navigation always turns a
    flipped card back over before moving, so the answer of the next card
    is never visible while skipping ahead.
    """

    def __init__(self, display: Optional[DisplayListener] = None,
                 rng: Optional[random.Random] = None):
        """
        Initialize the SessionManager.

        Args:
            display: Receiver of card and flip updates
            rng: Random source used for shuffling, for reproducible sessions
        """
        self.display = display or DisplayListener()
        self.rng = rng or random.Random()
        self._session: Optional[Session] = None

    @property
    def session(self) -> Session:
        if self._session is None:
            raise SessionError(error_handler.handle_state_error(
                "No active session",
                "A session must be started before it can be used"
            ))
        return self._session

    @property
    def has_session(self) -> bool:
        return self._session is not None

    def start_session(self, vocabulary: Sequence[WordPair], size: int) -> Session:
        """
        Start a new session from a random, non-repeating subset of the vocabulary.

        Args:
            vocabulary: Full word list; left untouched
            size: Number of cards to draw

        Returns:
            The new session, which replaces any previous one
        """
        if not vocabulary:
            raise VocabularyError(error_handler.handle_vocabulary_error(
                "Vocabulary is empty",
                "A session needs at least one word pair"
            ))
        if size < 1:
            raise VocabularyError(error_handler.handle_vocabulary_error(
                "Invalid session size",
                f"Session size must be at least 1, got {size}"
            ))

        pool = list(vocabulary)
        self.rng.shuffle(pool)  # Fisher-Yates

        self._session = Session(items=tuple(pool[:size]))
        logger.info(f"Started session with {self._session.total} cards")

        self.display.show_card(self.current_card())
        return self._session

    def advance(self, direction: Direction) -> int:
        """
        Move to the next or previous card, wrapping at both ends.

        Returns:
            The new position
        """
        session = self.session

        if session.flipped:
            session.flipped = False
            self.display.set_flipped(False, session.current.source)

        session.position = (session.position + direction.value) % session.total
        self.display.show_card(self.current_card())
        return session.position

    def toggle_flip(self) -> bool:
        """Turn the card over and return the new flip state."""
        session = self.session
        session.flipped = not session.flipped

        visible = session.current.target if session.flipped else session.current.source
        self.display.set_flipped(session.flipped, visible)
        return session.flipped

    def reveal(self) -> None:
        """Show the answer side if it is not already showing."""
        if not self.session.flipped:
            self.toggle_flip()

    def current_expected_answer(self) -> str:
        return self.session.current.target

    def current_card(self) -> CardView:
        session = self.session
        word = session.current
        return CardView(
            front_text=word.source,
            back_text=word.target,
            category=word.category,
            position=session.position,
            total=session.total
        )
