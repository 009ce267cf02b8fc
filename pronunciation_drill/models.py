"""
Core data models for the Pronunciation Drill.
"""

from dataclasses import dataclass
import numpy as np


@dataclass(frozen=True)
class WordPair:
    """Represents a vocabulary pair; the target side is the one to pronounce."""
    source: str
    target: str
    category: str = ""


@dataclass
class RecordingWindow:
    """Represents one fixed-length interval of captured microphone audio."""
    samples: np.ndarray
    sample_rate: int
    index: int
    duration: float

    @property
    def is_empty(self) -> bool:
        return self.samples.size == 0


@dataclass(frozen=True)
class CardView:
    """What the display shows for the current card."""
    front_text: str  # source language
    back_text: str   # target language
    category: str
    position: int
    total: int

    @property
    def progress_label(self) -> str:
        return f"{self.position + 1} / {self.total}"


@dataclass(frozen=True)
class MatchResult:
    """Outcome of comparing a transcription with the expected word."""
    transcribed: str
    expected: str
    normalized_transcribed: str
    normalized_expected: str
    distance: int
    max_distance: int
    substring: bool
    is_match: bool
