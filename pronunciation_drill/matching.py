"""
Fuzzy comparison of transcribed speech with the expected word.

Whisper output for a single spoken word is noisy: accents get dropped,
punctuation and filler words get added and short words get misspelled.
Both strings are reduced to bare ASCII letters and digits and compared
with an edit-distance budget that grows with the length of the expected word.
"""

import logging
import re
import unicodedata

from rapidfuzz.distance import Levenshtein

from .models import MatchResult


logger = logging.getLogger(__name__)

_NON_ALPHANUMERIC = re.compile(r'[^a-z0-9]')

MIN_ALLOWED_DISTANCE = 2
DISTANCE_RATIO = 0.3


def normalize_text(text: str) -> str:
    """
    Normalize text for comparison.

    Lowercases, decomposes accented characters, drops the combining
    marks and removes everything outside ``[a-z0-9]``.
    """
    decomposed = unicodedata.normalize('NFD', text.lower())
    stripped = ''.join(c for c in decomposed if not unicodedata.combining(c))
    return _NON_ALPHANUMERIC.sub('', stripped)


def levenshtein_distance(first: str, second: str) -> int:
    """Edit distance with unit cost for insertion, deletion and substitution."""
    return Levenshtein.distance(first, second)


def max_allowed_distance(normalized_expected: str) -> int:
    """Short words get a flat budget of two edits, longer ones scale with length."""
    return max(MIN_ALLOWED_DISTANCE, int(len(normalized_expected) * DISTANCE_RATIO))


class FuzzyMatcher:
    """
    Decides whether a transcription counts as the expected word.

    Containment of one normalized string in the other is accepted outright
    unless ``substring_match`` is disabled; otherwise the Levenshtein
    distance must stay within ``max_allowed_distance``. Empty normalized
    strings never match.
    """

    def __init__(self, substring_match: bool = True):
        self.substring_match = substring_match

    def compare(self, transcribed: str, expected: str) -> MatchResult:
        normalized_transcribed = normalize_text(transcribed)
        normalized_expected = normalize_text(expected)
        max_distance = max_allowed_distance(normalized_expected)

        if not normalized_transcribed or not normalized_expected:
            return MatchResult(
                transcribed=transcribed,
                expected=expected,
                normalized_transcribed=normalized_transcribed,
                normalized_expected=normalized_expected,
                distance=levenshtein_distance(normalized_transcribed, normalized_expected),
                max_distance=max_distance,
                substring=False,
                is_match=False
            )

        substring = self.substring_match and (
            normalized_expected in normalized_transcribed
            or normalized_transcribed in normalized_expected
        )
        distance = levenshtein_distance(normalized_transcribed, normalized_expected)

        logger.debug(
            f"Comparing: '{normalized_transcribed}' vs '{normalized_expected}', "
            f"distance: {distance}, max: {max_distance}"
        )

        return MatchResult(
            transcribed=transcribed,
            expected=expected,
            normalized_transcribed=normalized_transcribed,
            normalized_expected=normalized_expected,
            distance=distance,
            max_distance=max_distance,
            substring=substring,
            is_match=substring or distance <= max_distance
        )

    def matches(self, transcribed: str, expected: str) -> bool:
        return self.compare(transcribed, expected).is_match


_default_matcher = FuzzyMatcher()


def matches(transcribed: str, expected: str) -> bool:
    """Check a transcription against the expected word with default settings."""
    return _default_matcher.matches(transcribed, expected)
