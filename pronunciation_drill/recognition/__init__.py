"""
Recognition module tying speech capture and matching to the card session.
"""

from .state import RecognitionPhase, RecognitionEvent, RecognitionState, transition
from .guard import SuppressionGuard
from .orchestrator import RecognitionOrchestrator

__all__ = [
    'RecognitionPhase',
    'RecognitionEvent',
    'RecognitionState',
    'transition',
    'SuppressionGuard',
    'RecognitionOrchestrator'
]
