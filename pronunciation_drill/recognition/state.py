"""
Recognizer state machine.

The recognizer moves between four phases. Each finished capture window
takes it from LISTENING through TRANSCRIBING and back, or into MATCHED
while success feedback plays. STOP returns to IDLE from anywhere. All
phase changes go through ``transition``; pairs missing from the table
are programming errors.
"""

from dataclasses import dataclass
from enum import Enum

from ..errors import ErrorCategory, ErrorSeverity, InvalidTransitionError, ProcessingError


class RecognitionPhase(Enum):
    """Phases of the pronunciation recognizer."""
    IDLE = "idle"
    LISTENING = "listening"
    TRANSCRIBING = "transcribing"
    MATCHED = "matched"


class RecognitionEvent(Enum):
    """Inputs that move the recognizer between phases."""
    LISTEN_STARTED = "listen_started"
    WINDOW_ACCEPTED = "window_accepted"
    MATCH_FOUND = "match_found"
    NO_MATCH = "no_match"
    RESULT_DISCARDED = "result_discarded"
    TRANSCRIPTION_FAILED = "transcription_failed"
    FEEDBACK_COMPLETE = "feedback_complete"
    STOP = "stop"


_TRANSITIONS = {
    (RecognitionPhase.IDLE, RecognitionEvent.LISTEN_STARTED): RecognitionPhase.LISTENING,
    (RecognitionPhase.LISTENING, RecognitionEvent.WINDOW_ACCEPTED): RecognitionPhase.TRANSCRIBING,
    (RecognitionPhase.TRANSCRIBING, RecognitionEvent.NO_MATCH): RecognitionPhase.LISTENING,
    (RecognitionPhase.TRANSCRIBING, RecognitionEvent.RESULT_DISCARDED): RecognitionPhase.LISTENING,
    (RecognitionPhase.TRANSCRIBING, RecognitionEvent.TRANSCRIPTION_FAILED): RecognitionPhase.LISTENING,
    (RecognitionPhase.TRANSCRIBING, RecognitionEvent.MATCH_FOUND): RecognitionPhase.MATCHED,
    (RecognitionPhase.MATCHED, RecognitionEvent.FEEDBACK_COMPLETE): RecognitionPhase.LISTENING,
}


def transition(phase: RecognitionPhase, event: RecognitionEvent) -> RecognitionPhase:
    """
    Compute the phase that follows ``event`` in ``phase``.

    Raises:
        InvalidTransitionError: If the event is not valid in this phase
    """
    if event is RecognitionEvent.STOP:
        return RecognitionPhase.IDLE

    try:
        return _TRANSITIONS[(phase, event)]
    except KeyError:
        raise InvalidTransitionError(ProcessingError(
            category=ErrorCategory.SESSION_STATE,
            severity=ErrorSeverity.CRITICAL,
            message="Invalid recognizer transition",
            details=f"Event '{event.value}' is not valid in phase '{phase.value}'",
            suggested_actions=["Report this as a bug"],
            error_code="STATE_002",
            context={'phase': phase.value, 'event': event.value}
        ))


@dataclass(frozen=True)
class RecognitionState:
    """Snapshot of the recognizer."""
    phase: RecognitionPhase
    model_ready: bool
    model_loading: bool
    suppress_matching: bool

    @property
    def listening(self) -> bool:
        return self.phase is not RecognitionPhase.IDLE
