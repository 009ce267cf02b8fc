"""
Error handling system for the Pronunciation Drill.

This module provides centralized error definitions and actionable error
messages for model loading, audio capture, transcription and vocabulary
loading. Errors are split into fatal ones, which abort the action the user
attempted, and recoverable ones, which only cost a single recognition attempt.
"""

import logging
from collections import deque
from enum import Enum
from typing import Deque, List, Optional, Dict, Any
from dataclasses import dataclass


class ErrorSeverity(Enum):
    """Error severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of errors that can occur during a drill."""
    MODEL_LOADING = "model_loading"
    MICROPHONE = "microphone"
    AUDIO_DECODE = "audio_decode"
    TRANSCRIPTION = "transcription"
    SPEECH_SYNTHESIS = "speech_synthesis"
    VOCABULARY = "vocabulary"
    SESSION_STATE = "session_state"


@dataclass
class ProcessingError:
    """Represents an error with context and guidance for the user."""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    details: str
    suggested_actions: List[str]
    error_code: str
    context: Dict[str, Any] = None

    def __post_init__(self):
        if self.context is None:
            self.context = {}


class DrillError(Exception):
    """Base exception for Pronunciation Drill errors."""

    def __init__(self, processing_error: ProcessingError):
        self.processing_error = processing_error
        super().__init__(processing_error.message)


class FatalDrillError(DrillError):
    """Errors that abort the attempted action and need an explicit retry."""
    pass


class RecoverableDrillError(DrillError):
    """Errors that only invalidate a single recording window."""
    pass


class ModelLoadError(FatalDrillError):
    """Raised when the speech recognition model cannot be loaded."""
    pass


class MicrophoneAccessError(FatalDrillError):
    """Raised when the microphone cannot be opened."""
    pass


class TranscriptionError(RecoverableDrillError):
    """Raised when transcribing a recording window fails."""
    pass


class AudioDecodeError(RecoverableDrillError):
    """Raised when a recording window cannot be turned into model input."""
    pass


class VocabularyError(DrillError):
    """Raised when a vocabulary cannot be loaded or sampled."""
    pass


class SessionError(DrillError):
    """Raised when a session operation is used before a session exists."""
    pass


class InvalidTransitionError(DrillError):
    """Raised when the recognizer is asked for a transition it does not define."""
    pass


def _window_label(window_index: Optional[int]) -> str:
    return f" for window {window_index}" if window_index is not None else ""


class ErrorHandler:
    """
    Centralized error handling and reporting system.

    Builds categorized errors with actionable guidance, keeps a record of
    them and logs each one at the level matching its severity.
    """

    # Recoverable warnings arrive once per failed window; only the latest are kept
    MAX_WARNINGS = 100

    def __init__(self, max_warnings: int = MAX_WARNINGS):
        self.logger = logging.getLogger(__name__)
        self.errors: List[ProcessingError] = []
        self.warnings: Deque[ProcessingError] = deque(maxlen=max_warnings)

    def add_error(self, error: ProcessingError) -> None:
        """Add an error to the collection."""
        if error.severity in [ErrorSeverity.ERROR, ErrorSeverity.CRITICAL]:
            self.errors.append(error)
        elif error.severity == ErrorSeverity.WARNING:
            self.warnings.append(error)

        # Log the error
        log_level = {
            ErrorSeverity.INFO: logging.INFO,
            ErrorSeverity.WARNING: logging.WARNING,
            ErrorSeverity.ERROR: logging.ERROR,
            ErrorSeverity.CRITICAL: logging.CRITICAL
        }[error.severity]

        self.logger.log(log_level, f"[{error.error_code}] {error.message}")
        if error.details:
            self.logger.log(log_level, f"Details: {error.details}")

    def has_errors(self) -> bool:
        """Check if any errors have been recorded."""
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        """Check if any warnings have been recorded."""
        return len(self.warnings) > 0

    def get_error_summary(self) -> Dict[str, Any]:
        """Get a summary of all errors and warnings."""
        return {
            'error_count': len(self.errors),
            'warning_count': len(self.warnings),
            'errors': [self._format_error_for_summary(e) for e in self.errors],
            'warnings': [self._format_error_for_summary(e) for e in self.warnings]
        }

    def _format_error_for_summary(self, error: ProcessingError) -> Dict[str, Any]:
        """Format error for summary display."""
        return {
            'code': error.error_code,
            'category': error.category.value,
            'severity': error.severity.value,
            'message': error.message,
            'suggested_actions': error.suggested_actions
        }

    def clear_errors(self) -> None:
        """Clear all recorded errors and warnings."""
        self.errors.clear()
        self.warnings.clear()

    def handle_model_load_error(self, error: Exception, model_name: str) -> ProcessingError:
        """Handle a failure to load the speech recognition model."""
        error_str = str(error).lower()

        if 'not installed' in error_str or 'no module' in error_str:
            return ProcessingError(
                category=ErrorCategory.MODEL_LOADING,
                severity=ErrorSeverity.CRITICAL,
                message="Speech recognition is not installed",
                details=f"Whisper could not be imported: {error}",
                suggested_actions=[
                    "Install Whisper with: pip install openai-whisper",
                    "Restart the drill and turn the microphone on again"
                ],
                error_code="MODEL_001",
                context={'model_name': model_name}
            )

        if 'download' in error_str or 'connection' in error_str or 'urlopen' in error_str:
            return ProcessingError(
                category=ErrorCategory.MODEL_LOADING,
                severity=ErrorSeverity.ERROR,
                message="Speech recognition model could not be downloaded",
                details=f"Downloading Whisper model '{model_name}' failed: {error}",
                suggested_actions=[
                    "Check your internet connection",
                    "The model is only downloaded the first time it is used",
                    "Turn the microphone on again to retry"
                ],
                error_code="MODEL_002",
                context={'model_name': model_name}
            )

        return ProcessingError(
            category=ErrorCategory.MODEL_LOADING,
            severity=ErrorSeverity.ERROR,
            message="Failed to load speech recognition model",
            details=f"Loading Whisper model '{model_name}' failed: {error}",
            suggested_actions=[
                "Turn the microphone on again to retry",
                "Try a smaller model such as 'tiny'",
                "Check that enough memory is available"
            ],
            error_code="MODEL_003",
            context={'model_name': model_name}
        )

    def handle_microphone_error(self, error: Exception, device: Any = None) -> ProcessingError:
        """Handle a failure to open the microphone."""
        error_str = str(error).lower()

        if 'permission' in error_str or 'denied' in error_str or 'unanticipated host error' in error_str:
            return ProcessingError(
                category=ErrorCategory.MICROPHONE,
                severity=ErrorSeverity.ERROR,
                message="Could not access microphone",
                details=f"Microphone access was denied: {error}",
                suggested_actions=[
                    "Grant microphone permission to this application",
                    "Turn the microphone on again once permission is granted"
                ],
                error_code="MIC_001",
                context={'device': device}
            )

        if 'device' in error_str or 'no default input' in error_str:
            return ProcessingError(
                category=ErrorCategory.MICROPHONE,
                severity=ErrorSeverity.ERROR,
                message="No usable microphone found",
                details=f"The input device could not be opened: {error}",
                suggested_actions=[
                    "Connect a microphone and make sure it is enabled",
                    "Select another input device",
                    "Turn the microphone on again to retry"
                ],
                error_code="MIC_002",
                context={'device': device}
            )

        return ProcessingError(
            category=ErrorCategory.MICROPHONE,
            severity=ErrorSeverity.ERROR,
            message="Could not access microphone",
            details=f"Opening the audio input failed: {error}",
            suggested_actions=[
                "Check that no other application holds the microphone",
                "Turn the microphone on again to retry"
            ],
            error_code="MIC_003",
            context={'device': device}
        )

    def handle_capture_error(self, error: Optional[BaseException]) -> ProcessingError:
        """Handle a listening run that ended without being stopped."""
        return ProcessingError(
            category=ErrorCategory.MICROPHONE,
            severity=ErrorSeverity.ERROR,
            message="Listening stopped unexpectedly",
            details=f"The recording loop ended: {error or 'no error reported'}",
            suggested_actions=[
                "Turn the microphone on again",
                "Run with --verbose and report the logged traceback if this repeats"
            ],
            error_code="MIC_004",
            context={'error_type': type(error).__name__ if error is not None else None}
        )

    def handle_transcription_error(self, error: Exception, window_index: Optional[int] = None) -> ProcessingError:
        """Handle a failed recognition attempt for a single window."""
        return ProcessingError(
            category=ErrorCategory.TRANSCRIPTION,
            severity=ErrorSeverity.WARNING,
            message="Could not transcribe recording",
            details=f"Transcription failed{_window_label(window_index)}: {error}",
            suggested_actions=[
                "Say the word again",
                "Speak closer to the microphone"
            ],
            error_code="TRANS_001",
            context={'window_index': window_index}
        )

    def handle_audio_decode_error(self, error: Exception, window_index: Optional[int] = None) -> ProcessingError:
        """Handle a recording window that could not be decoded."""
        return ProcessingError(
            category=ErrorCategory.AUDIO_DECODE,
            severity=ErrorSeverity.WARNING,
            message="Could not decode recording",
            details=f"Audio{_window_label(window_index)} was unusable: {error}",
            suggested_actions=[
                "Say the word again",
                "Check the microphone input level"
            ],
            error_code="AUDIO_001",
            context={'window_index': window_index}
        )

    def handle_synthesis_error(self, error: Exception, text: str) -> ProcessingError:
        """Handle a failure to speak a word aloud."""
        return ProcessingError(
            category=ErrorCategory.SPEECH_SYNTHESIS,
            severity=ErrorSeverity.WARNING,
            message="Speech synthesis failed",
            details=f"Could not speak '{text}': {error}",
            suggested_actions=[
                "Install a voice for the target language",
                "On Linux, install espeak or espeak-ng"
            ],
            error_code="TTS_001",
            context={'text': text}
        )

    def handle_vocabulary_error(self, message: str, details: str, path: Optional[str] = None) -> ProcessingError:
        """Handle a vocabulary that cannot be loaded or used."""
        return ProcessingError(
            category=ErrorCategory.VOCABULARY,
            severity=ErrorSeverity.ERROR,
            message=message,
            details=details,
            suggested_actions=[
                "Provide a .json or .csv file with source, target and category columns",
                "Make sure the file contains at least one word pair"
            ],
            error_code="VOCAB_001",
            context={'path': path}
        )

    def handle_state_error(self, message: str, details: str) -> ProcessingError:
        """Handle an operation that is not valid in the current state."""
        return ProcessingError(
            category=ErrorCategory.SESSION_STATE,
            severity=ErrorSeverity.ERROR,
            message=message,
            details=details,
            suggested_actions=[
                "Start a new session before navigating",
            ],
            error_code="STATE_001"
        )


# Global error handler instance
error_handler = ErrorHandler()
