"""
Display collaborator interface.

The drill core never renders anything itself; it pushes card content,
flip state, overlays and recognizer status to a ``DisplayListener``.
"""

from enum import Enum

from .errors import ProcessingError
from .models import CardView


class RecognitionStatus(Enum):
    """Recognizer status shown next to the card."""
    READY = "ready"
    LISTENING = "listening"
    TRANSCRIBING = "transcribing"
    TRANSCRIBED = "transcribed"


class DisplayListener:
    """Receives display updates from the drill. All methods default to no-ops."""

    def show_card(self, card: CardView) -> None:
        pass

    def set_flipped(self, flipped: bool, visible_text: str) -> None:
        pass

    def show_success(self, visible: bool) -> None:
        pass

    def show_loading(self, visible: bool) -> None:
        pass

    def show_status(self, status: RecognitionStatus, text: str = "") -> None:
        pass

    def show_error(self, error: ProcessingError) -> None:
        pass


class ConsoleDisplay(DisplayListener):
    """Renders the drill to the terminal."""

    STATUS_LABELS = {
        RecognitionStatus.READY: "Ready",
        RecognitionStatus.LISTENING: "Listening...",
        RecognitionStatus.TRANSCRIBING: "Transcribing...",
        RecognitionStatus.TRANSCRIBED: "Heard:",
    }

    def show_card(self, card: CardView) -> None:
        category = f" ({card.category})" if card.category else ""
        print(f"\n[{card.progress_label}] {card.front_text}{category}")

    def set_flipped(self, flipped: bool, visible_text: str) -> None:
        arrow = "→" if flipped else "←"
        print(f"  {arrow} {visible_text}")

    def show_success(self, visible: bool) -> None:
        if visible:
            print("  ✅ Correct!")

    def show_loading(self, visible: bool) -> None:
        if visible:
            print("⏳ Loading speech recognition model...")

    def show_status(self, status: RecognitionStatus, text: str = "") -> None:
        label = self.STATUS_LABELS[status]
        print(f"  🎤 {label} {text}".rstrip())

    def show_error(self, error: ProcessingError) -> None:
        print(f"\n❌ {error.message}")
        if error.details:
            print(f"   {error.details}")
        for action in error.suggested_actions:
            print(f"   • {action}")
