"""
Main entry point for the Pronunciation Drill.

Interactive terminal drill: cards are shown one at a time and, with the
microphone on, saying the target word aloud moves on to the next card.
"""

import argparse
import asyncio
import logging
import sys
import threading
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from .audio.microphone import SoundDeviceMicrophone
from .audio.synthesis import Pyttsx3Synthesizer
from .audio.transcription import WhisperTranscriber
from .audio.vad import VoiceActivityDetector
from .config import DrillConfig
from .display import ConsoleDisplay, DisplayListener
from .errors import VocabularyError, error_handler
from .models import WordPair
from .recognition.orchestrator import RecognitionOrchestrator
from .session.manager import Direction, SessionManager
from .vocabulary import DEFAULT_VOCABULARY, load_vocabulary


COMMANDS_HELP = (
    "Commands: [Enter]/f flip · n next · p previous · m microphone on/off · "
    "s new session · q quit"
)


def setup_logging(verbose: bool = False):
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def build_orchestrator(config: DrillConfig,
                       display: DisplayListener,
                       vocabulary: Sequence[WordPair],
                       device: Optional[str] = None) -> RecognitionOrchestrator:
    """Wire the default microphone, Whisper, pyttsx3 and VAD into an orchestrator."""
    session = SessionManager(display=display)
    transcriber = WhisperTranscriber(
        model_name=config.whisper_model,
        language=config.target_language
    )
    microphone = SoundDeviceMicrophone(sample_rate=config.sample_rate, device=device)

    voice_detector = None
    if config.vad_enabled:
        voice_detector = VoiceActivityDetector(
            sample_rate=config.sample_rate,
            aggressiveness=config.vad_aggressiveness,
            min_speech_ratio=config.vad_min_speech_ratio
        )

    return RecognitionOrchestrator(
        session=session,
        transcriber=transcriber,
        microphone=microphone,
        synthesizer=Pyttsx3Synthesizer(),
        display=display,
        config=config,
        vocabulary=vocabulary,
        voice_detector=voice_detector
    )


def start_command_reader(loop: asyncio.AbstractEventLoop, stream: TextIO) -> "asyncio.Queue[Optional[str]]":
    """
    Read lines from ``stream`` on a daemon thread and queue them on ``loop``.

    ``None`` is queued at end of input. The thread never keeps the process
    alive, so quitting does not wait for another line to be typed.
    """
    queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue()

    def read_lines():
        try:
            for line in iter(stream.readline, ""):
                loop.call_soon_threadsafe(queue.put_nowait, line)
            loop.call_soon_threadsafe(queue.put_nowait, None)
        except RuntimeError:
            # Event loop already closed
            return

    threading.Thread(target=read_lines, name="stdin-reader", daemon=True).start()
    return queue


async def run_drill(orchestrator: RecognitionOrchestrator, listen: bool = False) -> None:
    """Run the interactive command loop until the user quits."""
    loop = asyncio.get_running_loop()
    commands = start_command_reader(loop, sys.stdin)

    orchestrator.new_session()
    print(COMMANDS_HELP)

    if listen:
        await orchestrator.start_listening()

    try:
        while True:
            command = await commands.get()
            if command is None:  # EOF
                break
            command = command.strip().lower()

            if command in ("", "f", "flip"):
                orchestrator.flip_card()
            elif command in ("n", "next"):
                await orchestrator.navigate(Direction.NEXT)
            elif command in ("p", "prev", "previous"):
                await orchestrator.navigate(Direction.PREVIOUS)
            elif command in ("m", "mic"):
                await orchestrator.toggle_listening()
            elif command in ("s", "new"):
                orchestrator.new_session()
            elif command in ("q", "quit", "exit"):
                break
            else:
                print(COMMANDS_HELP)
    finally:
        orchestrator.stop_listening()
        await orchestrator.capture.wait_stopped()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Practice vocabulary with flip cards and pronunciation checking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                          # built-in English/French words
  %(prog)s --vocabulary words.json --listen
  %(prog)s --language es --speech-language es-ES --vocabulary spanish.csv

Vocabulary files:
  JSON: a list of {"source": ..., "target": ..., "category": ...} objects
  CSV:  a header row with source,target,category columns
        """
    )

    defaults = DrillConfig.from_env()

    parser.add_argument(
        "--vocabulary",
        type=Path,
        default=None,
        help="Path to a .json or .csv vocabulary file (built-in French list if omitted)"
    )
    parser.add_argument(
        "--size",
        type=int,
        default=defaults.session_size,
        help="Number of cards per session"
    )
    parser.add_argument(
        "--language",
        default=defaults.target_language,
        help="Language spoken by the learner, as a Whisper language code"
    )
    parser.add_argument(
        "--speech-language",
        default=defaults.speech_language_tag,
        help="Language tag used to pick a text-to-speech voice"
    )
    parser.add_argument(
        "--model",
        default=defaults.whisper_model,
        help="Whisper model size (tiny, base, small, ...)"
    )
    parser.add_argument(
        "--window",
        type=float,
        default=defaults.timing.window_duration,
        help="Recording window length in seconds"
    )
    parser.add_argument(
        "--device",
        default=None,
        help="Input device index or name (system default if omitted)"
    )
    parser.add_argument(
        "--no-vad",
        action="store_true",
        help="Transcribe every window, even silent ones"
    )
    parser.add_argument(
        "--listen",
        action="store_true",
        help="Turn the microphone on at start"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    if args.size < 1:
        parser.error("--size must be at least 1")
    if args.window <= 0:
        parser.error("--window must be positive")

    config = defaults
    config.session_size = args.size
    config.target_language = args.language
    config.speech_language_tag = args.speech_language
    config.whisper_model = args.model
    config.timing.window_duration = args.window
    config.vad_enabled = defaults.vad_enabled and not args.no_vad

    display = ConsoleDisplay()

    if args.vocabulary is not None:
        try:
            vocabulary = load_vocabulary(str(args.vocabulary))
        except VocabularyError as e:
            display.show_error(e.processing_error)
            return 1
    else:
        vocabulary = list(DEFAULT_VOCABULARY)

    device = int(args.device) if args.device is not None and args.device.isdigit() else args.device
    orchestrator = build_orchestrator(config, display, vocabulary, device=device)

    logger.info(f"Starting drill with {len(vocabulary)} words, {config.session_size} per session")

    try:
        asyncio.run(run_drill(orchestrator, listen=args.listen))
    except KeyboardInterrupt:
        print()
    finally:
        if orchestrator.synthesizer is not None:
            orchestrator.synthesizer.shutdown()

    return 1 if error_handler.has_errors() else 0


if __name__ == "__main__":
    sys.exit(main())
