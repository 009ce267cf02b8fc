"""
Tests for the command-line entry point.
"""

import asyncio
import io
import json
import random
import threading
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pronunciation_drill import main as main_module
from pronunciation_drill.errors import ErrorHandler
from pronunciation_drill.recognition import RecognitionOrchestrator
from pronunciation_drill.session import SessionManager
from conftest import FakeMicrophone, RecordingDisplay, RecordingSynthesizer


class TestMain:
    """Test cases for argument handling."""

    def test_missing_vocabulary_file_fails(self, tmp_path, capsys):
        exit_code = main_module.main(["--vocabulary", str(tmp_path / "nope.json")])

        assert exit_code == 1
        assert "Vocabulary file not found" in capsys.readouterr().out

    @pytest.mark.parametrize("argv", [["--size", "0"], ["--window", "0"]])
    def test_invalid_arguments_exit(self, argv):
        with pytest.raises(SystemExit) as exc_info:
            main_module.main(argv)
        assert exc_info.value.code == 2

    @patch.object(main_module, 'error_handler', ErrorHandler())
    @patch.object(main_module, 'run_drill', new_callable=AsyncMock)
    @patch.object(main_module, 'build_orchestrator')
    def test_options_reach_configuration(self, mock_build, mock_run, tmp_path):
        path = tmp_path / "words.json"
        path.write_text(json.dumps([{"source": "dog", "target": "perro"}]), encoding="utf-8")

        exit_code = main_module.main([
            "--vocabulary", str(path), "--size", "4", "--language", "es",
            "--speech-language", "es-ES", "--model", "base", "--window", "2",
            "--no-vad", "--device", "1", "--listen"
        ])

        assert exit_code == 0
        config, display, vocabulary = mock_build.call_args.args
        assert config.session_size == 4
        assert config.target_language == "es"
        assert config.speech_language_tag == "es-ES"
        assert config.whisper_model == "base"
        assert config.timing.window_duration == 2.0
        assert not config.vad_enabled
        assert vocabulary[0].target == "perro"
        assert mock_build.call_args.kwargs['device'] == 1

        orchestrator = mock_build.return_value
        mock_run.assert_awaited_once_with(orchestrator, listen=True)
        orchestrator.synthesizer.shutdown.assert_called_once()


class TestRunDrill:
    """Test cases for the interactive command loop."""

    def test_commands_drive_the_session(self, monkeypatch, fast_config, french_words, make_transcriber):
        display = RecordingDisplay()
        transcriber, _ = make_transcriber()
        orchestrator = RecognitionOrchestrator(
            session=SessionManager(display=display, rng=random.Random(2)),
            transcriber=transcriber,
            microphone=FakeMicrophone(),
            synthesizer=RecordingSynthesizer(),
            config=fast_config,
            vocabulary=french_words,
            errors=ErrorHandler()
        )
        monkeypatch.setattr("sys.stdin", io.StringIO("f\nn\nn\np\nq\n"))

        asyncio.run(main_module.run_drill(orchestrator))

        session = orchestrator.session.session
        assert session.position == 1
        assert not session.flipped
        assert len(display.of_kind("card")) == 4
        assert not orchestrator.is_listening

    def test_end_of_input_stops(self, monkeypatch):
        orchestrator = MagicMock()
        orchestrator.capture.wait_stopped = AsyncMock()
        monkeypatch.setattr("sys.stdin", io.StringIO(""))

        asyncio.run(main_module.run_drill(orchestrator))

        orchestrator.new_session.assert_called_once()
        orchestrator.stop_listening.assert_called_once()
        orchestrator.capture.wait_stopped.assert_awaited_once()


class BlockingStream:
    """Input stream whose readline waits until released, like an idle terminal."""

    def __init__(self):
        self.released = threading.Event()

    def readline(self):
        self.released.wait(5)
        return ""


class TestCommandReader:
    """Test cases for reading commands off the event loop."""

    def test_lines_then_end_of_input(self):
        async def scenario():
            commands = main_module.start_command_reader(
                asyncio.get_running_loop(), io.StringIO("f\nq\n")
            )
            return [await commands.get() for _ in range(3)]

        assert asyncio.run(scenario()) == ["f\n", "q\n", None]

    def test_pending_read_does_not_block_shutdown(self):
        stream = BlockingStream()

        async def scenario():
            main_module.start_command_reader(asyncio.get_running_loop(), stream)

        # Returns while readline is still waiting for input
        asyncio.run(scenario())

        readers = [t for t in threading.enumerate() if t.name == "stdin-reader" and t.is_alive()]
        assert readers
        assert all(t.daemon for t in readers)

        stream.released.set()
        for thread in readers:
            thread.join(timeout=1)
