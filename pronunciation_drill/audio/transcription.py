"""
Speech-to-text using Whisper for pronunciation checks.

The model is loaded lazily on first use, shared by every transcriber in
the process through a ``ModelRegistry`` and never unloaded. Loading and
inference block, so both run in the default executor and are awaited.
"""

import asyncio
import functools
import logging
from typing import Any, Callable, Dict, Optional

import numpy as np

try:
    import whisper
    WHISPER_AVAILABLE = True
except ImportError:
    WHISPER_AVAILABLE = False

from ..config import Config
from ..errors import ModelLoadError, TranscriptionError, error_handler


logger = logging.getLogger(__name__)


def load_whisper_model(model_name: str, device: Optional[str] = None) -> Any:
    """Load a Whisper model by size name ("tiny", "base", ...)."""
    if not WHISPER_AVAILABLE:
        raise RuntimeError("Whisper is not installed. Install with: pip install openai-whisper")
    return whisper.load_model(model_name, device=device)


class ModelRegistry:
    """
    Cache of loaded speech models keyed by name.

    At most one load per name is in flight; callers arriving while it runs
    await the same load instead of starting another. A failed load leaves
    nothing cached so the next caller retries.
    """

    def __init__(self):
        self._models: Dict[str, Any] = {}
        self._pending: Dict[str, asyncio.Future] = {}

    def get(self, model_name: str) -> Optional[Any]:
        return self._models.get(model_name)

    def is_loaded(self, model_name: str) -> bool:
        return model_name in self._models

    def is_loading(self, model_name: str) -> bool:
        return model_name in self._pending

    async def get_or_load(self, model_name: str, loader: Callable[[str], Any]) -> Any:
        model = self._models.get(model_name)
        if model is not None:
            return model

        pending = self._pending.get(model_name)
        if pending is not None:
            return await asyncio.shield(pending)

        loop = asyncio.get_running_loop()
        pending = loop.run_in_executor(None, loader, model_name)
        self._pending[model_name] = pending
        try:
            model = await asyncio.shield(pending)
        finally:
            del self._pending[model_name]

        self._models[model_name] = model
        return model


default_registry = ModelRegistry()


class WhisperTranscriber:
    """
    Transcribes short recordings in the target language with Whisper.
    """

    def __init__(self,
                 model_name: str = Config.WHISPER_MODEL,
                 language: str = Config.TARGET_LANGUAGE,
                 registry: Optional[ModelRegistry] = None,
                 model_loader: Optional[Callable[[str], Any]] = None,
                 device: Optional[str] = None):
        """
        Initialize Whisper transcriber.

        Args:
            model_name: Whisper model size ("tiny", "base", "small", "medium", "large")
            language: Spoken language hint, e.g. "fr"
            registry: Model cache, the process-wide one if None
            model_loader: Callable loading a model by name, Whisper's loader if None
            device: Torch device for the default loader
        """
        self.model_name = model_name
        self.language = language
        self.registry = registry or default_registry
        self.model_loader = model_loader or functools.partial(load_whisper_model, device=device)

    @property
    def is_ready(self) -> bool:
        return self.registry.is_loaded(self.model_name)

    @property
    def is_loading(self) -> bool:
        return self.registry.is_loading(self.model_name)

    async def ensure_ready(self) -> None:
        """
        Load the model unless it is already loaded.

        Raises:
            ModelLoadError: If loading fails; a later call retries
        """
        if self.is_ready:
            return

        logger.info(f"Loading Whisper {self.model_name} model...")
        try:
            await self.registry.get_or_load(self.model_name, self.model_loader)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error loading Whisper model: {e}")
            raise ModelLoadError(error_handler.handle_model_load_error(e, self.model_name))
        logger.info(f"Whisper {self.model_name} model loaded successfully")

    async def transcribe(self, samples: np.ndarray, window_index: Optional[int] = None) -> str:
        """
        Transcribe mono 16 kHz float32 PCM.

        Args:
            samples: Audio to transcribe
            window_index: Capture window the audio came from, for error reports

        Returns:
            The recognized text, stripped of surrounding whitespace

        Raises:
            TranscriptionError: If the model is not loaded or inference fails
        """
        model = self.registry.get(self.model_name)
        if model is None:
            raise TranscriptionError(error_handler.handle_transcription_error(
                RuntimeError("Whisper model not loaded"), window_index
            ))

        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(
                None,
                functools.partial(
                    model.transcribe,
                    samples.astype(np.float32),
                    language=self.language,
                    task='transcribe',
                    fp16=False
                )
            )
            text = result['text'].strip()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise TranscriptionError(error_handler.handle_transcription_error(e, window_index))

        logger.info(f"Transcribed: {text!r}")
        return text
