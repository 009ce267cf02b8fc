"""
Microphone input through PortAudio.

The stream stays open for the whole listening session; windows are cut
out of it by ``begin_window``/``end_window``. PortAudio delivers blocks
on its own thread, so the block buffer is the only lock-protected state.
"""

import asyncio
import logging
import threading
from typing import List, Optional, Union

import numpy as np

try:
    import sounddevice as sd
    SOUNDDEVICE_AVAILABLE = True
except (ImportError, OSError):
    # OSError: the module imports but the PortAudio library is missing
    SOUNDDEVICE_AVAILABLE = False
    sd = None

from ..config import Config
from ..errors import MicrophoneAccessError, error_handler


logger = logging.getLogger(__name__)


class SoundDeviceMicrophone:
    """Captures mono float32 audio from an input device."""

    def __init__(self,
                 sample_rate: int = Config.SAMPLE_RATE,
                 channels: int = Config.CHANNELS,
                 device: Optional[Union[int, str]] = None):
        """
        Initialize the microphone.

        Args:
            sample_rate: Requested capture rate in Hz
            channels: Number of input channels
            device: PortAudio device index or name substring, default input if None
        """
        self.sample_rate = sample_rate
        self.channels = channels
        self.device = device
        self._stream = None
        self._lock = threading.Lock()
        self._blocks: List[np.ndarray] = []
        self._recording = False

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    async def open(self) -> None:
        """
        Open and start the input stream.

        Raises:
            MicrophoneAccessError: If the device is unavailable or access is denied
        """
        if self._stream is not None:
            return

        if not SOUNDDEVICE_AVAILABLE:
            raise MicrophoneAccessError(error_handler.handle_microphone_error(
                RuntimeError("PortAudio is not available; install sounddevice and libportaudio2"),
                self.device
            ))

        loop = asyncio.get_running_loop()
        try:
            stream = await loop.run_in_executor(None, self._start_stream)
        except Exception as e:
            logger.error(f"Error accessing microphone: {e}")
            raise MicrophoneAccessError(error_handler.handle_microphone_error(e, self.device))

        self._stream = stream
        # Device may not honour the requested rate
        self.sample_rate = int(stream.samplerate)
        logger.info(f"Microphone opened at {self.sample_rate} Hz")

    def _start_stream(self):
        stream = sd.InputStream(
            samplerate=self.sample_rate,
            channels=self.channels,
            dtype="float32",
            device=self.device,
            callback=self._record_callback,
        )
        stream.start()
        return stream

    def _record_callback(self, indata, frames, time_info, status) -> None:
        if status:
            logger.debug(f"Input stream status: {status}")
        with self._lock:
            if self._recording:
                self._blocks.append(indata.copy())

    def begin_window(self) -> None:
        with self._lock:
            self._blocks = []
            self._recording = True

    def end_window(self) -> np.ndarray:
        """Stop buffering and return everything captured since ``begin_window``."""
        with self._lock:
            self._recording = False
            blocks, self._blocks = self._blocks, []

        if not blocks:
            return np.zeros((0, self.channels), dtype=np.float32)
        return np.concatenate(blocks, axis=0)

    def close(self) -> None:
        """Stop the stream and release the device. Safe to call repeatedly."""
        stream, self._stream = self._stream, None
        with self._lock:
            self._recording = False
            self._blocks = []

        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except Exception as e:
            logger.warning(f"Error closing microphone stream: {e}")
        logger.info("Microphone released")
