"""
Conversion of captured windows into speech model input.
"""

import logging

import numpy as np
import librosa

from ..config import Config
from ..errors import AudioDecodeError, error_handler
from ..models import RecordingWindow


logger = logging.getLogger(__name__)


def decode_window(window: RecordingWindow, target_sample_rate: int = Config.SAMPLE_RATE) -> np.ndarray:
    """
    Turn a recording window into mono float32 PCM at the model sample rate.

    Args:
        window: Captured window, shaped (samples,) or (samples, channels)
        target_sample_rate: Rate expected by the speech model

    Returns:
        One-dimensional float32 array

    Raises:
        AudioDecodeError: If the window holds no usable audio
    """
    samples = np.asarray(window.samples)

    if samples.size == 0:
        raise AudioDecodeError(error_handler.handle_audio_decode_error(
            ValueError("recording window is empty"), window.index
        ))

    if samples.ndim == 2:
        samples = samples.mean(axis=1)
    elif samples.ndim != 1:
        raise AudioDecodeError(error_handler.handle_audio_decode_error(
            ValueError(f"unexpected audio shape {samples.shape}"), window.index
        ))

    samples = samples.astype(np.float32)

    if not np.all(np.isfinite(samples)):
        raise AudioDecodeError(error_handler.handle_audio_decode_error(
            ValueError("recording contains non-finite samples"), window.index
        ))

    if window.sample_rate != target_sample_rate:
        try:
            samples = librosa.resample(
                samples, orig_sr=window.sample_rate, target_sr=target_sample_rate
            )
        except Exception as e:
            raise AudioDecodeError(error_handler.handle_audio_decode_error(e, window.index))
        logger.debug(f"Resampled window {window.index} from {window.sample_rate} Hz to {target_sample_rate} Hz")

    return samples.astype(np.float32)
