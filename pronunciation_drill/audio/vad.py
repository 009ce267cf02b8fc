"""
Voice Activity Detection (VAD) gate for recording windows.

Uses webrtcvad frame decisions, backed by an RMS energy floor, to skip
windows that contain no speech before they reach the speech model. Whisper
tends to hallucinate words on silence, which could otherwise trigger matches.
"""

import logging

import numpy as np
import librosa
import webrtcvad
from scipy.ndimage import binary_dilation, binary_erosion

from ..config import Config


logger = logging.getLogger(__name__)


class VoiceActivityDetector:
    """
    Decides whether a window of 16 kHz mono audio contains speech.
    """

    SUPPORTED_SAMPLE_RATES = (8000, 16000, 32000, 48000)
    SUPPORTED_FRAME_DURATIONS = (10, 20, 30)

    def __init__(self,
                 sample_rate: int = Config.SAMPLE_RATE,
                 frame_duration: int = 30,  # ms
                 aggressiveness: int = 2,
                 min_speech_ratio: float = 0.05,
                 silence_rms: float = 0.005):
        """
        Initialize Voice Activity Detector.

        Args:
            sample_rate: Audio sample rate (8000, 16000, 32000, or 48000)
            frame_duration: Frame duration in milliseconds (10, 20, or 30)
            aggressiveness: WebRTC VAD aggressiveness (0-3, higher = more aggressive)
            min_speech_ratio: Fraction of frames that must be voiced
            silence_rms: Peak frame RMS below which the window counts as silent
        """
        if sample_rate not in self.SUPPORTED_SAMPLE_RATES:
            raise ValueError(f"Unsupported sample rate for WebRTC VAD: {sample_rate}")
        if frame_duration not in self.SUPPORTED_FRAME_DURATIONS:
            raise ValueError(f"Unsupported frame duration for WebRTC VAD: {frame_duration}")

        self.sample_rate = sample_rate
        self.frame_duration = frame_duration
        self.min_speech_ratio = min_speech_ratio
        self.silence_rms = silence_rms
        self.vad = webrtcvad.Vad(aggressiveness)

        # Frame size in samples
        self.frame_size = int(sample_rate * frame_duration / 1000)

    def contains_speech(self, audio_data: np.ndarray) -> bool:
        """
        Check a window for speech.

        Args:
            audio_data: Mono float32 audio in [-1, 1]

        Returns:
            True if enough frames are voiced
        """
        if len(audio_data) < self.frame_size:
            return False

        rms_energy = librosa.feature.rms(
            y=audio_data,
            frame_length=self.frame_size,
            hop_length=self.frame_size
        )[0]
        if float(np.max(rms_energy)) < self.silence_rms:
            logger.debug("Window is below the silence floor")
            return False

        ratio = self.speech_ratio(audio_data)
        logger.debug(f"Voiced frame ratio: {ratio:.2f}")
        return ratio >= self.min_speech_ratio

    def speech_ratio(self, audio_data: np.ndarray) -> float:
        """Fraction of complete frames that WebRTC VAD marks as speech, ignoring isolated ones."""
        # Convert to 16-bit PCM format required by WebRTC VAD
        clipped = np.clip(audio_data, -1.0, 1.0)
        audio_int16 = (clipped * 32767).astype(np.int16)

        num_frames = len(audio_int16) // self.frame_size
        if num_frames == 0:
            return 0.0

        speech_frames = np.zeros(num_frames, dtype=bool)
        for i in range(num_frames):
            frame = audio_int16[i * self.frame_size:(i + 1) * self.frame_size]
            speech_frames[i] = self.vad.is_speech(frame.tobytes(), self.sample_rate)

        return float(np.mean(self._clean_frames(speech_frames)))

    def _clean_frames(self, speech_frames: np.ndarray) -> np.ndarray:
        """Remove isolated speech frames such as clicks (erosion followed by dilation)."""
        cleaned = binary_erosion(speech_frames, iterations=1)
        return binary_dilation(cleaned, iterations=1)
