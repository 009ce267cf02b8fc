"""
Audio module for microphone capture, speech recognition and playback.
"""

from .capture import AudioCaptureLoop
from .microphone import SoundDeviceMicrophone
from .preprocessing import decode_window
from .vad import VoiceActivityDetector
from .transcription import WhisperTranscriber, ModelRegistry, default_registry
from .synthesis import SpeechSynthesizer, Pyttsx3Synthesizer

__all__ = [
    'AudioCaptureLoop',
    'SoundDeviceMicrophone',
    'decode_window',
    'VoiceActivityDetector',
    'WhisperTranscriber',
    'ModelRegistry',
    'default_registry',
    'SpeechSynthesizer',
    'Pyttsx3Synthesizer'
]
