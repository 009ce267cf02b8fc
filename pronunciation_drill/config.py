"""
Configuration settings for the Pronunciation Drill.
"""

import os
from dataclasses import dataclass


class Config:
    """Configuration class for application settings."""
    
    # Audio capture settings
    SAMPLE_RATE = 16000  # Whisper expects 16 kHz mono
    CHANNELS = 1
    WINDOW_DURATION = 3.0  # seconds
    
    # Vocabulary settings
    VOCABULARY_FORMATS = [".json", ".csv"]
    SESSION_SIZE = 10
    
    # Speech settings
    TARGET_LANGUAGE = "fr"
    SPEECH_LANGUAGE_TAG = "fr-FR"
    SPEECH_RATE = 0.9  # Slightly slower for clarity
    WHISPER_MODEL = "tiny"


@dataclass
class TimingConfig:
    """Durations (seconds) of the UI transitions the recognizer must wait out."""

    window_duration: float = Config.WINDOW_DURATION
    card_update_guard: float = 0.3
    flip_guard: float = 1.5  # flip to answer plus spoken answer
    unflip_guard: float = 0.6
    flip_speech_delay: float = 0.2  # halfway through the flip animation
    success_feedback: float = 0.8
    flip_animation: float = 0.4
    transcript_display: float = 3.0


@dataclass
class DrillConfig:
    """Configuration for a drill session and its recognizer."""

    # Session settings
    session_size: int = Config.SESSION_SIZE

    # Speech recognition settings
    target_language: str = Config.TARGET_LANGUAGE
    whisper_model: str = Config.WHISPER_MODEL
    sample_rate: int = Config.SAMPLE_RATE

    # Speech synthesis settings
    speech_language_tag: str = Config.SPEECH_LANGUAGE_TAG
    speech_rate: float = Config.SPEECH_RATE

    # Voice activity detection
    vad_enabled: bool = True
    vad_aggressiveness: int = 2
    vad_min_speech_ratio: float = 0.05

    # Matching
    substring_match: bool = True

    timing: TimingConfig = None

    def __post_init__(self):
        """Fill in nested defaults."""
        if self.timing is None:
            self.timing = TimingConfig()

    @classmethod
    def from_env(cls, prefix: str = "DRILL_") -> "DrillConfig":
        """
        Build a configuration from environment variables.
        
        Recognised variables (all optional): DRILL_SESSION_SIZE,
        DRILL_LANGUAGE, DRILL_SPEECH_LANGUAGE, DRILL_SPEECH_RATE,
        DRILL_WHISPER_MODEL, DRILL_WINDOW_SECONDS, DRILL_VAD,
        DRILL_VAD_AGGRESSIVENESS, DRILL_SUBSTRING_MATCH.
        """
        def env(name, default):
            return os.getenv(prefix + name, default)

        def env_flag(name, default):
            value = os.getenv(prefix + name)
            if value is None:
                return default
            return value.strip().lower() in ("1", "true", "yes", "on")

        timing = TimingConfig(
            window_duration=float(env("WINDOW_SECONDS", Config.WINDOW_DURATION))
        )
        return cls(
            session_size=int(env("SESSION_SIZE", Config.SESSION_SIZE)),
            target_language=env("LANGUAGE", Config.TARGET_LANGUAGE),
            whisper_model=env("WHISPER_MODEL", Config.WHISPER_MODEL),
            speech_language_tag=env("SPEECH_LANGUAGE", Config.SPEECH_LANGUAGE_TAG),
            speech_rate=float(env("SPEECH_RATE", Config.SPEECH_RATE)),
            vad_enabled=env_flag("VAD", True),
            vad_aggressiveness=int(env("VAD_AGGRESSIVENESS", 2)),
            substring_match=env_flag("SUBSTRING_MATCH", True),
            timing=timing,
        )
