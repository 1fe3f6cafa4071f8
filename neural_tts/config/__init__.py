"""Configuration module for Neural TTS."""

from neural_tts.config.settings import (
    AppSettings,
    AudioSettings,
    ModelSettings,
    ServerSettings,
    Settings,
    SpeechSettings,
    get_settings,
    platform_data_dir,
)

__all__ = [
    "AppSettings",
    "ServerSettings",
    "ModelSettings",
    "AudioSettings",
    "SpeechSettings",
    "Settings",
    "get_settings",
    "platform_data_dir",
]
