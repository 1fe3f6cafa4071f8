"""Application settings using pydantic-settings."""

import os
import sys
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def platform_data_dir() -> Path:
    """Get the per-user application data directory for this platform."""
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    if sys.platform.startswith("win"):
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata)
        return Path.home() / "AppData" / "Roaming"
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".local" / "share"


class AppSettings(BaseSettings):
    """Application-level settings."""

    model_config = SettingsConfigDict(env_prefix="APP_", env_file=".env", extra="ignore")

    name: str = Field(default="Neural TTS")
    version: str = Field(default="0.1.0")
    app_id: str = Field(default="pastel-hn", description="Directory name under the data dir")
    debug: bool = Field(default=False)


class ServerSettings(BaseSettings):
    """Server configuration settings."""

    model_config = SettingsConfigDict(env_prefix="SERVER_", env_file=".env", extra="ignore")

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)
    reload: bool = Field(default=False)
    cors_origins: list[str] = Field(default=["*"])


class ModelSettings(BaseSettings):
    """Voice model storage and inference settings."""

    model_config = SettingsConfigDict(env_prefix="MODEL_", env_file=".env", extra="ignore")

    data_dir: Path | None = Field(
        default=None,
        description="Override for the model root; defaults to the platform data dir",
    )
    default_model: str = Field(default="piper-en-us")
    intra_threads: int = Field(default=4, ge=1, le=64)
    use_mock: bool = Field(default=False)
    download_timeout: float = Field(default=60.0, gt=0, description="Per-read timeout in seconds")
    download_chunk_size: int = Field(default=64 * 1024, ge=1024)

    def get_model_dir(self, app_id: str) -> Path:
        """Resolve the directory holding one subdirectory per model."""
        if self.data_dir is not None:
            return Path(self.data_dir)
        return platform_data_dir() / app_id / "models"


class AudioSettings(BaseSettings):
    """Audio playback settings."""

    model_config = SettingsConfigDict(env_prefix="AUDIO_", env_file=".env", extra="ignore")

    start_delay_ms: int = Field(
        default=50,
        ge=0,
        le=1000,
        description="Delay after stream start before audio is reported audible",
    )
    poll_interval_ms: int = Field(default=50, ge=5, le=1000)
    channels: int = Field(default=1, ge=1, le=2)

    @property
    def start_delay(self) -> float:
        return self.start_delay_ms / 1000

    @property
    def poll_interval(self) -> float:
        return self.poll_interval_ms / 1000


class SpeechSettings(BaseSettings):
    """Synthesis behaviour settings."""

    model_config = SettingsConfigDict(env_prefix="SPEECH_", env_file=".env", extra="ignore")

    default_rate: float = Field(default=1.0, ge=0.5, le=2.0)
    max_chunk_chars: int = Field(default=500, ge=1)
    fallback_enabled: bool = Field(default=True)
    espeak_binary: str = Field(default="espeak-ng")


class Settings(BaseSettings):
    """Combined application settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    model: ModelSettings = Field(default_factory=ModelSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    speech: SpeechSettings = Field(default_factory=SpeechSettings)

    # Logging settings
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: Literal["json", "pretty"] = Field(default="pretty", alias="LOG_FORMAT")

    @property
    def models_root(self) -> Path:
        return self.model.get_model_dir(self.app.app_id)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
