"""Piper voice descriptor (the ``.onnx.json`` shipped next to each model)."""

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from neural_tts.exceptions import ConfigError

# Sentinel symbols in the phoneme ID map
PAD = "_"
BOS = "^"
EOS = "$"
SPACE = " "


class AudioConfig(BaseModel):
    model_config = {"extra": "ignore"}

    sample_rate: int = Field(..., gt=0)
    quality: str | None = None


class EspeakConfig(BaseModel):
    model_config = {"extra": "ignore"}

    voice: str = "en-us"


class InferenceConfig(BaseModel):
    """Default VITS sampling parameters for the voice."""

    model_config = {"extra": "ignore"}

    noise_scale: float = 0.667
    length_scale: float = Field(default=1.0, gt=0)
    noise_w: float = 0.8


class PiperConfig(BaseModel):
    """Parsed Piper voice config.

    Only the keys the synthesis pipeline needs are modelled; the rest of the
    upstream descriptor (dataset, language metadata, speaker maps) is ignored.
    """

    model_config = {"extra": "ignore"}

    audio: AudioConfig
    espeak: EspeakConfig = Field(default_factory=EspeakConfig)
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    phoneme_id_map: dict[str, list[int]]
    num_speakers: int = Field(default=1, ge=1)

    @field_validator("phoneme_id_map")
    @classmethod
    def _require_sentinels(cls, value: dict[str, list[int]]) -> dict[str, list[int]]:
        missing = [s for s in (PAD, BOS, EOS) if not value.get(s)]
        if missing:
            raise ValueError(f"phoneme_id_map is missing sentinel symbols: {missing}")
        return value

    @property
    def sample_rate(self) -> int:
        return self.audio.sample_rate

    @property
    def voice(self) -> str:
        return self.espeak.voice


def load_config(path: Path) -> PiperConfig:
    """
    Read and validate a Piper descriptor.

    Raises:
        ConfigError: If the file is missing, not JSON, or lacks required keys
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError("Model config not readable", path=str(path), reason=str(e)) from e

    try:
        return PiperConfig.model_validate(json.loads(raw))
    except json.JSONDecodeError as e:
        raise ConfigError("Model config is not valid JSON", path=str(path), reason=str(e)) from e
    except ValidationError as e:
        raise ConfigError(
            "Model config is missing required fields",
            path=str(path),
            reason="; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            ),
        ) from e


MIN_RATE = 0.5
MAX_RATE = 2.0


def clamp_rate(rate: float) -> float:
    """Clamp a speech rate multiplier to [0.5, 2.0]."""
    return max(MIN_RATE, min(MAX_RATE, float(rate)))


def scales_for(config: PiperConfig, rate: float) -> list[float]:
    """The ``scales`` input: ``[noise_scale, length_scale / rate, noise_w]``.

    A higher rate shortens every phoneme, so speech gets faster.
    """
    inference = config.inference
    return [inference.noise_scale, inference.length_scale / clamp_rate(rate), inference.noise_w]
