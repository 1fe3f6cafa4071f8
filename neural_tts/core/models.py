"""Service layer models.

Defines Pydantic models for:
- SynthesisOptions (voice/rate overrides)
- Sentence events streamed by ``speak_sentences``
- VoiceInfo and NeuralTTSStatus
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator

from neural_tts.models.catalog import VoiceModel
from neural_tts.models.manager import ModelStatus
from neural_tts.models.piper.config import MAX_RATE, MIN_RATE, clamp_rate


class EngineState(str, Enum):
    """Orchestrator lifecycle state."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    SPEAKING = "speaking"


class SpeechPath(str, Enum):
    """Which backend produced the speech."""

    NEURAL = "neural"
    FALLBACK = "fallback"


# =============================================================================
# Synthesis options
# =============================================================================


class SynthesisOptions(BaseModel):
    """Per-call overrides. Out-of-range rates are clamped, not rejected."""

    voice: str | None = Field(default=None, description="Model id; defaults to the configured one")
    rate: float | None = Field(
        default=None,
        description=f"Speech rate multiplier, clamped to [{MIN_RATE}, {MAX_RATE}]",
    )

    @field_validator("rate")
    @classmethod
    def clamp(cls, v: float | None) -> float | None:
        return None if v is None else clamp_rate(v)

    model_config = {"extra": "ignore"}


# =============================================================================
# Sentence events
# =============================================================================


class SentenceStart(BaseModel):
    """Sentence ``index`` became audible."""

    type: Literal["start"] = "start"
    index: int
    text: str


class SentenceEnd(BaseModel):
    """Sentence ``index`` finished (played, skipped or cut short)."""

    type: Literal["end"] = "end"
    index: int


class Finished(BaseModel):
    """All sentences were processed."""

    type: Literal["finished"] = "finished"


class Stopped(BaseModel):
    """Reading was cancelled by ``stop``."""

    type: Literal["stopped"] = "stopped"


SentenceEvent = Annotated[
    Union[SentenceStart, SentenceEnd, Finished, Stopped],
    Field(discriminator="type"),
]


def is_terminal(event: BaseModel) -> bool:
    return isinstance(event, (Finished, Stopped))


# =============================================================================
# Voices and status
# =============================================================================


class VoiceInfo(BaseModel):
    """A voice the service can speak with."""

    id: str
    name: str
    language: str
    description: str
    size_bytes: int = Field(default=0, ge=0)
    status: ModelStatus = ModelStatus.NOT_DOWNLOADED
    downloaded: bool = False

    @classmethod
    def from_model(
        cls,
        model: VoiceModel,
        status: ModelStatus = ModelStatus.NOT_DOWNLOADED,
    ) -> "VoiceInfo":
        return cls(
            id=model.id,
            name=model.name,
            language=model.language,
            description=model.description,
            size_bytes=model.size_bytes,
            status=status,
            downloaded=status == ModelStatus.READY,
        )


class NeuralTTSStatus(BaseModel):
    """Snapshot of the service for UIs."""

    available: bool = Field(..., description="The current voice is downloaded")
    is_speaking: bool
    state: EngineState
    current_voice: str | None
    rate: float
    download_progress: int | None = Field(
        default=None,
        ge=0,
        le=100,
        description="Percent of the running download, if any",
    )
    voices: list[VoiceInfo] = Field(default_factory=list)
    message: str | None = Field(default=None, description="Why neural speech is unavailable")


__all__ = [
    "EngineState",
    "SpeechPath",
    "SynthesisOptions",
    "SentenceStart",
    "SentenceEnd",
    "Finished",
    "Stopped",
    "SentenceEvent",
    "is_terminal",
    "VoiceInfo",
    "NeuralTTSStatus",
]
