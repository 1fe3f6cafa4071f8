"""API request models."""

from pydantic import BaseModel, Field, field_validator

from neural_tts.models.piper.config import MAX_RATE, MIN_RATE


class SpeakRequest(BaseModel):
    """Request model for speaking a block of text."""

    text: str = Field(
        ...,
        min_length=1,
        max_length=100_000,
        description="Text to speak",
    )
    voice: str | None = Field(
        default=None,
        description="Voice model id; the configured voice if omitted",
    )
    rate: float | None = Field(
        default=None,
        gt=0,
        description=f"Speech rate multiplier, clamped to [{MIN_RATE}, {MAX_RATE}]",
    )

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Clean and validate input text."""
        text = v.strip()
        if not text:
            raise ValueError("Text cannot be empty or whitespace only")
        return text

    model_config = {"extra": "ignore"}


class SpeakSentencesRequest(BaseModel):
    """Request model for sentence-by-sentence reading."""

    sentences: list[str] = Field(
        ...,
        min_length=1,
        max_length=1000,
        description="Sentences to read in order",
    )
    voice: str | None = Field(default=None)
    rate: float | None = Field(default=None, gt=0)

    model_config = {"extra": "ignore"}


class RateRequest(BaseModel):
    """Request model for changing the default speech rate."""

    rate: float = Field(..., gt=0, description="Out-of-range values are clamped")


class VoiceRequest(BaseModel):
    """Request model for changing the default voice."""

    voice: str = Field(..., min_length=1)
