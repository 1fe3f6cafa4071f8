"""API response models."""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from neural_tts.core.models import SpeechPath, VoiceInfo


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ErrorDetail(BaseModel):
    """Error detail model."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict, description="Additional error details")
    request_id: str | None = Field(default=None, description="Request ID for tracing")


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy", "unhealthy", "degraded"] = Field(
        ..., description="Overall health status"
    )
    timestamp: datetime = Field(default_factory=_utcnow)
    version: str = Field(..., description="Application version")


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(..., description="Whether the service is ready")
    checks: dict[str, bool] = Field(default_factory=dict)


class VoiceListResponse(BaseModel):
    """List of voices response."""

    voices: list[VoiceInfo] = Field(default_factory=list)
    total: int = Field(..., description="Total number of voices")
    current_voice: str = Field(..., description="Voice used when a request names none")


class SpeakResponse(BaseModel):
    """Result of a completed (or stopped) speak call."""

    path: SpeechPath = Field(..., description="Which backend produced the speech")
    voice: str
    rate: float


class StopResponse(BaseModel):
    was_speaking: bool


class RateResponse(BaseModel):
    rate: float = Field(..., description="Effective rate after clamping")


class ModelReadyResponse(BaseModel):
    model_id: str
    ready: bool


class DownloadAcceptedResponse(BaseModel):
    """A background download was started."""

    model_id: str
    status: Literal["started"] = "started"


class ModelDeletedResponse(BaseModel):
    model_id: str
    deleted: bool = True


class ModelDirectoryResponse(BaseModel):
    path: str = Field(..., description="Absolute directory holding downloaded models")


class DiskUsageResponse(BaseModel):
    bytes: int = Field(..., ge=0)
    megabytes: float = Field(..., ge=0)
