"""API request and response models."""

from neural_tts.api.models.requests import (
    RateRequest,
    SpeakRequest,
    SpeakSentencesRequest,
    VoiceRequest,
)
from neural_tts.api.models.responses import (
    DiskUsageResponse,
    DownloadAcceptedResponse,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    ModelDeletedResponse,
    ModelDirectoryResponse,
    ModelReadyResponse,
    RateResponse,
    ReadinessResponse,
    SpeakResponse,
    StopResponse,
    VoiceListResponse,
)

__all__ = [
    "SpeakRequest",
    "SpeakSentencesRequest",
    "RateRequest",
    "VoiceRequest",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    "ReadinessResponse",
    "VoiceListResponse",
    "SpeakResponse",
    "StopResponse",
    "RateResponse",
    "ModelReadyResponse",
    "DownloadAcceptedResponse",
    "ModelDeletedResponse",
    "ModelDirectoryResponse",
    "DiskUsageResponse",
]
