"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends, Request

from neural_tts.config import Settings
from neural_tts.core.tts_service import NeuralTTSService
from neural_tts.exceptions import NeuralTTSError


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with."""
    return request.app.state.settings


def get_tts_service(request: Request) -> NeuralTTSService:
    """Get the TTS service from application state."""
    service: NeuralTTSService | None = getattr(request.app.state, "tts_service", None)
    if service is None or not service.is_ready():
        raise NeuralTTSError(
            "TTS service is not ready",
            error_code="TTS_E001",
            http_status=503,
        )
    return service


# Type aliases for cleaner dependency injection
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
TTSServiceDep = Annotated[NeuralTTSService, Depends(get_tts_service)]
