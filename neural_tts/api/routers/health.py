"""Health check endpoints.

Prefix: /health
"""

from fastapi import APIRouter, Request

from neural_tts.api.dependencies import SettingsDep
from neural_tts.api.models.responses import HealthResponse, ReadinessResponse

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=HealthResponse)
@router.get("/", response_model=HealthResponse, include_in_schema=False)
async def health_check(settings: SettingsDep) -> HealthResponse:
    """Basic health check - is the service alive and which version."""
    return HealthResponse(status="healthy", version=settings.app.version)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(request: Request) -> ReadinessResponse:
    """
    Readiness check - checks if the service can accept traffic.

    ``service_initialized`` gates readiness; ``voice_downloaded`` is
    informational since the service can still fall back or download.
    """
    service = getattr(request.app.state, "tts_service", None)
    initialized = service is not None and service.is_ready()
    checks = {
        "service_initialized": initialized,
        "voice_downloaded": initialized and service.get_status().available,
    }
    return ReadinessResponse(ready=initialized, checks=checks)


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    """Liveness check - always ``alive`` if the process responds."""
    return {"status": "alive"}
