"""FastAPI application factory.

Provides:
- create_app(): Application factory function
- Lifespan context manager mapping to service initialize/shutdown
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from neural_tts.api.middleware.error_handler import register_exception_handlers
from neural_tts.api.middleware.request_context import RequestContextMiddleware
from neural_tts.api.routers import health, models, speech
from neural_tts.config import Settings, get_settings
from neural_tts.core.tts_service import NeuralTTSService
from neural_tts.utils.logging import get_logger, setup_logging

logger = get_logger("system")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler for startup/shutdown.

    On startup: configure logging, build (unless one was injected) and
    initialize the TTS service.
    On shutdown: stop speech, cancel downloads, unload the model.
    """
    settings: Settings = app.state.settings

    setup_logging(
        level=settings.log_level,
        format=settings.log_format,
        service_name=settings.app.name,
    )

    logger.info(
        "Starting Neural TTS",
        version=settings.app.version,
        debug=settings.app.debug,
        models_root=str(settings.models_root),
    )

    tts_service: NeuralTTSService | None = getattr(app.state, "tts_service", None)
    if tts_service is None:
        tts_service = NeuralTTSService(settings)
        app.state.tts_service = tts_service
    await tts_service.initialize()

    logger.info("Neural TTS ready to accept requests")

    yield

    logger.info("Shutting down Neural TTS")
    await tts_service.shutdown()
    logger.info("Neural TTS shutdown complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Optional settings override (uses get_settings() if None)

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Neural TTS",
        version=settings.app.version,
        description="Local neural text-to-speech with Piper voices",
        docs_url="/docs" if settings.app.debug else None,
        redoc_url="/redoc" if settings.app.debug else None,
        openapi_url="/openapi.json" if settings.app.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_exception_handlers(app, debug=settings.app.debug)

    # First added is innermost
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(speech.router)
    app.include_router(models.router)

    return app
