"""Pytest configuration and fixtures.

Global fixtures for all tests:
- settings: test settings with a temporary model root and fast audio timing
- test_model / catalog: a small Piper voice whose files live in factories
- model_server / manager: model storage backed by an in-process HTTP mock
- installed_model: the test voice written to disk (ready)
- phonemizer, stream_factory, player, engine: pipeline collaborators with
  fakes at the process and device boundaries
- tts_service: service over an installed voice
- app / client: FastAPI app with the service attached, httpx.AsyncClient
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from neural_tts.api.app import create_app
from neural_tts.audio.player import AudioPlayer
from neural_tts.config import AudioSettings, ModelSettings, Settings, SpeechSettings
from neural_tts.core.tts_service import NeuralTTSService
from neural_tts.models.catalog import ModelCatalog, VoiceModel
from neural_tts.models.manager import ModelManager
from neural_tts.models.piper.engine import PiperEngine
from neural_tts.models.piper.inference import MockPiperInference
from neural_tts.models.piper.preprocessor import TextPreprocessor
from tests.factories import (
    TEST_MODEL_ID,
    FakePhonemizer,
    FakeStreamFactory,
    ModelServer,
    install_model,
    make_voice_model,
)


# -----------------------------------------------------------------------------
# Settings Fixture
# -----------------------------------------------------------------------------
@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Create test settings: temp model root, mock inference, no fallback."""
    return Settings(
        model=ModelSettings(
            data_dir=tmp_path / "models",
            default_model=TEST_MODEL_ID,
            use_mock=True,
            intra_threads=1,
        ),
        audio=AudioSettings(start_delay_ms=5, poll_interval_ms=5),
        speech=SpeechSettings(fallback_enabled=False),
    )


# -----------------------------------------------------------------------------
# Model Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def test_model() -> VoiceModel:
    return make_voice_model()


@pytest.fixture
def catalog(test_model: VoiceModel) -> ModelCatalog:
    return ModelCatalog([test_model])


@pytest.fixture
def model_server() -> ModelServer:
    return ModelServer()


@pytest.fixture
def manager(settings: Settings, model_server: ModelServer) -> ModelManager:
    return ModelManager(settings.models_root, transport=model_server.transport, chunk_size=256)


@pytest.fixture
def installed_model(manager: ModelManager, test_model: VoiceModel) -> VoiceModel:
    """The test voice, already on disk."""
    install_model(manager, test_model)
    return test_model


# -----------------------------------------------------------------------------
# Pipeline Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def phonemizer() -> FakePhonemizer:
    return FakePhonemizer()


@pytest.fixture
def stream_factory() -> FakeStreamFactory:
    return FakeStreamFactory()


@pytest.fixture
def player(settings: Settings, stream_factory: FakeStreamFactory) -> AudioPlayer:
    return AudioPlayer(
        start_delay=settings.audio.start_delay,
        poll_interval=settings.audio.poll_interval,
        stream_factory=stream_factory,
    )


@pytest.fixture
def engine(manager: ModelManager, phonemizer: FakePhonemizer) -> PiperEngine:
    return PiperEngine(MockPiperInference(manager, intra_threads=1), phonemizer, TextPreprocessor())


# -----------------------------------------------------------------------------
# Service Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
async def tts_service(
    settings: Settings,
    catalog: ModelCatalog,
    manager: ModelManager,
    engine: PiperEngine,
    player: AudioPlayer,
    installed_model: VoiceModel,
) -> AsyncGenerator[NeuralTTSService, None]:
    """Create TTS service over the installed test voice."""
    service = NeuralTTSService(
        settings,
        catalog=catalog,
        manager=manager,
        engine=engine,
        player=player,
    )
    await service.initialize()
    yield service
    await service.shutdown()


@pytest.fixture
async def bare_service(
    settings: Settings,
    catalog: ModelCatalog,
    manager: ModelManager,
    engine: PiperEngine,
    player: AudioPlayer,
) -> AsyncGenerator[NeuralTTSService, None]:
    """Service whose voice has not been downloaded, without fallback."""
    service = NeuralTTSService(
        settings,
        catalog=catalog,
        manager=manager,
        engine=engine,
        player=player,
    )
    await service.initialize()
    yield service
    await service.shutdown()


# -----------------------------------------------------------------------------
# App and Client Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
async def app(settings: Settings, tts_service: NeuralTTSService) -> FastAPI:
    """Create test FastAPI application with an initialized TTS service."""
    application = create_app(settings)
    # ASGITransport does not run the lifespan; attach the service directly
    application.state.tts_service = tts_service
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
