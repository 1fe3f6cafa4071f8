"""Integration tests for voice and model management endpoints."""

import asyncio

import pytest
from httpx import AsyncClient

from neural_tts.core.tts_service import NeuralTTSService
from neural_tts.models.catalog import VoiceModel
from tests.factories import TEST_MODEL_ID, ModelServer

pytestmark = pytest.mark.integration


async def poll_until_ready(client: AsyncClient, model_id: str, timeout: float = 5.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        response = await client.get(f"/v1/tts/models/{model_id}/ready")
        if response.json()["ready"]:
            return
        if loop.time() > deadline:
            raise AssertionError(f"{model_id} never became ready")
        await asyncio.sleep(0.01)


class TestVoices:
    async def test_list_voices(self, client: AsyncClient, installed_model: VoiceModel):
        response = await client.get("/v1/tts/voices")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["current_voice"] == TEST_MODEL_ID
        voice = data["voices"][0]
        assert voice["id"] == TEST_MODEL_ID
        assert voice["downloaded"] is True
        assert voice["status"] == "ready"
        assert voice["size_bytes"] == installed_model.size_bytes

    async def test_set_voice(self, client: AsyncClient):
        response = await client.put("/v1/tts/voice", json={"voice": TEST_MODEL_ID})

        assert response.status_code == 200
        assert response.json()["current_voice"] == TEST_MODEL_ID

    async def test_set_unknown_voice(self, client: AsyncClient):
        response = await client.put("/v1/tts/voice", json={"voice": "no-such-voice"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "TTS_E101"


class TestModelStorage:
    async def test_directory(self, client: AsyncClient, tts_service: NeuralTTSService):
        response = await client.get("/v1/tts/models/directory")

        assert response.status_code == 200
        assert response.json() == {"path": str(tts_service.get_model_dir())}

    async def test_disk_usage(self, client: AsyncClient, installed_model: VoiceModel):
        response = await client.get("/v1/tts/models/disk-usage")

        assert response.status_code == 200
        assert response.json()["bytes"] == installed_model.size_bytes

    async def test_ready(self, client: AsyncClient):
        response = await client.get(f"/v1/tts/models/{TEST_MODEL_ID}/ready")

        assert response.status_code == 200
        assert response.json() == {"model_id": TEST_MODEL_ID, "ready": True}

    async def test_ready_unknown_model(self, client: AsyncClient):
        response = await client.get("/v1/tts/models/no-such-voice/ready")
        assert response.status_code == 404


class TestDownloadLifecycle:
    async def test_delete_then_download(self, client: AsyncClient, model_server: ModelServer):
        deleted = await client.delete(f"/v1/tts/models/{TEST_MODEL_ID}")
        assert deleted.status_code == 200
        assert deleted.json() == {"model_id": TEST_MODEL_ID, "deleted": True}

        ready = await client.get(f"/v1/tts/models/{TEST_MODEL_ID}/ready")
        assert ready.json()["ready"] is False
        assert (await client.get("/v1/tts/models/disk-usage")).json()["bytes"] == 0

        accepted = await client.post(f"/v1/tts/models/{TEST_MODEL_ID}/download")
        assert accepted.status_code == 202
        assert accepted.json() == {"model_id": TEST_MODEL_ID, "status": "started"}

        await poll_until_ready(client, TEST_MODEL_ID)
        assert model_server.request_count > 0

        speak = await client.post("/v1/tts/speak", json={"text": "Back again."})
        assert speak.status_code == 200

    async def test_second_download_conflicts(
        self,
        client: AsyncClient,
        tts_service: NeuralTTSService,
        monkeypatch: pytest.MonkeyPatch,
    ):
        release = asyncio.Event()

        async def held_download(model, progress_callback=None):
            await release.wait()

        monkeypatch.setattr(tts_service.manager, "download", held_download)

        first = await client.post(f"/v1/tts/models/{TEST_MODEL_ID}/download")
        second = await client.post(f"/v1/tts/models/{TEST_MODEL_ID}/download")
        status = (await client.get("/v1/tts/status")).json()

        release.set()
        await asyncio.wait_for(tts_service._download_task, timeout=5)

        assert first.status_code == 202
        assert second.status_code == 409
        assert status["download_progress"] == 0

    async def test_failed_download_reported_in_status(
        self, client: AsyncClient, model_server: ModelServer
    ):
        await client.delete(f"/v1/tts/models/{TEST_MODEL_ID}")
        model_server.status_overrides[f"{TEST_MODEL_ID}.onnx"] = 500

        accepted = await client.post(f"/v1/tts/models/{TEST_MODEL_ID}/download")
        assert accepted.status_code == 202

        loop = asyncio.get_running_loop()
        deadline = loop.time() + 5
        while True:
            status = (await client.get("/v1/tts/status")).json()
            if status["download_progress"] is None and status["message"]:
                break
            assert loop.time() < deadline
            await asyncio.sleep(0.01)

        assert status["available"] is False
        assert status["message"].startswith("Download failed")

    async def test_download_unknown_model(self, client: AsyncClient):
        response = await client.post("/v1/tts/models/no-such-voice/download")
        assert response.status_code == 404

    async def test_delete_unknown_model(self, client: AsyncClient):
        response = await client.delete("/v1/tts/models/no-such-voice")
        assert response.status_code == 404
