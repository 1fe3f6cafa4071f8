"""Voice and model management endpoints.

Prefix: /v1/tts
"""

from fastapi import APIRouter, status

from neural_tts.api.dependencies import TTSServiceDep
from neural_tts.api.models.requests import VoiceRequest
from neural_tts.api.models.responses import (
    DiskUsageResponse,
    DownloadAcceptedResponse,
    ModelDeletedResponse,
    ModelDirectoryResponse,
    ModelReadyResponse,
    VoiceListResponse,
)

router = APIRouter(prefix="/v1/tts", tags=["Models"])


@router.get("/voices", response_model=VoiceListResponse)
async def list_voices(tts_service: TTSServiceDep) -> VoiceListResponse:
    """List catalog voices with their download state."""
    voices = tts_service.list_voices()
    return VoiceListResponse(voices=voices, total=len(voices), current_voice=tts_service.voice)


@router.put("/voice", response_model=VoiceListResponse)
async def set_voice(request: VoiceRequest, tts_service: TTSServiceDep) -> VoiceListResponse:
    """Change the default voice. Unknown ids are rejected with 404."""
    tts_service.set_voice(request.voice)
    voices = tts_service.list_voices()
    return VoiceListResponse(voices=voices, total=len(voices), current_voice=tts_service.voice)


@router.get("/models/directory", response_model=ModelDirectoryResponse)
async def get_model_directory(tts_service: TTSServiceDep) -> ModelDirectoryResponse:
    return ModelDirectoryResponse(path=str(tts_service.get_model_dir()))


@router.get("/models/disk-usage", response_model=DiskUsageResponse)
async def get_disk_usage(tts_service: TTSServiceDep) -> DiskUsageResponse:
    used = tts_service.get_disk_usage()
    return DiskUsageResponse(bytes=used, megabytes=round(used / (1024 * 1024), 1))


@router.get("/models/{model_id}/ready", response_model=ModelReadyResponse)
async def is_model_ready(model_id: str, tts_service: TTSServiceDep) -> ModelReadyResponse:
    """Whether every file of ``model_id`` is on disk at its exact size."""
    return ModelReadyResponse(model_id=model_id, ready=tts_service.is_model_ready(model_id))


@router.post(
    "/models/{model_id}/download",
    response_model=DownloadAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def download_model(model_id: str, tts_service: TTSServiceDep) -> DownloadAcceptedResponse:
    """
    Start downloading a model in the background.

    Progress and failures are reported through ``GET /v1/tts/status``.
    Returns 409 if a download is already running.
    """
    tts_service.start_download(model_id)
    return DownloadAcceptedResponse(model_id=model_id)


@router.delete("/models/{model_id}", response_model=ModelDeletedResponse)
async def delete_model(model_id: str, tts_service: TTSServiceDep) -> ModelDeletedResponse:
    """Delete a model's files. Deleting an absent model succeeds."""
    await tts_service.delete_model(model_id)
    return ModelDeletedResponse(model_id=model_id)
