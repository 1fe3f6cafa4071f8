"""Speech endpoints.

Prefix: /v1/tts

``POST /speak/sentences`` streams progress as Server-Sent Events: one
``sentence`` event per start/end, ending with ``finished`` or ``stopped``.
"""

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter
from sse_starlette.sse import EventSourceResponse

from neural_tts.api.dependencies import TTSServiceDep
from neural_tts.api.models.requests import RateRequest, SpeakRequest, SpeakSentencesRequest
from neural_tts.api.models.responses import RateResponse, SpeakResponse, StopResponse
from neural_tts.core.models import NeuralTTSStatus, SentenceEvent, is_terminal
from neural_tts.core.tts_service import EventQueue, NeuralTTSService
from neural_tts.exceptions import NeuralTTSError
from neural_tts.models.piper.config import clamp_rate
from neural_tts.utils.logging import get_logger

logger = get_logger("api")

router = APIRouter(prefix="/v1/tts", tags=["Speech"])


def sse_event(event: SentenceEvent) -> dict[str, Any]:
    return {"event": "sentence", "data": event.model_dump_json()}


def sse_error(error: NeuralTTSError) -> dict[str, Any]:
    return {"event": "error", "data": json.dumps(error.to_dict())}


async def stream_sentence_events(
    service: NeuralTTSService,
    request: SpeakSentencesRequest,
) -> AsyncIterator[dict[str, Any]]:
    """
    Run ``speak_sentences`` and relay its events as SSE messages.

    If the client goes away mid-stream, speech is stopped.
    """
    events: EventQueue = asyncio.Queue()
    task = asyncio.create_task(
        service.speak_sentences(request.sentences, events, voice=request.voice, rate=request.rate)
    )
    try:
        while True:
            if events.empty():
                if task.done():
                    break
                getter = asyncio.ensure_future(events.get())
                done, _ = await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
                if getter not in done:
                    getter.cancel()
                    continue
                event = getter.result()
            else:
                event = events.get_nowait()

            yield sse_event(event)
            if is_terminal(event):
                await asyncio.wait({task})
                break

        if task.done() and not task.cancelled() and task.exception() is not None:
            error = task.exception()
            if not isinstance(error, NeuralTTSError):
                raise error
            logger.warning("Sentence reading failed", error_code=error.error_code, error=error.message)
            yield sse_error(error)
    finally:
        if not task.done():
            logger.info("Event stream closed while speaking, stopping")
            service.stop()
            await asyncio.wait({task})


@router.get("/status", response_model=NeuralTTSStatus)
async def get_status(tts_service: TTSServiceDep) -> NeuralTTSStatus:
    """Availability, speaking state, rate, voices and download progress."""
    return tts_service.get_status()


@router.post("/speak", response_model=SpeakResponse)
async def speak(request: SpeakRequest, tts_service: TTSServiceDep) -> SpeakResponse:
    """
    Speak a block of text; returns once playback finished or was stopped.

    Returns 409 while another utterance is playing.
    """
    path = await tts_service.speak(request.text, voice=request.voice, rate=request.rate)
    return SpeakResponse(
        path=path,
        voice=request.voice or tts_service.voice,
        rate=clamp_rate(request.rate) if request.rate is not None else tts_service.rate,
    )


@router.post("/speak/sentences", response_model=None)
async def speak_sentences(
    request: SpeakSentencesRequest,
    tts_service: TTSServiceDep,
) -> EventSourceResponse:
    """
    Read sentences one by one, streaming start/end events.

    Busy, unknown-voice and not-downloaded errors are returned as plain
    JSON errors before the stream opens.
    """
    tts_service.preflight(request.voice)
    return EventSourceResponse(stream_sentence_events(tts_service, request))


@router.post("/stop", response_model=StopResponse)
async def stop(tts_service: TTSServiceDep) -> StopResponse:
    """Stop current speech. Safe to call when idle."""
    was_speaking = tts_service.is_speaking
    tts_service.stop()
    return StopResponse(was_speaking=was_speaking)


@router.put("/rate", response_model=RateResponse)
async def set_rate(request: RateRequest, tts_service: TTSServiceDep) -> RateResponse:
    """Set the default rate; values outside [0.5, 2.0] are clamped."""
    return RateResponse(rate=tts_service.set_rate(request.rate))
