"""Core service layer."""

from neural_tts.core.fallback import EspeakFallbackSpeaker, FallbackSpeaker
from neural_tts.core.models import (
    EngineState,
    Finished,
    NeuralTTSStatus,
    SentenceEnd,
    SentenceEvent,
    SentenceStart,
    SpeechPath,
    Stopped,
    SynthesisOptions,
    VoiceInfo,
    is_terminal,
)
from neural_tts.core.tts_service import EventQueue, NeuralTTSService

__all__ = [
    "NeuralTTSService",
    "EventQueue",
    "FallbackSpeaker",
    "EspeakFallbackSpeaker",
    "EngineState",
    "SpeechPath",
    "SynthesisOptions",
    "SentenceStart",
    "SentenceEnd",
    "Finished",
    "Stopped",
    "SentenceEvent",
    "is_terminal",
    "VoiceInfo",
    "NeuralTTSStatus",
]
