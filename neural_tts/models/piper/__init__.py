"""Piper VITS voices (espeak-ng phonemes, ONNX Runtime inference)."""

from neural_tts.models.piper.config import PiperConfig, clamp_rate, load_config, scales_for
from neural_tts.models.piper.engine import PiperEngine
from neural_tts.models.piper.inference import MockPiperInference, PiperInference, get_inference
from neural_tts.models.piper.phonemizer import EspeakPhonemizer, Phonemizer, phonemes_to_ids
from neural_tts.models.piper.preprocessor import TextPreprocessor

__all__ = [
    "PiperConfig",
    "load_config",
    "clamp_rate",
    "scales_for",
    "PiperEngine",
    "PiperInference",
    "MockPiperInference",
    "get_inference",
    "Phonemizer",
    "EspeakPhonemizer",
    "phonemes_to_ids",
    "TextPreprocessor",
]
