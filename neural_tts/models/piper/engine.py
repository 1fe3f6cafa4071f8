"""Piper synthesis engine: text to waveform for the loaded voice."""

import numpy as np

from neural_tts.models.catalog import VoiceModel
from neural_tts.models.piper.inference import PiperInference
from neural_tts.models.piper.phonemizer import Phonemizer, phonemes_to_ids
from neural_tts.models.piper.preprocessor import TextPreprocessor
from neural_tts.utils.logging import get_logger

logger = get_logger("inference")


class PiperEngine:
    """
    Runs the phonemize → ID map → ONNX pipeline for one piece of text.

    Args:
        inference: Session holder for the current voice
        phonemizer: Grapheme-to-phoneme backend
        preprocessor: Text normalizer/chunker
    """

    def __init__(
        self,
        inference: PiperInference,
        phonemizer: Phonemizer,
        preprocessor: TextPreprocessor | None = None,
    ) -> None:
        self.inference = inference
        self.phonemizer = phonemizer
        self.preprocessor = preprocessor or TextPreprocessor()

    @property
    def is_loaded(self) -> bool:
        return self.inference.is_loaded

    @property
    def loaded_model_id(self) -> str | None:
        return self.inference.loaded_model_id

    @property
    def sample_rate(self) -> int:
        return self.inference.sample_rate

    async def ensure_loaded(self, model: VoiceModel) -> None:
        await self.inference.load(model)

    async def unload(self) -> None:
        await self.inference.unload()

    async def text_to_ids(self, text: str) -> list[int]:
        """Phonemize normalized text and map it to model IDs."""
        config = self.inference.config
        phonemes = await self.phonemizer.phonemize(text, config.voice)
        return phonemes_to_ids(phonemes, config.phoneme_id_map)

    async def synthesize(self, text: str, rate: float = 1.0) -> np.ndarray:
        """
        Synthesize one unit of normalized text.

        Returns:
            float32 mono samples; empty for blank text

        Raises:
            PhonemeError: Phonemizer failed or produced no usable symbols
            InferenceError: Forward pass failed
            ModelNotLoadedError: No voice loaded
        """
        if not text.strip():
            return np.zeros(0, dtype=np.float32)
        ids = await self.text_to_ids(text)
        return await self.inference.infer(ids, rate)
