"""Piper ONNX inference.

Provides:
- PiperInference: ONNX Runtime session over a downloaded Piper voice
- MockPiperInference: tone generator for running without a model graph
"""

import asyncio
import math
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

import numpy as np
import onnxruntime as ort

from neural_tts.exceptions import ConfigError, InferenceError, ModelNotLoadedError
from neural_tts.models.catalog import VoiceModel
from neural_tts.models.manager import ModelManager
from neural_tts.models.piper.config import PiperConfig, load_config, scales_for
from neural_tts.utils.logging import get_logger
from neural_tts.utils.timing import Timer

logger = get_logger("inference")

# One worker: a Piper session is used by one utterance at a time
_inference_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="piper_inference")


class PiperInference:
    """
    Owns the ONNX Runtime session for the currently loaded voice.

    Loading a different model id discards the previous session and config.

    Args:
        manager: Model manager used to locate and validate model files
        intra_threads: ONNX Runtime intra-op thread count
    """

    def __init__(self, manager: ModelManager, intra_threads: int = 4) -> None:
        self.manager = manager
        self.intra_threads = intra_threads
        self._session: Any = None
        self._config: PiperConfig | None = None
        self._model_id: str | None = None

    @property
    def is_loaded(self) -> bool:
        return self._config is not None

    @property
    def loaded_model_id(self) -> str | None:
        return self._model_id

    @property
    def config(self) -> PiperConfig:
        if self._config is None:
            raise ModelNotLoadedError("<none>", reason="no model loaded")
        return self._config

    @property
    def sample_rate(self) -> int:
        return self.config.sample_rate

    async def load(self, model: VoiceModel) -> PiperConfig:
        """
        Load ``model`` unless it is already the loaded one.

        Raises:
            ModelNotLoadedError: Files missing/incomplete, or the graph fails to load
            ConfigError: The ``.onnx.json`` descriptor is missing or malformed
        """
        if self._model_id == model.id and self._config is not None:
            return self._config

        if not self.manager.is_ready(model):
            raise ModelNotLoadedError(model.id, reason="model is not downloaded")

        config_file = model.config_file
        weights_file = model.weights_file
        if config_file is None or weights_file is None:
            raise ConfigError(f"Catalog entry for {model.id} lacks a config or weights file")

        config = load_config(self.manager.file_path(model, config_file.name))

        await self.unload()

        with Timer("Model load", logger=logger, log_level="info", model=model.id):
            loop = asyncio.get_running_loop()
            session = await loop.run_in_executor(
                _inference_executor,
                self._create_session,
                self.manager.file_path(model, weights_file.name),
            )

        self._session = session
        self._config = config
        self._model_id = model.id

        logger.info(
            "Voice model ready",
            model=model.id,
            sample_rate=config.sample_rate,
            espeak_voice=config.voice,
            symbols=len(config.phoneme_id_map),
        )
        return config

    def _create_session(self, weights_path: Path) -> Any:
        """Build the ONNX Runtime session (runs in thread pool)."""
        options = ort.SessionOptions()
        options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        options.intra_op_num_threads = self.intra_threads
        try:
            return ort.InferenceSession(
                str(weights_path),
                sess_options=options,
                providers=["CPUExecutionProvider"],
            )
        except Exception as e:
            raise ModelNotLoadedError(
                weights_path.parent.name,
                reason=f"failed to load model graph: {e}",
            ) from e

    async def unload(self) -> None:
        if self._model_id is not None:
            logger.info("Unloading voice model", model=self._model_id)
        self._session = None
        self._config = None
        self._model_id = None

    def build_inputs(self, phoneme_ids: list[int], rate: float = 1.0) -> dict[str, np.ndarray]:
        """Named input tensors for one forward pass.

        Multi-speaker voices also take a ``sid`` tensor; the first speaker is used.
        """
        inputs = {
            "input": np.asarray([phoneme_ids], dtype=np.int64),
            "input_lengths": np.asarray([len(phoneme_ids)], dtype=np.int64),
            "scales": np.asarray(scales_for(self.config, rate), dtype=np.float32),
        }
        if self.config.num_speakers > 1:
            inputs["sid"] = np.asarray([0], dtype=np.int64)
        return inputs

    async def infer(self, phoneme_ids: list[int], rate: float = 1.0) -> np.ndarray:
        """
        Run one phoneme ID sequence through the voice.

        Args:
            phoneme_ids: Output of ``phonemes_to_ids``
            rate: Speech rate multiplier, clamped to [0.5, 2.0]

        Returns:
            Mono float32 waveform at ``sample_rate``

        Raises:
            ModelNotLoadedError: No model loaded
            InferenceError: The runtime rejected the inputs or failed
        """
        if not self.is_loaded:
            raise ModelNotLoadedError("<none>", reason="no model loaded")

        inputs = self.build_inputs(phoneme_ids, rate)
        loop = asyncio.get_running_loop()
        with Timer("Inference", logger=logger, ids=len(phoneme_ids)) as timer:
            audio = await loop.run_in_executor(_inference_executor, self._run, inputs)

        if len(audio) and self.sample_rate:
            logger.debug(
                "Synthesized audio",
                samples=len(audio),
                audio_seconds=round(len(audio) / self.sample_rate, 3),
                real_time_factor=round(timer.elapsed / (len(audio) / self.sample_rate), 3),
            )
        return audio

    def _run(self, inputs: dict[str, np.ndarray]) -> np.ndarray:
        """Forward pass (runs in thread pool)."""
        session = self._session
        shapes = {name: list(array.shape) for name, array in inputs.items()}
        if session is None:
            raise InferenceError("No inference session", shapes=shapes)
        try:
            outputs = session.run(None, inputs)
        except Exception as e:
            raise InferenceError(
                "ONNX Runtime inference failed",
                reason=str(e),
                shapes=shapes,
            ) from e
        if not outputs:
            raise InferenceError("Model returned no outputs", shapes=shapes)
        return np.asarray(outputs[0], dtype=np.float32).reshape(-1)


class MockPiperInference(PiperInference):
    """
    Mock Piper inference for running without ONNX Runtime doing real work.

    Model files must still be present and the config valid; the "graph" is a
    harmonic tone whose length follows the phoneme count and effective
    length scale, so rate changes behave like the real model.
    """

    SAMPLES_PER_ID = 256
    FREQUENCY = 150.0

    def _create_session(self, weights_path: Path) -> Any:
        logger.info("Using mock Piper inference", weights=str(weights_path))
        return "mock-session"

    def _run(self, inputs: dict[str, np.ndarray]) -> np.ndarray:
        length_scale = float(inputs["scales"][1])
        count = int(inputs["input_lengths"][0])
        num_samples = int(count * self.SAMPLES_PER_ID * length_scale)
        if num_samples <= 0:
            return np.zeros(0, dtype=np.float32)

        t = np.arange(num_samples, dtype=np.float32) / self.sample_rate
        audio = np.zeros(num_samples, dtype=np.float32)
        for harmonic in (1, 2, 3, 4):
            audio += (0.3 / harmonic) * np.sin(2 * math.pi * self.FREQUENCY * harmonic * t)

        fade = min(int(self.sample_rate * 0.02), num_samples // 2)
        if fade > 0:
            audio[:fade] *= np.linspace(0.0, 1.0, fade, dtype=np.float32)
            audio[-fade:] *= np.linspace(1.0, 0.0, fade, dtype=np.float32)
        return audio.astype(np.float32)


def get_inference(
    manager: ModelManager,
    intra_threads: int = 4,
    use_mock: bool = False,
) -> PiperInference:
    """
    Get the inference handler for the configured mode.

    Returns:
        PiperInference or MockPiperInference
    """
    if use_mock:
        return MockPiperInference(manager, intra_threads)
    return PiperInference(manager, intra_threads)
