"""Neural TTS service - orchestration of model, synthesis and playback.

Provides:
- NeuralTTSService: the operation surface used by the API (speak,
  speak_sentences, stop, status, voice and model management)
- Cooperative cancellation through one shared "is speaking" flag
- Exclusive access: a second speak call while one runs is rejected as busy
"""

import asyncio
import threading
import uuid
from collections.abc import AsyncIterator, Iterator, Sequence
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path

import numpy as np

from neural_tts.audio.player import AudioPlayer
from neural_tts.config import Settings
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
)
from neural_tts.exceptions import (
    AudioError,
    BusyError,
    ModelNotLoadedError,
    NeuralTTSError,
    UnknownModelError,
)
from neural_tts.models.catalog import DEFAULT_CATALOG, ModelCatalog, VoiceModel
from neural_tts.models.manager import ModelManager, ProgressCallback
from neural_tts.models.piper.config import clamp_rate
from neural_tts.models.piper.engine import PiperEngine
from neural_tts.models.piper.inference import get_inference
from neural_tts.models.piper.phonemizer import EspeakPhonemizer
from neural_tts.models.piper.preprocessor import TextPreprocessor
from neural_tts.utils.logging import LogContext, get_logger
from neural_tts.utils.timing import Timer

logger = get_logger("inference")

EventQueue = asyncio.Queue[SentenceEvent]


class NeuralTTSService:
    """
    High-level TTS service that orchestrates synthesis and playback.

    All collaborators are injectable; anything not passed is built from
    ``settings``. Call ``initialize`` before use and ``shutdown`` when done.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        catalog: ModelCatalog | None = None,
        manager: ModelManager | None = None,
        engine: PiperEngine | None = None,
        player: AudioPlayer | None = None,
        fallback: FallbackSpeaker | None = None,
    ) -> None:
        self.settings = settings
        self.catalog = catalog or DEFAULT_CATALOG
        self.manager = manager or ModelManager(
            settings.models_root,
            timeout=settings.model.download_timeout,
            chunk_size=settings.model.download_chunk_size,
        )
        self.engine = engine or PiperEngine(
            get_inference(
                self.manager,
                intra_threads=settings.model.intra_threads,
                use_mock=settings.model.use_mock,
            ),
            EspeakPhonemizer(settings.speech.espeak_binary),
            TextPreprocessor(settings.speech.max_chunk_chars),
        )
        self.player = player or AudioPlayer(
            start_delay=settings.audio.start_delay,
            poll_interval=settings.audio.poll_interval,
            channels=settings.audio.channels,
        )
        if fallback is None and settings.speech.fallback_enabled:
            fallback = EspeakFallbackSpeaker(settings.speech.espeak_binary)
        self.fallback = fallback

        self._state = EngineState.IDLE
        self._speaking = threading.Event()
        self._lock = asyncio.Lock()
        self._voice = settings.model.default_model
        self._rate = clamp_rate(settings.speech.default_rate)
        self._initialized = False

        self._download_task: asyncio.Task | None = None
        self._downloading: str | None = None
        self._download_progress: int | None = None
        self._last_download_error: str | None = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def initialize(self) -> None:
        """Check the voice model and prepare the service."""
        model = self._resolve_model(self._voice)
        ready = self.manager.is_ready(model)
        logger.info(
            "Initializing neural TTS",
            voice=model.id,
            model_dir=str(self.manager.root),
            model_ready=ready,
            fallback=self.fallback is not None,
        )
        self._initialized = True

    async def shutdown(self) -> None:
        """Stop speech, cancel downloads and release the model."""
        self.stop()
        if self._download_task is not None and not self._download_task.done():
            self._download_task.cancel()
            try:
                await self._download_task
            except (asyncio.CancelledError, NeuralTTSError):
                pass
        await self.engine.unload()
        self._state = EngineState.IDLE
        self._initialized = False
        logger.info("Neural TTS shut down")

    def is_ready(self) -> bool:
        return self._initialized

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_speaking(self) -> bool:
        return self._speaking.is_set()

    @property
    def is_busy(self) -> bool:
        return self._lock.locked()

    @property
    def voice(self) -> str:
        return self._voice

    @property
    def rate(self) -> float:
        return self._rate

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def set_rate(self, rate: float) -> float:
        """Set the default rate, clamped to [0.5, 2.0]."""
        self._rate = clamp_rate(rate)
        return self._rate

    def set_voice(self, voice: str) -> None:
        self._voice = self._resolve_model(voice).id

    def _resolve_model(self, voice: str | None) -> VoiceModel:
        model_id = voice or self._voice
        model = self.catalog.lookup(model_id)
        if model is None:
            raise UnknownModelError(model_id)
        return model

    # -------------------------------------------------------------------------
    # Status and voices
    # -------------------------------------------------------------------------

    def list_voices(self) -> list[VoiceInfo]:
        return [
            VoiceInfo.from_model(m, self.manager.status(m))
            for m in self.catalog.list_models()
        ]

    def get_status(self) -> NeuralTTSStatus:
        model = self.catalog.lookup(self._voice)
        available = model is not None and self.manager.is_ready(model)

        message = None
        if model is None:
            message = f"Unknown voice: {self._voice}"
        elif self._downloading == model.id:
            message = f"Downloading voice model ({self._download_progress or 0}%)"
        elif not available:
            message = self._last_download_error or "Voice model not downloaded"

        return NeuralTTSStatus(
            available=available,
            is_speaking=self.is_speaking,
            state=self._state,
            current_voice=self._voice,
            rate=self._rate,
            download_progress=self._download_progress,
            voices=self.list_voices(),
            message=message,
        )

    # -------------------------------------------------------------------------
    # Speech
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def _exclusive(self) -> AsyncIterator[None]:
        if self._lock.locked():
            raise BusyError("speech")
        async with self._lock:
            yield

    def preflight(self, voice: str | None = None) -> VoiceModel:
        """Raise up front what a speak call would raise before any speech."""
        model = self._resolve_model(voice)
        if self._lock.locked():
            raise BusyError("speech")
        if not self.manager.is_ready(model):
            if self.fallback is None or not self.fallback.is_available():
                raise ModelNotLoadedError(model.id, reason="model is not downloaded")
        return model

    def _use_fallback(self, model: VoiceModel) -> bool:
        """Fallback only when the neural voice is unavailable up front."""
        if self.fallback is None or self.manager.is_ready(model):
            return False
        if not self.fallback.is_available():
            return False
        logger.warning("Neural voice unavailable, using fallback speech", voice=model.id)
        return True

    async def _ensure_ready(self, model: VoiceModel) -> None:
        if self.engine.is_loaded and self.engine.loaded_model_id == model.id:
            return
        if not self.manager.is_ready(model):
            raise ModelNotLoadedError(model.id, reason="model is not downloaded")
        self._state = EngineState.LOADING
        try:
            await self.engine.ensure_loaded(model)
        except Exception:
            self._state = EngineState.IDLE
            raise
        self._state = EngineState.READY

    @contextmanager
    def _speech_session(self) -> Iterator[None]:
        """Arm the stop flag for one speak call, model load included."""
        self._speaking.set()
        try:
            yield
        finally:
            self._speaking.clear()
            self._state = EngineState.IDLE

    async def speak(
        self,
        text: str,
        voice: str | None = None,
        rate: float | None = None,
    ) -> SpeechPath:
        """
        Speak a block of text in one go.

        The text is normalized, packed into sentence-aligned chunks,
        synthesized chunk by chunk and played once as a whole. Any chunk
        failure aborts the utterance before anything is played.

        Returns:
            Which path produced the speech

        Raises:
            BusyError: Another speak call is running
            UnknownModelError: ``voice`` is not in the catalog
            ModelNotLoadedError: Voice not downloaded and no fallback
            PhonemeError, InferenceError, AudioError: Synthesis or playback failed
        """
        options = SynthesisOptions(voice=voice, rate=rate)
        model = self._resolve_model(options.voice)
        effective_rate = options.rate if options.rate is not None else self._rate

        async with self._exclusive():
            with LogContext(operation_id=uuid.uuid4().hex[:12], voice=model.id), self._speech_session():
                if self._use_fallback(model):
                    await self._speak_with_fallback(text, effective_rate)
                    return SpeechPath.FALLBACK

                await self._ensure_ready(model)
                if not self._speaking.is_set():
                    logger.info("Speech cancelled during model load")
                    return SpeechPath.NEURAL

                preprocessor = self.engine.preprocessor
                chunks = preprocessor.split_into_chunks(preprocessor.normalize(text))
                if not chunks:
                    logger.info("Nothing to speak after normalization")
                    return SpeechPath.NEURAL

                self._state = EngineState.SPEAKING
                with Timer("Synthesis", logger=logger, log_level="info", chunks=len(chunks)):
                    waveforms: list[np.ndarray] = []
                    for chunk in chunks:
                        if not self._speaking.is_set():
                            logger.info("Speech cancelled during synthesis")
                            return SpeechPath.NEURAL
                        waveforms.append(await self.engine.synthesize(chunk, effective_rate))

                audio = np.concatenate(waveforms) if waveforms else np.zeros(0, dtype=np.float32)
                if audio.size:
                    await self.player.play(audio, self.engine.sample_rate, self._speaking)

        return SpeechPath.NEURAL

    async def _speak_with_fallback(self, text: str, rate: float) -> None:
        text = self.engine.preprocessor.normalize(text)
        if not text:
            return
        self._state = EngineState.SPEAKING
        await self.fallback.speak(text, rate)

    async def speak_sentences(
        self,
        sentences: Sequence[str],
        events: EventQueue,
        voice: str | None = None,
        rate: float | None = None,
    ) -> SpeechPath:
        """
        Read sentences one at a time, reporting progress on ``events``.

        For each sentence: ``SentenceStart`` once its audio is audible, then
        ``SentenceEnd`` after playback (also for sentences that failed to
        synthesize, which are skipped). The stream ends with exactly one
        ``Finished`` or ``Stopped``.

        Raises:
            BusyError: Another speak call is running
            UnknownModelError: ``voice`` is not in the catalog
            ModelNotLoadedError: Voice not downloaded and no fallback, or the
                model failed to load
        """
        options = SynthesisOptions(voice=voice, rate=rate)
        model = self._resolve_model(options.voice)
        effective_rate = options.rate if options.rate is not None else self._rate

        async with self._exclusive():
            with LogContext(operation_id=uuid.uuid4().hex[:12], voice=model.id), self._speech_session():
                use_fallback = self._use_fallback(model)
                if not use_fallback:
                    await self._ensure_ready(model)

                logger.info("Reading sentences", count=len(sentences), fallback=use_fallback)
                self._state = EngineState.SPEAKING
                stopped = False
                for index, sentence in enumerate(sentences):
                    # Also catches a stop during model load
                    if not self._speaking.is_set():
                        await events.put(Stopped())
                        stopped = True
                        break
                    if use_fallback:
                        await self._read_sentence_fallback(index, sentence, effective_rate, events)
                    else:
                        await self._read_sentence(index, sentence, effective_rate, events)

                if not stopped:
                    # Cancelled while the last sentence was playing
                    if self._speaking.is_set():
                        await events.put(Finished())
                    else:
                        await events.put(Stopped())

        return SpeechPath.FALLBACK if use_fallback else SpeechPath.NEURAL

    async def _read_sentence(
        self,
        index: int,
        sentence: str,
        rate: float,
        events: EventQueue,
    ) -> None:
        text = self.engine.preprocessor.normalize(sentence)
        audio: np.ndarray | None = None
        try:
            audio = await self.engine.synthesize(text, rate)
        except NeuralTTSError as e:
            logger.warning(
                "Skipping sentence that failed to synthesize",
                index=index,
                error_code=e.error_code,
                error=e.message,
            )

        if audio is not None and audio.size and self._speaking.is_set():
            await self._play_with_start_event(index, sentence, audio, events)

        await events.put(SentenceEnd(index=index))

    async def _play_with_start_event(
        self,
        index: int,
        sentence: str,
        audio: np.ndarray,
        events: EventQueue,
    ) -> None:
        """Play one sentence; emit Start when the player reports audibility."""
        loop = asyncio.get_running_loop()
        audible: asyncio.Future[None] = loop.create_future()

        def resolve() -> None:
            if not audible.done():
                audible.set_result(None)

        def on_start() -> None:
            # Called on the playback thread
            loop.call_soon_threadsafe(resolve)

        playback = asyncio.ensure_future(
            self.player.play(audio, self.engine.sample_rate, self._speaking, on_start)
        )
        try:
            await asyncio.wait({audible, playback}, return_when=asyncio.FIRST_COMPLETED)
            if audible.done():
                await events.put(SentenceStart(index=index, text=sentence))
            await playback
        except AudioError as e:
            logger.warning(
                "Playback failed for sentence",
                index=index,
                error=e.message,
                reason=e.details.get("reason"),
            )
        finally:
            if not audible.done():
                audible.cancel()

    async def _read_sentence_fallback(
        self,
        index: int,
        sentence: str,
        rate: float,
        events: EventQueue,
    ) -> None:
        text = self.engine.preprocessor.normalize(sentence)
        if text:
            await events.put(SentenceStart(index=index, text=sentence))
            try:
                await self.fallback.speak(text, rate)
            except AudioError as e:
                logger.warning("Fallback speech failed for sentence", index=index, error=e.message)
        await events.put(SentenceEnd(index=index))

    def stop(self) -> None:
        """Cancel current speech; playback halts within one poll interval."""
        if self._speaking.is_set():
            logger.info("Stop requested")
        self._speaking.clear()
        self.player.stop()
        if self.fallback is not None:
            self.fallback.stop()

    # -------------------------------------------------------------------------
    # Model management
    # -------------------------------------------------------------------------

    def is_model_ready(self, model_id: str) -> bool:
        return self.manager.is_ready(self._resolve_model(model_id))

    def get_model_dir(self) -> Path:
        return self.manager.root

    def get_disk_usage(self) -> int:
        return self.manager.total_disk_usage()

    @property
    def download_progress(self) -> int | None:
        return self._download_progress

    async def download_model(
        self,
        model_id: str,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """
        Download a model, tracking progress for ``get_status``.

        Raises:
            UnknownModelError: Not a catalog id
            BusyError: A download is already running
            DownloadFailedError: Network or HTTP failure
        """
        model = self._claim_download(model_id)
        await self._run_download(model, progress_callback)

    def start_download(self, model_id: str) -> asyncio.Task:
        """Start a download in the background; failures show up in ``get_status``."""
        model = self._claim_download(model_id)

        async def run() -> None:
            try:
                await self._run_download(model, None)
            except NeuralTTSError as e:
                logger.error("Background download failed", model=model.id, error=e.message)

        self._download_task = asyncio.get_running_loop().create_task(run())
        return self._download_task

    def _claim_download(self, model_id: str) -> VoiceModel:
        model = self._resolve_model(model_id)
        if self._downloading is not None:
            raise BusyError("download")
        self._downloading = model.id
        self._download_progress = 0
        self._last_download_error = None
        return model

    async def _run_download(
        self,
        model: VoiceModel,
        progress_callback: ProgressCallback | None,
    ) -> None:
        def track(percent: int) -> None:
            self._download_progress = percent
            if progress_callback is not None:
                progress_callback(percent)

        try:
            await self.manager.download(model, track)
        except NeuralTTSError as e:
            self._last_download_error = f"Download failed: {e.message}"
            raise
        finally:
            self._downloading = None
            self._download_progress = None

    async def delete_model(self, model_id: str) -> None:
        """
        Delete a downloaded model, unloading it first if it is in use.

        Raises:
            UnknownModelError: Not a catalog id
            BusyError: The model is speaking or downloading
        """
        model = self._resolve_model(model_id)
        if self._downloading == model.id:
            raise BusyError("download")
        if self._lock.locked() and self.engine.loaded_model_id == model.id:
            raise BusyError("speech")
        if self.engine.loaded_model_id == model.id:
            await self.engine.unload()
            self._state = EngineState.IDLE
        self.manager.delete(model)
