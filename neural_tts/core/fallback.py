"""Non-neural speech used when no neural voice is available."""

import asyncio
import shutil
from abc import ABC, abstractmethod

from neural_tts.exceptions import AudioError
from neural_tts.utils.logging import get_logger

logger = get_logger("audio")

ESPEAK_BASE_WPM = 175


class FallbackSpeaker(ABC):
    """A simpler speech path the orchestrator can hand text to."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether this speaker can be used on this machine."""

    @abstractmethod
    async def speak(self, text: str, rate: float = 1.0) -> None:
        """Speak ``text`` and return once done or stopped."""

    @abstractmethod
    def stop(self) -> None:
        """Interrupt current speech."""


class EspeakFallbackSpeaker(FallbackSpeaker):
    """
    Speaks directly through espeak-ng's own formant synthesizer.

    Args:
        binary: espeak-ng executable
        voice: espeak voice selector
    """

    def __init__(self, binary: str = "espeak-ng", voice: str = "en-us") -> None:
        self.binary = binary
        self.voice = voice
        self._process: asyncio.subprocess.Process | None = None

    def is_available(self) -> bool:
        return shutil.which(self.binary) is not None

    async def speak(self, text: str, rate: float = 1.0) -> None:
        wpm = str(int(ESPEAK_BASE_WPM * rate))
        try:
            self._process = await asyncio.create_subprocess_exec(
                self.binary,
                "-v",
                self.voice,
                "-s",
                wpm,
                "--",
                text,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise AudioError("Fallback speech unavailable", operation="fallback", reason=str(e)) from e

        logger.info("Speaking with fallback voice", text_length=len(text), wpm=wpm)
        try:
            _, stderr = await self._process.communicate()
            code = self._process.returncode
        finally:
            self._process = None

        # Negative codes mean we were killed by stop()
        if code is not None and code > 0:
            raise AudioError(
                "Fallback speech failed",
                operation="fallback",
                reason=stderr.decode("utf-8", errors="replace").strip() or f"exit status {code}",
            )

    def stop(self) -> None:
        process = self._process
        if process is not None and process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
