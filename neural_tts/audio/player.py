"""Blocking device playback with an audibility signal.

Playback runs on its own single-thread pool so device I/O never blocks the
event loop or competes with the inference pool.
"""

import asyncio
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import numpy as np

from neural_tts.audio.converter import decode_wav, duration_seconds, to_wav_bytes
from neural_tts.exceptions import AudioError
from neural_tts.utils.logging import get_logger

logger = get_logger("audio")

_playback_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="audio_playback")

StreamFactory = Callable[..., Any]


def _sounddevice_stream_factory(**kwargs: Any) -> Any:
    # Imported here: sounddevice raises OSError at import when PortAudio is missing
    try:
        import sounddevice as sd
    except OSError as e:
        raise AudioError("PortAudio library not available", operation="open", reason=str(e)) from e
    return sd.OutputStream(**kwargs)


class _PlaybackBuffer:
    """Feeds decoded frames to the device callback."""

    def __init__(self, frames: np.ndarray, paused: threading.Event, volume: float) -> None:
        self.frames = frames
        self.position = 0
        self.paused = paused
        self.volume = volume
        self.finished = threading.Event()

    def callback(self, outdata: np.ndarray, frame_count: int, time_info: Any, status: Any) -> None:
        if status:
            logger.debug("Audio stream status", status=str(status))
        if self.paused.is_set() or self.finished.is_set():
            outdata.fill(0)
            return

        chunk = self.frames[self.position : self.position + frame_count]
        n = len(chunk)
        if self.volume != 1.0:
            chunk = (chunk.astype(np.float32) * self.volume).astype(np.int16)
        outdata[:n] = chunk
        if n < frame_count:
            outdata[n:] = 0
            self.finished.set()
        self.position += n


class AudioPlayer:
    """
    Plays float waveforms on the default output device.

    Args:
        start_delay: Seconds between stream start and ``on_start``; covers
            device buffering so the signal never precedes audible sound
        poll_interval: Seconds between cancellation checks
        channels: Output channel count
        stream_factory: Builds the output stream; defaults to
            ``sounddevice.OutputStream``
    """

    def __init__(
        self,
        start_delay: float = 0.05,
        poll_interval: float = 0.05,
        channels: int = 1,
        stream_factory: StreamFactory | None = None,
    ) -> None:
        self.start_delay = start_delay
        self.poll_interval = poll_interval
        self.channels = channels
        self._stream_factory = stream_factory or _sounddevice_stream_factory
        self._paused = threading.Event()
        self._stop_requested = threading.Event()
        self._lock = threading.Lock()
        self._playing = False
        self._volume = 1.0

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def is_paused(self) -> bool:
        return self._paused.is_set()

    @property
    def volume(self) -> float:
        return self._volume

    def set_volume(self, volume: float) -> None:
        """Set output volume for subsequent playback, clamped to [0, 1]."""
        self._volume = max(0.0, min(1.0, float(volume)))

    def pause(self) -> None:
        self._paused.set()

    def resume(self) -> None:
        self._paused.clear()

    def stop(self) -> None:
        """Abort the current playback, if any."""
        self._stop_requested.set()
        self._paused.clear()

    def play_blocking(
        self,
        samples: np.ndarray,
        sample_rate: int,
        speaking: threading.Event,
        on_start: Callable[[], None] | None = None,
    ) -> bool:
        """
        Play ``samples`` and block until done or cancelled.

        ``on_start`` is called exactly once, ``start_delay`` after the stream
        starts. Clearing ``speaking`` (or calling ``stop``) aborts playback
        within one ``poll_interval``.

        Returns:
            True if the audio played to the end, False if it was cancelled
            or ``speaking`` was already cleared

        Raises:
            AudioError: Encoding, decoding or device failure
        """
        if not speaking.is_set():
            return False

        if len(samples) == 0:
            return True

        frames, rate = decode_wav(to_wav_bytes(samples, sample_rate, self.channels))

        self._stop_requested.clear()
        buffer = _PlaybackBuffer(frames, self._paused, self._volume)

        try:
            stream = self._stream_factory(
                samplerate=rate,
                channels=frames.shape[1],
                dtype="int16",
                callback=buffer.callback,
            )
            stream.start()
        except AudioError:
            raise
        except Exception as e:
            raise AudioError("Failed to open audio output stream", operation="open", reason=str(e)) from e

        with self._lock:
            self._playing = True

        completed = False
        try:
            time.sleep(self.start_delay)
            if on_start is not None:
                on_start()

            while not buffer.finished.wait(self.poll_interval):
                if not speaking.is_set() or self._stop_requested.is_set():
                    break
            completed = buffer.finished.is_set()

            if completed:
                stream.stop()
            else:
                stream.abort()
                logger.debug(
                    "Playback cancelled",
                    played_seconds=round(duration_seconds(buffer.position, rate), 3),
                    total_seconds=round(duration_seconds(len(frames), rate), 3),
                )
        except AudioError:
            raise
        except Exception as e:
            raise AudioError("Audio playback failed", operation="play", reason=str(e)) from e
        finally:
            try:
                stream.close()
            except Exception as e:
                logger.debug("Closing audio stream failed", error=str(e))
            with self._lock:
                self._playing = False

        return completed

    async def play(
        self,
        samples: np.ndarray,
        sample_rate: int,
        speaking: threading.Event,
        on_start: Callable[[], None] | None = None,
    ) -> bool:
        """Run ``play_blocking`` on the playback thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            _playback_executor,
            self.play_blocking,
            samples,
            sample_rate,
            speaking,
            on_start,
        )
