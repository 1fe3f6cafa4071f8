"""Tests for AudioPlayer against a fake output device."""

import threading
import time

import numpy as np
import pytest

from neural_tts.audio.player import AudioPlayer
from neural_tts.exceptions import AudioError
from tests.factories import FakeStreamFactory

SAMPLE_RATE = 22050


def tone(seconds: float) -> np.ndarray:
    t = np.arange(int(SAMPLE_RATE * seconds), dtype=np.float32) / SAMPLE_RATE
    return (0.5 * np.sin(2 * np.pi * 220 * t)).astype(np.float32)


def speaking_flag() -> threading.Event:
    flag = threading.Event()
    flag.set()
    return flag


def make_player(factory: FakeStreamFactory, **kwargs) -> AudioPlayer:
    kwargs.setdefault("start_delay", 0.005)
    kwargs.setdefault("poll_interval", 0.005)
    return AudioPlayer(stream_factory=factory, **kwargs)


class TestPlayback:
    """Tests for play / play_blocking."""

    async def test_plays_to_completion(self):
        factory = FakeStreamFactory()
        player = make_player(factory)
        samples = tone(0.1)

        completed = await player.play(samples, SAMPLE_RATE, speaking_flag())

        assert completed
        stream = factory.streams[0]
        assert stream.samplerate == SAMPLE_RATE
        assert stream.channels == 1
        assert stream.dtype == "int16"
        assert stream.stopped and stream.closed and not stream.aborted
        played = stream.frames_written[: len(samples), 0]
        assert np.count_nonzero(played) > 0
        assert not player.is_playing

    async def test_on_start_called_once(self):
        factory = FakeStreamFactory()
        player = make_player(factory)
        calls: list[str] = []

        await player.play(tone(0.05), SAMPLE_RATE, speaking_flag(), lambda: calls.append("start"))

        assert calls == ["start"]

    async def test_on_start_waits_for_stream_and_start_delay(self):
        factory = FakeStreamFactory()
        player = make_player(factory, start_delay=0.05)
        seen: list[tuple[bool, float]] = []

        def on_start() -> None:
            seen.append((factory.streams[0].started, time.monotonic()))

        await player.play(tone(0.2), SAMPLE_RATE, speaking_flag(), on_start)

        assert len(seen) == 1
        stream_started, called_at = seen[0]
        assert stream_started
        # Small tolerance for clock granularity
        assert called_at - factory.streams[0].started_at >= 0.05 - 0.002

    async def test_cleared_flag_skips_playback(self):
        factory = FakeStreamFactory()
        player = make_player(factory)
        calls: list[str] = []

        completed = await player.play(
            tone(0.05), SAMPLE_RATE, threading.Event(), lambda: calls.append("start")
        )

        assert not completed
        assert calls == []
        assert factory.streams == []

    async def test_clearing_flag_aborts_within_poll_interval(self):
        # Paced device: one 512-frame block per 10ms
        factory = FakeStreamFactory(block_delay=0.01)
        player = make_player(factory)
        speaking = speaking_flag()

        def on_start() -> None:
            speaking.clear()

        completed = await player.play(tone(3.0), SAMPLE_RATE, speaking, on_start)

        assert not completed
        stream = factory.streams[0]
        assert stream.aborted and stream.closed
        assert len(stream.frames_written) < len(tone(3.0))

    async def test_stop_aborts_playback(self):
        factory = FakeStreamFactory(block_delay=0.01)
        player = make_player(factory)

        completed = await player.play(tone(3.0), SAMPLE_RATE, speaking_flag(), player.stop)

        assert not completed
        assert factory.streams[0].aborted

    async def test_empty_audio_completes_without_device(self):
        factory = FakeStreamFactory()
        player = make_player(factory)

        completed = await player.play(np.zeros(0, dtype=np.float32), SAMPLE_RATE, speaking_flag())

        assert completed
        assert factory.streams == []

    async def test_device_failure_raises_audio_error(self):
        factory = FakeStreamFactory(fail=OSError("no default output device"))
        player = make_player(factory)

        with pytest.raises(AudioError) as exc_info:
            await player.play(tone(0.05), SAMPLE_RATE, speaking_flag())

        assert exc_info.value.details["operation"] == "open"
        assert "no default output device" in exc_info.value.details["reason"]


class TestControls:
    """Tests for volume and pause controls."""

    def test_volume_clamped(self):
        player = make_player(FakeStreamFactory())

        player.set_volume(1.7)
        assert player.volume == 1.0
        player.set_volume(-0.2)
        assert player.volume == 0.0

    async def test_zero_volume_is_silent(self):
        factory = FakeStreamFactory()
        player = make_player(factory)
        player.set_volume(0.0)

        await player.play(tone(0.05), SAMPLE_RATE, speaking_flag())

        assert np.count_nonzero(factory.streams[0].frames_written) == 0

    def test_pause_resume(self):
        player = make_player(FakeStreamFactory())

        player.pause()
        assert player.is_paused
        player.resume()
        assert not player.is_paused

    def test_stop_clears_pause(self):
        player = make_player(FakeStreamFactory())

        player.pause()
        player.stop()

        assert not player.is_paused
