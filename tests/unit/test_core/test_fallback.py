"""Tests for the espeak-ng fallback speaker."""

import asyncio
import shutil

import pytest

from neural_tts.core.fallback import EspeakFallbackSpeaker
from neural_tts.exceptions import AudioError
from tests.factories import SubprocessRecorder


class TestEspeakFallbackSpeaker:
    def test_missing_binary_unavailable(self):
        assert not EspeakFallbackSpeaker("definitely-not-installed-espeak-xyz").is_available()

    async def test_missing_binary_raises_audio_error(self):
        speaker = EspeakFallbackSpeaker("definitely-not-installed-espeak-xyz")

        with pytest.raises(AudioError) as exc_info:
            await speaker.speak("Hello.")

        assert exc_info.value.details["operation"] == "fallback"

    @pytest.mark.skipif(shutil.which("true") is None, reason="needs the true utility")
    async def test_successful_exit(self):
        speaker = EspeakFallbackSpeaker(shutil.which("true"))

        assert speaker.is_available()
        await speaker.speak("Hello.", rate=1.5)

    @pytest.mark.skipif(shutil.which("false") is None, reason="needs the false utility")
    async def test_failed_exit_raises_audio_error(self):
        speaker = EspeakFallbackSpeaker(shutil.which("false"))

        with pytest.raises(AudioError, match="Fallback speech failed"):
            await speaker.speak("Hello.")

    def test_stop_when_idle(self):
        EspeakFallbackSpeaker().stop()

    async def test_leading_dash_text_is_not_an_option(self, monkeypatch: pytest.MonkeyPatch):
        recorder = SubprocessRecorder()
        monkeypatch.setattr(asyncio, "create_subprocess_exec", recorder)

        await EspeakFallbackSpeaker("espeak-ng").speak("- Point one.", rate=2.0)

        assert recorder.calls == [("espeak-ng", "-v", "en-us", "-s", "350", "--", "- Point one.")]
