"""Audio encoding and device playback."""

from neural_tts.audio.converter import decode_wav, float_to_int16, to_wav_bytes
from neural_tts.audio.player import AudioPlayer

__all__ = ["AudioPlayer", "decode_wav", "float_to_int16", "to_wav_bytes"]
