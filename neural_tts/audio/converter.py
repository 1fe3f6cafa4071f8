"""PCM conversion and in-memory WAV encoding."""

import io

import numpy as np
import soundfile as sf

from neural_tts.exceptions import AudioError

INT16_MAX = 32767


def float_to_int16(samples: np.ndarray) -> np.ndarray:
    """Clamp float samples to [-1, 1] and scale to signed 16-bit PCM."""
    clipped = np.clip(np.asarray(samples, dtype=np.float32), -1.0, 1.0)
    return (clipped * INT16_MAX).astype(np.int16)


def to_wav_bytes(samples: np.ndarray, sample_rate: int, channels: int = 1) -> bytes:
    """
    Encode float samples as a 16-bit PCM WAV file in memory.

    Args:
        samples: Float waveform; interleaved when ``channels`` > 1
        sample_rate: Sample rate in Hz
        channels: Channel count

    Raises:
        AudioError: If encoding fails
    """
    pcm = float_to_int16(samples)
    if channels > 1:
        frames = len(pcm) // channels
        pcm = pcm[: frames * channels].reshape(frames, channels)

    buffer = io.BytesIO()
    try:
        sf.write(buffer, pcm, sample_rate, format="WAV", subtype="PCM_16")
    except (sf.LibsndfileError, ValueError, TypeError) as e:
        raise AudioError("Failed to encode WAV", operation="encoding", reason=str(e)) from e
    return buffer.getvalue()


def decode_wav(data: bytes) -> tuple[np.ndarray, int]:
    """
    Decode a WAV buffer to int16 frames shaped ``(frames, channels)``.

    Raises:
        AudioError: If the buffer is not decodable audio
    """
    try:
        frames, sample_rate = sf.read(io.BytesIO(data), dtype="int16", always_2d=True)
    except (sf.LibsndfileError, RuntimeError, ValueError) as e:
        raise AudioError("Failed to decode WAV", operation="decoding", reason=str(e)) from e
    return frames, sample_rate


def duration_seconds(num_samples: int, sample_rate: int) -> float:
    if sample_rate <= 0:
        return 0.0
    return num_samples / sample_rate
