"""PCM helpers for the realtime stream: resampling, 16-bit quantization, base64."""

import base64
from typing import Union

import numpy as np

INT16_NEG_SCALE = 32768.0
INT16_POS_SCALE = 32767.0


def resample(samples: np.ndarray, src_rate: int, dst_rate: int) -> np.ndarray:
    """Linear-interpolation resampling of a mono float signal."""
    samples = np.asarray(samples, dtype=np.float32)
    if src_rate == dst_rate or samples.size == 0:
        return samples

    ratio = src_rate / dst_rate
    new_length = int(np.floor(samples.size / ratio + 0.5))
    if new_length == 0:
        return np.zeros(0, dtype=np.float32)

    src_index = np.arange(new_length, dtype=np.float64) * ratio
    lower = np.floor(src_index).astype(np.int64)
    lower = np.minimum(lower, samples.size - 1)
    upper = np.minimum(lower + 1, samples.size - 1)
    t = src_index - lower

    return (samples[lower] * (1.0 - t) + samples[upper] * t).astype(np.float32)


def float_to_pcm16(samples: np.ndarray) -> np.ndarray:
    """Clamp to [-1, 1] then scale negatives by 32768 and positives by 32767."""
    clipped = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    scaled = np.where(clipped < 0, clipped * INT16_NEG_SCALE, clipped * INT16_POS_SCALE)
    return scaled.astype(np.int16)


def pcm16_to_float(data: bytes) -> np.ndarray:
    """Little-endian 16-bit PCM bytes -> float32 in [-1, 1)."""
    ints = np.frombuffer(data[: len(data) - len(data) % 2], dtype="<i2")
    return (ints.astype(np.float32) / INT16_NEG_SCALE).astype(np.float32)


def encode_audio(
    audio: Union[np.ndarray, bytes, bytearray],
    source_sample_rate: int,
    target_sample_rate: int,
) -> str:
    """Float samples (or raw int16 PCM bytes) -> base64 of resampled int16 LE PCM."""
    if isinstance(audio, (bytes, bytearray)):
        samples = pcm16_to_float(bytes(audio))
    else:
        samples = np.asarray(audio, dtype=np.float32)
        if samples.ndim > 1:
            samples = samples.mean(axis=1)

    resampled = resample(samples, source_sample_rate, target_sample_rate)
    pcm = float_to_pcm16(resampled).astype("<i2")
    return base64.b64encode(pcm.tobytes()).decode("ascii")
