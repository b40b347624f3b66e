import base64

import numpy as np

from meeting_scribe.pcm import encode_audio, float_to_pcm16, pcm16_to_float, resample


def test_resample_length_48k_to_16k():
    samples = np.zeros(4800, dtype=np.float32)
    assert resample(samples, 48000, 16000).size == 1600


def test_resample_same_rate_is_identity():
    samples = np.linspace(-1, 1, 100, dtype=np.float32)
    np.testing.assert_array_equal(resample(samples, 16000, 16000), samples)


def test_resample_preserves_constant_signal():
    samples = np.full(4410, 0.25, dtype=np.float32)
    out = resample(samples, 44100, 16000)
    assert out.size == 1600
    assert np.allclose(out, 0.25)


def test_resample_upsampling_interpolates():
    out = resample(np.array([0.0, 1.0], dtype=np.float32), 1, 2)
    np.testing.assert_allclose(out, [0.0, 0.5, 1.0, 1.0])


def test_float_to_pcm16_asymmetric_scaling_and_clipping():
    pcm = float_to_pcm16(np.array([-1.0, 1.0, 0.0, 2.0, -3.0]))
    assert pcm.tolist() == [-32768, 32767, 0, 32767, -32768]


def test_pcm16_to_float_ignores_trailing_odd_byte():
    data = np.array([-32768, 16384], dtype="<i2").tobytes() + b"\x01"
    np.testing.assert_allclose(pcm16_to_float(data), [-1.0, 0.5])


def test_encode_audio_float_input():
    payload = encode_audio(np.full(480, 0.5, dtype=np.float32), 48000, 16000)
    pcm = np.frombuffer(base64.b64decode(payload), dtype="<i2")
    assert pcm.size == 160
    assert set(pcm.tolist()) == {16383}


def test_encode_audio_accepts_int16_bytes_and_stereo():
    raw = np.full(320, 8192, dtype="<i2").tobytes()
    pcm = np.frombuffer(base64.b64decode(encode_audio(raw, 16000, 16000)), dtype="<i2")
    assert pcm.size == 320

    stereo = np.stack([np.full(100, 1.0), np.full(100, -1.0)], axis=1).astype(np.float32)
    pcm = np.frombuffer(base64.b64decode(encode_audio(stereo, 16000, 16000)), dtype="<i2")
    assert set(pcm.tolist()) == {0}
