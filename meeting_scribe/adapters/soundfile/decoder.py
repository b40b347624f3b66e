"""SoundFileDecoder — in-process decoding via libsndfile (no external binaries).

Handles WAV, FLAC, OGG/Vorbis, Opus-in-OGG and MP3 (libsndfile >= 1.1).
Containers libsndfile cannot read (webm, m4a, mp4) raise DecodeError so the
orchestrator can fall back to ffmpeg.
"""

import io
import logging

import numpy as np
import soundfile

from meeting_scribe.domain.models import AudioSource, DecodedAudio
from meeting_scribe.errors import DecodeError
from meeting_scribe.ports.audio import AudioDecoderPort

logger = logging.getLogger(__name__)


class SoundFileDecoder(AudioDecoderPort):
    def decode(self, source: AudioSource) -> DecodedAudio:
        try:
            samples, sample_rate = soundfile.read(
                io.BytesIO(source.data), dtype="float32", always_2d=True
            )
        except (RuntimeError, TypeError, ValueError) as e:
            logger.warning(f"Could not decode {source.file_name} ({source.mime_type}): {e}")
            raise DecodeError(f"Unable to decode {source.file_name}: {e}") from e

        if samples.shape[0] == 0:
            raise DecodeError(f"{source.file_name} contains no audio frames")

        decoded = DecodedAudio(samples=np.ascontiguousarray(samples), sample_rate=int(sample_rate))
        logger.info(
            f"Decoded {source.file_name}: {decoded.duration:.2f}s @ {decoded.sample_rate}Hz, "
            f"{decoded.channels} channel(s)"
        )
        return decoded

    def probe_duration(self, source: AudioSource) -> float:
        try:
            info = soundfile.info(io.BytesIO(source.data))
        except (RuntimeError, TypeError, ValueError) as e:
            raise DecodeError(f"Unable to read metadata of {source.file_name}: {e}") from e
        return float(info.duration)
