"""InProcessChunker — slice decoded samples into WAV chunks without ffmpeg.

Chunks are re-encoded as 16-bit PCM WAV at the source sample rate and
channel count, so no codec library is needed on the write path.
"""

import io
import logging
import math
from typing import Optional

import soundfile

from meeting_scribe.domain.models import AudioSource, ChunkDescriptor
from meeting_scribe.errors import DecodeError
from meeting_scribe.ports.audio import AudioDecoderPort, ChunkerPort, ChunkProgressCallback

logger = logging.getLogger(__name__)

DECODED_PROGRESS = 15.0
DONE_PROGRESS = 95.0


class InProcessChunker(ChunkerPort):
    def __init__(self, decoder: AudioDecoderPort):
        self._decoder = decoder

    def name(self) -> str:
        return "in-process"

    def split(
        self,
        source: AudioSource,
        chunk_duration: float,
        on_progress: Optional[ChunkProgressCallback] = None,
    ) -> list[ChunkDescriptor]:
        if chunk_duration <= 0:
            raise ValueError("chunk_duration must be positive")

        _report(on_progress, 0.0, "Decoding audio...")
        audio = self._decoder.decode(source)
        _report(on_progress, DECODED_PROGRESS, "Audio decoded")

        total_duration = audio.duration
        sample_rate = audio.sample_rate
        num_chunks = math.ceil(total_duration / chunk_duration)
        logger.info(f"Splitting {total_duration:.2f}s into {num_chunks} chunks of {chunk_duration}s")

        chunks: list[ChunkDescriptor] = []
        for i in range(num_chunks):
            start_sample = math.floor(i * chunk_duration * sample_rate)
            end_sample = math.floor(min((i + 1) * chunk_duration, total_duration) * sample_rate)
            chunks.append(ChunkDescriptor(
                index=i,
                blob=encode_wav(audio.samples[start_sample:end_sample], sample_rate),
                mime_type="audio/wav",
            ))
            _report(
                on_progress,
                DECODED_PROGRESS + (i + 1) / num_chunks * (DONE_PROGRESS - DECODED_PROGRESS),
                f"Built chunk {i + 1} of {num_chunks}",
            )

        _report(on_progress, DONE_PROGRESS, f"Created {len(chunks)} chunks")
        return chunks


def encode_wav(samples, sample_rate: int) -> bytes:
    """Encode (frames, channels) float samples as a standalone 16-bit PCM WAV."""
    buffer = io.BytesIO()
    try:
        soundfile.write(buffer, samples, sample_rate, format="WAV", subtype="PCM_16")
    except (RuntimeError, TypeError, ValueError) as e:
        raise DecodeError(f"Failed to encode WAV chunk: {e}") from e
    return buffer.getvalue()


def _report(on_progress: Optional[ChunkProgressCallback], percent: float, message: str) -> None:
    if on_progress:
        on_progress(percent, message)
