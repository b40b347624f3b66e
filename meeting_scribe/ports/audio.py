"""Audio ports — in-process decoding and chunk splitting."""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from meeting_scribe.domain.models import AudioSource, ChunkDescriptor, DecodedAudio

# on_progress(percent 0..100, message)
ChunkProgressCallback = Callable[[float, str], None]


class AudioDecoderPort(ABC):
    @abstractmethod
    def decode(self, source: AudioSource) -> DecodedAudio:
        """Decode the whole source to float samples. Raises DecodeError."""

    @abstractmethod
    def probe_duration(self, source: AudioSource) -> float:
        """Read the duration in seconds from container metadata. Raises DecodeError."""


class ChunkerPort(ABC):
    @abstractmethod
    def split(
        self,
        source: AudioSource,
        chunk_duration: float,
        on_progress: Optional[ChunkProgressCallback] = None,
    ) -> list[ChunkDescriptor]:
        """Split audio into ordered, independently playable chunks."""

    @abstractmethod
    def name(self) -> str:
        """Short label used in logs and error messages."""
