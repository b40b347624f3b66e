"""Framework-agnostic domain models for Meeting Scribe.

Provider response DTOs live in models.py (Pydantic); everything the
pipeline passes between ports is one of these dataclasses.
"""

import mimetypes
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import numpy as np

DEFAULT_SPEAKER = "speaker_0"


@dataclass(frozen=True)
class AudioSource:
    """An uploaded or recorded audio blob."""
    data: bytes
    mime_type: str
    file_name: str

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: str, mime_type: Optional[str] = None) -> "AudioSource":
        with open(path, "rb") as f:
            data = f.read()
        guessed, _ = mimetypes.guess_type(path)
        return cls(
            data=data,
            mime_type=mime_type or guessed or "application/octet-stream",
            file_name=os.path.basename(path),
        )


@dataclass
class DecodedAudio:
    """PCM float samples shaped (frames, channels) at the native sample rate."""
    samples: np.ndarray
    sample_rate: int

    @property
    def frames(self) -> int:
        return int(self.samples.shape[0])

    @property
    def channels(self) -> int:
        return int(self.samples.shape[1]) if self.samples.ndim > 1 else 1

    @property
    def duration(self) -> float:
        return self.frames / self.sample_rate if self.sample_rate else 0.0


@dataclass(frozen=True)
class TranscriptSegment:
    """A single transcribed speech segment with timing and speaker."""
    id: str
    speaker: str
    text: str
    start: float
    end: float


@dataclass(frozen=True)
class TranscriptWord:
    word: str
    start: float
    end: float


@dataclass
class Transcript:
    """One completed transcription (single file, chunked, dual-model or realtime)."""
    text: str
    segments: list[TranscriptSegment]
    duration: float
    model: str
    file_name: str
    speaker_colors: dict[str, int]
    speaker_names: dict[str, str] = field(default_factory=dict)
    words: Optional[list[TranscriptWord]] = None
    language: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class ChunkDescriptor:
    index: int
    blob: bytes
    mime_type: str


@dataclass(frozen=True)
class ChunkProgress:
    """Progress event emitted to a progress sink; never persisted."""
    phase: str
    overall_progress: float
    message: str
    current_chunk: Optional[int] = None
    total_chunks: Optional[int] = None


@dataclass(frozen=True)
class DurationProbe:
    duration_seconds: float
    confident: bool


@dataclass(frozen=True)
class ChunkPlan:
    """Outcome of the chunking-necessity decision."""
    needs_chunking: bool
    duration_seconds: float
    confident: bool
    estimated_chunks: int


@dataclass
class TranscriptionOptions:
    model: str = "gpt-4o-transcribe-diarize"
    response_format: str = "json"
    language: Optional[str] = None
    prompt: Optional[str] = None
    temperature: Optional[float] = None
    chunking_strategy: Optional[str] = None
    dual_model_mode: bool = False


@dataclass
class RealtimeTranscript:
    """Live transcript state. final_text only grows; partial_text is replaced."""
    final_text: str = ""
    partial_text: str = ""
    segments: list[TranscriptSegment] = field(default_factory=list)
    is_listening: bool = False
    error: Optional[str] = None
