from typing import List, Optional, Dict, Any
from pydantic import BaseModel


# --- OpenAI transcription responses ---

class OpenAITranscriptionResponse(BaseModel):
    """Basic `json` response: text only."""
    text: str


class OpenAIDiarizedSegment(BaseModel):
    speaker: str
    text: str
    start: float
    end: float


class OpenAIDiarizedResponse(BaseModel):
    """`diarized_json` response from the diarize model."""
    text: str = ""
    segments: List[OpenAIDiarizedSegment]


class OpenAIWord(BaseModel):
    word: str
    start: float
    end: float


class OpenAIVerboseSegment(BaseModel):
    id: int = 0
    seek: int = 0
    start: float
    end: float
    text: str


class OpenAIVerboseResponse(BaseModel):
    """`verbose_json` response (whisper-1)."""
    text: str
    language: Optional[str] = None
    duration: float
    words: Optional[List[OpenAIWord]] = None
    segments: Optional[List[OpenAIVerboseSegment]] = None


# --- ElevenLabs Scribe responses ---

class ElevenLabsWord(BaseModel):
    text: str
    start: float = 0.0
    end: float = 0.0
    type: str = "word"  # word | spacing | audio_event
    speaker_id: Optional[str] = None


class ElevenLabsResponse(BaseModel):
    language_code: Optional[str] = None
    language_probability: Optional[float] = None
    text: str = ""
    words: List[ElevenLabsWord] = []


# --- Server-side split endpoint ---

class SplitChunk(BaseModel):
    index: int
    data: str  # base64
    mimeType: str


class SplitResponse(BaseModel):
    needsChunking: bool
    duration: float
    totalChunks: Optional[int] = None
    chunks: List[SplitChunk] = []
    error: Optional[str] = None


# --- Outgoing transcript DTOs ---

class SegmentDTO(BaseModel):
    """Represents a segment in the transcription"""
    id: str
    speaker: str
    text: str
    start: float
    end: float


class WordDTO(BaseModel):
    word: str
    start: float
    end: float


class SpeakerStatistics(BaseModel):
    """Per-speaker talk time and word count."""
    duration: float
    percentage: float
    word_count: int


class Statistics(BaseModel):
    """Aggregate speaker statistics for the transcription."""
    speakers: Dict[str, SpeakerStatistics]
    total_speakers: int


class TranscriptResponse(BaseModel):
    """Serialized Transcript handed to persistence and UI collaborators."""
    id: str
    text: str
    segments: List[SegmentDTO]
    words: Optional[List[WordDTO]] = None
    duration: float
    language: Optional[str] = None
    model: str
    createdAt: str
    fileName: str
    speakerColors: Dict[str, int]
    speakerNames: Dict[str, str] = {}
    statistics: Optional[Statistics] = None


class ModelInfo(BaseModel):
    id: str
    object: str = "model"
    name: str
    description: str
    owned_by: str
    response_formats: List[str] = []
    capabilities: Dict[str, Any] = {}


class ModelList(BaseModel):
    object: str = "list"
    data: List[ModelInfo]
