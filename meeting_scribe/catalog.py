"""Transcription model catalog and provider routing."""

from dataclasses import dataclass

OPENAI = "openai"
ELEVENLABS = "elevenlabs"
PROVIDERS = (OPENAI, ELEVENLABS)


@dataclass(frozen=True)
class ModelCapabilities:
    id: str
    name: str
    description: str
    provider: str
    response_formats: tuple[str, ...]
    supports_prompt: bool = False
    supports_streaming: bool = False
    supports_diarization: bool = False
    supports_timestamps: bool = False
    supports_translation: bool = False
    requires_chunking_strategy: bool = False
    # Provider accepts long-form audio in one request; no client-side chunking.
    handles_long_audio: bool = False


MODELS: dict[str, ModelCapabilities] = {
    "gpt-4o-transcribe": ModelCapabilities(
        id="gpt-4o-transcribe",
        name="GPT-4o Transcribe",
        description="Highest quality transcription with GPT-4o intelligence",
        provider=OPENAI,
        response_formats=("json", "text"),
        supports_prompt=True,
        supports_streaming=True,
    ),
    "gpt-4o-mini-transcribe": ModelCapabilities(
        id="gpt-4o-mini-transcribe",
        name="GPT-4o Mini Transcribe",
        description="Fast and cost-effective transcription",
        provider=OPENAI,
        response_formats=("json", "text"),
        supports_prompt=True,
        supports_streaming=True,
    ),
    "gpt-4o-transcribe-diarize": ModelCapabilities(
        id="gpt-4o-transcribe-diarize",
        name="GPT-4o Diarize",
        description="Speaker identification for meetings and conversations",
        provider=OPENAI,
        response_formats=("json", "text", "diarized_json"),
        supports_streaming=True,
        supports_diarization=True,
        supports_timestamps=True,
        requires_chunking_strategy=True,
    ),
    "whisper-1": ModelCapabilities(
        id="whisper-1",
        name="Whisper",
        description="Legacy model with translation support and multiple output formats",
        provider=OPENAI,
        response_formats=("json", "text", "srt", "verbose_json", "vtt"),
        supports_prompt=True,
        supports_timestamps=True,
        supports_translation=True,
    ),
    "elevenlabs-scribe-v1": ModelCapabilities(
        id="elevenlabs-scribe-v1",
        name="ElevenLabs Scribe",
        description="99 languages, speaker ID, word timestamps, audio events",
        provider=ELEVENLABS,
        response_formats=("json",),
        supports_diarization=True,
        supports_timestamps=True,
        handles_long_audio=True,
    ),
}

DEFAULT_MODEL = "gpt-4o-transcribe-diarize"
DIARIZE_MODEL = "gpt-4o-transcribe-diarize"

SUPPORTED_FORMATS = (
    "audio/mp3", "audio/mpeg", "audio/mpga", "audio/m4a", "audio/wav",
    "audio/webm", "audio/mp4", "video/mp4", "video/mpeg", "video/webm",
)
SUPPORTED_EXTENSIONS = (".mp3", ".mp4", ".mpeg", ".mpga", ".m4a", ".wav", ".webm")

MAX_UPLOADABLE_SIZE = 500 * 1024 * 1024  # larger files are rejected before any work


def get_provider_from_model(model: str) -> str:
    if model.startswith("elevenlabs-"):
        return ELEVENLABS
    return OPENAI


def handles_long_audio(model: str) -> bool:
    caps = MODELS.get(model)
    if caps is not None:
        return caps.handles_long_audio
    return get_provider_from_model(model) == ELEVENLABS


def is_supported_file(file_name: str, mime_type: str = "") -> bool:
    lowered = file_name.lower()
    return mime_type in SUPPORTED_FORMATS or lowered.endswith(SUPPORTED_EXTENSIONS)
