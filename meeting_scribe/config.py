import os
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Any
from pathlib import Path

logger = logging.getLogger(__name__)

try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8001
DEFAULT_CHUNK_DURATION = 600
DEFAULT_MAX_DIRECT_DURATION = 1200
DEFAULT_FALLBACK_SIZE_THRESHOLD = 5 * 1024 * 1024
DEFAULT_ASSUMED_BYTES_PER_SECOND = 3000
DEFAULT_PROBE_TIMEOUT = 10.0
DEFAULT_REALTIME_SAMPLE_RATE = 16000
DEFAULT_QUALITY_MODEL = "gpt-4o-transcribe"
DEFAULT_DIARIZE_MODEL = "gpt-4o-transcribe-diarize"


@dataclass(frozen=True)
class PipelineConfig:
    """Tunables of the file pipeline; durations in seconds, sizes in bytes."""
    max_direct_duration: float = DEFAULT_MAX_DIRECT_DURATION
    chunk_duration: float = DEFAULT_CHUNK_DURATION
    fallback_size_threshold: int = DEFAULT_FALLBACK_SIZE_THRESHOLD
    assumed_bytes_per_second: int = DEFAULT_ASSUMED_BYTES_PER_SECOND
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    realtime_sample_rate: int = DEFAULT_REALTIME_SAMPLE_RATE
    quality_model: str = DEFAULT_QUALITY_MODEL
    diarize_model: str = DEFAULT_DIARIZE_MODEL


class Config:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        self.host = os.environ.get("HOST", DEFAULT_HOST)
        self.port = int(os.environ.get("PORT", DEFAULT_PORT))
        self.debug = os.environ.get("DEBUG", "0") == "1"
        self.chunk_duration = float(os.environ.get("CHUNK_DURATION", DEFAULT_CHUNK_DURATION))
        self.max_direct_duration = float(os.environ.get("MAX_DIRECT_DURATION", DEFAULT_MAX_DIRECT_DURATION))
        self.fallback_size_threshold = int(os.environ.get("FALLBACK_SIZE_THRESHOLD", DEFAULT_FALLBACK_SIZE_THRESHOLD))
        self.probe_timeout = float(os.environ.get("PROBE_TIMEOUT", DEFAULT_PROBE_TIMEOUT))
        self.realtime_sample_rate = int(os.environ.get("REALTIME_SAMPLE_RATE", DEFAULT_REALTIME_SAMPLE_RATE))
        self.request_timeout = float(os.environ.get("REQUEST_TIMEOUT", "300"))
        self.temp_dir = os.environ.get("TEMP_DIR", "/tmp/meeting-scribe")
        self.keys_file = os.environ.get("KEYS_FILE", "").strip() or None

        # Provider endpoints; overridable for proxies and tests
        self.openai_base_url = os.environ.get("OPENAI_BASE_URL", "https://api.openai.com")
        self.elevenlabs_base_url = os.environ.get("ELEVENLABS_BASE_URL", "https://api.elevenlabs.io")
        self.realtime_url = os.environ.get(
            "ELEVENLABS_REALTIME_URL", "wss://api.elevenlabs.io/v1/speech-to-text/realtime"
        )
        # Remote split endpoint; when unset the fallback runs ffmpeg locally
        self.split_endpoint_url = os.environ.get("SPLIT_ENDPOINT_URL", "").strip() or None
        Path(self.temp_dir).mkdir(parents=True, exist_ok=True)

    def pipeline_config(self) -> PipelineConfig:
        return PipelineConfig(
            max_direct_duration=self.max_direct_duration,
            chunk_duration=self.chunk_duration,
            fallback_size_threshold=self.fallback_size_threshold,
            probe_timeout=self.probe_timeout,
            realtime_sample_rate=self.realtime_sample_rate,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "chunk_duration": self.chunk_duration,
            "max_direct_duration": self.max_direct_duration,
            "fallback_size_threshold": self.fallback_size_threshold,
            "probe_timeout": self.probe_timeout,
            "realtime_sample_rate": self.realtime_sample_rate,
            "request_timeout": self.request_timeout,
            "split_endpoint_url": self.split_endpoint_url,
            "has_keys_file": self.keys_file is not None,
        }


config = Config()


def get_config() -> Config:
    return config


def create_transcription_adapters(cfg: Config):
    """Provider name -> TranscriptionPort."""
    from meeting_scribe.adapters.elevenlabs.transcription import ElevenLabsTranscriptionAdapter
    from meeting_scribe.adapters.openai import OpenAITranscriptionAdapter
    from meeting_scribe.catalog import ELEVENLABS, OPENAI

    adapters = {
        OPENAI: OpenAITranscriptionAdapter(cfg.openai_base_url, timeout=cfg.request_timeout),
        ELEVENLABS: ElevenLabsTranscriptionAdapter(cfg.elevenlabs_base_url, timeout=cfg.request_timeout),
    }
    logger.info(f"Transcription adapters: {', '.join(f'{k}={type(v).__name__}' for k, v in adapters.items())}")
    return adapters


def create_audio_adapters(cfg: Config):
    """Create the decoder, the in-process chunker and the fallback chunker.

    The fallback posts to SPLIT_ENDPOINT_URL when set, otherwise runs ffmpeg
    in this process.
    """
    from meeting_scribe.adapters.soundfile import InProcessChunker, SoundFileDecoder

    decoder = SoundFileDecoder()
    chunker = InProcessChunker(decoder)

    if cfg.split_endpoint_url:
        from meeting_scribe.adapters.http.split_client import RemoteSplitChunker
        fallback = RemoteSplitChunker(cfg.split_endpoint_url, timeout=cfg.request_timeout)
    else:
        from meeting_scribe.adapters.ffmpeg.audio import FFmpegAudioAdapter
        fallback = FFmpegAudioAdapter(temp_dir=cfg.temp_dir)

    logger.info(f"Audio adapters: chunker={chunker.name()}, fallback={fallback.name()}")
    return decoder, chunker, fallback


def create_credential_store(cfg: Config):
    from meeting_scribe.adapters.local.json_key_store import JsonFileCredentialStore
    return JsonFileCredentialStore(cfg.keys_file)


def create_progress_adapter(job_id: str = "", callback=None):
    """Log every progress event; also forward ChunkProgress events to callback if given."""
    from meeting_scribe.adapters.local.callback_progress import CallbackProgressAdapter, FanOutProgressAdapter
    from meeting_scribe.adapters.local.log_progress import LogProgressAdapter

    log = LogProgressAdapter(job_id)
    if callback is None:
        return log
    return FanOutProgressAdapter(CallbackProgressAdapter(callback), log)


def create_transcribe_use_case(cfg: Config):
    """Wire the full file pipeline from the environment."""
    from meeting_scribe.catalog import OPENAI
    from meeting_scribe.use_cases.dual_model import DualModelTranscribeUseCase
    from meeting_scribe.use_cases.probe import DurationProber
    from meeting_scribe.use_cases.transcribe import TranscribeAudioUseCase

    pipeline = cfg.pipeline_config()
    transcribers = create_transcription_adapters(cfg)
    decoder, chunker, fallback = create_audio_adapters(cfg)
    return TranscribeAudioUseCase(
        transcribers=transcribers,
        prober=DurationProber(decoder, pipeline),
        chunker=chunker,
        fallback_chunker=fallback,
        config=pipeline,
        dual_model=DualModelTranscribeUseCase(transcribers[OPENAI], pipeline),
    )


def create_realtime_session(cfg: Config, api_key: Optional[str] = None, **callbacks):
    """Realtime session over a WebSocket; api_key defaults to the credential store."""
    from meeting_scribe.adapters.elevenlabs.realtime import WebSocketTransport
    from meeting_scribe.catalog import ELEVENLABS
    from meeting_scribe.use_cases.realtime import RealtimeConfig, RealtimeSession

    if api_key is None:
        api_key = create_credential_store(cfg).get_key(ELEVENLABS) or ""
    return RealtimeSession(
        api_key=api_key,
        transport=WebSocketTransport(),
        url=cfg.realtime_url,
        config=RealtimeConfig(sample_rate=cfg.realtime_sample_rate),
        **callbacks,
    )
