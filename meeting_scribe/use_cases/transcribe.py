"""TranscribeAudioUseCase — orchestrates the full file transcription pipeline.

Routing, in priority order:
1. models whose provider accepts long-form audio -> one direct call
2. dual-model mode -> DualModelTranscribeUseCase
3. probe duration; short audio -> one direct call
4. split (in-process, falling back to ffmpeg) -> transcribe each chunk in
   order -> merge

Chunks are transcribed strictly sequentially, and any chunk failure aborts
the run; completed chunks are not kept.
"""

import logging
import mimetypes
import os
import traceback
import uuid
from dataclasses import dataclass, field
from typing import Optional

from meeting_scribe.catalog import MAX_UPLOADABLE_SIZE, get_provider_from_model, handles_long_audio
from meeting_scribe.config import PipelineConfig
from meeting_scribe.domain.models import AudioSource, ChunkDescriptor, Transcript, TranscriptionOptions
from meeting_scribe.errors import ChunkingError, DecodeError, ErrorCode, TranscriptionError
from meeting_scribe.ports.audio import ChunkerPort
from meeting_scribe.ports.progress import ProgressPort
from meeting_scribe.ports.transcription import TranscriptionPort
from meeting_scribe.use_cases.dual_model import DualModelTranscribeUseCase
from meeting_scribe.use_cases.merge import merge_transcripts
from meeting_scribe.use_cases.probe import DurationProber

logger = logging.getLogger(__name__)

# Progress bands (percent of the whole run).
ANALYZING_END = 10
CHUNKING_START, CHUNKING_END = 10, 30
TRANSCRIBING_START, TRANSCRIBING_END = 30, 90
MERGING = 92
DIRECT_START, DIRECT_SPAN = 10, 0.85

CHUNK_EXTENSIONS = {
    "audio/wav": ".wav", "audio/mp3": ".mp3", "audio/mpeg": ".mp3",
    "audio/webm": ".webm", "audio/mp4": ".m4a", "audio/m4a": ".m4a",
}


def chunk_extension(mime_type: str, source_name: str) -> str:
    """File extension for a chunk upload; the source's own extension if the type is unknown."""
    ext = CHUNK_EXTENSIONS.get(mime_type) or mimetypes.guess_extension(mime_type or "")
    if ext:
        return ext
    return os.path.splitext(source_name)[1] or ".bin"


@dataclass
class TranscribeRequest:
    """All parameters for a transcription request."""
    source: AudioSource
    api_key: str
    options: TranscriptionOptions = field(default_factory=TranscriptionOptions)


class MonotonicProgress(ProgressPort):
    """Clamps reports to [0, 100] and never lets overall progress go backwards."""

    def __init__(self, sink: ProgressPort):
        self._sink = sink
        self._last = 0.0

    def report(
        self,
        phase: str,
        progress: float,
        message: str,
        current_chunk: Optional[int] = None,
        total_chunks: Optional[int] = None,
    ) -> None:
        value = min(100.0, max(0.0, float(progress)))
        if phase != "error":
            value = max(value, self._last)
            self._last = value
        self._sink.report(phase, value, message, current_chunk, total_chunks)


class TranscribeAudioUseCase:
    def __init__(
        self,
        transcribers: dict[str, TranscriptionPort],
        prober: DurationProber,
        chunker: ChunkerPort,
        fallback_chunker: Optional[ChunkerPort],
        config: PipelineConfig,
        dual_model: Optional[DualModelTranscribeUseCase] = None,
    ):
        self._transcribers = transcribers
        self._prober = prober
        self._chunker = chunker
        self._fallback_chunker = fallback_chunker
        self._config = config
        self._dual_model = dual_model

    def execute(self, req: TranscribeRequest, progress: ProgressPort) -> Transcript:
        """Run the pipeline. Every failure surfaces as a TranscriptionError."""
        job_id = uuid.uuid4().hex[:12]
        tracker = MonotonicProgress(progress)
        source, options = req.source, req.options
        logger.info(
            f"[{job_id}] Transcribing {source.file_name} ({source.size} bytes) "
            f"model={options.model} dual={options.dual_model_mode}"
        )

        try:
            if not req.api_key:
                raise TranscriptionError(
                    ErrorCode.MISSING_API_KEY,
                    f"Please add your {get_provider_from_model(options.model)} API key in settings",
                )
            if source.size > MAX_UPLOADABLE_SIZE:
                raise TranscriptionError(
                    ErrorCode.FILE_TOO_LARGE,
                    f"File is {source.size / (1024 * 1024):.0f} MB; the limit is "
                    f"{MAX_UPLOADABLE_SIZE // (1024 * 1024)} MB",
                )
            transcript = self._route(req, tracker)
        except TranscriptionError as e:
            logger.error(f"[{job_id}] Transcription failed: {e}")
            tracker.report("error", 0, e.message)
            raise
        except Exception as e:
            logger.exception(f"[{job_id}] Unexpected pipeline failure")
            tracker.report("error", 0, str(e))
            raise TranscriptionError(
                ErrorCode.UNKNOWN_ERROR,
                str(e) or "An error occurred during transcription",
                details=traceback.format_exc(),
            ) from e

        logger.info(f"[{job_id}] Done: {len(transcript.segments)} segments, {transcript.duration:.1f}s")
        return transcript

    def _route(self, req: TranscribeRequest, progress: ProgressPort) -> Transcript:
        source, options = req.source, req.options
        provider = get_provider_from_model(options.model)
        transcriber = self._transcriber_for(provider)

        # 1. Providers that accept long-form audio need no chunking.
        if handles_long_audio(options.model):
            logger.info(f"{provider} handles long audio natively, skipping chunking")
            return self._transcribe_direct(transcriber, req, progress, f"Transcribing with {options.model}...")

        # 2. Dual-model mode supersedes chunking.
        if options.dual_model_mode:
            if self._dual_model is None:
                raise TranscriptionError(ErrorCode.BAD_REQUEST, "Dual model mode is not configured")
            logger.info("Using dual model transcription (quality + diarize)")
            return self._dual_model.execute(source, req.api_key, options, progress)

        # 3. Probe duration.
        progress.report("analyzing", 5, "Analyzing audio file...")
        plan = self._prober.plan(source)
        logger.info(
            f"Chunk plan: needs={plan.needs_chunking} duration={plan.duration_seconds:.1f}s "
            f"confident={plan.confident} estimated_chunks={plan.estimated_chunks}"
        )
        if not plan.needs_chunking:
            return self._transcribe_direct(transcriber, req, progress, "Transcribing audio...")

        # 4. Split, transcribe each chunk, merge.
        chunks = self._split(source, plan.estimated_chunks, progress)
        transcripts = self._transcribe_chunks(transcriber, chunks, req, progress)

        progress.report("merging", MERGING, "Merging transcripts...", total_chunks=len(chunks))
        merged = merge_transcripts(
            transcripts, source.file_name, options, chunk_duration=self._config.chunk_duration
        )
        progress.report("complete", 100, "Transcription complete!")
        return merged

    def _transcriber_for(self, provider: str) -> TranscriptionPort:
        transcriber = self._transcribers.get(provider)
        if transcriber is None:
            raise TranscriptionError(ErrorCode.BAD_REQUEST, f"No transcription client configured for {provider}")
        return transcriber

    def _transcribe_direct(
        self,
        transcriber: TranscriptionPort,
        req: TranscribeRequest,
        progress: ProgressPort,
        message: str,
    ) -> Transcript:
        progress.report("transcribing", DIRECT_START, message, current_chunk=1, total_chunks=1)
        transcript = transcriber.transcribe(
            req.source, req.api_key, req.options,
            lambda p: progress.report(
                "transcribing", DIRECT_START + p * DIRECT_SPAN, message, current_chunk=1, total_chunks=1
            ),
        )
        progress.report("complete", 100, "Transcription complete!")
        return transcript

    def _split(self, source: AudioSource, estimated_chunks: int, progress: ProgressPort) -> list[ChunkDescriptor]:
        def on_chunk_progress(percent: float, message: str) -> None:
            progress.report(
                "chunking",
                CHUNKING_START + percent / 100 * (CHUNKING_END - CHUNKING_START),
                message,
                total_chunks=estimated_chunks,
            )

        progress.report(
            "chunking", CHUNKING_START, f"Splitting audio into {estimated_chunks} chunks...",
            total_chunks=estimated_chunks,
        )
        chunk_duration = self._config.chunk_duration

        try:
            return self._chunker.split(source, chunk_duration, on_chunk_progress)
        except (DecodeError, ChunkingError) as first:
            primary_error = first
            logger.warning(f"{self._chunker.name()} chunking failed, falling back: {first}")

        if self._fallback_chunker is None:
            raise TranscriptionError(
                ErrorCode.CHUNKING_FAILED,
                f"Failed to split audio: {self._chunker.name()} chunking failed ({primary_error}); "
                "no server-side chunker is configured.",
            )

        try:
            return self._fallback_chunker.split(source, chunk_duration, on_chunk_progress)
        except (DecodeError, ChunkingError) as second:
            logger.error(f"{self._fallback_chunker.name()} chunking failed: {second}")
            raise TranscriptionError(
                ErrorCode.CHUNKING_FAILED,
                f"Failed to split audio: {self._chunker.name()} chunking failed ({primary_error}); "
                f"{self._fallback_chunker.name()} chunking failed ({second}). "
                "Make sure ffmpeg is installed on the server.",
            ) from second

    def _transcribe_chunks(
        self,
        transcriber: TranscriptionPort,
        chunks: list[ChunkDescriptor],
        req: TranscribeRequest,
        progress: ProgressPort,
    ) -> list[Transcript]:
        total = len(chunks)
        per_chunk = (TRANSCRIBING_END - TRANSCRIBING_START) / total if total else 0
        transcripts: list[Transcript] = []

        for i, chunk in enumerate(chunks):
            base = TRANSCRIBING_START + i * per_chunk
            message = f"Transcribing chunk {i + 1} of {total}..."
            progress.report("transcribing", base, message, current_chunk=i + 1, total_chunks=total)
            logger.info(f"Processing chunk {i + 1}/{total}")

            # Providers read the audio format from the upload's extension.
            ext = chunk_extension(chunk.mime_type, req.source.file_name)
            if total == 1:
                file_name = os.path.splitext(req.source.file_name)[0] + ext
            else:
                file_name = f"chunk_{i}{ext}"
            chunk_source = AudioSource(data=chunk.blob, mime_type=chunk.mime_type, file_name=file_name)
            transcripts.append(transcriber.transcribe(
                chunk_source, req.api_key, req.options,
                lambda p, base=base, message=message, n=i + 1: progress.report(
                    "transcribing", base + p * per_chunk / 100, message, current_chunk=n, total_chunks=total
                ),
            ))

        return transcripts
