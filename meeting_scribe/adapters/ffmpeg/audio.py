"""FFmpegAudioAdapter — server-side splitting via ffmpeg/ffprobe.

Used behind the split endpoint, and directly as the fallback chunker when
no remote split endpoint is configured.
"""

import os
import math
import shutil
import logging
import tempfile
import subprocess
from typing import Optional

from meeting_scribe.domain.models import AudioSource, ChunkDescriptor
from meeting_scribe.errors import ChunkingError
from meeting_scribe.ports.audio import ChunkerPort, ChunkProgressCallback

logger = logging.getLogger(__name__)

# Common install locations, then PATH.
FFMPEG_PATHS = ["/opt/homebrew/bin/ffmpeg", "/usr/local/bin/ffmpeg", "/usr/bin/ffmpeg", "ffmpeg"]
FFPROBE_PATHS = ["/opt/homebrew/bin/ffprobe", "/usr/local/bin/ffprobe", "/usr/bin/ffprobe", "ffprobe"]


def _find_executable(candidates: list[str]) -> Optional[str]:
    for candidate in candidates:
        if os.path.isabs(candidate):
            if os.path.exists(candidate):
                return candidate
        else:
            found = shutil.which(candidate)
            if found:
                return found
    return None


class FFmpegAudioAdapter(ChunkerPort):
    def __init__(self, temp_dir: Optional[str] = None):
        self._temp_dir = temp_dir
        self._ffmpeg: Optional[str] = None
        self._ffprobe: Optional[str] = None

    def name(self) -> str:
        return "server-side ffmpeg"

    def is_available(self) -> bool:
        try:
            self._ffmpeg_path()
            self._ffprobe_path()
        except ChunkingError:
            return False
        return True

    def _ffmpeg_path(self) -> str:
        if self._ffmpeg is None:
            self._ffmpeg = _find_executable(FFMPEG_PATHS)
        if self._ffmpeg is None:
            raise ChunkingError("FFmpeg not found. Please install ffmpeg.")
        return self._ffmpeg

    def _ffprobe_path(self) -> str:
        if self._ffprobe is None:
            self._ffprobe = _find_executable(FFPROBE_PATHS)
        if self._ffprobe is None:
            raise ChunkingError("FFprobe not found. Please install ffmpeg.")
        return self._ffprobe

    def probe_duration(self, audio_path: str) -> float:
        cmd = [
            self._ffprobe_path(),
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            audio_path,
        ]
        result = subprocess.run(cmd, capture_output=True, text=True)
        if result.returncode != 0:
            logger.error(f"Error probing audio: {result.stderr}")
            raise ChunkingError("Failed to analyze audio file")
        try:
            return float(result.stdout.strip())
        except ValueError:
            raise ChunkingError(f"ffprobe returned no duration for {audio_path}")

    def split_file(self, audio_path: str, output_dir: str, chunk_duration: float) -> list[str]:
        """Split a file on disk into MP3 chunks. Returns chunk paths in order."""
        duration = self.probe_duration(audio_path)
        num_chunks = math.ceil(duration / chunk_duration)
        logger.info(f"Splitting {duration:.2f}s audio into {num_chunks} chunks of {chunk_duration}s")

        chunk_paths: list[str] = []
        for i in range(num_chunks):
            start_time = i * chunk_duration
            output_path = os.path.join(output_dir, f"chunk_{i}.mp3")

            cmd = [
                self._ffmpeg_path(), "-y",
                "-i", audio_path,
                "-ss", str(start_time),
                "-t", str(chunk_duration),
                "-acodec", "libmp3lame",
                "-q:a", "2",
                output_path,
            ]
            result = subprocess.run(cmd, capture_output=True, text=True)
            if result.returncode != 0:
                logger.error(f"Error splitting chunk {i}: {result.stderr}")
                raise ChunkingError(f"Failed to split audio: {result.stderr.strip()[-500:]}")

            chunk_paths.append(output_path)

        return chunk_paths

    def split(
        self,
        source: AudioSource,
        chunk_duration: float,
        on_progress: Optional[ChunkProgressCallback] = None,
    ) -> list[ChunkDescriptor]:
        self._ffmpeg_path()
        if on_progress:
            on_progress(5, "Splitting audio with ffmpeg...")

        with tempfile.TemporaryDirectory(dir=self._temp_dir) as work_dir:
            ext = os.path.splitext(source.file_name)[1] or ".mp3"
            input_path = os.path.join(work_dir, f"input{ext}")
            with open(input_path, "wb") as f:
                f.write(source.data)

            chunk_paths = self.split_file(input_path, work_dir, chunk_duration)
            chunks: list[ChunkDescriptor] = []
            for i, path in enumerate(chunk_paths):
                with open(path, "rb") as f:
                    chunks.append(ChunkDescriptor(index=i, blob=f.read(), mime_type="audio/mp3"))

        if on_progress:
            on_progress(90, "Chunking complete!")
        return chunks
