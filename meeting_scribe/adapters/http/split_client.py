"""RemoteSplitChunker — client for the server-side split endpoint."""

import base64
import binascii
import logging
from typing import Optional

import requests
from pydantic import ValidationError

from meeting_scribe.domain.models import AudioSource, ChunkDescriptor
from meeting_scribe.errors import ChunkingError
from meeting_scribe.models import SplitResponse
from meeting_scribe.ports.audio import ChunkerPort, ChunkProgressCallback

logger = logging.getLogger(__name__)


class RemoteSplitChunker(ChunkerPort):
    def __init__(self, endpoint_url: str, timeout: float = 300.0, session: Optional[requests.Session] = None):
        self._endpoint_url = endpoint_url
        self._timeout = timeout
        self._session = session or requests.Session()

    def name(self) -> str:
        return "server-side"

    def split(
        self,
        source: AudioSource,
        chunk_duration: float,
        on_progress: Optional[ChunkProgressCallback] = None,
    ) -> list[ChunkDescriptor]:
        if on_progress:
            on_progress(5, "Uploading audio for processing...")

        try:
            response = self._session.post(
                self._endpoint_url,
                files={"file": (source.file_name, source.data, source.mime_type)},
                data={"chunkDuration": str(int(chunk_duration))},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise ChunkingError(f"Split endpoint unreachable: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if not response.ok:
            raise ChunkingError(payload.get("error") or f"Failed to split audio (HTTP {response.status_code})")

        try:
            split = SplitResponse(**payload)
        except (TypeError, ValidationError) as e:
            raise ChunkingError(f"Malformed split response: {e}") from e

        if split.error:
            raise ChunkingError(split.error)

        if on_progress:
            on_progress(50, f"Processing {len(split.chunks)} chunks...")

        chunks: list[ChunkDescriptor] = []
        for chunk in sorted(split.chunks, key=lambda c: c.index):
            try:
                blob = base64.b64decode(chunk.data)
            except (binascii.Error, ValueError) as e:
                raise ChunkingError(f"Chunk {chunk.index} is not valid base64") from e
            chunks.append(ChunkDescriptor(index=chunk.index, blob=blob, mime_type=chunk.mimeType))

        logger.info(
            f"Server split {source.file_name}: duration={split.duration:.1f}s "
            f"needs_chunking={split.needsChunking} chunks={len(chunks)}"
        )
        if on_progress:
            on_progress(90, "Chunking complete!")
        return chunks
