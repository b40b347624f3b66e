"""Shared request/response handling for HTTP transcription providers.

Subclasses build the multipart form, pick the error message out of the
provider's error payload, and map the JSON body to a Transcript.
"""

import logging
import traceback
from abc import abstractmethod
from typing import Any, Callable, Optional

import requests
from pydantic import ValidationError

from meeting_scribe.domain.models import AudioSource, Transcript, TranscriptionOptions
from meeting_scribe.errors import ErrorCode, TranscriptionError, error_from_response
from meeting_scribe.ports.transcription import TranscriptionPort

logger = logging.getLogger(__name__)

# Heuristic progress: the request is a single blocking call.
PROGRESS_SENT = 10
PROGRESS_RESPONDED = 80
PROGRESS_PARSED = 100


class BaseHttpTranscriptionAdapter(TranscriptionPort):
    display_name = "Provider"

    def __init__(self, base_url: str, timeout: float = 300.0, session: Optional[requests.Session] = None):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    @abstractmethod
    def _endpoint(self) -> str:
        """Path appended to the base URL."""

    @abstractmethod
    def _headers(self, api_key: str) -> dict[str, str]:
        """Authentication headers."""

    @abstractmethod
    def _form_fields(self, options: TranscriptionOptions) -> dict[str, str]:
        """Multipart form fields besides the file."""

    @abstractmethod
    def _error_message(self, payload: Any) -> str:
        """Extract a human-readable message from an error payload."""

    @abstractmethod
    def _parse(self, data: dict, options: TranscriptionOptions, file_name: str) -> Transcript:
        """Map the success payload to a Transcript."""

    def transcribe(
        self,
        source: AudioSource,
        api_key: str,
        options: TranscriptionOptions,
        on_progress: Optional[Callable[[float], None]] = None,
    ) -> Transcript:
        url = f"{self._base_url}{self._endpoint()}"
        fields = self._form_fields(options)
        logger.info(f"{self.display_name}: transcribing {source.file_name} ({source.size} bytes) model={options.model}")

        try:
            if on_progress:
                on_progress(PROGRESS_SENT)
            response = self._session.post(
                url,
                headers=self._headers(api_key),
                files={"file": (source.file_name, source.data, source.mime_type)},
                data=fields,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error(f"{self.display_name} request failed: {e}")
            raise TranscriptionError(
                ErrorCode.NETWORK_ERROR,
                f"Failed to connect to {self.display_name}: {e}",
                details=traceback.format_exc(),
            ) from e

        if on_progress:
            on_progress(PROGRESS_RESPONDED)

        if not response.ok:
            try:
                payload = response.json()
            except ValueError:
                payload = {}
            message = self._error_message(payload) or "An error occurred during transcription"
            logger.warning(f"{self.display_name} returned HTTP {response.status_code}: {message}")
            raise error_from_response(response.status_code, message, self.display_name, payload)

        try:
            data = response.json()
            transcript = self._parse(data, options, source.file_name)
        except (ValueError, TypeError, AttributeError, ValidationError) as e:
            logger.error(f"Unexpected {self.display_name} response: {e}")
            raise TranscriptionError(
                ErrorCode.API_ERROR,
                f"{self.display_name} API error: unexpected response format",
                details=response.text[:2000],
            ) from e

        if on_progress:
            on_progress(PROGRESS_PARSED)

        logger.info(
            f"{self.display_name}: {len(transcript.segments)} segments, "
            f"{len(transcript.speaker_colors)} speakers, {transcript.duration:.1f}s"
        )
        return transcript
