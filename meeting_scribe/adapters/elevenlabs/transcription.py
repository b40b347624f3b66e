"""ElevenLabsTranscriptionAdapter — Scribe speech-to-text with diarization."""

from typing import Any

from meeting_scribe.adapters.http.base import BaseHttpTranscriptionAdapter
from meeting_scribe.catalog import ELEVENLABS
from meeting_scribe.domain.models import Transcript, TranscriptionOptions
from meeting_scribe.mappers import elevenlabs_to_transcript

DEFAULT_BASE_URL = "https://api.elevenlabs.io"
SCRIBE_MODEL_ID = "scribe_v1"


class ElevenLabsTranscriptionAdapter(BaseHttpTranscriptionAdapter):
    display_name = "ElevenLabs"

    def provider(self) -> str:
        return ELEVENLABS

    def _endpoint(self) -> str:
        return "/v1/speech-to-text"

    def _headers(self, api_key: str) -> dict[str, str]:
        return {"xi-api-key": api_key}

    def _form_fields(self, options: TranscriptionOptions) -> dict[str, str]:
        fields = {
            "model_id": SCRIBE_MODEL_ID,
            "diarize": "true",
            "timestamps_granularity": "word",
        }
        if options.language and options.language != "auto":
            fields["language_code"] = options.language
        return fields

    def _error_message(self, payload: Any) -> str:
        if not isinstance(payload, dict):
            return ""
        detail = payload.get("detail")
        if isinstance(detail, dict) and detail.get("message"):
            return detail["message"]
        if isinstance(detail, str):
            return detail
        return payload.get("message") or payload.get("error") or ""

    def _parse(self, data: dict, options: TranscriptionOptions, file_name: str) -> Transcript:
        return elevenlabs_to_transcript(data, options, file_name)


def is_valid_api_key_format(key: str) -> bool:
    return len(key) >= 20
