"""OpenAITranscriptionAdapter — /v1/audio/transcriptions (GPT-4o, Whisper)."""

import logging
from typing import Any

from meeting_scribe.adapters.http.base import BaseHttpTranscriptionAdapter
from meeting_scribe.catalog import DIARIZE_MODEL, OPENAI
from meeting_scribe.domain.models import Transcript, TranscriptionOptions
from meeting_scribe.mappers import openai_to_transcript

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com"


class OpenAITranscriptionAdapter(BaseHttpTranscriptionAdapter):
    display_name = "OpenAI"

    def provider(self) -> str:
        return OPENAI

    def _endpoint(self) -> str:
        return "/v1/audio/transcriptions"

    def _headers(self, api_key: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {api_key}"}

    def _form_fields(self, options: TranscriptionOptions) -> dict[str, str]:
        fields = {"model": options.model}

        if options.model == DIARIZE_MODEL:
            fields["response_format"] = "diarized_json"
            fields["chunking_strategy"] = options.chunking_strategy or "auto"
        elif options.model == "whisper-1" and options.response_format == "verbose_json":
            fields["response_format"] = "verbose_json"
        else:
            fields["response_format"] = "json"

        if options.language and options.language != "auto":
            fields["language"] = options.language

        # The diarize model rejects prompts.
        if options.prompt and options.model != DIARIZE_MODEL:
            fields["prompt"] = options.prompt

        if options.temperature is not None and options.model == "whisper-1":
            fields["temperature"] = str(options.temperature)

        return fields

    def _error_message(self, payload: Any) -> str:
        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict):
                return error.get("message", "")
            if isinstance(error, str):
                return error
        return ""

    def _parse(self, data: dict, options: TranscriptionOptions, file_name: str) -> Transcript:
        return openai_to_transcript(data, options, file_name)


def is_valid_api_key_format(key: str) -> bool:
    return key.startswith("sk-") and len(key) > 20
