"""JsonFileCredentialStore — provider API keys from a JSON file or the environment."""

import json
import logging
import os
from typing import Optional

from meeting_scribe.adapters.elevenlabs.transcription import is_valid_api_key_format as valid_elevenlabs_key
from meeting_scribe.adapters.openai.transcription import is_valid_api_key_format as valid_openai_key
from meeting_scribe.catalog import ELEVENLABS, OPENAI
from meeting_scribe.ports.key_store import CredentialProviderPort

logger = logging.getLogger(__name__)

ENV_VARS = {
    OPENAI: "OPENAI_API_KEY",
    ELEVENLABS: "ELEVENLABS_API_KEY",
}


class JsonFileCredentialStore(CredentialProviderPort):
    """Reads {"openai": "...", "elevenlabs": "..."}; env vars fill the gaps."""

    def __init__(self, keys_file: Optional[str] = None):
        self._keys_file = keys_file

    def _load(self) -> dict:
        if not self._keys_file:
            return {}
        try:
            with open(self._keys_file) as f:
                data = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError) as e:
            logger.warning(f"Could not load keys file: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Keys file {self._keys_file} is not a JSON object")
            return {}
        return data

    def get_key(self, provider: str) -> Optional[str]:
        key = self._load().get(provider)
        if not key and provider in ENV_VARS:
            key = os.environ.get(ENV_VARS[provider])
        return key.strip() if isinstance(key, str) and key.strip() else None

    def validate(self, provider: str, key: str) -> bool:
        if provider == OPENAI:
            return valid_openai_key(key)
        if provider == ELEVENLABS:
            return valid_elevenlabs_key(key)
        return False
