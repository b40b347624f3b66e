"""CredentialProviderPort — per-provider API credentials for the current user."""

from abc import ABC, abstractmethod
from typing import Optional


class CredentialProviderPort(ABC):
    @abstractmethod
    def get_key(self, provider: str) -> Optional[str]:
        """Return the plaintext key for a provider, or None if not configured."""

    @abstractmethod
    def validate(self, provider: str, key: str) -> bool:
        """Return True if the key has the provider's expected format."""
