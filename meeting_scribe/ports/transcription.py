"""TranscriptionPort — abstract interface for transcription providers."""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from meeting_scribe.domain.models import AudioSource, Transcript, TranscriptionOptions


class TranscriptionPort(ABC):
    @abstractmethod
    def transcribe(
        self,
        source: AudioSource,
        api_key: str,
        options: TranscriptionOptions,
        on_progress: Optional[Callable[[float], None]] = None,
    ) -> Transcript:
        """Transcribe one blob. Raises TranscriptionError.

        on_progress receives a heuristic 0..100 value for this single call.
        """

    @abstractmethod
    def provider(self) -> str:
        """Provider id: openai | elevenlabs."""
