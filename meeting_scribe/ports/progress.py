"""ProgressPort — abstract interface for reporting pipeline progress."""

from abc import ABC, abstractmethod
from typing import Optional


class ProgressPort(ABC):
    @abstractmethod
    def report(
        self,
        phase: str,
        progress: float,
        message: str,
        current_chunk: Optional[int] = None,
        total_chunks: Optional[int] = None,
    ) -> None:
        """Report progress. phase: analyzing, chunking, transcribing, merging,
        quality, diarization, complete, error. progress is 0..100."""
