"""RealtimeTransportPort — bidirectional message stream for live transcription."""

from abc import ABC, abstractmethod
from typing import Iterator, Optional


class RealtimeTransportPort(ABC):
    @abstractmethod
    def open(self, url: str, headers: dict[str, str]) -> None:
        """Open the stream. Raises on connection failure."""

    @abstractmethod
    def send(self, message: str) -> None:
        """Send one text message."""

    @abstractmethod
    def messages(self) -> Iterator[str]:
        """Yield incoming text messages until the stream closes."""

    @abstractmethod
    def close(self, code: int = 1000, reason: str = "") -> None:
        """Close the stream. Safe to call more than once."""

    @abstractmethod
    def is_open(self) -> bool:
        """Whether messages can currently be sent."""

    @abstractmethod
    def close_info(self) -> tuple[Optional[int], str]:
        """(close code, reason) once closed, (None, "") while open."""
