"""CallbackProgressAdapter — forwards progress as ChunkProgress events."""

from typing import Callable, Optional

from meeting_scribe.domain.models import ChunkProgress
from meeting_scribe.ports.progress import ProgressPort


class CallbackProgressAdapter(ProgressPort):
    """Delivers each report to a callback; the pipeline never waits on it."""

    def __init__(self, callback: Callable[[ChunkProgress], None]):
        self._callback = callback

    def report(
        self,
        phase: str,
        progress: float,
        message: str,
        current_chunk: Optional[int] = None,
        total_chunks: Optional[int] = None,
    ) -> None:
        self._callback(ChunkProgress(
            phase=phase,
            overall_progress=progress,
            message=message,
            current_chunk=current_chunk,
            total_chunks=total_chunks,
        ))


class FanOutProgressAdapter(ProgressPort):
    """Reports to several sinks, e.g. a UI callback plus the log."""

    def __init__(self, *sinks: ProgressPort):
        self._sinks = sinks

    def report(
        self,
        phase: str,
        progress: float,
        message: str,
        current_chunk: Optional[int] = None,
        total_chunks: Optional[int] = None,
    ) -> None:
        for sink in self._sinks:
            sink.report(phase, progress, message, current_chunk, total_chunks)
