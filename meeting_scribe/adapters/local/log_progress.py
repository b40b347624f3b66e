"""LogProgressAdapter — reports progress via logging."""

import logging
from typing import Optional

from meeting_scribe.ports.progress import ProgressPort

logger = logging.getLogger(__name__)


class LogProgressAdapter(ProgressPort):
    def __init__(self, job_id: str = ""):
        self._job_id = job_id

    def report(
        self,
        phase: str,
        progress: float,
        message: str,
        current_chunk: Optional[int] = None,
        total_chunks: Optional[int] = None,
    ) -> None:
        msg = f"[{self._job_id}] {phase}" if self._job_id else phase
        msg += f" {progress:.0f}%"
        if current_chunk and total_chunks:
            msg += f" (chunk {current_chunk}/{total_chunks})"
        if message:
            msg += f" - {message}"
        logger.info(msg)
