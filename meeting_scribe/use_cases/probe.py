"""DurationProber — duration probing and the chunking-necessity decision."""

import logging
import math
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError

from meeting_scribe.config import PipelineConfig
from meeting_scribe.domain.models import AudioSource, ChunkPlan, DurationProbe
from meeting_scribe.errors import DecodeError
from meeting_scribe.ports.audio import AudioDecoderPort

logger = logging.getLogger(__name__)


class DurationProber:
    def __init__(self, decoder: AudioDecoderPort, config: PipelineConfig):
        self._decoder = decoder
        self._config = config

    def probe(self, source: AudioSource) -> DurationProbe:
        """Metadata decode bounded by probe_timeout, else a size estimate."""
        pool = ThreadPoolExecutor(max_workers=1)
        try:
            future = pool.submit(self._decoder.probe_duration, source)
            duration = future.result(timeout=self._config.probe_timeout)
            if math.isfinite(duration) and duration > 0:
                logger.info(f"Probed duration of {source.file_name}: {duration:.2f}s")
                return DurationProbe(duration_seconds=duration, confident=True)
            logger.info(f"Probe returned unusable duration {duration!r}")
        except FutureTimeoutError:
            logger.warning(f"Duration probe timed out after {self._config.probe_timeout}s")
        except (DecodeError, RuntimeError, ValueError, OSError) as e:
            logger.info(f"Duration probe failed: {e}")
        finally:
            # Never block on a hung decoder thread.
            pool.shutdown(wait=False)

        estimated = source.size / self._config.assumed_bytes_per_second
        logger.info(f"Using file size estimate for {source.file_name}: {estimated:.0f}s")
        return DurationProbe(duration_seconds=estimated, confident=False)

    def plan(self, source: AudioSource) -> ChunkPlan:
        probe = self.probe(source)
        return plan_chunking(probe, source.size, self._config)


def plan_chunking(probe: DurationProbe, size_bytes: int, config: PipelineConfig) -> ChunkPlan:
    """Decide whether to chunk.

    A confident duration is compared against max_direct_duration; otherwise
    the byte size alone decides, since it is more reliable than the estimate.
    """
    if probe.confident:
        needs = probe.duration_seconds > config.max_direct_duration
    else:
        needs = size_bytes > config.fallback_size_threshold

    estimated_chunks = math.ceil(probe.duration_seconds / config.chunk_duration) if needs else 1
    return ChunkPlan(
        needs_chunking=needs,
        duration_seconds=probe.duration_seconds,
        confident=probe.confident,
        estimated_chunks=max(estimated_chunks, 1),
    )
