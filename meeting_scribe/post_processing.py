"""Segment post-processing shared by the clients, the merger and the reconciler.

Speaker color assignment, segment ids and duration helpers.
"""

import logging
from typing import Iterable, Optional

from meeting_scribe.domain.models import TranscriptSegment

logger = logging.getLogger(__name__)

# Number of distinct speaker colors the UI palette offers.
PALETTE_SIZE = 8


def segment_id(index: int) -> str:
    return f"seg-{index}"


def unique_speakers(segments: Iterable[TranscriptSegment]) -> list[str]:
    """Return speaker ids in first-seen order."""
    seen: dict[str, None] = {}
    for seg in segments:
        if seg.speaker not in seen:
            seen[seg.speaker] = None
    return list(seen)


def assign_speaker_colors(speakers: Iterable[str]) -> dict[str, int]:
    """Round-robin color assignment: the k-th speaker gets k mod PALETTE_SIZE."""
    return {speaker: idx % PALETTE_SIZE for idx, speaker in enumerate(speakers)}


def speaker_colors_for(segments: list[TranscriptSegment]) -> dict[str, int]:
    return assign_speaker_colors(unique_speakers(segments))


def max_segment_end(segments: list[TranscriptSegment], default: float = 0.0) -> float:
    if not segments:
        return default
    return max(seg.end for seg in segments)


def compute_speaker_statistics(segments: list[TranscriptSegment]) -> Optional[dict]:
    """Compute per-speaker talk time, share and word count.

    Returns None when there are no segments.
    """
    if not segments:
        return None

    speakers: dict[str, dict] = {}
    for seg in segments:
        stats = speakers.setdefault(seg.speaker, {"duration": 0.0, "word_count": 0})
        stats["duration"] += seg.end - seg.start
        stats["word_count"] += len(seg.text.split())

    total_talk = sum(s["duration"] for s in speakers.values())
    result = {}
    for spk, data in speakers.items():
        percentage = (data["duration"] / total_talk * 100) if total_talk > 0 else 0
        result[spk] = {
            "duration": round(data["duration"], 1),
            "percentage": round(percentage, 1),
            "word_count": data["word_count"],
        }

    logger.debug(f"Speaker statistics for {len(result)} speakers")
    return {"speakers": result, "total_speakers": len(result)}
