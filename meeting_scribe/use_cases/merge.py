"""Segment merger — stitch per-chunk transcripts into one global timeline."""

import logging
from dataclasses import replace
from typing import Optional

from meeting_scribe.domain.models import Transcript, TranscriptionOptions, TranscriptSegment, TranscriptWord
from meeting_scribe.post_processing import max_segment_end, segment_id, speaker_colors_for

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_DURATION = 600.0


def merge_transcripts(
    transcripts: list[Transcript],
    file_name: str,
    options: TranscriptionOptions,
    chunk_duration: float = DEFAULT_CHUNK_DURATION,
) -> Transcript:
    """Offset each chunk's timestamps by the running time offset and concatenate.

    After chunk i the offset advances by max(last segment end, chunk_duration),
    so a chunk whose speech ends early cannot pull the next chunk backwards.
    Speaker ids are not reconciled across chunks; speaker names start empty.
    """
    if not transcripts:
        raise ValueError("No transcripts to merge")

    if len(transcripts) == 1:
        return replace(transcripts[0], file_name=file_name)

    segments: list[TranscriptSegment] = []
    words: Optional[list[TranscriptWord]] = None
    time_offset = 0.0

    for chunk_index, transcript in enumerate(transcripts):
        for seg in transcript.segments:
            segments.append(replace(
                seg,
                id=segment_id(len(segments)),
                start=seg.start + time_offset,
                end=seg.end + time_offset,
            ))

        if transcript.words:
            if words is None:
                words = []
            words.extend(
                TranscriptWord(word=w.word, start=w.start + time_offset, end=w.end + time_offset)
                for w in transcript.words
            )

        last_end = transcript.segments[-1].end if transcript.segments else 0.0
        time_offset += max(last_end, chunk_duration)
        logger.debug(f"Chunk {chunk_index}: {len(transcript.segments)} segments, next offset {time_offset:.1f}s")

    languages = [t.language for t in transcripts if t.language]
    merged = Transcript(
        text=" ".join(t.text for t in transcripts),
        segments=segments,
        words=words,
        duration=max_segment_end(segments),
        language=languages[0] if languages else None,
        model=options.model,
        file_name=file_name,
        speaker_colors=speaker_colors_for(segments),
        speaker_names={},
    )
    logger.info(
        f"Merged {len(transcripts)} transcripts: {len(segments)} segments, "
        f"{len(merged.speaker_colors)} speakers, {merged.duration:.1f}s"
    )
    return merged
