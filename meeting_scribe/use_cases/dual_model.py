"""DualModelTranscribeUseCase — quality text + diarized structure in one transcript.

Phase 1 transcribes the whole file with the quality model (best wording,
no speakers). Phase 2 transcribes it with the diarize model (speaker turns
and timing). Phase 3 greedily aligns each diarized segment against the
quality text and swaps in the quality wording.

The alignment is a cheap heuristic, not an edit-distance aligner: it looks
for a segment's first significant word near a monotonically advancing
cursor and confirms with the second word.
"""

import logging
import string
from dataclasses import replace
from typing import Optional

from meeting_scribe.config import PipelineConfig
from meeting_scribe.domain.models import AudioSource, Transcript, TranscriptionOptions, TranscriptSegment
from meeting_scribe.ports.progress import ProgressPort
from meeting_scribe.ports.transcription import TranscriptionPort
from meeting_scribe.post_processing import max_segment_end, segment_id, speaker_colors_for

logger = logging.getLogger(__name__)

# Allowed backtrack before the cursor when searching for a segment start.
BACKTRACK_CHARS = 50
# The second significant word must start within this many chars of the first.
SECOND_WORD_WINDOW = 50
# How far past a weak match to look for another occurrence of the first word.
ALT_MATCH_WINDOW = 200
# Padding added to the diarized text length when the next segment is not found.
END_PADDING = 20
MIN_WORD_LENGTH = 3
# Text for a blank diarized segment with no quality text to borrow.
UNMATCHED_TEXT = "[inaudible]"

QUALITY_MESSAGE = "Running quality transcription for best text..."
DIARIZE_MESSAGE = "Running diarization for speaker identification..."


class DualModelTranscribeUseCase:
    def __init__(self, transcription: TranscriptionPort, config: PipelineConfig):
        self._transcription = transcription
        self._config = config

    def execute(
        self,
        source: AudioSource,
        api_key: str,
        options: TranscriptionOptions,
        progress: ProgressPort,
    ) -> Transcript:
        quality_model = self._config.quality_model
        diarize_model = self._config.diarize_model

        # 1. Quality pass (5-45%)
        progress.report("quality", 5, QUALITY_MESSAGE)
        quality_options = replace(
            options,
            model=quality_model,
            response_format="json",
            chunking_strategy=None,
            dual_model_mode=False,
        )
        quality = self._transcription.transcribe(
            source, api_key, quality_options,
            lambda p: progress.report("quality", 5 + p * 0.4, QUALITY_MESSAGE),
        )
        logger.info(f"Quality pass complete: {len(quality.text)} chars")

        # 2. Diarization pass (50-90%)
        progress.report("diarization", 50, DIARIZE_MESSAGE)
        diarize_options = replace(
            options,
            model=diarize_model,
            response_format="diarized_json",
            chunking_strategy="auto",
            prompt=None,
            dual_model_mode=False,
        )
        diarized = self._transcription.transcribe(
            source, api_key, diarize_options,
            lambda p: progress.report("diarization", 50 + p * 0.4, DIARIZE_MESSAGE),
        )
        logger.info(f"Diarization pass complete: {len(diarized.segments)} segments")

        # 3. Merge (92%)
        progress.report("merging", 92, "Merging transcripts: combining quality text with speaker data...")
        merged = merge_quality_with_diarization(quality, diarized, source.file_name, quality_model)

        progress.report("complete", 100, "Dual model transcription complete!")
        return merged


def merge_quality_with_diarization(
    quality: Transcript,
    diarized: Transcript,
    file_name: str,
    quality_model: str,
) -> Transcript:
    """Use the diarized segments for speakers and timing, quality text for wording."""
    if not diarized.segments:
        return replace(quality, model=quality_model)

    quality_text = quality.text
    merged: list[TranscriptSegment] = []
    cursor = 0

    for i, segment in enumerate(diarized.segments):
        diarized_text = segment.text.strip()
        match = find_best_match(quality_text, cursor, diarized_text)

        segment_text: Optional[str] = None
        if match >= 0:
            if i < len(diarized.segments) - 1:
                next_text = diarized.segments[i + 1].text.strip()
                next_match = find_best_match(quality_text, match + 1, next_text)
                if next_match > match:
                    end = next_match
                else:
                    end = min(match + len(diarized_text) + END_PADDING, len(quality_text))
            else:
                end = len(quality_text)

            segment_text = quality_text[match:end].strip()
            cursor = end
        elif diarized_text:
            logger.debug(f"No quality match for segment {i}, keeping diarized text")
        else:
            # Blank diarized text: take the unclaimed quality text up to the next match.
            if i < len(diarized.segments) - 1:
                gap_end = find_best_match(quality_text, cursor, diarized.segments[i + 1].text.strip())
            else:
                gap_end = len(quality_text)
            if gap_end > cursor:
                segment_text = quality_text[cursor:gap_end].strip()
                cursor = gap_end

        merged.append(TranscriptSegment(
            id=segment_id(i),
            speaker=segment.speaker,
            text=segment_text or diarized_text or UNMATCHED_TEXT,
            start=segment.start,
            end=segment.end,
        ))

    return Transcript(
        text=quality_text,
        segments=merged,
        duration=max_segment_end(merged, default=diarized.duration),
        language=quality.language or diarized.language,
        model=quality_model,
        file_name=file_name,
        speaker_colors=speaker_colors_for(merged),
        speaker_names={},
    )


def _significant_words(text: str) -> list[str]:
    words = (w.strip(string.punctuation) for w in text.lower().split())
    return [w for w in words if len(w) >= MIN_WORD_LENGTH]


def find_best_match(source: str, start_index: int, target: str) -> int:
    """Position in `source` where `target` most likely starts, or -1.

    Searches for the first significant word from just before start_index;
    if the second significant word does not follow closely, tries the next
    occurrence of the first word within ALT_MATCH_WINDOW.
    """
    if not target or len(target) < MIN_WORD_LENGTH:
        return -1

    source_lower = source.lower()
    target_words = _significant_words(target)
    if not target_words:
        return -1

    first_word = target_words[0]
    search_start = max(0, start_index - BACKTRACK_CHARS)
    position = source_lower.find(first_word, search_start)

    if position >= 0 and len(target_words) > 1:
        next_search_start = position + len(first_word)
        second_index = source_lower.find(target_words[1], next_search_start)
        if second_index < 0 or second_index - next_search_start > SECOND_WORD_WINDOW:
            alt = source_lower.find(first_word, position + 1)
            if 0 <= alt < position + ALT_MATCH_WINDOW:
                position = alt

    return position
