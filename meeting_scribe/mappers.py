"""Provider DTO <-> domain mappers.

Normalizes the heterogeneous provider responses into one Transcript shape,
and renders a Transcript as the outgoing TranscriptResponse DTO.
"""

from typing import Any, Optional

from meeting_scribe.catalog import DIARIZE_MODEL
from meeting_scribe.domain.models import (
    DEFAULT_SPEAKER,
    Transcript,
    TranscriptionOptions,
    TranscriptSegment,
    TranscriptWord,
)
from meeting_scribe.models import (
    ElevenLabsResponse,
    OpenAIDiarizedResponse,
    OpenAITranscriptionResponse,
    OpenAIVerboseResponse,
    SegmentDTO,
    SpeakerStatistics,
    Statistics,
    TranscriptResponse,
    WordDTO,
)
from meeting_scribe.post_processing import (
    compute_speaker_statistics,
    max_segment_end,
    segment_id,
    speaker_colors_for,
)


def openai_to_transcript(data: dict[str, Any], options: TranscriptionOptions, file_name: str) -> Transcript:
    """Convert any OpenAI transcription response into a Transcript.

    Diarized responses keep their speaker segments; verbose responses get one
    synthetic speaker; basic responses become a single [0, 0] segment.
    """
    if options.model == DIARIZE_MODEL and isinstance(data.get("segments"), list):
        diarized = OpenAIDiarizedResponse(**data)
        segments = [
            TranscriptSegment(
                id=segment_id(idx),
                speaker=seg.speaker,
                text=seg.text,
                start=seg.start,
                end=seg.end,
            )
            for idx, seg in enumerate(diarized.segments)
        ]
        return Transcript(
            text=diarized.text,
            segments=segments,
            duration=max_segment_end(segments),
            model=options.model,
            file_name=file_name,
            speaker_colors=speaker_colors_for(segments),
        )

    if data.get("duration") is not None:
        verbose = OpenAIVerboseResponse(**data)
        if verbose.segments:
            segments = [
                TranscriptSegment(
                    id=segment_id(idx),
                    speaker=DEFAULT_SPEAKER,
                    text=seg.text.strip(),
                    start=seg.start,
                    end=seg.end,
                )
                for idx, seg in enumerate(verbose.segments)
            ]
        else:
            segments = [TranscriptSegment(
                id=segment_id(0), speaker=DEFAULT_SPEAKER, text=verbose.text,
                start=0.0, end=verbose.duration,
            )]
        words = None
        if verbose.words is not None:
            words = [TranscriptWord(word=w.word, start=w.start, end=w.end) for w in verbose.words]
        return Transcript(
            text=verbose.text,
            segments=segments,
            words=words,
            duration=max(verbose.duration, max_segment_end(segments)),
            language=verbose.language,
            model=options.model,
            file_name=file_name,
            speaker_colors={DEFAULT_SPEAKER: 0},
        )

    basic = OpenAITranscriptionResponse(**data)
    return Transcript(
        text=basic.text,
        segments=[TranscriptSegment(
            id=segment_id(0), speaker=DEFAULT_SPEAKER, text=basic.text, start=0.0, end=0.0,
        )],
        duration=0.0,  # unknown without timestamps
        model=options.model,
        file_name=file_name,
        speaker_colors={DEFAULT_SPEAKER: 0},
    )


def elevenlabs_to_transcript(data: dict[str, Any], options: TranscriptionOptions, file_name: str) -> Transcript:
    """Group Scribe words into segments, breaking on speaker change."""
    response = ElevenLabsResponse(**data)
    spoken = [w for w in response.words if w.type == "word"]

    segments: list[TranscriptSegment] = []
    current: Optional[dict] = None

    for word in spoken:
        speaker = word.speaker_id or DEFAULT_SPEAKER
        if current is None or current["speaker"] != speaker:
            if current is not None:
                segments.append(_close_segment(current, len(segments)))
            current = {"speaker": speaker, "words": [word.text], "start": word.start, "end": word.end}
        else:
            current["words"].append(word.text)
            current["end"] = word.end

    if current is not None:
        segments.append(_close_segment(current, len(segments)))

    return Transcript(
        text=response.text,
        segments=segments,
        words=[TranscriptWord(word=w.text, start=w.start, end=w.end) for w in spoken],
        duration=max((w.end for w in spoken), default=0.0),
        language=response.language_code,
        model=options.model,
        file_name=file_name,
        speaker_colors=speaker_colors_for(segments),
    )


def _close_segment(current: dict, index: int) -> TranscriptSegment:
    # Spacing tokens are filtered out upstream, so words are re-joined with a space.
    return TranscriptSegment(
        id=segment_id(index),
        speaker=current["speaker"],
        text=" ".join(w.strip() for w in current["words"]).strip(),
        start=current["start"],
        end=current["end"],
    )


def transcript_to_response(transcript: Transcript, include_statistics: bool = False) -> TranscriptResponse:
    statistics = None
    if include_statistics:
        raw_stats = compute_speaker_statistics(transcript.segments)
        if raw_stats:
            statistics = Statistics(
                speakers={k: SpeakerStatistics(**v) for k, v in raw_stats["speakers"].items()},
                total_speakers=raw_stats["total_speakers"],
            )

    return TranscriptResponse(
        id=transcript.id,
        text=transcript.text,
        segments=[
            SegmentDTO(id=s.id, speaker=s.speaker, text=s.text, start=s.start, end=s.end)
            for s in transcript.segments
        ],
        words=[WordDTO(word=w.word, start=w.start, end=w.end) for w in transcript.words]
        if transcript.words is not None else None,
        duration=transcript.duration,
        language=transcript.language,
        model=transcript.model,
        createdAt=transcript.created_at.isoformat(),
        fileName=transcript.file_name,
        speakerColors=dict(transcript.speaker_colors),
        speakerNames=dict(transcript.speaker_names),
        statistics=statistics,
    )
