"""End-to-end routing of the file pipeline with fake providers."""

import base64

import pytest

from meeting_scribe.adapters.http.split_client import RemoteSplitChunker
from meeting_scribe.adapters.soundfile import InProcessChunker, SoundFileDecoder
from meeting_scribe.config import PipelineConfig
from meeting_scribe.domain.models import AudioSource, TranscriptionOptions
from meeting_scribe.errors import ChunkingError, DecodeError, ErrorCode, TranscriptionError
from meeting_scribe.use_cases.dual_model import DualModelTranscribeUseCase
from meeting_scribe.use_cases.probe import DurationProber
from meeting_scribe.use_cases.transcribe import (
    MonotonicProgress,
    TranscribeAudioUseCase,
    TranscribeRequest,
    chunk_extension,
)

from conftest import (
    FakeChunker,
    FakeDecoder,
    FakeResponse,
    FakeSession,
    FakeTranscriber,
    RecordingProgress,
    make_transcript,
    make_wav,
)

CONFIG = PipelineConfig()


def _use_case(openai=None, elevenlabs=None, decoder=None, chunker=None, fallback=None, dual=False):
    openai = openai or FakeTranscriber("openai")
    decoder = decoder or SoundFileDecoder()
    return TranscribeAudioUseCase(
        transcribers={"openai": openai, "elevenlabs": elevenlabs or FakeTranscriber("elevenlabs")},
        prober=DurationProber(decoder, CONFIG),
        chunker=chunker or InProcessChunker(decoder),
        fallback_chunker=fallback,
        config=CONFIG,
        dual_model=DualModelTranscribeUseCase(openai, CONFIG) if dual else None,
    )


def _long_chunk(source, options, n):
    return make_transcript([("A", f"part {n}", 0.0, 300.0), ("B", "reply", 300.0, 590.0)], model=options.model)


def test_short_file_goes_direct(progress):
    # 10 minutes of 16 kHz mono
    source = AudioSource(data=make_wav(600.0, sample_rate=16000), mime_type="audio/wav", file_name="standup.wav")
    transcriber = FakeTranscriber(respond=lambda s, o, n: make_transcript([("A", "hello", 0.0, 598.0)]))

    result = _use_case(openai=transcriber).execute(TranscribeRequest(source, "sk-key"), progress)

    assert len(transcriber.calls) == 1
    assert transcriber.calls[0][0] is source
    assert 1 <= len(result.segments)
    assert sum(s.end - s.start for s in result.segments) <= 600.0
    assert "chunking" not in progress.phases
    assert progress.phases[-1] == "complete"


def test_long_file_is_chunked_transcribed_and_merged(progress):
    # 45 minutes at a low sample rate keeps the fixture small
    source = AudioSource(data=make_wav(2700.0, sample_rate=1000, freq=100.0), mime_type="audio/wav", file_name="allhands.wav")
    transcriber = FakeTranscriber(respond=_long_chunk)

    result = _use_case(openai=transcriber).execute(TranscribeRequest(source, "sk-key"), progress)

    assert len(transcriber.calls) == 5
    assert [c[0].file_name for c in transcriber.calls] == [f"chunk_{i}.wav" for i in range(5)]
    assert 2700.0 <= result.segments[-1].end <= 3300.0
    assert [s.id for s in result.segments] == [f"seg-{i}" for i in range(10)]
    assert result.file_name == "allhands.wav"

    assert progress.values == sorted(progress.values)
    assert progress.phases[:2] == ["analyzing", "chunking"]
    assert "merging" in progress.phases
    assert progress.events[-1][:2] == ("complete", 100)
    chunk_events = [e for e in progress.events if e[0] == "transcribing"]
    assert {e[3] for e in chunk_events} == {1, 2, 3, 4, 5}
    assert {e[4] for e in chunk_events} == {5}


def test_unconfident_large_file_is_chunked(progress):
    source = AudioSource(data=b"\0" * (6 * 1024 * 1024), mime_type="audio/webm", file_name="rec.webm")
    transcriber = FakeTranscriber(respond=_long_chunk)
    use_case = _use_case(
        openai=transcriber,
        decoder=FakeDecoder(error=DecodeError("webm")),
        chunker=FakeChunker(count=4),
    )

    result = use_case.execute(TranscribeRequest(source, "sk-key"), progress)
    assert len(transcriber.calls) == 4
    assert len(result.segments) == 8


def test_fallback_chunker_used_when_in_process_fails(progress):
    source = AudioSource(data=b"\0" * (6 * 1024 * 1024), mime_type="audio/mp4", file_name="call.m4a")
    transcriber = FakeTranscriber(respond=_long_chunk)
    primary = FakeChunker(error=DecodeError("no m4a support"), label="in-process")
    fallback = FakeChunker(count=3, label="server-side ffmpeg", mime_type="audio/mp3")

    _use_case(
        openai=transcriber, decoder=FakeDecoder(error=DecodeError("m4a")), chunker=primary, fallback=fallback,
    ).execute(TranscribeRequest(source, "sk-key"), progress)

    assert (primary.calls, fallback.calls) == (1, 1)
    assert [c[0].file_name for c in transcriber.calls] == ["chunk_0.mp3", "chunk_1.mp3", "chunk_2.mp3"]
    assert transcriber.calls[0][0].mime_type == "audio/mp3"


def test_both_chunkers_failing_is_chunking_failed(progress):
    source = AudioSource(data=b"\0" * (6 * 1024 * 1024), mime_type="audio/mp4", file_name="call.m4a")
    use_case = _use_case(
        decoder=FakeDecoder(error=DecodeError("m4a")),
        chunker=FakeChunker(error=DecodeError("no m4a support"), label="in-process"),
        fallback=FakeChunker(error=ChunkingError("FFmpeg not found"), label="server-side ffmpeg"),
    )

    with pytest.raises(TranscriptionError) as exc_info:
        use_case.execute(TranscribeRequest(source, "sk-key"), progress)

    err = exc_info.value
    assert err.code == ErrorCode.CHUNKING_FAILED
    assert "no m4a support" in err.message
    assert "FFmpeg not found" in err.message
    assert "Make sure ffmpeg is installed on the server." in err.message
    assert progress.phases[-1] == "error"


def test_chunk_failure_aborts_remaining_chunks(progress):
    def respond(source, options, n):
        if n == 1:
            return TranscriptionError(ErrorCode.RATE_LIMITED, "Rate limited.")
        return _long_chunk(source, options, n)

    transcriber = FakeTranscriber(respond=respond)
    source = AudioSource(data=b"\0" * 100, mime_type="audio/wav", file_name="a.wav")
    use_case = _use_case(openai=transcriber, decoder=FakeDecoder(duration=3000.0), chunker=FakeChunker(count=5))

    with pytest.raises(TranscriptionError) as exc_info:
        use_case.execute(TranscribeRequest(source, "sk-key"), progress)

    assert exc_info.value.code == ErrorCode.RATE_LIMITED
    assert len(transcriber.calls) == 2


def test_elevenlabs_skips_probing_and_chunking(progress):
    openai = FakeTranscriber("openai")
    elevenlabs = FakeTranscriber("elevenlabs")
    source = AudioSource(data=b"\0" * (50 * 1024 * 1024), mime_type="audio/mpeg", file_name="long.mp3")
    use_case = _use_case(openai=openai, elevenlabs=elevenlabs, chunker=FakeChunker(error=DecodeError("unused")))

    use_case.execute(
        TranscribeRequest(source, "xi-key-000000000000000", TranscriptionOptions(model="elevenlabs-scribe-v1")),
        progress,
    )

    assert len(elevenlabs.calls) == 1
    assert openai.calls == []
    assert "analyzing" not in progress.phases


def test_dual_model_mode_routes_to_dual_use_case(progress):
    def respond(source, options, n):
        if options.model == "gpt-4o-transcribe":
            return make_transcript([("speaker_0", "hello there friend", 0.0, 0.0)], model=options.model)
        return make_transcript([("A", "hello there", 0.0, 1.0), ("B", "friend", 1.0, 2.0)], model=options.model)

    transcriber = FakeTranscriber(respond=respond)
    source = AudioSource(data=b"\0" * 100, mime_type="audio/wav", file_name="a.wav")
    options = TranscriptionOptions(dual_model_mode=True)

    result = _use_case(openai=transcriber, dual=True).execute(TranscribeRequest(source, "sk-key", options), progress)

    assert [c[1].model for c in transcriber.calls] == ["gpt-4o-transcribe", "gpt-4o-transcribe-diarize"]
    assert result.text == "hello there friend"
    assert "analyzing" not in progress.phases


def test_missing_api_key(progress):
    source = AudioSource(data=b"\0" * 100, mime_type="audio/wav", file_name="a.wav")
    with pytest.raises(TranscriptionError) as exc_info:
        _use_case().execute(TranscribeRequest(source, ""), progress)
    assert exc_info.value.code == ErrorCode.MISSING_API_KEY
    assert "openai" in exc_info.value.message


def test_unexpected_exception_becomes_unknown_error(progress):
    transcriber = FakeTranscriber(respond=lambda s, o, n: RuntimeError("kaboom"))
    source = AudioSource(data=b"\0" * 100, mime_type="audio/wav", file_name="a.wav")
    use_case = _use_case(openai=transcriber, decoder=FakeDecoder(duration=60.0))

    with pytest.raises(TranscriptionError) as exc_info:
        use_case.execute(TranscribeRequest(source, "sk-key"), progress)

    assert exc_info.value.code == ErrorCode.UNKNOWN_ERROR
    assert "kaboom" in exc_info.value.message
    assert "RuntimeError" in exc_info.value.details


def test_monotonic_progress_never_goes_backwards():
    sink = RecordingProgress()
    tracker = MonotonicProgress(sink)
    tracker.report("transcribing", 40, "a")
    tracker.report("transcribing", 30, "b")
    tracker.report("complete", 150, "c")
    tracker.report("error", 0, "d")
    assert sink.values == [40, 40, 100, 0]


def test_single_unsplit_chunk_from_split_endpoint_keeps_source_name(progress):
    source = AudioSource(data=b"\0" * (6 * 1024 * 1024), mime_type="audio/webm", file_name="rec.webm")
    session = FakeSession(FakeResponse(200, {
        "needsChunking": False,
        "duration": 900.0,
        "chunks": [{"index": 0, "data": base64.b64encode(b"webm-bytes").decode(), "mimeType": "audio/webm"}],
    }))
    transcriber = FakeTranscriber()
    use_case = _use_case(
        openai=transcriber,
        decoder=FakeDecoder(error=DecodeError("webm")),
        chunker=FakeChunker(error=DecodeError("no webm support"), label="in-process"),
        fallback=RemoteSplitChunker("http://split/api/split-audio", session=session),
    )

    result = use_case.execute(TranscribeRequest(source, "sk-key"), progress)

    sent = transcriber.calls[0][0]
    assert len(transcriber.calls) == 1
    assert (sent.file_name, sent.mime_type, sent.data) == ("rec.webm", "audio/webm", b"webm-bytes")
    assert result.file_name == "rec.webm"


def test_chunk_extension_falls_back_to_source_extension():
    assert chunk_extension("audio/webm", "rec.bin") == ".webm"
    assert chunk_extension("audio/mpeg", "rec.webm") == ".mp3"
    assert chunk_extension("application/x-not-a-real-type", "call.m4a") == ".m4a"
    assert chunk_extension("", "noext") == ".bin"


def test_dual_model_mode_without_dual_use_case_is_bad_request(progress):
    transcriber = FakeTranscriber()
    source = AudioSource(data=b"\0" * 100, mime_type="audio/wav", file_name="a.wav")
    options = TranscriptionOptions(dual_model_mode=True)

    with pytest.raises(TranscriptionError) as exc_info:
        _use_case(openai=transcriber).execute(TranscribeRequest(source, "sk-key", options), progress)

    assert exc_info.value.code == ErrorCode.BAD_REQUEST
    assert transcriber.calls == []


def test_oversized_upload_is_rejected_before_work(progress, monkeypatch):
    monkeypatch.setattr("meeting_scribe.use_cases.transcribe.MAX_UPLOADABLE_SIZE", 1024)
    transcriber = FakeTranscriber()
    chunker = FakeChunker(count=2)
    source = AudioSource(data=b"\0" * 2048, mime_type="audio/wav", file_name="a.wav")

    with pytest.raises(TranscriptionError) as exc_info:
        _use_case(openai=transcriber, chunker=chunker).execute(TranscribeRequest(source, "sk-key"), progress)

    assert exc_info.value.code == ErrorCode.FILE_TOO_LARGE
    assert (transcriber.calls, chunker.calls) == ([], 0)
    assert progress.phases == ["error"]
