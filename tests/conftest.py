"""Shared fakes for pipeline tests."""

import io
import json
import time
from typing import Callable, Optional

import numpy as np
import pytest
import soundfile

from meeting_scribe.domain.models import (
    AudioSource,
    ChunkDescriptor,
    DecodedAudio,
    Transcript,
    TranscriptionOptions,
    TranscriptSegment,
)
from meeting_scribe.ports.audio import AudioDecoderPort, ChunkerPort
from meeting_scribe.ports.progress import ProgressPort
from meeting_scribe.ports.transcription import TranscriptionPort
from meeting_scribe.post_processing import segment_id, speaker_colors_for


def make_wav(duration: float, sample_rate: int = 8000, channels: int = 1, freq: float = 440.0) -> bytes:
    t = np.arange(int(duration * sample_rate)) / sample_rate
    tone = (0.3 * np.sin(2 * np.pi * freq * t)).astype(np.float32)
    samples = np.tile(tone[:, None], (1, channels))
    buffer = io.BytesIO()
    soundfile.write(buffer, samples, sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


def make_transcript(
    segments: list[tuple[str, str, float, float]],
    text: Optional[str] = None,
    model: str = "gpt-4o-transcribe-diarize",
    file_name: str = "audio.wav",
) -> Transcript:
    segs = [
        TranscriptSegment(id=segment_id(i), speaker=spk, text=txt, start=start, end=end)
        for i, (spk, txt, start, end) in enumerate(segments)
    ]
    return Transcript(
        text=text if text is not None else " ".join(s.text for s in segs),
        segments=segs,
        duration=max((s.end for s in segs), default=0.0),
        model=model,
        file_name=file_name,
        speaker_colors=speaker_colors_for(segs),
    )


class RecordingProgress(ProgressPort):
    def __init__(self):
        self.events: list[tuple] = []

    def report(self, phase, progress, message, current_chunk=None, total_chunks=None):
        self.events.append((phase, progress, message, current_chunk, total_chunks))

    @property
    def phases(self) -> list[str]:
        return [e[0] for e in self.events]

    @property
    def values(self) -> list[float]:
        return [e[1] for e in self.events]


class FakeTranscriber(TranscriptionPort):
    """Returns a canned transcript per call, or raises a queued error."""

    def __init__(self, provider: str = "openai", respond: Optional[Callable] = None):
        self._provider = provider
        self._respond = respond or (lambda source, options, n: make_transcript(
            [("speaker_0", f"chunk {n}", 0.0, 5.0)], model=options.model, file_name=source.file_name
        ))
        self.calls: list[tuple[AudioSource, TranscriptionOptions]] = []

    def provider(self) -> str:
        return self._provider

    def transcribe(self, source, api_key, options, on_progress=None):
        self.calls.append((source, options))
        if on_progress:
            on_progress(50)
            on_progress(100)
        result = self._respond(source, options, len(self.calls) - 1)
        if isinstance(result, Exception):
            raise result
        return result


class FakeDecoder(AudioDecoderPort):
    def __init__(self, duration: Optional[float] = None, error: Optional[Exception] = None, delay: float = 0.0):
        self._duration = duration
        self._error = error
        self._delay = delay

    def decode(self, source):
        if self._error:
            raise self._error
        return DecodedAudio(samples=np.zeros((int(self._duration * 10), 1), dtype=np.float32), sample_rate=10)

    def probe_duration(self, source):
        if self._delay:
            time.sleep(self._delay)
        if self._error:
            raise self._error
        return self._duration


class FakeChunker(ChunkerPort):
    def __init__(self, count: int = 0, error: Optional[Exception] = None, label: str = "fake", mime_type: str = "audio/wav"):
        self._count = count
        self._error = error
        self._label = label
        self._mime_type = mime_type
        self.calls = 0

    def name(self) -> str:
        return self._label

    def split(self, source, chunk_duration, on_progress=None):
        self.calls += 1
        if on_progress:
            on_progress(0, "start")
        if self._error:
            raise self._error
        if on_progress:
            on_progress(95, "done")
        return [ChunkDescriptor(index=i, blob=b"chunk%d" % i, mime_type=self._mime_type) for i in range(self._count)]


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: Optional[str] = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON")
        return self._payload


class FakeSession:
    """Stands in for requests.Session; replies with queued responses."""

    def __init__(self, *responses):
        self._responses = list(responses)
        self.requests: list[dict] = []

    def post(self, url, **kwargs):
        self.requests.append({"url": url, **kwargs})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def progress() -> RecordingProgress:
    return RecordingProgress()


@pytest.fixture
def wav_source():
    def _make(duration: float, **kwargs) -> AudioSource:
        return AudioSource(data=make_wav(duration, **kwargs), mime_type="audio/wav", file_name="meeting.wav")
    return _make
