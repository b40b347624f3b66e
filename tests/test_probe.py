import pytest

from meeting_scribe.adapters.soundfile import SoundFileDecoder
from meeting_scribe.config import PipelineConfig
from meeting_scribe.domain.models import AudioSource, DurationProbe
from meeting_scribe.errors import DecodeError
from meeting_scribe.use_cases.probe import DurationProber, plan_chunking

from conftest import FakeDecoder

MB = 1024 * 1024


def _source(size: int) -> AudioSource:
    return AudioSource(data=b"\0" * size, mime_type="audio/mpeg", file_name="a.mp3")


def test_probe_reads_real_wav_duration(wav_source):
    probe = DurationProber(SoundFileDecoder(), PipelineConfig()).probe(wav_source(2.5))
    assert probe.confident
    assert probe.duration_seconds == pytest.approx(2.5, abs=0.01)


def test_probe_falls_back_to_size_estimate_on_decode_error():
    prober = DurationProber(FakeDecoder(error=DecodeError("bad")), PipelineConfig())
    probe = prober.probe(_source(30000))
    assert probe == DurationProbe(duration_seconds=10.0, confident=False)


def test_probe_falls_back_on_timeout():
    prober = DurationProber(FakeDecoder(duration=60.0, delay=0.5), PipelineConfig(probe_timeout=0.05))
    probe = prober.probe(_source(3000))
    assert not probe.confident
    assert probe.duration_seconds == 1.0


@pytest.mark.parametrize("bad", [0.0, float("nan"), float("inf")])
def test_probe_rejects_unusable_durations(bad):
    probe = DurationProber(FakeDecoder(duration=bad), PipelineConfig()).probe(_source(6000))
    assert probe == DurationProbe(duration_seconds=2.0, confident=False)


def test_plan_confident_short_audio_goes_direct():
    plan = plan_chunking(DurationProbe(600.0, True), 40 * MB, PipelineConfig())
    assert not plan.needs_chunking
    assert plan.estimated_chunks == 1


def test_plan_confident_boundary_is_inclusive():
    assert not plan_chunking(DurationProbe(1200.0, True), MB, PipelineConfig()).needs_chunking
    assert plan_chunking(DurationProbe(1200.5, True), MB, PipelineConfig()).needs_chunking


def test_plan_confident_long_audio_estimates_chunks():
    plan = plan_chunking(DurationProbe(2700.0, True), MB, PipelineConfig())
    assert plan.needs_chunking
    assert plan.estimated_chunks == 5


def test_plan_unconfident_uses_size_threshold():
    small = plan_chunking(DurationProbe(1500.0, False), 4 * MB, PipelineConfig())
    assert not small.needs_chunking

    large = plan_chunking(DurationProbe(6 * MB / 3000, False), 6 * MB, PipelineConfig())
    assert large.needs_chunking
    assert large.estimated_chunks == 4
