"""
Tests for audio_redactor/editing/renderer.py

Tests mixing of open and muted clips, tone synthesis, placement offsets,
bounds handling and the export state machine.
"""

import numpy as np
import pytest

from audio_redactor.audio.wav import HEADER_SIZE, read_wav_header
from audio_redactor.editing.clips import ClipPartition, RedactionMode
from audio_redactor.editing.intervals import TimeRange
from audio_redactor.editing.renderer import (
    RenderEngine,
    RenderPlacement,
    RenderSettings,
    RenderState,
    build_placements,
    frames_for_duration,
    synthesize_tone,
)
from audio_redactor.editing.timeline import MediaFile, TimelineItem
from audio_redactor.error_handler import (
    EncodingOverflow,
    SampleRateMismatch,
    SourceSampleOutOfRange,
)


SR = 1000


def constant_source(duration, value=0.5, sample_rate=SR):
    return np.full((2, int(duration * sample_rate)), value, dtype=np.float32)


def placement(partition, samples, offset=0.0, sample_rate=SR):
    return RenderPlacement(
        offset=offset,
        duration=partition.duration,
        clips=partition.clips,
        samples=samples,
        sample_rate=sample_rate,
        label="test",
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    def test_frames_for_duration(self):
        assert frames_for_duration(10.0, 48000) == 480000
        assert frames_for_duration(3.3, 44100) == 145530
        assert frames_for_duration(0.00001, 1000) == 1

    def test_tone_starts_at_zero_phase(self):
        tone = synthesize_tone(4, 8, frequency=2, amplitude=1.0)
        np.testing.assert_allclose(tone, [0.0, 1.0, 0.0, -1.0], atol=1e-12)

    def test_tone_window_matches_full_burst(self):
        full = synthesize_tone(100, SR, frequency=7)
        np.testing.assert_allclose(synthesize_tone(100, SR, frequency=7, first=40), full[40:])


# ---------------------------------------------------------------------------
# Mixing
# ---------------------------------------------------------------------------

class TestMix:
    def test_unmuted_copies_source(self):
        partition = ClipPartition(2.0)
        engine = RenderEngine(RenderSettings(sample_rate=SR))
        out = engine.mix([placement(partition, constant_source(2.0))])
        assert out.shape == (2, 2000)
        assert np.all(out == 0.5)

    def test_silence_redaction_is_exact_zero(self):
        partition = ClipPartition(10.0)
        partition.apply_redaction(TimeRange(2, 4), mode=RedactionMode.SILENCE)

        engine = RenderEngine(RenderSettings(sample_rate=SR))
        out = engine.mix([placement(partition, constant_source(10.0))])

        assert np.all(out[:, 2000:4000] == 0.0)
        assert np.all(out[:, :2000] == 0.5)
        assert np.all(out[:, 4000:] == 0.5)

    def test_tone_redaction_at_48k(self):
        partition = ClipPartition(10.0)
        partition.apply_redaction(TimeRange(2, 4), mode=RedactionMode.TONE)
        sr = 48000

        engine = RenderEngine(RenderSettings(sample_rate=sr))
        out = engine.mix([placement(partition, np.zeros((2, 10 * sr)), sample_rate=sr)])

        i = np.arange(2 * sr)
        expected = 0.3 * np.sin(2 * np.pi * 1000 * i / sr)
        np.testing.assert_allclose(out[0, 96000:192000], expected, atol=1e-9)
        np.testing.assert_allclose(out[1, 96000:192000], expected, atol=1e-9)
        assert np.all(out[:, :96000] == 0.0)
        assert np.all(out[:, 192000:] == 0.0)

    def test_tone_replaces_source_audio(self):
        partition = ClipPartition(2.0)
        partition.apply_redaction(TimeRange(0, 1), mode=RedactionMode.TONE)
        engine = RenderEngine(RenderSettings(sample_rate=SR, tone_frequency_hz=5))
        out = engine.mix([placement(partition, constant_source(2.0))])
        np.testing.assert_allclose(out[0, :1000], synthesize_tone(1000, SR, frequency=5), atol=1e-12)

    def test_tone_phase_restarts_per_clip(self):
        partition = ClipPartition(3.0)
        partition.apply_redaction(TimeRange(1, 1.25), mode=RedactionMode.TONE)
        partition.apply_redaction(TimeRange(1.25, 3), mode=RedactionMode.TONE)
        assert len(partition) == 3

        engine = RenderEngine(RenderSettings(sample_rate=SR, tone_frequency_hz=3))
        out = engine.mix([placement(partition, np.zeros((2, 3000)))])

        # A continuous tone would be at -0.3 here
        assert out[0, 1250] == pytest.approx(0.0, abs=1e-12)
        assert out[0, 1251] == pytest.approx(0.3 * np.sin(2 * np.pi * 3 / SR))

    def test_default_mode_applies_to_clips_without_mode(self):
        partition = ClipPartition(2.0)
        partition.apply_redaction(TimeRange(0, 1), mode=None)
        source = constant_source(2.0)

        silent = RenderEngine(RenderSettings(sample_rate=SR)).mix([placement(partition, source)])
        assert np.all(silent[:, :1000] == 0.0)

        settings = RenderSettings(sample_rate=SR, tone_frequency_hz=5, default_mode=RedactionMode.TONE)
        toned = RenderEngine(settings).mix([placement(partition, source)])
        assert np.max(np.abs(toned[:, :1000])) == pytest.approx(0.3, abs=1e-3)

    def test_clip_mode_overrides_default(self):
        partition = ClipPartition(2.0)
        partition.apply_redaction(TimeRange(0, 1), mode=RedactionMode.SILENCE)
        engine = RenderEngine(RenderSettings(sample_rate=SR, default_mode=RedactionMode.TONE))
        out = engine.mix([placement(partition, constant_source(2.0))])
        assert np.all(out[:, :1000] == 0.0)

    def test_overlapping_items_are_summed(self):
        partition = ClipPartition(2.0)
        source = constant_source(2.0, value=0.8)
        engine = RenderEngine(RenderSettings(sample_rate=SR))

        single = engine.mix([placement(partition, source)])
        double = engine.mix([placement(partition, source), placement(partition, source)])

        np.testing.assert_allclose(double, 2 * single)
        # No clipping in the float buffer
        assert double.max() == pytest.approx(1.6)

    def test_offset_places_item_on_timeline(self):
        partition = ClipPartition(1.0)
        engine = RenderEngine(RenderSettings(sample_rate=SR))
        out = engine.mix([placement(partition, constant_source(1.0), offset=1.5)])

        assert out.shape == (2, 2500)
        assert np.all(out[:, :1500] == 0.0)
        assert np.all(out[:, 1500:] == 0.5)

    def test_explicit_duration(self):
        partition = ClipPartition(1.0)
        engine = RenderEngine(RenderSettings(sample_rate=SR))
        out = engine.mix([placement(partition, constant_source(1.0))], duration=3.0)
        assert out.shape == (2, 3000)
        assert np.all(out[:, 1000:] == 0.0)

    def test_empty_timeline(self):
        out = RenderEngine(RenderSettings(sample_rate=SR)).mix([])
        assert out.shape == (2, 0)

    def test_mono_source_feeds_both_channels(self):
        partition = ClipPartition(1.0)
        mono = np.linspace(0, 1, 1000)
        out = RenderEngine(RenderSettings(sample_rate=SR)).mix([placement(partition, mono)])
        np.testing.assert_array_equal(out[0], mono)
        np.testing.assert_array_equal(out[1], mono)

    def test_channels_stay_separate(self):
        partition = ClipPartition(1.0)
        source = np.vstack([np.full(1000, 0.25), np.full(1000, -0.25)])
        out = RenderEngine(RenderSettings(sample_rate=SR)).mix([placement(partition, source)])
        assert np.all(out[0] == 0.25)
        assert np.all(out[1] == -0.25)


# ---------------------------------------------------------------------------
# Bounds
# ---------------------------------------------------------------------------

class TestBounds:
    def test_short_source_is_clamped(self, caplog):
        partition = ClipPartition(2.0)
        engine = RenderEngine(RenderSettings(sample_rate=SR))

        out = engine.mix([placement(partition, constant_source(1.5))])

        assert np.all(out[:, :1500] == 0.5)
        assert np.all(out[:, 1500:] == 0.0)
        assert "skipping missing samples" in caplog.text

    def test_short_source_strict(self):
        partition = ClipPartition(2.0)
        engine = RenderEngine(RenderSettings(sample_rate=SR, strict_bounds=True))
        with pytest.raises(SourceSampleOutOfRange):
            engine.mix([placement(partition, constant_source(1.5))])

    def test_negative_offset_is_clipped_to_output(self):
        partition = ClipPartition(2.0)
        engine = RenderEngine(RenderSettings(sample_rate=SR))
        out = engine.mix([placement(partition, constant_source(2.0), offset=-1.0)], duration=2.0)
        assert np.all(out[:, :1000] == 0.5)
        assert np.all(out[:, 1000:] == 0.0)

    def test_sample_rate_mismatch(self):
        partition = ClipPartition(1.0)
        engine = RenderEngine(RenderSettings(sample_rate=48000))
        with pytest.raises(SampleRateMismatch):
            engine.mix([placement(partition, constant_source(1.0, sample_rate=44100), sample_rate=44100)])


# ---------------------------------------------------------------------------
# Placements
# ---------------------------------------------------------------------------

class TestPlacements:
    def _item(self, start_time=0.0):
        media = MediaFile(name="a.wav", path="a.wav", duration=2.0)
        return TimelineItem.for_media(media, start_time=start_time)

    def test_from_item(self):
        item = self._item(start_time=3.0)
        p = RenderPlacement.from_item(item, constant_source(2.0), SR)
        assert p.offset == 3.0
        assert p.end == 5.0
        assert p.label == item.id

    def test_snapshot_ignores_later_edits(self):
        item = self._item()
        p = RenderPlacement.from_item(item, constant_source(2.0), SR)

        item.partition.apply_redaction(TimeRange(0, 1))

        assert len(p.clips) == 1
        out = RenderEngine(RenderSettings(sample_rate=SR)).mix([p])
        assert np.all(out == 0.5)

    def test_build_placements_missing_samples(self):
        item = self._item()
        with pytest.raises(KeyError):
            build_placements([item], {}, SR)

    def test_build_placements(self):
        item = self._item()
        placements = build_placements([item], {item.media_id: constant_source(2.0)}, SR)
        assert len(placements) == 1


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

class TestExport:
    def test_export_writes_wav(self, tmp_path):
        partition = ClipPartition(1.0)
        engine = RenderEngine(RenderSettings(sample_rate=SR))
        assert engine.state == RenderState.IDLE

        path = engine.export([placement(partition, constant_source(1.0))], tmp_path / "out.wav")

        assert engine.state == RenderState.DONE
        data = path.read_bytes()
        header = read_wav_header(data)
        assert header.sample_rate == SR
        assert header.channels == 2
        assert header.frame_count == 1000
        assert len(data) == HEADER_SIZE + 1000 * 4

    def test_export_is_deterministic(self, tmp_path):
        partition = ClipPartition(1.0)
        partition.apply_redaction(TimeRange(0.2, 0.4), mode=RedactionMode.TONE)
        placements = [placement(partition, constant_source(1.0))]

        a = RenderEngine(RenderSettings(sample_rate=SR)).export(placements, tmp_path / "a.wav")
        b = RenderEngine(RenderSettings(sample_rate=SR)).export(placements, tmp_path / "b.wav")
        assert a.read_bytes() == b.read_bytes()

    def test_failed_export_leaves_no_file(self, tmp_path):
        partition = ClipPartition(1.0)
        engine = RenderEngine(RenderSettings(sample_rate=48000))
        target = tmp_path / "out.wav"

        with pytest.raises(SampleRateMismatch):
            engine.export([placement(partition, constant_source(1.0), sample_rate=SR)], target)

        assert engine.state == RenderState.FAILED
        assert not target.exists()
        assert list(tmp_path.iterdir()) == []

    def test_oversized_timeline_rejected_before_mixing(self, tmp_path):
        engine = RenderEngine(RenderSettings(sample_rate=48000))
        target = tmp_path / "long.wav"

        with pytest.raises(EncodingOverflow):
            engine.export([], target, duration=1_000_000.0)

        assert engine.state == RenderState.FAILED
        assert not target.exists()

    def test_mix_rejects_oversized_duration(self):
        engine = RenderEngine(RenderSettings(sample_rate=48000))
        with pytest.raises(EncodingOverflow):
            engine.mix([], duration=1_000_000.0)
