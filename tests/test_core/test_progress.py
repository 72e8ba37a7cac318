"""Tests for the export progress model."""

import pytest
from pydantic import ValidationError

from chunkex.core.contracts import ExportPhase
from chunkex.core.progress import ProgressModel, ProgressWeights, eta_ms, phase_percent


class TestWeights:
    def test_default_split(self):
        w = ProgressWeights()
        assert (w.render, w.encode, w.merge) == (60.0, 35.0, 5.0)

    def test_must_sum_to_hundred(self):
        with pytest.raises(ValidationError):
            ProgressWeights(render=50, encode=35, merge=5)


class TestPhasePercent:
    def test_rendering_band(self):
        assert phase_percent(ExportPhase.RENDERING, 0, 60) == 0.0
        assert phase_percent(ExportPhase.RENDERING, 30, 60) == pytest.approx(30.0)
        assert phase_percent(ExportPhase.RENDERING, 60, 60) == pytest.approx(60.0)

    def test_encoding_band(self):
        assert phase_percent(ExportPhase.ENCODING, 30, 60) == pytest.approx(77.5)
        assert phase_percent(ExportPhase.ENCODING, 60, 60) == pytest.approx(95.0)

    def test_merging_and_done(self):
        assert phase_percent(ExportPhase.MERGING, 60, 60) == pytest.approx(95.0)
        assert phase_percent(ExportPhase.DONE, 60, 60) == 100.0

    def test_no_frames(self):
        assert phase_percent(ExportPhase.RENDERING, 0, 0) == 0.0


class TestEta:
    def test_linear_extrapolation(self):
        assert eta_ms(10.0, 0.5) == 10000
        assert eta_ms(3.0, 0.75) == 1000

    def test_unknown_before_progress(self):
        assert eta_ms(1.0, 0.0) is None


class TestProgressModel:
    def test_two_chunk_scenario(self):
        """60 frames at 30 fps in chunks of 30; chunk 0 encoded lands in [60, 78]."""
        model = ProgressModel(total_frames=60, total_chunks=2)
        model.snapshot(ExportPhase.RENDERING, 30, 0, elapsed_seconds=1.0)
        after_encode = model.snapshot(ExportPhase.ENCODING, 30, 0, elapsed_seconds=1.5)
        assert 60.0 <= after_encode.percent <= 78.0
        assert after_encode.current_chunk == 0
        assert after_encode.total_chunks == 2

    def test_monotonic_across_chunks(self):
        model = ProgressModel(total_frames=60, total_chunks=2)
        updates = [
            (ExportPhase.RENDERING, 15),
            (ExportPhase.RENDERING, 30),
            (ExportPhase.ENCODING, 30),
            (ExportPhase.RENDERING, 31),
            (ExportPhase.RENDERING, 60),
            (ExportPhase.ENCODING, 60),
            (ExportPhase.MERGING, 60),
            (ExportPhase.DONE, 60),
        ]
        percents = [model.snapshot(phase, frame, 0).percent for phase, frame in updates]
        assert percents == sorted(percents)
        assert percents[-1] == 100.0

    def test_eta_absent_until_first_frame(self):
        model = ProgressModel(total_frames=60, total_chunks=2)
        first = model.snapshot(ExportPhase.INITIALIZING, 0, 0, elapsed_seconds=0.2)
        assert first.estimated_time_remaining_ms is None
        later = model.snapshot(ExportPhase.RENDERING, 6, 0, elapsed_seconds=1.2)
        assert later.estimated_time_remaining_ms is not None
        assert later.estimated_time_remaining_ms > 0

    def test_eta_follows_frames_across_chunks(self):
        model = ProgressModel(total_frames=300, total_chunks=10)
        model.snapshot(ExportPhase.RENDERING, 30, 0, elapsed_seconds=0.9)
        model.snapshot(ExportPhase.ENCODING, 30, 0, elapsed_seconds=0.95)
        after_first_chunk = model.snapshot(ExportPhase.RENDERING, 31, 1, elapsed_seconds=1.0)

        assert after_first_chunk.percent > 60.0
        assert after_first_chunk.estimated_time_remaining_ms == eta_ms(1.0, 31 / 300)
        assert after_first_chunk.estimated_time_remaining_ms > 8000

        halfway = model.snapshot(ExportPhase.RENDERING, 150, 4, elapsed_seconds=5.0)
        assert halfway.estimated_time_remaining_ms == 5000

    def test_no_eta_when_done(self):
        model = ProgressModel(total_frames=60, total_chunks=2)
        done = model.snapshot(ExportPhase.DONE, 60, 2, elapsed_seconds=4.0)
        assert done.estimated_time_remaining_ms is None

    def test_terminal_keeps_percent(self):
        model = ProgressModel(total_frames=60, total_chunks=2)
        model.snapshot(ExportPhase.RENDERING, 12, 0)
        stopped = model.terminal(ExportPhase.CANCELLED, 12, 0, error="export cancelled")
        assert stopped.percent == pytest.approx(12.0)
        assert stopped.error == "export cancelled"

    def test_reset(self):
        model = ProgressModel(total_frames=60, total_chunks=2)
        model.snapshot(ExportPhase.DONE, 60, 2)
        model.reset(30, 1)
        assert model.percent == 0.0
        assert model.snapshot(ExportPhase.RENDERING, 3, 0).total_frames == 30
