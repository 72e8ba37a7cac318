"""Tests for shared export contracts."""

import pytest
from pydantic import ValidationError

from chunkex.core.contracts import (
    RESOLUTION_PRESETS,
    Chunk,
    Codec,
    ExportConfig,
    ExportPhase,
    ExportProgress,
    SegmentArtifact,
)


class TestExportConfig:
    def test_defaults(self):
        cfg = ExportConfig()
        assert cfg.codec == Codec.QTRLE
        assert (cfg.width, cfg.height) == (1080, 1920)
        assert cfg.fps == 30
        assert cfg.chunk_frame_count == 30

    def test_total_frames_rounds_up(self):
        cfg = ExportConfig(width=100, height=100, fps=30, duration=0.5)
        assert cfg.total_frames == 15
        cfg = ExportConfig(width=100, height=100, fps=60, duration=2.5)
        assert cfg.total_frames == 150

    def test_total_chunks(self):
        cfg = ExportConfig(width=100, height=100, fps=30, duration=2.0, chunk_frame_count=25)
        assert cfg.total_frames == 60
        assert cfg.total_chunks == 3

    @pytest.mark.parametrize("fps", [24, 25, 0, 120])
    def test_rejects_unsupported_fps(self, fps):
        with pytest.raises(ValidationError):
            ExportConfig(fps=fps)

    @pytest.mark.parametrize("duration", [0, -1.0, 10.5])
    def test_rejects_duration_out_of_range(self, duration):
        with pytest.raises(ValidationError):
            ExportConfig(duration=duration)

    def test_rejects_small_and_large_sizes(self):
        with pytest.raises(ValidationError):
            ExportConfig(width=99)
        with pytest.raises(ValidationError):
            ExportConfig(height=2161)
        with pytest.raises(ValidationError):
            ExportConfig(width=3841)

    def test_rejects_empty_chunks(self):
        with pytest.raises(ValidationError):
            ExportConfig(chunk_frame_count=0)

    def test_codec_from_string(self):
        cfg = ExportConfig(codec="prores_4444")
        assert cfg.codec is Codec.PRORES_4444

    def test_frozen(self):
        cfg = ExportConfig()
        with pytest.raises(ValidationError):
            cfg.fps = 60


class TestModels:
    def test_phase_terminal(self):
        terminal = {p for p in ExportPhase if p.is_terminal}
        assert terminal == {ExportPhase.DONE, ExportPhase.ERROR, ExportPhase.CANCELLED}

    def test_chunk_end_index(self):
        chunk = Chunk(chunk_index=2, first_frame_index=60, frame_count=30)
        assert chunk.end_frame_index == 90

    def test_artifact_requires_handle(self):
        with pytest.raises(ValidationError):
            SegmentArtifact(chunk_index=0)

    def test_progress_percent_bounds(self):
        with pytest.raises(ValidationError):
            ExportProgress(phase=ExportPhase.RENDERING, percent=100.5)

    def test_presets_within_limits(self):
        cfgs = [ExportConfig(width=p.width, height=p.height) for p in RESOLUTION_PRESETS]
        assert len(cfgs) == 10
        assert all(p.label.startswith(f"{p.width}x{p.height}") for p in RESOLUTION_PRESETS)
