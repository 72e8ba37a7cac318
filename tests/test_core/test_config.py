"""Tests for job configuration loading."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from chunkex.core.config import (
    DEFAULT_SOURCE,
    ExportJobConfig,
    import_frame_source,
    load_job_config,
    load_step_config,
)
from chunkex.core.contracts import Codec
from chunkex.demo.sample_animation import PulsingRingAnimation, RotatingSquareAnimation
from chunkex.steps.s01_render_chunk.config import RenderChunkConfig


class TestJobConfig:
    def test_defaults(self):
        job = ExportJobConfig()
        assert job.source == DEFAULT_SOURCE
        assert job.render.render_timeout_seconds == 30.0
        assert job.encode.threads == 1
        assert job.merge.output_filename == "output.mov"
        assert job.engine.ffmpeg_path is None
        assert job.filename_prefix == "canvas_export"

    def test_load_job_config(self, tmp_path: Path):
        config = {
            "source": "chunkex.demo.sample_animation:PulsingRingAnimation",
            "source_kwargs": {"width": 200, "height": 200},
            "export": {"codec": "prores_4444", "width": 200, "height": 200, "fps": 60, "duration": 1.5},
            "render": {"render_timeout_seconds": 5},
            "engine": {"ffmpeg_path": "/opt/ffmpeg/bin/ffmpeg"},
            "output_dir": str(tmp_path / "out"),
        }
        config_file = tmp_path / "export.yaml"
        with open(config_file, "w") as f:
            yaml.dump(config, f)

        job = load_job_config(config_file)
        assert job.export.codec == Codec.PRORES_4444
        assert job.export.total_frames == 90
        assert job.render.render_timeout_seconds == 5
        assert job.engine.ffmpeg_path == "/opt/ffmpeg/bin/ffmpeg"
        assert job.output_dir == tmp_path / "out"

    def test_empty_file_gives_defaults(self, tmp_path: Path):
        config_file = tmp_path / "export.yaml"
        config_file.write_text("")
        assert load_job_config(config_file) == ExportJobConfig()

    def test_invalid_export_rejected(self, tmp_path: Path):
        config_file = tmp_path / "export.yaml"
        with open(config_file, "w") as f:
            yaml.dump({"export": {"fps": 24}}, f)
        with pytest.raises(ValidationError):
            load_job_config(config_file)

    def test_shipped_config_loads(self):
        shipped = Path(__file__).resolve().parents[2] / "configs" / "export.yaml"
        job = load_job_config(shipped)
        assert job.export.total_frames == job.export.fps * job.export.duration

    def test_load_step_config(self, tmp_path: Path):
        config_file = tmp_path / "render.yaml"
        with open(config_file, "w") as f:
            yaml.dump({"render_timeout_seconds": 2.5, "png_compression": 9}, f)
        cfg = load_step_config(config_file, RenderChunkConfig)
        assert isinstance(cfg, RenderChunkConfig)
        assert cfg.png_compression == 9


class TestImportFrameSource:
    def test_class_with_kwargs(self):
        source = import_frame_source(
            "chunkex.demo.sample_animation:PulsingRingAnimation", width=300, height=200
        )
        assert isinstance(source, PulsingRingAnimation)
        assert (source.width, source.height) == (300, 200)

    def test_default_source(self):
        assert isinstance(import_frame_source(DEFAULT_SOURCE), RotatingSquareAnimation)

    def test_malformed_path(self):
        with pytest.raises(ValueError):
            import_frame_source("chunkex.demo.sample_animation")

    def test_missing_attribute(self):
        with pytest.raises(ImportError):
            import_frame_source("chunkex.demo.sample_animation:NoSuchAnimation")

    def test_missing_module(self):
        with pytest.raises(ImportError):
            import_frame_source("chunkex.no_such_module:Thing")
