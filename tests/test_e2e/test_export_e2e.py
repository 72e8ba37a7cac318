"""End-to-end exports through a real ffmpeg binary."""

from __future__ import annotations

import shutil
from pathlib import Path

import cv2
import pytest

from chunkex.core.contracts import Codec, ExportConfig, ExportPhase
from chunkex.core.session import ExportController
from chunkex.demo.sample_animation import PulsingRingAnimation
from chunkex.engine.commands import required_encoders
from chunkex.utils.io import write_output
from chunkex.utils.subprocess_utils import list_ffmpeg_encoders


def _ffmpeg_ready() -> bool:
    ffmpeg = shutil.which("ffmpeg")
    if ffmpeg is None:
        return False
    try:
        available = list_ffmpeg_encoders(ffmpeg)
    except Exception:
        return False
    return all(name in available for name in required_encoders())


pytestmark = [
    pytest.mark.e2e,
    pytest.mark.skipif(not _ffmpeg_ready(), reason="ffmpeg with qtrle and prores_ks not available"),
]


def _count_frames(path: Path) -> int:
    cap = cv2.VideoCapture(str(path))
    try:
        count = 0
        while True:
            ok, _ = cap.read()
            if not ok:
                return count
            count += 1
    finally:
        cap.release()


@pytest.mark.parametrize("codec", [Codec.QTRLE, Codec.PRORES_4444])
async def test_multi_chunk_export(tmp_path: Path, codec):
    source = PulsingRingAnimation(width=160, height=160, duration=1.0)
    config = ExportConfig(codec=codec, width=160, height=160, fps=30, duration=1.0, chunk_frame_count=12)

    result = await ExportController(source, config).start()

    assert result.success, result.error
    assert result.phase == ExportPhase.DONE
    assert b"moov" in result.data
    path = write_output(result.data, tmp_path, result.filename)
    assert _count_frames(path) == 30


async def test_single_chunk_export(tmp_path: Path):
    source = PulsingRingAnimation(width=120, height=120, duration=0.5)
    config = ExportConfig(width=120, height=120, fps=30, duration=0.5, chunk_frame_count=30)

    result = await ExportController(source, config).start()

    assert result.success, result.error
    path = write_output(result.data, tmp_path, result.filename)
    assert _count_frames(path) == 15


async def test_cancel_leaves_no_scratch(tmp_path: Path):
    from chunkex.engine.bridge import create_ffmpeg_bridge
    from chunkex.engine.protocol import EngineSettings

    scratch = tmp_path / "scratch"
    source = PulsingRingAnimation(width=120, height=120, duration=1.0)
    config = ExportConfig(width=120, height=120, fps=30, duration=1.0, chunk_frame_count=10)
    controller = ExportController(
        source,
        config,
        engine_factory=lambda: create_ffmpeg_bridge(EngineSettings(scratch_dir=scratch)),
    )

    def on_progress(progress):
        if progress.current_frame >= 15:
            controller.cancel()

    controller.on_progress = on_progress

    result = await controller.start()

    assert result.phase == ExportPhase.CANCELLED
    assert list(scratch.iterdir()) == []
