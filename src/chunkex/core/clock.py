"""Deterministic frame-index to source-time mapping and chunk planning.

Nothing in here reads a clock: the same ``(frame_index, config)`` always maps
to the same source time, so two runs of the same export render identical
sample sequences.
"""

from __future__ import annotations

import math
from collections.abc import Iterator

from .contracts import Chunk, ExportConfig, Sample


def total_frames(config: ExportConfig) -> int:
    return math.ceil(config.duration * config.fps)


def sample_time(frame_index: int, config: ExportConfig, source_duration: float = 0.0) -> float:
    """Source time rendered for ``frame_index``.

    Export time advances at ``fps``; ``playback_rate`` stretches it and a
    positive ``source_duration`` wraps it so short loops fill longer exports.
    """
    if frame_index < 0:
        raise ValueError(f"frame_index must be >= 0, got {frame_index}")
    export_time = frame_index / config.fps
    raw_time = export_time * config.playback_rate
    if source_duration > 0:
        return math.fmod(raw_time, source_duration)
    return raw_time


def iter_samples(
    config: ExportConfig,
    source_duration: float = 0.0,
    start: int = 0,
    count: int | None = None,
) -> Iterator[Sample]:
    """Yield samples in index order over ``[start, start + count)``."""
    end = total_frames(config) if count is None else min(start + count, total_frames(config))
    for index in range(start, end):
        yield Sample(frame_index=index, source_time=sample_time(index, config, source_duration))


def plan_chunks(frame_total: int, chunk_frame_count: int) -> list[Chunk]:
    """Partition ``[0, frame_total)`` into contiguous chunks, last one possibly shorter."""
    if chunk_frame_count < 1:
        raise ValueError(f"chunk_frame_count must be >= 1, got {chunk_frame_count}")
    if frame_total < 0:
        raise ValueError(f"frame_total must be >= 0, got {frame_total}")
    chunks = []
    for chunk_index, first in enumerate(range(0, frame_total, chunk_frame_count)):
        chunks.append(
            Chunk(
                chunk_index=chunk_index,
                first_frame_index=first,
                frame_count=min(chunk_frame_count, frame_total - first),
            )
        )
    return chunks


def plan_export(config: ExportConfig) -> list[Chunk]:
    return plan_chunks(total_frames(config), config.chunk_frame_count)
