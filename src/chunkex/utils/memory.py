"""Peak-memory estimates for a chunked export.

Peak residency is one chunk of PNG frames plus the engine's working buffer;
the total export length does not enter the estimate.
"""

from __future__ import annotations

from dataclasses import dataclass

# compressed PNG size relative to raw RGBA
PNG_RATIO = 0.6
ENGINE_BUFFER_FRAMES = 2


@dataclass(frozen=True)
class MemoryRisk:
    is_risky: bool
    required_bytes: int
    message: str = ""


def estimate_memory_required(width: int, height: int, chunk_frame_count: int) -> int:
    raw_frame = width * height * 4
    frames_in_memory = raw_frame * PNG_RATIO * chunk_frame_count
    engine_buffer = raw_frame * ENGINE_BUFFER_FRAMES
    return int(frames_in_memory + engine_buffer)


def format_memory(num_bytes: float) -> str:
    if num_bytes < 1024:
        return f"{num_bytes:.0f} B"
    if num_bytes < 1024 ** 2:
        return f"{num_bytes / 1024:.0f} KB"
    if num_bytes < 1024 ** 3:
        return f"{num_bytes / 1024 ** 2:.0f} MB"
    return f"{num_bytes / 1024 ** 3:.1f} GB"


def check_memory_risk(
    width: int,
    height: int,
    fps: int,
    duration: float,
    chunk_frame_count: int,
    available_bytes: int | None = None,
) -> MemoryRisk:
    """Flag parameter sets likely to exhaust memory.

    With ``available_bytes`` the estimate must fit in 70% of it; without it
    a fixed heuristic on resolution, frame rate and duration applies.
    """
    required = estimate_memory_required(width, height, chunk_frame_count)

    if available_bytes is None:
        risky = (
            (width >= 1920 and height >= 1080 and fps >= 60)
            or width >= 3840
            or height >= 2160
            or duration >= 10
        )
        message = (
            "These settings may run out of memory; lower resolution, frame rate or duration"
            if risky
            else ""
        )
        return MemoryRisk(is_risky=risky, required_bytes=required, message=message)

    risky = required > available_bytes * 0.7
    message = (
        f"Estimated {format_memory(required)} needed, about {format_memory(available_bytes)} available"
        if risky
        else ""
    )
    return MemoryRisk(is_risky=risky, required_bytes=required, message=message)
