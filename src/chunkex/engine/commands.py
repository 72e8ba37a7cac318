"""ffmpeg argument builders for chunk encoding and stream-copy concatenation.

Both command shapes address files relative to the engine's scratch
namespace. Every segment of a session is encoded with the same profile, which
is what makes ``-c copy`` concatenation valid.
"""

from __future__ import annotations

from dataclasses import dataclass

from chunkex.core.contracts import Codec

CONTAINER_EXTENSION = "mov"
CONTAINER_MIME_TYPE = "video/quicktime"
FRAME_PATTERN = "frame_%04d.png"


@dataclass(frozen=True)
class EncoderProfile:
    encoder: str
    pix_fmt: str
    extra_args: tuple[str, ...] = ()


ENCODER_PROFILES: dict[Codec, EncoderProfile] = {
    # qtrle keeps alpha in argb
    Codec.QTRLE: EncoderProfile(encoder="qtrle", pix_fmt="argb"),
    Codec.PRORES_4444: EncoderProfile(
        encoder="prores_ks",
        pix_fmt="yuva444p10le",
        extra_args=("-profile:v", "4444", "-vendor", "apl0"),
    ),
}

_DISPLAY_NAMES = {
    Codec.QTRLE: "Apple Animation (QTRLE)",
    Codec.PRORES_4444: "Apple ProRes 4444",
}

_DESCRIPTIONS = {
    Codec.QTRLE: "Lossless, largest files, widest compatibility",
    Codec.PRORES_4444: "Professional grade, high quality, moderate size",
}


def frame_filename(frame_index: int) -> str:
    """Zero-padded image name, index local to its chunk."""
    return f"frame_{frame_index:04d}.png"


def chunk_dir_name(chunk_index: int) -> str:
    return f"chunk_{chunk_index:03d}"


def part_filename(chunk_index: int) -> str:
    return f"part_{chunk_index:03d}.{CONTAINER_EXTENSION}"


def required_encoders() -> list[str]:
    return sorted({p.encoder for p in ENCODER_PROFILES.values()})


def build_chunk_encode_command(
    chunk_dir: str,
    output_path: str,
    fps: int,
    codec: Codec,
    threads: int = 1,
    stats_period: float = 0.5,
) -> list[str]:
    """Encode ``<chunk_dir>/frame_%04d.png`` at ``fps`` into one clip."""
    profile = ENCODER_PROFILES[Codec(codec)]
    return [
        "-framerate", str(fps),
        "-f", "image2",
        "-i", f"{chunk_dir}/{FRAME_PATTERN}",
        "-c:v", profile.encoder,
        "-pix_fmt", profile.pix_fmt,
        *profile.extra_args,
        "-threads", str(threads),
        "-progress", "pipe:1",
        "-stats_period", str(stats_period),
        "-y",
        output_path,
    ]


def build_concat_command(list_path: str, output_path: str) -> list[str]:
    """Concatenate the clips named in ``list_path`` without re-encoding."""
    return [
        "-f", "concat",
        "-safe", "0",
        "-i", list_path,
        "-c", "copy",
        "-y",
        output_path,
    ]


def build_concat_list(handles: list[str]) -> str:
    """concat demuxer list, one ``file '<handle>'`` line per segment, in order."""
    lines = []
    for handle in handles:
        escaped = handle.replace("'", "'\\''")
        lines.append(f"file '{escaped}'")
    return "\n".join(lines) + "\n"


def codec_display_name(codec: Codec) -> str:
    return _DISPLAY_NAMES[Codec(codec)]


def codec_description(codec: Codec) -> str:
    return _DESCRIPTIONS[Codec(codec)]
