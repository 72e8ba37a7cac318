"""Output naming and writing helpers."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path


def generate_filename(prefix: str, extension: str, now: datetime | None = None) -> str:
    """``<prefix>_YYYYMMDD_HHMMSS.<extension>``."""
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{stamp}.{extension.lstrip('.')}"


def write_output(data: bytes, output_dir: Path, filename: str) -> Path:
    """Write the exported bytes, creating ``output_dir`` if needed."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / filename
    path.write_bytes(data)
    return path


def format_file_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"
