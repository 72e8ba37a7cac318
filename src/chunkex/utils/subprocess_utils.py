"""Safe subprocess runner for the ffmpeg binary."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


def find_executable(name: str, override: str | None = None) -> str | None:
    """Resolve an explicit path or look ``name`` up on PATH."""
    if override:
        candidate = Path(override)
        if candidate.is_file():
            return str(candidate)
        return shutil.which(override)
    return shutil.which(name)


def run_command(
    cmd: list[str],
    cwd: Path | None = None,
    timeout: int = 600,
    check: bool = True,
) -> subprocess.CompletedProcess:
    """Run an external command with logging and error handling."""
    cmd_str = " ".join(cmd)
    logger.debug(f"Running: {cmd_str}")

    result = subprocess.run(
        cmd,
        cwd=cwd,
        capture_output=True,
        text=True,
        errors="replace",
        timeout=timeout,
        check=False,
    )

    if result.stdout:
        logger.debug(f"stdout: {result.stdout[-500:]}")
    if result.stderr:
        logger.debug(f"stderr: {result.stderr[-500:]}")

    if check and result.returncode != 0:
        raise subprocess.CalledProcessError(
            result.returncode, cmd_str, result.stdout, result.stderr
        )
    return result


def list_ffmpeg_encoders(ffmpeg_bin: str, timeout: int = 30) -> set[str]:
    """Names of the encoders an ffmpeg build reports with ``-encoders``."""
    result = run_command([ffmpeg_bin, "-hide_banner", "-encoders"], timeout=timeout)
    encoders = set()
    in_table = False
    for line in result.stdout.splitlines():
        if line.strip().startswith("------"):
            in_table = True
            continue
        if not in_table:
            continue
        parts = line.split()
        # " V....D qtrle    QuickTime Animation (RLE) video"
        if len(parts) >= 2:
            encoders.add(parts[1])
    return encoders


def last_progress_value(progress_output: str, key: str) -> str | None:
    """Last ``key=value`` reported by ffmpeg's ``-progress`` stream."""
    value = None
    for line in progress_output.splitlines():
        if line.startswith(f"{key}="):
            value = line.split("=", 1)[1].strip()
    return value
