"""Structured logging setup for the export pipeline."""

from __future__ import annotations

import logging
import sys

ENGINE_LOGGERS = ("chunkex.engine", "chunkex.utils.subprocess_utils")


def setup_logging(level: str = "INFO", verbose_engine: bool = False) -> None:
    """Configure structured logging with consistent format.

    ffmpeg command output is logged at DEBUG by the engine worker; it stays
    at WARNING unless ``verbose_engine`` is set.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )
    engine_level = logging.DEBUG if verbose_engine else logging.WARNING
    for name in ENGINE_LOGGERS:
        logging.getLogger(name).setLevel(engine_level)
