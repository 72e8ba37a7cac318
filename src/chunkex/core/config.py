"""Job configuration: reads export.yaml and resolves the frame source."""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from chunkex.engine.protocol import EngineSettings
from chunkex.steps.s01_render_chunk.config import RenderChunkConfig
from chunkex.steps.s02_encode_chunk.config import EncodeChunkConfig
from chunkex.steps.s03_merge_segments.config import MergeSegmentsConfig
from .contracts import ExportConfig
from .progress import ProgressWeights

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "chunkex.demo.sample_animation:RotatingSquareAnimation"


class ExportJobConfig(BaseModel):
    """Top-level job configuration loaded from export.yaml."""

    source: str = Field(DEFAULT_SOURCE, description="Frame source as 'module:attribute'")
    source_kwargs: dict[str, Any] = Field(default_factory=dict, description="Keyword arguments for the source")
    export: ExportConfig = Field(default_factory=ExportConfig)
    render: RenderChunkConfig = Field(default_factory=RenderChunkConfig)
    encode: EncodeChunkConfig = Field(default_factory=EncodeChunkConfig)
    merge: MergeSegmentsConfig = Field(default_factory=MergeSegmentsConfig)
    engine: EngineSettings = Field(default_factory=EngineSettings)
    progress: ProgressWeights = Field(default_factory=ProgressWeights)
    output_dir: Path = Path("./exports")
    filename_prefix: str = "canvas_export"


def load_job_config(config_path: Path) -> ExportJobConfig:
    """Load and validate export.yaml."""
    with open(config_path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return ExportJobConfig(**raw)


def load_step_config(config_path: Path, config_class: type[BaseModel]) -> BaseModel:
    """Load a step-specific YAML config into its Pydantic model."""
    with open(config_path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return config_class(**raw)


def import_frame_source(source_path: str, **kwargs: Any) -> Any:
    """Import ``module:attribute`` and build the frame source.

    Classes and factory functions are called with ``kwargs``; any other
    attribute is taken as a ready-made source instance.
    """
    module_name, sep, attr_name = source_path.partition(":")
    if not sep or not module_name or not attr_name:
        raise ValueError(f"frame source must look like 'package.module:Name', got {source_path!r}")
    module = importlib.import_module(module_name)
    try:
        target = getattr(module, attr_name)
    except AttributeError as exc:
        raise ImportError(f"{module_name} has no attribute {attr_name!r}") from exc

    if callable(target) and not hasattr(target, "render_at"):
        return target(**kwargs)
    if isinstance(target, type):
        return target(**kwargs)
    if kwargs:
        logger.warning(f"source_kwargs ignored for instance {source_path}")
    return target
