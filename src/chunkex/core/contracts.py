"""Common Pydantic models shared across the export pipeline."""

from __future__ import annotations

import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MAX_DURATION = 10.0
MAX_WIDTH = 3840
MAX_HEIGHT = 2160
MIN_DIMENSION = 100
FPS_OPTIONS = (30, 60)
DEFAULT_CHUNK_FRAMES = 30


class Codec(str, Enum):
    """Alpha-capable output codecs."""

    QTRLE = "qtrle"
    PRORES_4444 = "prores_4444"


class ExportPhase(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    RENDERING = "rendering"
    ENCODING = "encoding"
    MERGING = "merging"
    DONE = "done"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ExportPhase.DONE, ExportPhase.ERROR, ExportPhase.CANCELLED)


class Resolution(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    label: str


RESOLUTION_PRESETS: tuple[Resolution, ...] = (
    # portrait 9:16
    Resolution(width=1080, height=1920, label="1080x1920 (9:16)"),
    Resolution(width=720, height=1280, label="720x1280 (9:16)"),
    # landscape 16:9
    Resolution(width=1920, height=1080, label="1920x1080 (16:9)"),
    Resolution(width=1280, height=720, label="1280x720 (16:9)"),
    # square
    Resolution(width=1080, height=1080, label="1080x1080 (1:1)"),
    Resolution(width=720, height=720, label="720x720 (1:1)"),
    # portrait 3:4
    Resolution(width=1080, height=1440, label="1080x1440 (3:4)"),
    Resolution(width=720, height=960, label="720x960 (3:4)"),
    # landscape 4:3
    Resolution(width=1440, height=1080, label="1440x1080 (4:3)"),
    Resolution(width=960, height=720, label="960x720 (4:3)"),
)


class ExportConfig(BaseModel):
    """Immutable description of one export job."""

    model_config = ConfigDict(frozen=True)

    codec: Codec = Field(Codec.QTRLE, description="Output codec (both carry alpha)")
    width: int = Field(1080, ge=MIN_DIMENSION, le=MAX_WIDTH, description="Output width in pixels")
    height: int = Field(1920, ge=MIN_DIMENSION, le=MAX_HEIGHT, description="Output height in pixels")
    fps: int = Field(30, description="Output frame rate, one of FPS_OPTIONS")
    duration: float = Field(5.0, gt=0, le=MAX_DURATION, description="Export duration in seconds")
    chunk_frame_count: int = Field(
        DEFAULT_CHUNK_FRAMES, ge=1, description="Frames rendered and encoded per segment"
    )
    content_scale: float = Field(1.0, gt=0, description="Scale applied to the source surface")
    playback_rate: float = Field(1.0, gt=0, description="Source seconds advanced per export second")

    @field_validator("fps")
    @classmethod
    def _check_fps(cls, v: int) -> int:
        if v not in FPS_OPTIONS:
            raise ValueError(f"fps must be one of {FPS_OPTIONS}, got {v}")
        return v

    @model_validator(mode="after")
    def _check_frame_count(self) -> "ExportConfig":
        product = self.duration * self.fps
        if not math.isfinite(product) or math.ceil(product) < 1:
            raise ValueError(f"duration * fps must give at least one frame, got {product}")
        return self

    @property
    def total_frames(self) -> int:
        return math.ceil(self.duration * self.fps)

    @property
    def total_chunks(self) -> int:
        return math.ceil(self.total_frames / self.chunk_frame_count)


class Sample(BaseModel):
    model_config = ConfigDict(frozen=True)

    frame_index: int = Field(..., ge=0)
    source_time: float


class Frame(BaseModel):
    """One rendered frame: PNG bytes with alpha."""

    frame_index: int = Field(..., ge=0)
    source_time: float
    data: bytes = Field(..., repr=False)


class Chunk(BaseModel):
    """Contiguous slice of the frame index space."""

    model_config = ConfigDict(frozen=True)

    chunk_index: int = Field(..., ge=0)
    first_frame_index: int = Field(..., ge=0)
    frame_count: int = Field(..., ge=1)

    @property
    def end_frame_index(self) -> int:
        return self.first_frame_index + self.frame_count


class SegmentArtifact(BaseModel):
    """Encoded clip of one chunk, stored in the engine's scratch namespace."""

    model_config = ConfigDict(frozen=True)

    chunk_index: int = Field(..., ge=0)
    storage_handle: str
    frame_count: int = Field(0, ge=0)


class ExportProgress(BaseModel):
    phase: ExportPhase
    current_frame: int = 0
    total_frames: int = 0
    current_chunk: int = 0
    total_chunks: int = 0
    percent: float = Field(0.0, ge=0.0, le=100.0)
    estimated_time_remaining_ms: int | None = None
    error: str | None = None


class ExportResult(BaseModel):
    success: bool
    phase: ExportPhase
    data: bytes | None = Field(None, repr=False)
    filename: str | None = None
    mime_type: str | None = None
    error: str | None = None
