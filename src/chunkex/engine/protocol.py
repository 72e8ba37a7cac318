"""Request/response messages exchanged with the encode engine worker."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class EngineOp(str, Enum):
    LOAD = "load"
    EXEC = "exec"
    WRITE_FILE = "write_file"
    READ_FILE = "read_file"
    DELETE_FILE = "delete_file"
    CREATE_DIR = "create_dir"
    DELETE_DIR = "delete_dir"
    LIST_DIR = "list_dir"
    TERMINATE = "terminate"


class EngineRequest(BaseModel):
    id: int
    op: EngineOp
    payload: dict[str, Any] = Field(default_factory=dict)


class EngineResponse(BaseModel):
    id: int
    success: bool
    data: Any = None
    error: str | None = None


class EngineSettings(BaseModel):
    """Settings of the local ffmpeg-backed engine."""

    ffmpeg_path: str | None = Field(None, description="ffmpeg binary (None = look up on PATH)")
    command_timeout_seconds: int = Field(600, gt=0, description="Deadline for one ffmpeg command")
    loglevel: str = Field("error", description="ffmpeg -loglevel value")
    scratch_dir: Path | None = Field(None, description="Parent of the scratch namespace (None = system temp)")
    check_encoders: bool = Field(True, description="Verify required encoders at load time")
