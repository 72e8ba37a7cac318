"""I/O contracts for Step 01: Render chunk."""

from pydantic import BaseModel, Field

from chunkex.core.contracts import Chunk, Frame


class RenderChunkInput(BaseModel):
    chunk: Chunk = Field(..., description="Frame index range to render")


class RenderChunkOutput(BaseModel):
    chunk: Chunk = Field(..., description="Rendered range")
    frames: list[Frame] = Field(default_factory=list, description="PNG frames in index order")
