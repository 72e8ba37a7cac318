"""I/O contracts for Step 02: Encode chunk."""

from pydantic import BaseModel, Field

from chunkex.core.contracts import Frame, SegmentArtifact


class EncodeChunkInput(BaseModel):
    chunk_index: int = Field(..., ge=0, description="Index of the chunk being encoded")
    frames: list[Frame] = Field(..., description="Frames of the chunk in index order")
    total_chunks: int = Field(..., ge=1, description="Number of chunks in the session")


class EncodeChunkOutput(BaseModel):
    artifact: SegmentArtifact = Field(..., description="Encoded segment in engine storage")
