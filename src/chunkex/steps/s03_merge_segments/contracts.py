"""I/O contracts for Step 03: Merge segments."""

from pydantic import BaseModel, Field

from chunkex.core.contracts import SegmentArtifact


class MergeSegmentsInput(BaseModel):
    artifacts: list[SegmentArtifact] = Field(..., description="Segments in ascending chunk order")


class MergeSegmentsOutput(BaseModel):
    data: bytes = Field(..., repr=False, description="Final container bytes")
    segment_count: int = Field(..., description="Number of segments merged")
    concatenated: bool = Field(..., description="False when a single segment was returned as-is")
