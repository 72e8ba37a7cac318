"""Configuration for Step 01: Render chunk."""

from pydantic import BaseModel, Field


class RenderChunkConfig(BaseModel):
    render_timeout_seconds: float = Field(30.0, description="Deadline for one render_at call (<= 0 disables)")
    offload_sync_render: bool = Field(
        True, description="Run synchronous render_at in a worker thread so the deadline applies"
    )
    png_compression: int = Field(3, ge=0, le=9, description="PNG compression level for frame bytes")
