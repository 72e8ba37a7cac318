"""Configuration for Step 02: Encode chunk."""

from pydantic import BaseModel, Field


class EncodeChunkConfig(BaseModel):
    threads: int = Field(1, ge=1, description="ffmpeg -threads for one segment encode")
    stats_period: float = Field(0.5, gt=0, description="ffmpeg -stats_period for -progress output")
