"""Configuration for Step 03: Merge segments."""

from pydantic import BaseModel, Field


class MergeSegmentsConfig(BaseModel):
    list_filename: str = Field("concat_list.txt", description="concat demuxer list written to engine storage")
    output_filename: str = Field("output.mov", description="Merged clip name in engine storage")
