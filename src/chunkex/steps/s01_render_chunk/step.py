"""Step 01: Render one chunk of frames from the frame source."""

from __future__ import annotations

import logging
from typing import Callable, ClassVar

from chunkex.core.clock import total_frames
from chunkex.core.step_base import BaseStep
from ._producer import FrameProducer
from .config import RenderChunkConfig
from .contracts import RenderChunkInput, RenderChunkOutput

logger = logging.getLogger(__name__)


class RenderChunkStep(BaseStep[RenderChunkInput, RenderChunkOutput, RenderChunkConfig]):
    name: ClassVar[str] = "render_chunk"
    input_type: ClassVar = RenderChunkInput
    output_type: ClassVar = RenderChunkOutput
    config_type: ClassVar = RenderChunkConfig

    _producer: FrameProducer | None = None

    @property
    def producer(self) -> FrameProducer:
        if self._producer is None:
            self._producer = FrameProducer(
                self.context.source,
                self.context.export,
                token=self.context.token,
                timeout_seconds=self.config.render_timeout_seconds,
                offload_sync_render=self.config.offload_sync_render,
                png_compression=self.config.png_compression,
            )
        return self._producer

    def validate_inputs(self, inputs: RenderChunkInput) -> bool:
        if self.context.source is None:
            logger.error("No frame source attached")
            return False
        frame_total = total_frames(self.context.export)
        if inputs.chunk.end_frame_index > frame_total:
            logger.error(
                f"Chunk {inputs.chunk.chunk_index} ends at {inputs.chunk.end_frame_index}, "
                f"export has {frame_total} frames"
            )
            return False
        return True

    async def run(self, inputs: RenderChunkInput) -> RenderChunkOutput:
        chunk = inputs.chunk
        frames = await self.producer.render_chunk(
            chunk.first_frame_index, chunk.frame_count, on_frame=self.context.on_frame
        )
        logger.debug(
            f"Rendered chunk {chunk.chunk_index}: frames "
            f"[{chunk.first_frame_index}, {chunk.end_frame_index})"
        )
        return RenderChunkOutput(chunk=chunk, frames=frames)

    def close(self, on_idle: Callable[[], None] | None = None) -> bool:
        """Release the render thread; ``on_idle`` runs once no render is in flight."""
        if self._producer is None:
            if on_idle is not None:
                on_idle()
            return True
        return self._producer.close(on_idle)
