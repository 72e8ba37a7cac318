"""Step 03: Stream-copy concatenate the segment clips into the final file."""

from __future__ import annotations

import logging
from typing import ClassVar

from chunkex.core.errors import EncodeFailure, EngineError
from chunkex.core.step_base import BaseStep
from chunkex.engine.commands import build_concat_command, build_concat_list
from .config import MergeSegmentsConfig
from .contracts import MergeSegmentsInput, MergeSegmentsOutput

logger = logging.getLogger(__name__)


class MergeSegmentsStep(BaseStep[MergeSegmentsInput, MergeSegmentsOutput, MergeSegmentsConfig]):
    name: ClassVar[str] = "merge_segments"
    input_type: ClassVar = MergeSegmentsInput
    output_type: ClassVar = MergeSegmentsOutput
    config_type: ClassVar = MergeSegmentsConfig

    def validate_inputs(self, inputs: MergeSegmentsInput) -> bool:
        if not inputs.artifacts:
            logger.error("No segments to merge")
            return False
        indices = [a.chunk_index for a in inputs.artifacts]
        if any(b <= a for a, b in zip(indices, indices[1:])):
            logger.error(f"Segments are not in ascending chunk order: {indices}")
            return False
        return True

    async def run(self, inputs: MergeSegmentsInput) -> MergeSegmentsOutput:
        engine = self.context.require_engine()
        handles = [a.storage_handle for a in inputs.artifacts]

        try:
            if len(handles) == 1:
                data = await engine.read_file(handles[0])
                logger.info("Single segment, skipping concatenation")
                return MergeSegmentsOutput(data=data, segment_count=1, concatenated=False)

            listing = build_concat_list(handles)
            await engine.write_file(self.config.list_filename, listing.encode("utf-8"))
            await engine.exec(build_concat_command(self.config.list_filename, self.config.output_filename))
            data = await engine.read_file(self.config.output_filename)
        except EngineError as exc:
            raise EncodeFailure(f"merging {len(handles)} segments failed: {exc}") from exc
        finally:
            await self._release(handles)

        logger.info(f"Merged {len(handles)} segments ({len(data)} bytes)")
        return MergeSegmentsOutput(data=data, segment_count=len(handles), concatenated=True)

    async def _release(self, handles: list[str]) -> None:
        engine = self.context.require_engine()
        paths = list(handles)
        if len(handles) > 1:
            paths += [self.config.list_filename, self.config.output_filename]
        for path in paths:
            try:
                await engine.delete_file(path)
            except EngineError as exc:
                logger.debug(f"Could not delete {path}: {exc}")
