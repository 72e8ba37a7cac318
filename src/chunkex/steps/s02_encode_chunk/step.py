"""Step 02: Encode one chunk of frames into a segment clip.

The frame files of a chunk exist in engine storage only for the duration of
this step: they are deleted right after the encode command, whether it
succeeded or not, so at most one chunk of frames is ever resident there.
"""

from __future__ import annotations

import logging
from typing import ClassVar

from chunkex.core.contracts import SegmentArtifact
from chunkex.core.errors import EncodeFailure, EngineError
from chunkex.core.step_base import BaseStep
from chunkex.engine.commands import (
    build_chunk_encode_command,
    chunk_dir_name,
    frame_filename,
    part_filename,
)
from .config import EncodeChunkConfig
from .contracts import EncodeChunkInput, EncodeChunkOutput

logger = logging.getLogger(__name__)


class EncodeChunkStep(BaseStep[EncodeChunkInput, EncodeChunkOutput, EncodeChunkConfig]):
    name: ClassVar[str] = "encode_chunk"
    input_type: ClassVar = EncodeChunkInput
    output_type: ClassVar = EncodeChunkOutput
    config_type: ClassVar = EncodeChunkConfig

    def validate_inputs(self, inputs: EncodeChunkInput) -> bool:
        if not inputs.frames:
            logger.error(f"Chunk {inputs.chunk_index} has no frames")
            return False
        if inputs.chunk_index >= inputs.total_chunks:
            logger.error(f"Chunk index {inputs.chunk_index} >= total chunks {inputs.total_chunks}")
            return False
        indices = [f.frame_index for f in inputs.frames]
        if indices != list(range(indices[0], indices[0] + len(indices))):
            logger.error(f"Chunk {inputs.chunk_index} frames are not contiguous: {indices[:5]}...")
            return False
        return True

    async def run(self, inputs: EncodeChunkInput) -> EncodeChunkOutput:
        engine = self.context.require_engine()
        export = self.context.export
        chunk_dir = chunk_dir_name(inputs.chunk_index)
        part_path = part_filename(inputs.chunk_index)
        written: list[str] = []
        dir_created = False
        encoded = False

        try:
            await engine.create_dir(chunk_dir)
            dir_created = True

            for local_index, frame in enumerate(inputs.frames):
                self.context.token.raise_if_cancelled(f"writing chunk {inputs.chunk_index}")
                frame_path = f"{chunk_dir}/{frame_filename(local_index)}"
                await engine.write_file(frame_path, frame.data)
                written.append(frame_path)

            self.context.token.raise_if_cancelled(f"before encoding chunk {inputs.chunk_index}")
            args = build_chunk_encode_command(
                chunk_dir,
                part_path,
                export.fps,
                export.codec,
                threads=self.config.threads,
                stats_period=self.config.stats_period,
            )
            await engine.exec(args)
            encoded = True
        except EngineError as exc:
            raise EncodeFailure(
                f"encoding chunk {inputs.chunk_index + 1}/{inputs.total_chunks} failed: {exc}"
            ) from exc
        finally:
            await self._release_chunk(chunk_dir, written, dir_created)
            if not encoded:
                await self._discard(part_path)

        logger.info(
            f"Encoded chunk {inputs.chunk_index + 1}/{inputs.total_chunks} "
            f"({len(inputs.frames)} frames) -> {part_path}"
        )
        return EncodeChunkOutput(
            artifact=SegmentArtifact(
                chunk_index=inputs.chunk_index,
                storage_handle=part_path,
                frame_count=len(inputs.frames),
            )
        )

    async def _release_chunk(self, chunk_dir: str, written: list[str], dir_created: bool) -> None:
        engine = self.context.require_engine()
        for path in written:
            try:
                await engine.delete_file(path)
            except EngineError as exc:
                logger.warning(f"Could not delete {path}: {exc}")
        if dir_created:
            try:
                await engine.delete_dir(chunk_dir)
            except EngineError as exc:
                logger.warning(f"Could not delete {chunk_dir}: {exc}")

    async def _discard(self, path: str) -> None:
        engine = self.context.require_engine()
        try:
            await engine.delete_file(path)
        except EngineError:
            # nothing was written
            pass

