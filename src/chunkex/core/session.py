"""Export session controller: sequences render, encode and merge per chunk.

    idle -> initializing -> (rendering -> encoding)* -> merging -> done
                     \\____________ error | cancelled ___________/

One chunk is in flight at a time. Its frames are released as soon as the
segment is encoded, so memory is bounded by ``chunk_frame_count`` frames
whatever the export length. Every exit path runs ``cleanup()``, which is
idempotent and never raises.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from chunkex.engine.bridge import EngineBridge, create_ffmpeg_bridge
from chunkex.engine.commands import CONTAINER_EXTENSION, CONTAINER_MIME_TYPE
from chunkex.engine.protocol import EngineSettings
from chunkex.steps.s01_render_chunk.config import RenderChunkConfig
from chunkex.steps.s01_render_chunk.contracts import RenderChunkInput
from chunkex.steps.s01_render_chunk.step import RenderChunkStep
from chunkex.steps.s02_encode_chunk.config import EncodeChunkConfig
from chunkex.steps.s02_encode_chunk.contracts import EncodeChunkInput
from chunkex.steps.s02_encode_chunk.step import EncodeChunkStep
from chunkex.steps.s03_merge_segments.config import MergeSegmentsConfig
from chunkex.steps.s03_merge_segments.contracts import MergeSegmentsInput
from chunkex.steps.s03_merge_segments.step import MergeSegmentsStep
from chunkex.utils.io import generate_filename
from .cancellation import CancelToken
from .clock import plan_export
from .config import ExportJobConfig
from .contracts import Chunk, ExportConfig, ExportPhase, ExportProgress, ExportResult, Frame, SegmentArtifact
from .errors import Cancelled, EncodeFailure, EngineError, ExportError, InitializationFailure
from .frame_source import FrameSource, dispose_source
from .progress import ProgressModel, ProgressWeights
from .step_base import StepContext

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ExportProgress], None]
CompleteCallback = Callable[[bytes, str], None]
EngineFactory = Callable[[], EngineBridge]


@dataclass
class ExportSession:
    """Mutable state of one run, owned by the controller."""

    total_frames: int
    total_chunks: int
    started_at: float
    phase: ExportPhase = ExportPhase.IDLE
    current_frame: int = 0
    current_chunk: int = 0
    artifacts: list[SegmentArtifact] = field(default_factory=list)
    resident_frames: int = 0
    peak_resident_frames: int = 0

    def hold_frame(self) -> None:
        self.resident_frames += 1
        self.peak_resident_frames = max(self.peak_resident_frames, self.resident_frames)

    def release_frames(self) -> None:
        self.resident_frames = 0

    def record_artifact(self, artifact: SegmentArtifact) -> None:
        if self.artifacts and artifact.chunk_index <= self.artifacts[-1].chunk_index:
            raise ValueError(
                f"segment {artifact.chunk_index} recorded after {self.artifacts[-1].chunk_index}"
            )
        self.artifacts.append(artifact)


class ExportController:
    """Runs one export of ``source`` under ``config``.

    ``on_progress`` receives an ``ExportProgress`` after every rendered frame,
    every encoded chunk and every phase change. ``on_complete`` receives the
    final bytes and a suggested filename. The controller disposes the source
    when the run ends.
    """

    def __init__(
        self,
        source: Any,
        config: ExportConfig,
        on_progress: ProgressCallback | None = None,
        on_complete: CompleteCallback | None = None,
        engine_factory: EngineFactory | None = None,
        render_config: RenderChunkConfig | None = None,
        encode_config: EncodeChunkConfig | None = None,
        merge_config: MergeSegmentsConfig | None = None,
        engine_settings: EngineSettings | None = None,
        progress_weights: ProgressWeights | None = None,
        filename_prefix: str = "canvas_export",
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.source = source
        self.config = config
        self.on_progress = on_progress
        self.on_complete = on_complete
        self.engine_factory = engine_factory or (lambda: create_ffmpeg_bridge(engine_settings))
        self.render_config = render_config or RenderChunkConfig()
        self.encode_config = encode_config or EncodeChunkConfig()
        self.merge_config = merge_config or MergeSegmentsConfig()
        self.filename_prefix = filename_prefix
        self._clock = clock
        self._progress = ProgressModel(weights=progress_weights)

        self._token = CancelToken()
        self._session: ExportSession | None = None
        self._engine: EngineBridge | None = None
        self._context: StepContext | None = None
        self._render_step: RenderChunkStep | None = None
        self._running = False
        self._cleaned = True
        self._source_disposed = False

    @classmethod
    def from_job(cls, job: ExportJobConfig, source: Any, **kwargs: Any) -> "ExportController":
        """Controller wired with the stage, engine and progress settings of a job file."""
        return cls(
            source,
            job.export,
            render_config=job.render,
            encode_config=job.encode,
            merge_config=job.merge,
            engine_settings=job.engine,
            progress_weights=job.progress,
            filename_prefix=job.filename_prefix,
            **kwargs,
        )

    @property
    def running(self) -> bool:
        return self._running

    @property
    def session(self) -> ExportSession | None:
        return self._session

    @property
    def phase(self) -> ExportPhase:
        return self._session.phase if self._session else ExportPhase.IDLE

    def cancel(self) -> None:
        """Request cooperative cancellation; takes effect at the next checkpoint."""
        self._token.cancel()

    async def start(self) -> ExportResult:
        if self._running:
            return ExportResult(success=False, phase=self.phase, error="export already running")

        self._running = True
        self._cleaned = False
        self._token = CancelToken()
        chunks = plan_export(self.config)
        session = ExportSession(
            total_frames=self.config.total_frames,
            total_chunks=len(chunks),
            started_at=self._clock(),
        )
        self._session = session
        self._progress.reset(session.total_frames, session.total_chunks)
        logger.info(
            f"Export {self.config.width}x{self.config.height} @ {self.config.fps}fps, "
            f"{session.total_frames} frames in {session.total_chunks} chunks ({self.config.codec.value})"
        )

        try:
            await self._initialize()
            for chunk in chunks:
                await self._process_chunk(chunk)
            await self._token.checkpoint("before merge")
            data = await self._merge()

            filename = generate_filename(self.filename_prefix, CONTAINER_EXTENSION)
            if self.on_complete is not None:
                self.on_complete(data, filename)
            self._transition(ExportPhase.DONE, session.total_frames)
            elapsed = self._clock() - session.started_at
            logger.info(f"Export done in {elapsed:.1f}s: {filename} ({len(data)} bytes)")
            return ExportResult(
                success=True,
                phase=ExportPhase.DONE,
                data=data,
                filename=filename,
                mime_type=CONTAINER_MIME_TYPE,
            )
        except Cancelled as exc:
            logger.info(f"Export cancelled at chunk {session.current_chunk}")
            return self._finish_unsuccessful(ExportPhase.CANCELLED, str(exc))
        except ExportError as exc:
            logger.error(f"Export failed: {exc}")
            return self._finish_unsuccessful(ExportPhase.ERROR, str(exc))
        except Exception as exc:
            logger.exception("Unexpected export failure")
            return self._finish_unsuccessful(ExportPhase.ERROR, f"{exc.__class__.__name__}: {exc}")
        finally:
            await self.cleanup()
            self._running = False

    async def _initialize(self) -> None:
        self._transition(ExportPhase.INITIALIZING, 0)
        self._validate_source()

        engine = self.engine_factory()
        self._engine = engine
        try:
            await engine.start()
            await engine.load()
        except EngineError as exc:
            raise InitializationFailure(f"encode engine failed to load: {exc}") from exc

        self._context = StepContext(
            export=self.config,
            token=self._token,
            engine=engine,
            source=self.source,
            on_frame=self._on_frame_rendered,
        )
        self._render_step = RenderChunkStep(self.render_config, self._context)
        self._encode_step = EncodeChunkStep(self.encode_config, self._context)
        self._merge_step = MergeSegmentsStep(self.merge_config, self._context)
        await self._token.checkpoint("after initialization")

    def _validate_source(self) -> None:
        if not isinstance(self.source, FrameSource):
            raise InitializationFailure(
                f"{type(self.source).__name__} is not a frame source (needs width, height, duration, render_at)"
            )
        if int(self.source.width) <= 0 or int(self.source.height) <= 0:
            raise InitializationFailure(
                f"frame source has invalid size {self.source.width}x{self.source.height}"
            )
        duration = float(self.source.duration)
        if not math.isfinite(duration) or duration < 0:
            raise InitializationFailure(f"frame source has invalid duration {duration}")

    async def _process_chunk(self, chunk: Chunk) -> None:
        session = self._require_session()
        await self._token.checkpoint(f"before chunk {chunk.chunk_index}")
        session.current_chunk = chunk.chunk_index
        self._transition(ExportPhase.RENDERING, chunk.first_frame_index)

        frames: list[Frame] = []
        try:
            rendered = await self._render_step.execute(RenderChunkInput(chunk=chunk))
            frames = rendered.frames
            await self._token.checkpoint(f"after rendering chunk {chunk.chunk_index}")

            self._transition(ExportPhase.ENCODING, chunk.end_frame_index)
            encoded = await self._encode_step.execute(
                EncodeChunkInput(
                    chunk_index=chunk.chunk_index,
                    frames=frames,
                    total_chunks=session.total_chunks,
                )
            )
            session.record_artifact(encoded.artifact)
        finally:
            frames.clear()
            session.release_frames()

        self._emit(ExportPhase.ENCODING, chunk.end_frame_index)
        await self._token.checkpoint(f"after chunk {chunk.chunk_index}")

    async def _merge(self) -> bytes:
        session = self._require_session()
        session.current_chunk = session.total_chunks
        self._transition(ExportPhase.MERGING, session.total_frames)

        merge_input = MergeSegmentsInput(artifacts=list(session.artifacts))
        if not self._merge_step.validate_inputs(merge_input):
            raise EncodeFailure(f"{len(session.artifacts)} segments cannot be merged")
        # the merge step deletes the segments from here on
        session.artifacts.clear()
        merged = await self._merge_step.execute(merge_input)
        return merged.data

    def _on_frame_rendered(self, frame: Frame) -> None:
        session = self._require_session()
        session.current_frame = frame.frame_index + 1
        session.hold_frame()
        self._emit(ExportPhase.RENDERING, session.current_frame)

    def _transition(self, phase: ExportPhase, current_frame: int) -> None:
        session = self._require_session()
        if session.phase != phase:
            logger.debug(f"Phase {session.phase.value} -> {phase.value}")
        session.phase = phase
        self._emit(phase, current_frame)

    def _emit(self, phase: ExportPhase, current_frame: int) -> None:
        session = self._require_session()
        session.current_frame = current_frame
        progress = self._progress.snapshot(
            phase,
            current_frame,
            session.current_chunk,
            elapsed_seconds=self._clock() - session.started_at,
        )
        if self.on_progress is not None:
            self.on_progress(progress)

    def _finish_unsuccessful(self, phase: ExportPhase, message: str) -> ExportResult:
        session = self._require_session()
        session.phase = phase
        if self.on_progress is not None:
            self.on_progress(
                self._progress.terminal(phase, session.current_frame, session.current_chunk, error=message)
            )
        return ExportResult(success=False, phase=phase, error=message)

    def _require_session(self) -> ExportSession:
        if self._session is None:
            raise RuntimeError("no export session")
        return self._session

    async def cleanup(self) -> None:
        """Release scratch segments, the engine and the frame source.

        Best effort and idempotent: failures are logged, never raised, so a
        cleanup problem cannot hide the reason the export stopped.
        """
        if self._cleaned:
            return
        self._cleaned = True

        engine, self._engine = self._engine, None
        if engine is not None:
            leftovers = list(self._session.artifacts) if self._session else []
            for artifact in leftovers:
                try:
                    await engine.delete_file(artifact.storage_handle)
                except Exception as exc:
                    logger.debug(f"Could not delete {artifact.storage_handle}: {exc}")
            if self._session:
                self._session.artifacts.clear()
            try:
                await engine.terminate()
            except Exception as exc:
                logger.warning(f"Encode engine did not terminate cleanly: {exc}")

        render_step, self._render_step = self._render_step, None
        if not self._source_disposed:
            self._source_disposed = True
            if render_step is not None:
                # never dispose under a render_at that outlived its deadline
                render_step.close(on_idle=self._dispose_source)
            else:
                self._dispose_source()
        elif render_step is not None:
            render_step.close()

        if self._session is not None:
            self._session.release_frames()
        self._context = None

    def _dispose_source(self) -> None:
        try:
            dispose_source(self.source)
        except Exception as exc:
            logger.warning(f"Frame source dispose failed: {exc}")


def run_export(source: Any, config: ExportConfig, **kwargs: Any) -> ExportResult:
    """Synchronous entry point: run one export on a fresh event loop.

    Sync renders run on the producer's own thread, so a render that missed
    its deadline does not hold up loop shutdown.
    """
    controller = ExportController(source, config, **kwargs)
    return asyncio.run(controller.start())
