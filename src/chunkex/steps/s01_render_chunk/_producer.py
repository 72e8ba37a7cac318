"""Frame producer: drives the frame source sample by sample."""

from __future__ import annotations

import asyncio
import inspect
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

from chunkex.core.cancellation import CancelToken
from chunkex.core.clock import sample_time, total_frames
from chunkex.core.contracts import ExportConfig, Frame, Sample
from chunkex.core.errors import Cancelled, RenderFailure, RenderTimeout
from chunkex.utils.async_utils import with_timeout
from ._compose import compose_frame, encode_png, to_rgba

logger = logging.getLogger(__name__)


class FrameProducer:
    """Renders frames strictly in index order, one ``render_at`` call per sample.

    The source is never entered concurrently: frame ``i + 1`` starts only
    after frame ``i`` has been captured as PNG bytes.
    """

    def __init__(
        self,
        source: Any,
        export: ExportConfig,
        token: CancelToken | None = None,
        timeout_seconds: float = 30.0,
        offload_sync_render: bool = True,
        png_compression: int = 3,
    ):
        self.source = source
        self.export = export
        self.token = token or CancelToken()
        self.timeout_seconds = timeout_seconds
        self.offload_sync_render = offload_sync_render
        self.png_compression = png_compression
        self.source_duration = float(getattr(source, "duration", 0.0) or 0.0)
        self.total_frames = total_frames(export)
        self._executor: ThreadPoolExecutor | None = None
        self._inflight: Future | None = None
        self._closed = False

    def sample(self, frame_index: int) -> Sample:
        return Sample(
            frame_index=frame_index,
            source_time=sample_time(frame_index, self.export, self.source_duration),
        )

    @property
    def busy(self) -> bool:
        """True while a synchronous ``render_at`` is still running in the render thread."""
        return self._inflight is not None and not self._inflight.done()

    def _submit(self, render_at: Callable[[float], Any], t: float) -> asyncio.Future:
        if self._closed:
            raise RuntimeError("frame producer is closed")
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="frame-render")
        self._inflight = self._executor.submit(render_at, t)
        return asyncio.wrap_future(self._inflight)

    async def _call(self, t: float) -> Any:
        render_at = self.source.render_at
        if inspect.iscoroutinefunction(render_at) or not self.offload_sync_render:
            result = render_at(t)
        else:
            result = await self._submit(render_at, t)
        # a plain render_at may still hand back an awaitable
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _invoke(self, t: float) -> Any:
        message = f"render_at({t:.4f}) did not finish within {self.timeout_seconds:g}s"
        return await with_timeout(self._call(t), self.timeout_seconds, message)

    def close(self, on_idle: Callable[[], None] | None = None) -> bool:
        """Release the render thread without joining it.

        A render that outlived its deadline keeps running in the background;
        ``on_idle`` then runs once it returns, otherwise right away. Returns
        False when the call was deferred.
        """
        self._closed = True
        inflight, self._inflight = self._inflight, None
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

        if inflight is not None and not inflight.done():
            logger.warning("A render_at call is still running; source release deferred until it returns")
            if on_idle is not None:
                inflight.add_done_callback(lambda _future: on_idle())
            return False
        if on_idle is not None:
            on_idle()
        return True

    async def render_frame(self, frame_index: int) -> Frame:
        if not 0 <= frame_index < self.total_frames:
            raise ValueError(f"frame_index {frame_index} outside [0, {self.total_frames})")
        sample = self.sample(frame_index)

        try:
            surface = await self._invoke(sample.source_time)
        except TimeoutError as exc:
            raise RenderTimeout(frame_index, self.timeout_seconds) from exc
        except Cancelled:
            raise
        except Exception as exc:
            raise RenderFailure(frame_index, str(exc) or exc.__class__.__name__) from exc

        try:
            rgba = to_rgba(surface, (int(self.source.width), int(self.source.height)))
            composed = compose_frame(rgba, self.export.width, self.export.height, self.export.content_scale)
            data = encode_png(composed, self.png_compression)
        except (ValueError, RuntimeError) as exc:
            raise RenderFailure(frame_index, str(exc)) from exc

        return Frame(frame_index=frame_index, source_time=sample.source_time, data=data)

    async def render_chunk(
        self,
        start_index: int,
        count: int,
        on_frame: Callable[[Frame], None] | None = None,
    ) -> list[Frame]:
        """Render ``count`` frames from ``start_index``; checks cancellation before each one."""
        end = min(start_index + count, self.total_frames)
        frames: list[Frame] = []
        try:
            for index in range(start_index, end):
                self.token.raise_if_cancelled(f"before frame {index}")
                frame = await self.render_frame(index)
                frames.append(frame)
                if on_frame is not None:
                    on_frame(frame)
                await asyncio.sleep(0)
        except BaseException:
            # partial chunks are never handed on
            frames.clear()
            raise
        return frames
