"""Async request/response channel to a single encode engine worker.

One worker task per session drains a request queue; each request runs in a
thread so a long ffmpeg command does not block the event loop, and its
response resolves the caller's future by correlation id.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any

from chunkex.core.errors import EngineError
from .protocol import EngineOp, EngineRequest, EngineResponse, EngineSettings
from .worker import BaseEngineWorker, FFmpegWorker

logger = logging.getLogger(__name__)


class EngineBridge:
    def __init__(self, worker: BaseEngineWorker):
        self.worker = worker
        self._queue: asyncio.Queue[EngineRequest] | None = None
        self._task: asyncio.Task | None = None
        self._pending: dict[int, asyncio.Future[EngineResponse]] = {}
        self._ids = itertools.count(1)
        self._terminated = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def terminated(self) -> bool:
        return self._terminated

    async def start(self) -> None:
        if self._terminated:
            raise EngineError("start", "engine has been terminated")
        if self._task is not None:
            return
        self._queue = asyncio.Queue()
        self._task = asyncio.create_task(self._serve(self._queue), name="encode-engine")

    async def _serve(self, queue: asyncio.Queue[EngineRequest]) -> None:
        while True:
            request = await queue.get()
            response = await asyncio.to_thread(self.worker.handle, request)
            future = self._pending.pop(response.id, None)
            if future is not None and not future.done():
                future.set_result(response)

    async def request(self, op: EngineOp, **payload: Any) -> Any:
        if self._terminated:
            raise EngineError(op.value, "engine has been terminated")
        if self._task is None:
            await self.start()
        queue = self._queue
        if queue is None:
            raise EngineError(op.value, "engine has not been started")

        request_id = next(self._ids)
        future: asyncio.Future[EngineResponse] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        await queue.put(EngineRequest(id=request_id, op=op, payload=payload))

        response = await future
        if not response.success:
            raise EngineError(op.value, response.error or "unknown error")
        return response.data

    async def load(self) -> None:
        await self.request(EngineOp.LOAD)

    async def exec(self, args: list[str]) -> None:
        logger.debug(f"exec: ffmpeg {' '.join(args)}")
        await self.request(EngineOp.EXEC, args=list(args))

    async def write_file(self, path: str, data: bytes) -> None:
        await self.request(EngineOp.WRITE_FILE, path=path, data=data)

    async def read_file(self, path: str) -> bytes:
        return await self.request(EngineOp.READ_FILE, path=path)

    async def delete_file(self, path: str) -> None:
        await self.request(EngineOp.DELETE_FILE, path=path)

    async def create_dir(self, path: str) -> None:
        await self.request(EngineOp.CREATE_DIR, path=path)

    async def delete_dir(self, path: str) -> None:
        await self.request(EngineOp.DELETE_DIR, path=path)

    async def list_dir(self, path: str = ".") -> list[str]:
        return await self.request(EngineOp.LIST_DIR, path=path)

    async def terminate(self) -> None:
        """Stop the worker task and release the worker. Safe to call repeatedly."""
        if self._terminated:
            return
        self._terminated = True

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        for future in self._pending.values():
            if not future.done():
                future.set_exception(EngineError("terminate", "engine terminated with request pending"))
        self._pending.clear()

        response = await asyncio.to_thread(
            self.worker.handle, EngineRequest(id=0, op=EngineOp.TERMINATE)
        )
        if not response.success:
            logger.warning(f"Engine worker did not close cleanly: {response.error}")

    async def __aenter__(self) -> "EngineBridge":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.terminate()


def create_ffmpeg_bridge(settings: EngineSettings | None = None) -> EngineBridge:
    return EngineBridge(FFmpegWorker(settings))
