"""Shared pytest fixtures for chunkex tests."""

from __future__ import annotations

import asyncio
from pathlib import PurePosixPath

import numpy as np
import pytest

from chunkex.core.contracts import ExportConfig
from chunkex.engine.bridge import EngineBridge
from chunkex.engine.worker import BaseEngineWorker


class MemoryWorker(BaseEngineWorker):
    """Engine worker keeping its namespace in a dict.

    Encoding writes ``[<chunk_dir>:<frame count>]`` as the segment bytes and
    concatenation joins the listed segments in list order, so tests can read
    the merge order straight from the output.
    """

    def __init__(self, fail_load: bool = False, fail_exec_at: int | None = None):
        self.files: dict[str, bytes] = {}
        self.dirs: set[str] = set()
        self.exec_calls: list[list[str]] = []
        self.write_log: list[tuple[str, bytes]] = []
        self.fail_load = fail_load
        self.fail_exec_at = fail_exec_at
        self.loaded = False
        self.closed = False

    @property
    def storage_empty(self) -> bool:
        return not self.files and not self.dirs

    def load(self) -> None:
        if self.fail_load:
            raise RuntimeError("ffmpeg executable not found")
        self.loaded = True

    def exec(self, args: list[str]) -> None:
        index = len(self.exec_calls)
        self.exec_calls.append(list(args))
        if self.fail_exec_at is not None and index == self.fail_exec_at:
            raise RuntimeError("ffmpeg exited with code 1: invalid data")

        source = args[args.index("-i") + 1]
        output = args[-1]
        if "concat" in args:
            listing = self.files[source].decode("utf-8")
            names = [line[len("file '"):-1] for line in listing.splitlines() if line]
            self.files[output] = b"".join(self.files[name] for name in names)
        else:
            chunk_dir = str(PurePosixPath(source).parent)
            frames = [p for p in self.files if p.startswith(chunk_dir + "/")]
            if not frames:
                raise RuntimeError(f"no input frames in {chunk_dir}")
            self.files[output] = f"[{chunk_dir}:{len(frames)}]".encode()

    def write_file(self, path: str, data: bytes) -> None:
        self.files[path] = bytes(data)
        self.write_log.append((path, bytes(data)))

    def read_file(self, path: str) -> bytes:
        return self.files[path]

    def delete_file(self, path: str) -> None:
        if path not in self.files:
            raise FileNotFoundError(path)
        del self.files[path]

    def create_dir(self, path: str) -> None:
        if path in self.dirs:
            raise FileExistsError(path)
        self.dirs.add(path)

    def delete_dir(self, path: str) -> None:
        if any(p.startswith(path + "/") for p in self.files):
            raise OSError(f"directory not empty: {path}")
        self.dirs.remove(path)

    def list_dir(self, path: str = ".") -> list[str]:
        if path == ".":
            return sorted({p.split("/")[0] for p in self.files} | self.dirs)
        return sorted(p[len(path) + 1:] for p in self.files if p.startswith(path + "/"))

    def close(self) -> None:
        self.closed = True


class SyncSource:
    """Deterministic RGBA source; pixel values depend only on ``t``."""

    def __init__(self, width: int = 100, height: int = 100, duration: float = 1.0, fail_at_call: int | None = None):
        self.width = width
        self.height = height
        self.duration = duration
        self.fail_at_call = fail_at_call
        self.calls: list[float] = []
        self.disposed = 0

    def render_at(self, t: float) -> np.ndarray:
        if self.fail_at_call is not None and len(self.calls) == self.fail_at_call:
            raise RuntimeError("boom")
        self.calls.append(t)
        surface = np.zeros((self.height, self.width, 4), dtype=np.uint8)
        surface[..., 0] = int(t * 1000) % 256
        surface[: self.height // 2, :, 1] = 200
        surface[..., 3] = 128
        return surface

    def dispose(self) -> None:
        self.disposed += 1


class AsyncSource(SyncSource):
    """Async ``render_at`` that records how many calls overlap."""

    def __init__(self, *args, delay: float = 0.0, slow_from_call: int | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.delay = delay
        self.slow_from_call = slow_from_call
        self.active = 0
        self.max_active = 0

    async def render_at(self, t: float) -> np.ndarray:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            slow = self.slow_from_call is not None and len(self.calls) >= self.slow_from_call
            await asyncio.sleep(self.delay if slow else 0)
            return SyncSource.render_at(self, t)
        finally:
            self.active -= 1


@pytest.fixture
def memory_worker() -> MemoryWorker:
    return MemoryWorker()


@pytest.fixture
def engine_factory(memory_worker: MemoryWorker):
    return lambda: EngineBridge(memory_worker)


@pytest.fixture
async def bridge(memory_worker: MemoryWorker):
    engine = EngineBridge(memory_worker)
    yield engine
    await engine.terminate()


@pytest.fixture
def sync_source() -> SyncSource:
    return SyncSource()


@pytest.fixture
def small_config() -> ExportConfig:
    """30 frames at 30 fps in 5 chunks of 6."""
    return ExportConfig(width=100, height=100, fps=30, duration=1.0, chunk_frame_count=6)
