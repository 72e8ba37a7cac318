"""Tests for the async engine bridge."""

import asyncio

import pytest

from chunkex.core.errors import EngineError
from chunkex.engine.bridge import EngineBridge, create_ffmpeg_bridge
from chunkex.engine.protocol import EngineOp, EngineRequest, EngineSettings
from chunkex.engine.worker import FFmpegWorker

from conftest import MemoryWorker


class TestRequests:
    async def test_file_round_trip(self, bridge, memory_worker):
        await bridge.create_dir("chunk_000")
        await bridge.write_file("chunk_000/frame_0000.png", b"png")
        assert await bridge.read_file("chunk_000/frame_0000.png") == b"png"
        assert await bridge.list_dir("chunk_000") == ["frame_0000.png"]
        await bridge.delete_file("chunk_000/frame_0000.png")
        await bridge.delete_dir("chunk_000")
        assert memory_worker.storage_empty

    async def test_auto_start(self, bridge):
        assert not bridge.running
        await bridge.load()
        assert bridge.running

    async def test_error_response_raises(self, bridge):
        with pytest.raises(EngineError) as exc_info:
            await bridge.read_file("missing.mov")
        assert exc_info.value.op == "read_file"
        assert "missing.mov" in str(exc_info.value)

    async def test_exec_forwards_args(self, bridge, memory_worker):
        await bridge.write_file("chunk_000/frame_0000.png", b"png")
        args = ["-f", "image2", "-i", "chunk_000/frame_%04d.png", "part_000.mov"]
        await bridge.exec(args)
        assert memory_worker.exec_calls == [args]

    async def test_request_without_queue_raises_engine_error(self, memory_worker):
        class NeverStarted(EngineBridge):
            async def start(self):
                pass

        engine = NeverStarted(memory_worker)
        with pytest.raises(EngineError, match="not been started") as exc_info:
            await engine.load()
        assert exc_info.value.op == "load"
        assert not memory_worker.loaded
        assert await bridge.read_file("part_000.mov") == b"[chunk_000:1]"

    async def test_concurrent_requests_resolve_by_id(self, bridge):
        names = [f"file_{i}.bin" for i in range(20)]
        await asyncio.gather(*(bridge.write_file(n, n.encode()) for n in names))
        contents = await asyncio.gather(*(bridge.read_file(n) for n in names))
        assert contents == [n.encode() for n in names]


class TestTerminate:
    async def test_terminate_closes_worker(self, memory_worker):
        engine = EngineBridge(memory_worker)
        await engine.load()
        await engine.terminate()
        assert memory_worker.closed
        assert engine.terminated
        assert not engine.running

    async def test_terminate_idempotent(self, memory_worker):
        engine = EngineBridge(memory_worker)
        await engine.terminate()
        await engine.terminate()
        assert engine.terminated

    async def test_requests_after_terminate_fail(self, memory_worker):
        engine = EngineBridge(memory_worker)
        await engine.terminate()
        with pytest.raises(EngineError):
            await engine.write_file("a.bin", b"a")
        with pytest.raises(EngineError):
            await engine.start()

    async def test_context_manager(self):
        worker = MemoryWorker()
        async with EngineBridge(worker) as engine:
            await engine.load()
            assert engine.running
        assert worker.closed


class TestWorkerDispatch:
    def test_failure_becomes_response(self, memory_worker):
        response = memory_worker.handle(EngineRequest(id=7, op=EngineOp.READ_FILE, payload={"path": "x"}))
        assert response.id == 7
        assert not response.success
        assert response.error

    def test_success_carries_data(self, memory_worker):
        memory_worker.handle(EngineRequest(id=1, op=EngineOp.WRITE_FILE, payload={"path": "a", "data": b"1"}))
        response = memory_worker.handle(EngineRequest(id=2, op=EngineOp.READ_FILE, payload={"path": "a"}))
        assert response.success
        assert response.data == b"1"

    def test_factory_builds_ffmpeg_worker(self):
        engine = create_ffmpeg_bridge(EngineSettings(loglevel="warning"))
        assert isinstance(engine.worker, FFmpegWorker)
        assert engine.worker.settings.loglevel == "warning"
