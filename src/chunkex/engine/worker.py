"""Encode engine workers.

A worker executes one ``EngineRequest`` at a time against its own virtual
file namespace and answers with an ``EngineResponse``. ``handle`` never
raises: failures travel back to the bridge as error responses.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath

from chunkex.utils.subprocess_utils import (
    find_executable,
    last_progress_value,
    list_ffmpeg_encoders,
    run_command,
)
from .commands import required_encoders
from .protocol import EngineOp, EngineRequest, EngineResponse, EngineSettings

logger = logging.getLogger(__name__)


class BaseEngineWorker(ABC):
    """Dispatches requests to the operation methods of a concrete engine."""

    def handle(self, request: EngineRequest) -> EngineResponse:
        payload = request.payload
        try:
            if request.op == EngineOp.LOAD:
                data = self.load()
            elif request.op == EngineOp.EXEC:
                data = self.exec(list(payload["args"]))
            elif request.op == EngineOp.WRITE_FILE:
                data = self.write_file(payload["path"], payload["data"])
            elif request.op == EngineOp.READ_FILE:
                data = self.read_file(payload["path"])
            elif request.op == EngineOp.DELETE_FILE:
                data = self.delete_file(payload["path"])
            elif request.op == EngineOp.CREATE_DIR:
                data = self.create_dir(payload["path"])
            elif request.op == EngineOp.DELETE_DIR:
                data = self.delete_dir(payload["path"])
            elif request.op == EngineOp.LIST_DIR:
                data = self.list_dir(payload.get("path", "."))
            elif request.op == EngineOp.TERMINATE:
                data = self.close()
            else:
                raise ValueError(f"unsupported engine op: {request.op}")
        except Exception as exc:
            logger.debug(f"Engine request {request.id} ({request.op.value}) failed: {exc}")
            return EngineResponse(id=request.id, success=False, error=str(exc) or exc.__class__.__name__)
        return EngineResponse(id=request.id, success=True, data=data)

    @abstractmethod
    def load(self) -> None: ...

    @abstractmethod
    def exec(self, args: list[str]) -> None: ...

    @abstractmethod
    def write_file(self, path: str, data: bytes) -> None: ...

    @abstractmethod
    def read_file(self, path: str) -> bytes: ...

    @abstractmethod
    def delete_file(self, path: str) -> None: ...

    @abstractmethod
    def create_dir(self, path: str) -> None: ...

    @abstractmethod
    def delete_dir(self, path: str) -> None: ...

    @abstractmethod
    def list_dir(self, path: str = ".") -> list[str]: ...

    @abstractmethod
    def close(self) -> None: ...


class FFmpegWorker(BaseEngineWorker):
    """Local ffmpeg binary operating on a private temporary directory."""

    def __init__(self, settings: EngineSettings | None = None):
        self.settings = settings or EngineSettings()
        self._ffmpeg: str | None = None
        self._root: Path | None = None

    @property
    def root(self) -> Path:
        if self._root is None:
            raise RuntimeError("engine is not loaded")
        return self._root

    def _resolve(self, path: str) -> Path:
        rel = PurePosixPath(path)
        if rel.is_absolute() or ".." in rel.parts:
            raise ValueError(f"path escapes the engine namespace: {path}")
        return self.root.joinpath(*rel.parts)

    def load(self) -> None:
        if self._root is not None:
            return
        ffmpeg = find_executable("ffmpeg", self.settings.ffmpeg_path)
        if ffmpeg is None:
            raise RuntimeError("ffmpeg executable not found (set engine.ffmpeg_path or add it to PATH)")
        if self.settings.check_encoders:
            available = list_ffmpeg_encoders(ffmpeg)
            missing = [name for name in required_encoders() if name not in available]
            if missing:
                raise RuntimeError(f"ffmpeg at {ffmpeg} lacks encoders: {', '.join(missing)}")

        parent = self.settings.scratch_dir
        if parent is not None:
            Path(parent).mkdir(parents=True, exist_ok=True)
        self._root = Path(tempfile.mkdtemp(prefix="chunkex_", dir=parent))
        self._ffmpeg = ffmpeg
        logger.info(f"Encode engine ready: {ffmpeg} (scratch {self._root})")

    def exec(self, args: list[str]) -> None:
        if self._ffmpeg is None:
            raise RuntimeError("engine is not loaded")
        cmd = [self._ffmpeg, "-hide_banner", "-nostdin", "-loglevel", self.settings.loglevel, *args]
        try:
            result = run_command(cmd, cwd=self.root, timeout=self.settings.command_timeout_seconds)
        except subprocess.CalledProcessError as exc:
            tail = (exc.stderr or "").strip()[-500:]
            raise RuntimeError(f"ffmpeg exited with code {exc.returncode}: {tail}") from exc
        except subprocess.TimeoutExpired as exc:
            raise RuntimeError(f"ffmpeg timed out after {exc.timeout}s") from exc

        frames = last_progress_value(result.stdout, "frame")
        if frames is not None:
            logger.debug(f"ffmpeg processed {frames} frames")

    def write_file(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    def read_file(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    def delete_file(self, path: str) -> None:
        self._resolve(path).unlink()

    def create_dir(self, path: str) -> None:
        self._resolve(path).mkdir(parents=True, exist_ok=False)

    def delete_dir(self, path: str) -> None:
        # must be empty, like rmdir
        self._resolve(path).rmdir()

    def list_dir(self, path: str = ".") -> list[str]:
        return sorted(p.name for p in self._resolve(path).iterdir())

    def close(self) -> None:
        if self._root is not None:
            shutil.rmtree(self._root, ignore_errors=True)
            logger.debug(f"Removed engine scratch {self._root}")
        self._root = None
        self._ffmpeg = None
