"""Failure taxonomy of the export pipeline."""

from __future__ import annotations


class ExportError(Exception):
    """Base class for fatal export failures."""


class InitializationFailure(ExportError):
    """Encode engine unavailable or frame source unusable."""


class RenderTimeout(ExportError):
    def __init__(self, frame_index: int, timeout_seconds: float):
        self.frame_index = frame_index
        self.timeout_seconds = timeout_seconds
        super().__init__(f"render_at timed out after {timeout_seconds:g}s at frame {frame_index}")


class RenderFailure(ExportError):
    def __init__(self, frame_index: int, reason: str):
        self.frame_index = frame_index
        self.reason = reason
        super().__init__(f"render failed at frame {frame_index}: {reason}")


class EncodeFailure(ExportError):
    """The encode engine rejected a command or a storage operation."""


class EngineError(Exception):
    """A request to the encode engine returned an error response."""

    def __init__(self, op: str, message: str):
        self.op = op
        super().__init__(f"{op}: {message}")


class Cancelled(Exception):
    """Raised at a checkpoint once cancellation has been requested."""

    def __init__(self, where: str = ""):
        self.where = where
        super().__init__(f"export cancelled ({where})" if where else "export cancelled")
