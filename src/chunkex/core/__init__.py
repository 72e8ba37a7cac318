"""chunkex core: contracts, clock, progress, cancellation, step base.

The session controller lives in ``chunkex.core.session`` and the job loader in
``chunkex.core.config``; both pull in the engine and steps, so they are not
imported here.
"""

from .contracts import (
    Chunk,
    Codec,
    ExportConfig,
    ExportPhase,
    ExportProgress,
    ExportResult,
    Frame,
    Sample,
    SegmentArtifact,
)
from .errors import (
    Cancelled,
    EncodeFailure,
    EngineError,
    ExportError,
    InitializationFailure,
    RenderFailure,
    RenderTimeout,
)
from .clock import plan_chunks, sample_time, total_frames
from .cancellation import CancelToken
from .progress import ProgressModel, ProgressWeights
from .step_base import BaseStep, StepContext
from .logging import setup_logging

__all__ = [
    "Chunk",
    "Codec",
    "ExportConfig",
    "ExportPhase",
    "ExportProgress",
    "ExportResult",
    "Frame",
    "Sample",
    "SegmentArtifact",
    "Cancelled",
    "EncodeFailure",
    "EngineError",
    "ExportError",
    "InitializationFailure",
    "RenderFailure",
    "RenderTimeout",
    "plan_chunks",
    "sample_time",
    "total_frames",
    "CancelToken",
    "ProgressModel",
    "ProgressWeights",
    "BaseStep",
    "StepContext",
    "setup_logging",
]
