"""Base class for all pipeline steps.

Every step declares typed Input, Output, Config via Pydantic models and runs
against a shared ``StepContext`` (export config, encode engine, cancellation
token). The session controller drives the steps chunk by chunk; a step never
holds state across calls.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Generic, TypeVar

from pydantic import BaseModel

from .cancellation import CancelToken
from .contracts import ExportConfig

if TYPE_CHECKING:
    from chunkex.engine.bridge import EngineBridge

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT", bound=BaseModel)
ConfigT = TypeVar("ConfigT", bound=BaseModel)

logger = logging.getLogger(__name__)


@dataclass
class StepContext:
    """Collaborators shared by the steps of one export session."""

    export: ExportConfig
    token: CancelToken = field(default_factory=CancelToken)
    engine: "EngineBridge | None" = None
    source: Any = None
    on_frame: Callable[[Any], None] | None = None

    def require_engine(self) -> "EngineBridge":
        if self.engine is None:
            raise RuntimeError("encode engine is not attached to this step context")
        return self.engine


class BaseStep(ABC, Generic[InputT, OutputT, ConfigT]):
    """Abstract base for pipeline steps.

    Subclasses must:
    1. Define concrete Pydantic models for InputT, OutputT, ConfigT
    2. Set class variables: input_type, output_type, config_type
    3. Implement run() and validate_inputs()

    Example:
        class EncodeChunkStep(BaseStep[EncodeChunkInput, EncodeChunkOutput, EncodeChunkConfig]):
            input_type = EncodeChunkInput
            output_type = EncodeChunkOutput
            config_type = EncodeChunkConfig

            async def run(self, inputs: EncodeChunkInput) -> EncodeChunkOutput: ...
            def validate_inputs(self, inputs: EncodeChunkInput) -> bool: ...
    """

    name: ClassVar[str] = ""
    input_type: ClassVar[type[BaseModel]]
    output_type: ClassVar[type[BaseModel]]
    config_type: ClassVar[type[BaseModel]]

    def __init__(self, config: ConfigT, context: StepContext):
        self.config = config
        self.context = context

    @abstractmethod
    async def run(self, inputs: InputT) -> OutputT:
        """Execute this pipeline step. Returns output model."""
        ...

    @abstractmethod
    def validate_inputs(self, inputs: InputT) -> bool:
        """Check that the inputs are consistent before any side effect."""
        ...

    async def execute(self, inputs: InputT) -> OutputT:
        """Run with logging, timing, and validation."""
        step_name = self.name or self.__class__.__name__

        if not self.validate_inputs(inputs):
            raise ValueError(f"[{step_name}] Input validation failed")

        logger.debug(f"[{step_name}] Starting...")
        t0 = time.perf_counter()
        result = await self.run(inputs)
        elapsed = time.perf_counter() - t0
        logger.debug(f"[{step_name}] Done in {elapsed:.2f}s")
        return result

    @classmethod
    def get_input_schema(cls) -> dict:
        """Return JSON schema for inputs."""
        return cls.input_type.model_json_schema()

    @classmethod
    def get_output_schema(cls) -> dict:
        """Return JSON schema for outputs."""
        return cls.output_type.model_json_schema()

    @classmethod
    def get_config_schema(cls) -> dict:
        """Return JSON schema for config."""
        return cls.config_type.model_json_schema()
