"""Contract for deterministic frame sources."""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Protocol, Union, runtime_checkable

import numpy as np

Surface = np.ndarray
RenderReturn = Union[Surface, Awaitable[Surface]]


@runtime_checkable
class FrameSource(Protocol):
    """Anything that renders one surface per requested time.

    ``render_at(t)`` must be a pure function of ``t`` in ``[0, duration]``:
    no wall clock, no hidden timers. It returns an ``H x W x 4`` (RGBA) or
    ``H x W x 3`` (RGB, treated as opaque) ``uint8`` array, or an awaitable
    resolving to one. ``dispose()`` is optional and is looked up at cleanup.
    """

    width: int
    height: int
    duration: float

    def render_at(self, t: float) -> RenderReturn: ...


def dispose_source(source: object) -> None:
    dispose = getattr(source, "dispose", None)
    if callable(dispose):
        dispose()
