"""Cooperative cancellation flag consulted at pipeline checkpoints."""

from __future__ import annotations

import asyncio
import logging

from .errors import Cancelled

logger = logging.getLogger(__name__)


class CancelToken:
    """Set once by ``cancel()``; every later checkpoint raises ``Cancelled``.

    Nothing is interrupted: an in-flight render or engine command runs to
    completion and the next checkpoint stops the pipeline.
    """

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if not self._cancelled:
            logger.info("Cancellation requested")
        self._cancelled = True

    def raise_if_cancelled(self, where: str = "") -> None:
        if self._cancelled:
            raise Cancelled(where)

    async def checkpoint(self, where: str = "") -> None:
        """Yield to the event loop, then check the flag."""
        await asyncio.sleep(0)
        self.raise_if_cancelled(where)
