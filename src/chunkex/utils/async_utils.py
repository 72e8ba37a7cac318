"""Deadline helpers for awaited operations."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


async def with_timeout(awaitable: Awaitable[T], timeout_seconds: float, message: str) -> T:
    """Race ``awaitable`` against a deadline.

    Raises ``TimeoutError(message)`` when the deadline wins. A non-positive
    deadline awaits without a race.
    """
    if not timeout_seconds > 0:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        raise TimeoutError(message) from exc
