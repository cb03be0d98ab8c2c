"""Bounded polling."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .exceptions import WaitTimeoutError

T = TypeVar("T")


async def wait_for_ready(
    poll_fn: Callable[[], Awaitable[T | None]],
    ready_check: Callable[[T], bool],
    *,
    timeout: float = 300.0,
    interval: float = 5.0,
    description: str = "resource",
) -> T:
    """Poll until ``ready_check`` accepts a result, or the deadline passes.

    ``poll_fn`` returns None while the resource is not visible yet, and
    raises to abort the wait. The last sleep is shortened so the final
    poll happens at the deadline rather than up to ``interval`` after it.

    Raises:
        WaitTimeoutError: No ready result within ``timeout`` seconds.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout

    while True:
        result = await poll_fn()
        if result is not None and ready_check(result):
            return result

        remaining = deadline - loop.time()
        if remaining <= 0:
            raise WaitTimeoutError(f"Timeout waiting for {description} after {timeout:.1f}s")

        await asyncio.sleep(min(interval, remaining))
