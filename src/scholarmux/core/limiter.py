"""Concurrency limiter — a FIFO counting semaphore for burst-sensitive upstreams.

One instance is shared by every adapter whose upstream rate-limits
aggressively, so concurrent user requests contend on the same permits.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConcurrencyLimiter:
    """Bounds the number of simultaneous in-flight calls.

    Waiters are served strictly in arrival order. A released permit is
    handed directly to the oldest waiter instead of going back to the pool,
    so a newcomer can never overtake a queued caller.

    Args:
        max_concurrent: Number of permits.
    """

    def __init__(self, max_concurrent: int = 2) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self._max = max_concurrent
        self._active = 0
        self._waiters: deque[asyncio.Future[None]] = deque()

    @property
    def max_concurrent(self) -> int:
        return self._max

    @property
    def active(self) -> int:
        """Permits currently held."""
        return self._active

    @property
    def waiting(self) -> int:
        """Callers queued for a permit."""
        return len(self._waiters)

    async def acquire(self) -> None:
        """Take a permit, waiting in FIFO order if none is free."""
        if self._active < self._max and not self._waiters:
            self._active += 1
            return

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Permit was handed over just before cancellation; pass it on.
                self.release()
            elif waiter in self._waiters:
                self._waiters.remove(waiter)
            raise

    def release(self) -> None:
        """Return a permit, handing it to the oldest live waiter if any."""
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        if self._active <= 0:
            raise RuntimeError("release() called more times than acquire()")
        self._active -= 1

    async def run(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Run ``fn`` while holding a permit; the permit is always released."""
        await self.acquire()
        try:
            return await fn(*args, **kwargs)
        finally:
            self.release()

    def __repr__(self) -> str:
        return f"ConcurrencyLimiter(max={self._max}, active={self._active}, waiting={self.waiting})"
