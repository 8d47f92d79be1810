"""Tests for the FIFO concurrency limiter."""

from __future__ import annotations

import asyncio

import pytest

from scholarmux.core.limiter import ConcurrencyLimiter


class TestConcurrencyBound:
    @pytest.mark.asyncio
    async def test_at_most_n_run_at_once(self) -> None:
        limiter = ConcurrencyLimiter(2)
        running = 0
        peak = 0
        completed: list[int] = []

        async def job(i: int) -> int:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            completed.append(i)
            return i

        results = await asyncio.gather(*(limiter.run(job, i) for i in range(7)))

        assert results == list(range(7))
        assert peak == 2
        assert sorted(completed) == list(range(7))
        assert limiter.active == 0
        assert limiter.waiting == 0

    @pytest.mark.asyncio
    async def test_waiters_are_served_in_arrival_order(self) -> None:
        limiter = ConcurrencyLimiter(1)
        started: list[int] = []
        gate = asyncio.Event()

        async def job(i: int) -> None:
            started.append(i)
            await gate.wait()

        tasks = [asyncio.create_task(limiter.run(job, i)) for i in range(4)]
        await asyncio.sleep(0)
        assert started == [0]
        assert limiter.waiting == 3

        gate.set()
        await asyncio.gather(*tasks)
        assert started == [0, 1, 2, 3]


class TestRelease:
    @pytest.mark.asyncio
    async def test_permit_released_when_function_raises(self) -> None:
        limiter = ConcurrencyLimiter(1)

        async def boom() -> None:
            raise ValueError("boom")

        with pytest.raises(ValueError):
            await limiter.run(boom)
        assert limiter.active == 0

        async def ok() -> str:
            return "ok"

        assert await limiter.run(ok) == "ok"

    @pytest.mark.asyncio
    async def test_release_without_acquire_raises(self) -> None:
        limiter = ConcurrencyLimiter(1)
        with pytest.raises(RuntimeError):
            limiter.release()

    @pytest.mark.asyncio
    async def test_cancelled_waiter_leaves_queue(self) -> None:
        limiter = ConcurrencyLimiter(1)
        await limiter.acquire()

        waiter = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)
        assert limiter.waiting == 1

        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        assert limiter.waiting == 0

        limiter.release()
        assert limiter.active == 0


class TestConfiguration:
    def test_rejects_zero_permits(self) -> None:
        with pytest.raises(ValueError):
            ConcurrencyLimiter(0)

    def test_repr(self) -> None:
        assert repr(ConcurrencyLimiter(3)) == "ConcurrencyLimiter(max=3, active=0, waiting=0)"
