"""Tests for the burst rate limiter."""

import asyncio
import math

import pytest

from crosswalk.domain.matching import QueueClearedError
from crosswalk.infrastructure.connectors import RateLimiter


def _returning(value, log=None):
    async def operation():
        if log is not None:
            log.append(value)
        return value

    return operation


def _blocking(started: asyncio.Event, release: asyncio.Event, value="first"):
    async def operation():
        started.set()
        await release.wait()
        return value

    return operation


class TestConstruction:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"requests_per_second": 0},
            {"requests_per_second": -1},
            {"requests_per_second": 5, "burst_size": 0},
            {"requests_per_second": 5, "max_queue_size": -1},
        ],
    )
    async def test_invalid_arguments_raise(self, kwargs):
        with pytest.raises(ValueError):
            RateLimiter(**kwargs)

    async def test_min_interval(self):
        assert RateLimiter(requests_per_second=4).min_interval == 0.25


class TestExecute:
    """Test dispatch order, error isolation and throughput."""

    async def test_returns_operation_result(self):
        limiter = RateLimiter(requests_per_second=100)
        assert await limiter.execute(_returning(42)) == 42

    async def test_operations_run_in_fifo_order(self):
        limiter = RateLimiter(requests_per_second=200, burst_size=1)
        log: list[int] = []

        await asyncio.gather(*(limiter.execute(_returning(i, log)) for i in range(6)))

        assert log == list(range(6))

    async def test_failure_reaches_only_its_caller(self):
        limiter = RateLimiter(requests_per_second=100, burst_size=3)

        async def failing():
            raise RuntimeError("boom")

        results = await asyncio.gather(
            limiter.execute(_returning("a")),
            limiter.execute(failing),
            limiter.execute(_returning("c")),
            return_exceptions=True,
        )

        assert results[0] == "a"
        assert isinstance(results[1], RuntimeError)
        assert results[2] == "c"

    async def test_cancelled_operation_does_not_stall_queue(self):
        limiter = RateLimiter(requests_per_second=100, burst_size=1)

        async def cancelled():
            raise asyncio.CancelledError

        first = asyncio.create_task(limiter.execute(cancelled))
        second = asyncio.create_task(limiter.execute(_returning("after")))

        assert await asyncio.wait_for(second, timeout=2.0) == "after"
        with pytest.raises(asyncio.CancelledError):
            await asyncio.wait_for(first, timeout=2.0)
        assert first.cancelled()

    @pytest.mark.slow
    async def test_throughput_lower_bound(self):
        """N calls at rate R and burst B take at least (ceil(N/B) - 1) / R seconds."""
        rate, burst, count = 20.0, 2, 7
        limiter = RateLimiter(requests_per_second=rate, burst_size=burst)
        loop = asyncio.get_running_loop()

        started = loop.time()
        await asyncio.gather(*(limiter.execute(_returning(i)) for i in range(count)))
        elapsed = loop.time() - started

        expected = (math.ceil(count / burst) - 1) / rate
        # Small slack for timer granularity
        assert elapsed >= expected - 0.01

    async def test_stats_count_dispatched_calls(self):
        limiter = RateLimiter(requests_per_second=200, burst_size=2)

        await asyncio.gather(*(limiter.execute(_returning(i)) for i in range(4)))

        stats = limiter.stats()
        assert stats.dispatched == 4
        assert stats.queue_length == 0
        assert stats.total_wait_time > 0


class TestQueueManagement:
    """Test clearing the queue and backpressure."""

    async def test_clear_queue_fails_pending_callers(self):
        limiter = RateLimiter(requests_per_second=100, burst_size=1)
        started, release = asyncio.Event(), asyncio.Event()

        first = asyncio.create_task(limiter.execute(_blocking(started, release)))
        await started.wait()
        pending = [
            asyncio.create_task(limiter.execute(_returning(i))) for i in range(2)
        ]
        await asyncio.sleep(0)

        assert limiter.queue_length == 2
        assert limiter.clear_queue() == 2
        assert limiter.queue_length == 0

        release.set()
        assert await first == "first"
        for task in pending:
            with pytest.raises(QueueClearedError):
                await task

    async def test_clear_empty_queue(self):
        assert RateLimiter(requests_per_second=1).clear_queue() == 0

    async def test_bounded_queue_applies_backpressure(self):
        limiter = RateLimiter(requests_per_second=200, burst_size=1, max_queue_size=1)
        started, release = asyncio.Event(), asyncio.Event()

        first = asyncio.create_task(limiter.execute(_blocking(started, release)))
        await started.wait()
        queued = asyncio.create_task(limiter.execute(_returning("queued")))
        waiting = asyncio.create_task(limiter.execute(_returning("waiting")))
        for _ in range(3):
            await asyncio.sleep(0)

        # One slot: the third caller is still waiting to enqueue
        assert limiter.queue_length == 1
        assert not waiting.done()

        release.set()
        assert await asyncio.gather(first, queued, waiting) == [
            "first",
            "queued",
            "waiting",
        ]
