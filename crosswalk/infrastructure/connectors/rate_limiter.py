"""Queue-based rate limiting for target catalog calls.

All outbound calls to the target catalog go through one ``RateLimiter`` per
provider. Calls are queued in arrival order and dispatched in bursts: once the
minimum interval derived from ``requests_per_second`` has elapsed since the
previous burst finished, up to ``burst_size`` queued calls run together.

Usage:
    limiter = RateLimiter(requests_per_second=5, burst_size=2)
    tracks = await limiter.execute(lambda: client.search_tracks("Creep", 10))
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from attrs import define, field, validators

from crosswalk.config import get_logger
from crosswalk.domain.matching import QueueClearedError

logger = get_logger(__name__).bind(service="rate_limiter")


@define(frozen=True, slots=True)
class RateLimiterStats:
    """Point-in-time counters for a limiter."""

    dispatched: int
    total_wait_time: float
    queue_length: int


@define(slots=True)
class _QueuedCall:
    operation: Callable[[], Awaitable[Any]]
    future: asyncio.Future


@define(slots=True)
class RateLimiter:
    """FIFO execution queue bounding throughput to a rate and burst size.

    Attributes:
        requests_per_second: Ceiling on average dispatch rate
        burst_size: Queued calls dispatched together per interval
        max_queue_size: Pending calls allowed before ``execute`` waits for
            space; 0 leaves the queue unbounded
        name: Label used in log records

    A failing call's exception reaches only its own caller; siblings in the
    same burst are unaffected. Safe for concurrent use from many tasks on the
    same event loop.
    """

    requests_per_second: float = field(validator=validators.gt(0))
    burst_size: int = field(default=1, validator=validators.ge(1))
    max_queue_size: int = field(default=0, validator=validators.ge(0))
    name: str = "catalog"

    _queue: asyncio.Queue = field(init=False)
    _dispatcher: asyncio.Task | None = field(init=False, default=None)
    _last_burst_at: float | None = field(init=False, default=None)
    _dispatched: int = field(init=False, default=0)
    _total_wait_time: float = field(init=False, default=0.0)

    def __attrs_post_init__(self) -> None:
        self._queue = asyncio.Queue(maxsize=self.max_queue_size)

    @property
    def min_interval(self) -> float:
        """Seconds between the end of one burst and the start of the next."""
        return 1.0 / self.requests_per_second

    @property
    def queue_length(self) -> int:
        return self._queue.qsize()

    async def execute[T](self, operation: Callable[[], Awaitable[T]]) -> T:
        """Queue ``operation`` and return its result once dispatched.

        Args:
            operation: Zero-argument callable returning an awaitable; it is not
                invoked until the limiter dispatches it

        Raises:
            Whatever ``operation`` raises, or QueueClearedError if the call was
            dropped by ``clear_queue`` before dispatch
        """
        future = asyncio.get_running_loop().create_future()
        # Waits here when a bounded queue is full
        await self._queue.put(_QueuedCall(operation=operation, future=future))
        self._ensure_dispatcher()
        return await future

    def clear_queue(self) -> int:
        """Drop every pending call; their callers receive QueueClearedError."""
        dropped = 0
        while not self._queue.empty():
            call = self._queue.get_nowait()
            if not call.future.done():
                call.future.set_exception(
                    QueueClearedError(f"{self.name} rate limiter queue was cleared")
                )
            dropped += 1

        if dropped:
            logger.info(f"Cleared {dropped} pending {self.name} calls", dropped=dropped)
        return dropped

    def stats(self) -> RateLimiterStats:
        return RateLimiterStats(
            dispatched=self._dispatched,
            total_wait_time=self._total_wait_time,
            queue_length=self.queue_length,
        )

    def _ensure_dispatcher(self) -> None:
        if self._dispatcher is None or self._dispatcher.done():
            self._dispatcher = asyncio.create_task(self._drain())

    async def _drain(self) -> None:
        """Dispatch queued calls in bursts until the queue is empty."""
        loop = asyncio.get_running_loop()

        while not self._queue.empty():
            if self._last_burst_at is not None:
                delay = self.min_interval - (loop.time() - self._last_burst_at)
                if delay > 0:
                    self._total_wait_time += delay
                    await asyncio.sleep(delay)

            burst: list[_QueuedCall] = []
            while len(burst) < self.burst_size and not self._queue.empty():
                burst.append(self._queue.get_nowait())
            if not burst:
                break

            logger.trace(
                f"Dispatching {len(burst)} {self.name} calls",
                burst=len(burst),
                pending=self.queue_length,
            )
            await asyncio.gather(*(self._run(call) for call in burst))
            self._dispatched += len(burst)
            self._last_burst_at = loop.time()

    @staticmethod
    async def _run(call: _QueuedCall) -> None:
        if call.future.done():
            # Caller went away before dispatch
            return
        try:
            result = await call.operation()
        except asyncio.CancelledError:
            call.future.cancel()
            # Only the dispatcher's own cancellation stops the drain loop
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
        except Exception as e:
            if not call.future.done():
                call.future.set_exception(e)
        else:
            if not call.future.done():
                call.future.set_result(result)
