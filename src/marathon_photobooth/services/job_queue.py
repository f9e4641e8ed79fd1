"""Bounded-concurrency priority queue with start-rate pacing."""

import asyncio
import heapq
import itertools
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")

TaskFactory = Callable[[], Awaitable[T]]


class JobQueue:
    """Run async tasks under a concurrency cap and a per-interval start cap.

    At most ``concurrency`` tasks execute at once, and at most
    ``interval_cap`` tasks start within each fixed ``interval_seconds``
    bucket. Higher ``priority`` values are started first; tasks with equal
    priority start in submission order.

    The queue has no capacity limit of its own. Callers gate admission on
    :attr:`size` before calling :meth:`add`.
    """

    def __init__(
        self,
        concurrency: int = 2,
        interval_cap: int = 3,
        interval_seconds: float = 1.0,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if interval_cap < 1:
            raise ValueError("interval_cap must be at least 1")
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.concurrency = concurrency
        self.interval_cap = interval_cap
        self.interval_seconds = interval_seconds

        self._heap: list[tuple[int, int, TaskFactory[Any], asyncio.Future[Any]]] = []
        self._sequence = itertools.count()
        self._in_flight = 0
        self._bucket_start: float | None = None
        self._bucket_started = 0
        self._wakeup: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def size(self) -> int:
        """Tasks queued but not yet started."""
        return len(self._heap)

    @property
    def pending(self) -> int:
        """Tasks currently executing."""
        return self._in_flight

    def add(self, task: TaskFactory[T], priority: int = 0) -> "asyncio.Future[T]":
        """Queue ``task`` and return a future for its result.

        Args:
            task: Zero-argument callable returning an awaitable
            priority: Higher values start ahead of lower ones

        Returns:
            Future resolving to the task's result or raising its error
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()
        heapq.heappush(self._heap, (-priority, next(self._sequence), task, future))
        self._idle.clear()
        self._drain()
        return future

    async def join(self) -> None:
        """Wait until nothing is queued or running."""
        await self._idle.wait()

    def _drain(self) -> None:
        loop = asyncio.get_running_loop()

        while self._heap and self._in_flight < self.concurrency:
            now = loop.time()
            if (
                self._bucket_start is None
                or now - self._bucket_start >= self.interval_seconds
            ):
                self._bucket_start = now
                self._bucket_started = 0

            if self._bucket_started >= self.interval_cap:
                self._schedule_wakeup(self._bucket_start + self.interval_seconds - now)
                return

            _, _, task, future = heapq.heappop(self._heap)
            if future.cancelled():
                continue

            self._bucket_started += 1
            self._in_flight += 1
            running = loop.create_task(self._run(task, future))
            self._tasks.add(running)
            running.add_done_callback(self._tasks.discard)

        if not self._heap and self._in_flight == 0:
            self._idle.set()

    def _schedule_wakeup(self, delay: float) -> None:
        if self._wakeup is not None:
            return
        loop = asyncio.get_running_loop()
        self._wakeup = loop.call_later(max(delay, 0.0), self._on_wakeup)

    def _on_wakeup(self) -> None:
        self._wakeup = None
        self._drain()

    async def _run(self, task: TaskFactory[Any], future: asyncio.Future[Any]) -> None:
        try:
            result = await task()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            if not future.done():
                future.set_exception(e)
        else:
            if not future.done():
                future.set_result(result)
        finally:
            self._in_flight -= 1
            self._drain()

    async def close(self) -> None:
        """Cancel queued and running tasks."""
        if self._wakeup is not None:
            self._wakeup.cancel()
            self._wakeup = None

        while self._heap:
            _, _, _, future = heapq.heappop(self._heap)
            future.cancel()

        running = list(self._tasks)
        for task in running:
            task.cancel()
        if running:
            await asyncio.gather(*running, return_exceptions=True)

        logger.info("Generation queue closed", cancelled_running=len(running))
        self._idle.set()
