"""Tests for the bounded-concurrency generation queue."""

import asyncio
from collections.abc import Awaitable, Callable

import pytest

from marathon_photobooth.services.job_queue import JobQueue


class TestJobQueueConcurrency:
    """Tests for the concurrency cap."""

    async def test_never_exceeds_concurrency(self) -> None:
        """No more than ``concurrency`` tasks should run at once."""
        queue = JobQueue(concurrency=2, interval_cap=100, interval_seconds=1.0)
        running = 0
        peak = 0

        async def task() -> None:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.02)
            running -= 1

        futures = [queue.add(task) for _ in range(6)]
        await asyncio.gather(*futures)
        assert peak == 2

    async def test_size_and_pending(self) -> None:
        """Size should count queued tasks and pending should count running ones."""
        queue = JobQueue(concurrency=1, interval_cap=100)
        release = asyncio.Event()

        async def blocker() -> str:
            await release.wait()
            return "done"

        futures = [queue.add(blocker) for _ in range(3)]
        await asyncio.sleep(0)
        assert queue.pending == 1
        assert queue.size == 2

        release.set()
        assert await asyncio.gather(*futures) == ["done", "done", "done"]
        assert queue.pending == 0
        assert queue.size == 0


class TestJobQueuePacing:
    """Tests for the per-interval start cap."""

    async def test_starts_limited_per_interval(self) -> None:
        """At most ``interval_cap`` tasks should start per interval."""
        queue = JobQueue(concurrency=10, interval_cap=2, interval_seconds=0.2)
        loop = asyncio.get_running_loop()
        starts: list[float] = []

        async def task() -> None:
            starts.append(loop.time())

        await asyncio.gather(*[queue.add(task) for _ in range(6)])

        assert len(starts) == 6
        assert starts[1] - starts[0] < 0.1
        assert starts[2] - starts[0] >= 0.19
        assert starts[4] - starts[2] >= 0.19

    async def test_no_delay_under_cap(self) -> None:
        """Tasks below the cap should all start in the first interval."""
        queue = JobQueue(concurrency=5, interval_cap=3, interval_seconds=1.0)
        loop = asyncio.get_running_loop()
        started = loop.time()
        starts: list[float] = []

        async def task() -> None:
            starts.append(loop.time())

        await asyncio.gather(*[queue.add(task) for _ in range(3)])
        assert max(starts) - started < 0.5


class TestJobQueueOrdering:
    """Tests for priority and FIFO ordering."""

    async def test_higher_priority_starts_first(self) -> None:
        """A higher priority task should overtake queued lower priority ones."""
        queue = JobQueue(concurrency=1, interval_cap=100)
        release = asyncio.Event()
        order: list[str] = []

        def make(name: str, wait: bool = False) -> Callable[[], Awaitable[None]]:
            async def task() -> None:
                order.append(name)
                if wait:
                    await release.wait()

            return task

        futures = [
            queue.add(make("first", wait=True)),
            queue.add(make("low-a")),
            queue.add(make("low-b")),
            queue.add(make("high"), priority=1),
        ]
        await asyncio.sleep(0)
        release.set()
        await asyncio.gather(*futures)

        assert order == ["first", "high", "low-a", "low-b"]

    async def test_equal_priority_is_fifo(self) -> None:
        """Equal priority tasks should start in submission order."""
        queue = JobQueue(concurrency=1, interval_cap=100)
        order: list[int] = []

        def make(index: int) -> Callable[[], Awaitable[None]]:
            async def task() -> None:
                order.append(index)

            return task

        await asyncio.gather(*[queue.add(make(i)) for i in range(5)])
        assert order == [0, 1, 2, 3, 4]


class TestJobQueueResults:
    """Tests for result and failure propagation."""

    async def test_returns_task_result(self) -> None:
        """The future should resolve to the task's return value."""
        queue = JobQueue()

        async def task() -> int:
            return 42

        assert await queue.add(task) == 42

    async def test_failure_propagates_and_queue_continues(self) -> None:
        """A failing task should reject its future without stopping later tasks."""
        queue = JobQueue(concurrency=1, interval_cap=100)

        async def failing() -> None:
            raise RuntimeError("boom")

        async def ok() -> str:
            return "ok"

        failed = queue.add(failing)
        succeeded = queue.add(ok)

        with pytest.raises(RuntimeError, match="boom"):
            await failed
        assert await succeeded == "ok"

    async def test_join_waits_for_idle(self) -> None:
        """Join should return once everything has run."""
        queue = JobQueue(concurrency=1, interval_cap=100)
        done: list[int] = []

        async def task() -> None:
            await asyncio.sleep(0.01)
            done.append(1)

        for _ in range(3):
            queue.add(task)
        await asyncio.wait_for(queue.join(), timeout=1.0)
        assert len(done) == 3

    async def test_cancelled_entry_is_skipped(self) -> None:
        """A future cancelled while queued should never start its task."""
        queue = JobQueue(concurrency=1, interval_cap=100)
        release = asyncio.Event()
        ran: list[str] = []

        async def blocker() -> None:
            await release.wait()

        async def skipped() -> None:
            ran.append("skipped")

        first = queue.add(blocker)
        second = queue.add(skipped)
        second.cancel()
        release.set()
        await first
        await queue.join()
        assert ran == []


class TestJobQueueClose:
    """Tests for shutdown."""

    async def test_close_cancels_queued_and_running(self) -> None:
        """Close should cancel every outstanding future."""
        queue = JobQueue(concurrency=1, interval_cap=100)

        async def forever() -> None:
            await asyncio.Event().wait()

        running = queue.add(forever)
        queued = queue.add(forever)
        await asyncio.sleep(0)

        await queue.close()

        assert running.cancelled()
        assert queued.cancelled()
        assert queue.size == 0


class TestJobQueueValidation:
    """Tests for constructor validation."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"concurrency": 0},
            {"interval_cap": 0},
            {"interval_seconds": 0},
        ],
    )
    def test_rejects_invalid_limits(self, kwargs: dict[str, float]) -> None:
        """Non-positive limits should be rejected."""
        with pytest.raises(ValueError):
            JobQueue(**kwargs)  # type: ignore[arg-type]
