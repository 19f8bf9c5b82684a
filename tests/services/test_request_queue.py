"""Tests for the serialized request queue."""

from __future__ import annotations

import asyncio
import time

import pytest

from tunevault.services.request_queue import SerialRequestQueue
from tunevault.shared.errors import ApplicationError


class TestSerialRequestQueue:
    """Jobs run one at a time in submission order."""

    @pytest.mark.asyncio
    async def test_jobs_never_overlap_and_run_fifo(self) -> None:
        """Test that jobs run one at a time in submission order."""
        # Given: a queue and jobs that record start/end and yield to the loop
        queue = SerialRequestQueue()
        events: list[str] = []
        active = 0
        max_active = 0

        def make_job(name: str):
            async def job() -> str:
                nonlocal active, max_active
                active += 1
                max_active = max(max_active, active)
                events.append(f"start:{name}")
                await asyncio.sleep(0)
                events.append(f"end:{name}")
                active -= 1
                return name

            return job

        # When: three jobs are submitted concurrently
        results = await asyncio.gather(*(queue.submit(make_job(name)) for name in "abc"))

        # Then: results match and execution was strictly sequential
        assert results == ["a", "b", "c"]
        assert max_active == 1
        assert events == ["start:a", "end:a", "start:b", "end:b", "start:c", "end:c"]
        await queue.close()

    @pytest.mark.asyncio
    async def test_job_exception_reaches_only_its_caller(self) -> None:
        """Test that a job failure reaches only its own caller."""
        queue = SerialRequestQueue()

        async def failing() -> None:
            raise ValueError("boom")

        async def ok() -> str:
            return "fine"

        results = await asyncio.gather(queue.submit(failing), queue.submit(ok), return_exceptions=True)

        assert isinstance(results[0], ValueError)
        assert results[1] == "fine"
        await queue.close()

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_running_job(self) -> None:
        """Test that cancelling a waiter leaves its running job alone."""
        # Given: a job that is running
        queue = SerialRequestQueue()
        started = asyncio.Event()
        release = asyncio.Event()
        finished: list[bool] = []

        async def slow() -> str:
            started.set()
            await release.wait()
            finished.append(True)
            return "done"

        waiter = asyncio.ensure_future(queue.submit(slow))
        await started.wait()

        # When: the caller stops waiting
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        # Then: the job still completes
        release.set()
        await queue.submit(_noop)
        assert finished == [True]
        await queue.close()

    @pytest.mark.asyncio
    async def test_submit_after_close_raises(self) -> None:
        """Test that submitting to a closed queue raises."""
        queue = SerialRequestQueue()
        await queue.close()

        with pytest.raises(ApplicationError):
            await queue.submit(_noop)

    def test_negative_interval_rejected(self) -> None:
        """Test that a negative minimum interval is rejected."""
        with pytest.raises(ApplicationError):
            SerialRequestQueue(min_interval=-1)

    @pytest.mark.asyncio
    async def test_min_interval_spaces_dispatches(self) -> None:
        """Test that dispatches are spaced by the minimum interval."""
        # Given: a queue with 50ms spacing
        queue = SerialRequestQueue(min_interval=0.05)
        starts: list[float] = []

        async def stamp() -> None:
            starts.append(time.monotonic())

        # When: two jobs run back to back
        await asyncio.gather(queue.submit(stamp), queue.submit(stamp))

        # Then: the second one started at least one interval later
        assert starts[1] - starts[0] >= 0.045
        await queue.close()


async def _noop() -> None:
    return None
