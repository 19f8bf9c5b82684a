"""Serialized request queue.

Every upstream attempt is submitted here and executed by a single worker
task in FIFO order, so at most one request is in flight per queue. An
optional minimum interval spaces consecutive dispatches.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, TypeVar

from tunevault.shared.errors import ApplicationError, ErrorCode, ErrorContext

logger = logging.getLogger(__name__)

T = TypeVar("T")

Job = Callable[[], Awaitable[Any]]


class SerialRequestQueue:
    """FIFO queue served by one asyncio worker.

    Callers await a future that the worker resolves. The wait is shielded,
    so a caller that stops waiting does not cancel a job that is already
    queued or running.

    Args:
        min_interval: Minimum seconds between the start of two jobs
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        min_interval: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if min_interval < 0:
            raise ApplicationError(
                code=ErrorCode.VALIDATION_ERROR,
                message=f"Minimum interval must be non-negative, got: {min_interval}",
                context=ErrorContext(
                    operation="request_queue_init",
                    additional_data={"min_interval": min_interval},
                ),
            )

        self.min_interval = min_interval
        self._clock = clock
        self._queue: asyncio.Queue[tuple[Job, asyncio.Future[Any]]] | None = None
        self._worker: asyncio.Task[None] | None = None
        self._last_dispatch: float | None = None
        self._in_flight = False
        self._closed = False
        self._submitted = 0
        self._dispatched = 0

    async def submit(self, job: Callable[[], Awaitable[T]]) -> T:
        """Queue ``job`` and wait for its result.

        Raises:
            ApplicationError: If the queue has been closed
            Exception: Whatever the job raises
        """
        if self._closed:
            raise ApplicationError(
                code=ErrorCode.QUEUE_OPERATION_ERROR,
                message="Request queue is closed",
                context=ErrorContext(operation="request_queue_submit"),
            )

        self._ensure_worker()
        assert self._queue is not None

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((job, future))
        self._submitted += 1
        return await asyncio.shield(future)

    def _ensure_worker(self) -> None:
        if self._worker is not None and not self._worker.done():
            return
        if self._queue is None:
            self._queue = asyncio.Queue()
        self._worker = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        assert self._queue is not None
        while True:
            job, future = await self._queue.get()
            try:
                await self._wait_for_spacing()
                if future.done():
                    continue
                self._in_flight = True
                self._last_dispatch = self._clock()
                self._dispatched += 1
                try:
                    result = await job()
                except asyncio.CancelledError:
                    if not future.done():
                        future.cancel()
                    raise
                except Exception as e:  # forwarded to the waiting caller
                    if not future.done():
                        future.set_exception(e)
                else:
                    if not future.done():
                        future.set_result(result)
            finally:
                self._in_flight = False
                self._queue.task_done()

    async def _wait_for_spacing(self) -> None:
        if self.min_interval <= 0 or self._last_dispatch is None:
            return
        remaining = self._last_dispatch + self.min_interval - self._clock()
        if remaining > 0:
            await asyncio.sleep(remaining)

    @property
    def depth(self) -> int:
        """Number of jobs waiting to be dispatched."""
        return self._queue.qsize() if self._queue is not None else 0

    async def close(self) -> None:
        """Stop the worker and fail every job still waiting."""
        self._closed = True
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass

        if self._queue is not None:
            while not self._queue.empty():
                _, future = self._queue.get_nowait()
                if not future.done():
                    future.set_exception(
                        ApplicationError(
                            code=ErrorCode.QUEUE_OPERATION_ERROR,
                            message="Request queue closed before dispatch",
                            context=ErrorContext(operation="request_queue_close"),
                        )
                    )
        logger.debug("Request queue closed after %d dispatches", self._dispatched)

    def get_stats(self) -> dict[str, Any]:
        return {
            "depth": self.depth,
            "in_flight": self._in_flight,
            "submitted": self._submitted,
            "dispatched": self._dispatched,
            "min_interval": self.min_interval,
        }


__all__ = ["SerialRequestQueue"]
