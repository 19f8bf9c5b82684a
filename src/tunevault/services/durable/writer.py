"""Best-effort background writer for the durable tier.

Durable writes must never slow down or fail a fetch. Callers enqueue a
write and return immediately; a single worker performs the writes in
order. When the queue is full the write is dropped and logged.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from tunevault.shared.constants import CacheDefaults
from tunevault.shared.errors import TuneVaultError
from tunevault.shared.logging import log_operation_error

logger = logging.getLogger(__name__)

WriteOp = Callable[[], Awaitable[Any]]


class BestEffortWriter:
    """Bounded fire-and-forget write queue.

    Args:
        max_pending: Maximum number of queued writes before new ones are dropped
    """

    def __init__(self, max_pending: int = CacheDefaults.WRITE_QUEUE_SIZE) -> None:
        self.max_pending = max_pending
        self._queue: asyncio.Queue[tuple[str, WriteOp]] | None = None
        self._worker: asyncio.Task[None] | None = None
        self._written = 0
        self._failed = 0
        self._dropped = 0

    def submit(self, description: str, op: WriteOp) -> bool:
        """Queue ``op``; returns False when the write was dropped.

        Must be called from a running event loop.
        """
        if self._queue is None:
            self._queue = asyncio.Queue(maxsize=self.max_pending)
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._run())

        try:
            self._queue.put_nowait((description, op))
        except asyncio.QueueFull:
            self._dropped += 1
            logger.warning("Durable write queue full, dropping write: %s", description)
            return False
        return True

    async def _run(self) -> None:
        assert self._queue is not None
        while True:
            description, op = await self._queue.get()
            try:
                await op()
                self._written += 1
            except TuneVaultError as e:
                self._failed += 1
                log_operation_error(logger, e, operation=description, level=logging.WARNING)
            except Exception:  # a broken backend must not kill the worker
                self._failed += 1
                logger.warning("Durable write failed: %s", description, exc_info=True)
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """Wait until every queued write has been attempted."""
        if self._queue is not None and self._worker is not None and not self._worker.done():
            await self._queue.join()

    async def close(self) -> None:
        """Drain pending writes and stop the worker."""
        await self.drain()
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None

    def get_stats(self) -> dict[str, Any]:
        return {
            "pending": self._queue.qsize() if self._queue is not None else 0,
            "written": self._written,
            "failed": self._failed,
            "dropped": self._dropped,
        }


__all__ = ["BestEffortWriter"]
