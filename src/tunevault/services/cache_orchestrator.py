"""Cached-fetch orchestrator.

``fetch(key, ttl, producer)`` is the single entry point every catalog read
goes through. Resolution order for a key:

1. an in-flight fetch for the same key (the caller shares its outcome)
2. the in-process TTL cache
3. the durable store, when the persistent tier is requested
4. the producer

Only usable values are cached: None, empty containers and degraded payloads
(marked with ``_isFallback``) are returned to the caller but never stored.
Durable writes happen in the background and cannot fail a fetch.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable

from tunevault.core.ranking.normalizer import normalize_text
from tunevault.services.durable.base import DurableRecord, DurableStore
from tunevault.services.durable.writer import BestEffortWriter
from tunevault.services.ttl_cache import TTLCache
from tunevault.shared.constants import CacheDefaults, CacheNamespace, is_search_key
from tunevault.shared.errors import StoreUnavailableError
from tunevault.shared.logging import log_operation_error

logger = logging.getLogger(__name__)

Producer = Callable[[], Awaitable[Any]]


def is_degraded(value: Any) -> bool:
    """True for payloads a producer marked as a degraded fallback."""
    return isinstance(value, dict) and value.get(CacheDefaults.FALLBACK_MARKER) is True


def is_cacheable(value: Any) -> bool:
    if value is None or is_degraded(value):
        return False
    if isinstance(value, (dict, list, str)) and len(value) == 0:
        return False
    return True


def has_results(value: Any) -> bool:
    """Whether a payload carries any results.

    ``results`` decides when present and non-empty; otherwise the ``songs``
    or ``albums`` sections do. Other objects count as results, lists count
    when non-empty.
    """
    if isinstance(value, list):
        return len(value) > 0
    if not isinstance(value, dict):
        return value is not None

    results = value.get("results")
    if isinstance(results, list) and results:
        return True
    sections = [value.get(name) for name in ("songs", "albums")]
    if isinstance(results, list) or any(isinstance(section, list) for section in sections):
        return any(isinstance(section, list) and len(section) > 0 for section in sections)
    return True


def search_query_from_key(key: str) -> str:
    """Normalized query of a ``<searchNamespace>:<query>:<page>:<limit>`` key.

    Queries may contain colons, so the trailing page and limit are split
    off from the right.
    """
    _, _, rest = key.partition(CacheNamespace.SEPARATOR)
    parts = rest.rsplit(CacheNamespace.SEPARATOR, 2)
    query = parts[0] if len(parts) == 3 else rest
    return normalize_text(query)


class CachedFetchOrchestrator:
    """Multi-tier cache with request coalescing.

    Args:
        cache: In-process TTL cache (a fresh one by default)
        durable_store: Optional durable tier
        writer: Background writer for durable writes (created when a store is given)
        wall_clock: Epoch time source used for durable expiry
    """

    def __init__(
        self,
        cache: TTLCache | None = None,
        durable_store: DurableStore | None = None,
        writer: BestEffortWriter | None = None,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache = cache if cache is not None else TTLCache()
        self.durable_store = durable_store
        self.writer = writer if writer is not None else BestEffortWriter()
        self._wall_clock = wall_clock
        self._pending: dict[str, asyncio.Task[Any]] = {}

        self._cache_hits = 0
        self._durable_hits = 0
        self._coalesced = 0
        self._producer_calls = 0
        self._producer_errors = 0
        self._uncached = 0

    async def fetch(
        self,
        key: str,
        ttl_seconds: float,
        producer: Producer,
        use_persistent_tier: bool = False,
    ) -> Any:
        """Return the value for ``key``, producing and caching it on a miss.

        Raises:
            Exception: Whatever the producer raised (shared by coalesced callers)
        """
        pending = self._pending.get(key)
        if pending is not None:
            self._coalesced += 1
            logger.debug("Joining in-flight fetch: %s", key)
            return await asyncio.shield(pending)

        cached = self.cache.get(key)
        if cached is not None:
            self._cache_hits += 1
            return cached

        task = asyncio.get_running_loop().create_task(
            self._resolve(key, ttl_seconds, producer, use_persistent_tier)
        )
        task.add_done_callback(self._retrieve_exception)
        self._pending[key] = task
        return await asyncio.shield(task)

    async def _resolve(
        self,
        key: str,
        ttl_seconds: float,
        producer: Producer,
        use_persistent_tier: bool,
    ) -> Any:
        try:
            persistent = use_persistent_tier and self.durable_store is not None
            if persistent:
                record = await self._read_durable(key)
                if record is not None:
                    remaining = record.expires_at - self._wall_clock()
                    if remaining > 0:
                        self._durable_hits += 1
                        self.cache.set(key, record.payload, min(ttl_seconds, remaining))
                        return record.payload

            self._producer_calls += 1
            try:
                value = await producer()
            except Exception:
                self._producer_errors += 1
                raise

            if not is_cacheable(value):
                self._uncached += 1
                logger.debug("Not caching unusable or degraded value: %s", key)
                return value

            self.cache.set(key, value, ttl_seconds)
            if persistent:
                self._write_durable(key, value, ttl_seconds)
            return value
        finally:
            if self._pending.get(key) is asyncio.current_task():
                del self._pending[key]

    @staticmethod
    def _retrieve_exception(task: asyncio.Task[Any]) -> None:
        # Marks the exception as retrieved when every waiter has gone away
        if not task.cancelled():
            task.exception()

    async def _read_durable(self, key: str) -> DurableRecord | None:
        assert self.durable_store is not None
        try:
            return await self.durable_store.get(key)
        except StoreUnavailableError as e:
            log_operation_error(logger, e, operation="durable_read", level=logging.WARNING)
            return None
        except Exception:  # any backend failure on read is a miss
            logger.warning("Durable read failed for %s", key, exc_info=True)
            return None

    def _write_durable(self, key: str, value: Any, ttl_seconds: float) -> None:
        store = self.durable_store
        assert store is not None

        record = DurableRecord(
            key=key,
            payload=value,
            expires_at=self._wall_clock() + ttl_seconds,
            has_results=has_results(value),
        )
        self.writer.submit(f"durable_put:{key}", lambda: store.put(record))

        if not record.has_results and is_search_key(key):
            query = search_query_from_key(key)
            if query:
                self.writer.submit(f"record_missing:{query}", lambda: store.record_missing(query))

    def prime(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Seed the TTL cache directly (ignored for non-cacheable values)."""
        if is_cacheable(value):
            self.cache.set(key, value, ttl_seconds)

    def invalidate(self, key: str) -> bool:
        return self.cache.delete(key)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def get_stats(self) -> dict[str, Any]:
        """Get orchestrator statistics.

        Returns:
            Dictionary with tier hit counters, producer counters and sizes
        """
        return {
            "cache_hits": self._cache_hits,
            "durable_hits": self._durable_hits,
            "coalesced": self._coalesced,
            "producer_calls": self._producer_calls,
            "producer_errors": self._producer_errors,
            "uncached_results": self._uncached,
            "pending": len(self._pending),
            "cache": self.cache.get_stats(),
            "writer": self.writer.get_stats(),
        }

    async def close(self) -> None:
        """Flush pending durable writes and stop the writer."""
        await self.writer.close()


__all__ = [
    "CachedFetchOrchestrator",
    "has_results",
    "is_cacheable",
    "is_degraded",
    "search_query_from_key",
]
