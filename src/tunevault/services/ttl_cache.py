"""In-process TTL cache.

Key/value store with a per-entry expiry. Reads evict entries whose expiry
has passed, and an optional entry cap evicts the oldest insertion first.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A cached value and the clock reading at which it stops being served."""

    key: str
    value: Any
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


class TTLCache:
    """Dictionary-backed cache with per-entry time-to-live.

    A value stored with ``ttl`` seconds at clock reading ``t`` is returned
    for reads with ``now < t + ttl`` and never afterwards.

    Args:
        max_entries: Optional cap on stored entries; the oldest is evicted
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._expirations = 0
        self._evictions = 0

    def get(self, key: str) -> Any | None:
        """Return the live value for ``key`` or None.

        An expired entry is removed as a side effect.
        """
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if not entry.is_fresh(self._clock()):
            del self._entries[key]
            self._expirations += 1
            self._misses += 1
            logger.debug("Cache entry expired: %s", key)
            return None

        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``.

        Non-positive TTLs are ignored since such an entry could never be read.
        """
        if ttl_seconds <= 0:
            logger.debug("Skipping cache set with non-positive TTL: %s", key)
            return

        # Re-inserting moves the key to the end of the eviction order
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl_seconds)

        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                self._evictions += 1

    def delete(self, key: str) -> bool:
        """Remove ``key``; returns True when something was removed."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if not entry.is_fresh(now)]
        for key in expired:
            del self._entries[key]
        self._expirations += len(expired)
        return len(expired)

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key)  # type: ignore[arg-type]
        return entry is not None and entry.is_fresh(self._clock())

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with hit/miss counters and current size
        """
        total = self._hits + self._misses
        return {
            "size": len(self._entries),
            "max_entries": self.max_entries,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total, 4) if total else 0.0,
            "expirations": self._expirations,
            "evictions": self._evictions,
        }


__all__ = ["CacheEntry", "TTLCache"]
