"""Durable fallback store interface and records.

The durable tier is a second-level cache plus an audit log of searches
that returned nothing. It is optional and never required for correctness:
every backend error surfaces as StoreUnavailableError and callers treat it
as a miss.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from tunevault.shared.constants import CacheDefaults, DurableTables

_KEY_TRANSLATION = str.maketrans({char: "_" for char in DurableTables.UNSAFE_KEY_CHARS})


def sanitize_key(key: str) -> str:
    """Replace characters that are not allowed in durable record keys.

    Example:
        >>> sanitize_key("search:a.b/c:1:20")
        'search:a_b_c:1:20'
    """
    return key.translate(_KEY_TRANSLATION)


@dataclass(frozen=True)
class DurableRecord:
    """A cached payload in the durable tier.

    ``expires_at`` is a wall-clock epoch timestamp in seconds.
    """

    key: str
    payload: Any
    expires_at: float
    has_results: bool

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "payload": self.payload,
            "expiresAt": self.expires_at,
            "hasResults": self.has_results,
        }


@dataclass(frozen=True)
class MissingQueryRecord:
    """How often a normalized search query came back empty."""

    query: str
    count: int
    last_requested_at: float
    flagged: bool

    @classmethod
    def first(cls, query: str, now: float) -> MissingQueryRecord:
        return cls(
            query=query,
            count=1,
            last_requested_at=now,
            flagged=CacheDefaults.MISSING_FLAG_THRESHOLD <= 1,
        )

    def bumped(self, now: float) -> MissingQueryRecord:
        count = self.count + 1
        return MissingQueryRecord(
            query=self.query,
            count=count,
            last_requested_at=now,
            flagged=count >= CacheDefaults.MISSING_FLAG_THRESHOLD,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "count": self.count,
            "lastRequestedAt": self.last_requested_at,
            "flagged": self.flagged,
        }


@runtime_checkable
class DurableStore(Protocol):
    """Async key/value backend for the durable tier."""

    async def get(self, key: str) -> DurableRecord | None:
        """Return the record stored under ``key`` (expired or not) or None."""
        ...

    async def put(self, record: DurableRecord) -> None:
        """Insert or replace a record."""
        ...

    async def record_missing(self, query: str) -> MissingQueryRecord:
        """Increment the missing-search counter of ``query``."""
        ...

    async def list_missing(self, flagged_only: bool = False) -> list[MissingQueryRecord]:
        ...

    async def purge_expired(self) -> int:
        """Delete expired cached responses and return how many went."""
        ...

    async def close(self) -> None:
        ...


__all__ = [
    "DurableRecord",
    "DurableStore",
    "MissingQueryRecord",
    "sanitize_key",
]
