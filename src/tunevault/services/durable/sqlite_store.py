"""SQLite durable store.

Stores cached responses and missing-search counters in a local SQLite
database (WAL mode). The sqlite3 calls are blocking, so every public
coroutine runs its statement in a worker thread via asyncio.to_thread.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Callable, TypeVar

import orjson

from tunevault.services.durable.base import DurableRecord, MissingQueryRecord, sanitize_key
from tunevault.shared.constants import DurableTables
from tunevault.shared.errors import ErrorCode, create_store_error
from tunevault.shared.logging import log_operation_error, log_operation_success

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {DurableTables.CACHED_RESPONSES} (
    cache_key TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    expires_at REAL NOT NULL,
    has_results INTEGER NOT NULL,
    updated_at REAL NOT NULL,
    CHECK (length(cache_key) > 0)
);

CREATE INDEX IF NOT EXISTS idx_cached_responses_expires_at
    ON {DurableTables.CACHED_RESPONSES}(expires_at);

CREATE TABLE IF NOT EXISTS {DurableTables.MISSING_SEARCHES} (
    query_key TEXT PRIMARY KEY,
    query TEXT NOT NULL,
    count INTEGER NOT NULL,
    last_requested_at REAL NOT NULL,
    flagged INTEGER NOT NULL
);
"""


class SQLiteDurableStore:
    """SQLite-backed implementation of the DurableStore protocol.

    Attributes:
        db_path: Path to the SQLite database file (``":memory:"`` is allowed)
        conn: SQLite database connection

    Example:
        >>> store = SQLiteDurableStore("cache/tunevault.db")
        >>> await store.put(DurableRecord("song:1", {"id": "1"}, time.time() + 60, True))
        >>> record = await store.get("song:1")
        >>> await store.close()
    """

    def __init__(
        self,
        db_path: Path | str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Open the database and create the schema.

        Raises:
            StoreUnavailableError: If the database cannot be opened
        """
        self.db_path = str(db_path)
        self._clock = clock
        self._lock = threading.Lock()
        self.conn: sqlite3.Connection | None = None
        self._initialize_db()

    def _initialize_db(self) -> None:
        try:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            self.conn = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                isolation_level=None,  # Auto-commit mode
            )
            self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.execute("PRAGMA synchronous=NORMAL")
            self.conn.executescript(_SCHEMA)
        except (sqlite3.Error, OSError) as e:
            error = create_store_error(
                f"Failed to initialize durable store: {e!s}",
                operation="initialize_db",
                original_error=e,
            )
            log_operation_error(logger, error)
            raise error from e

        log_operation_success(
            logger=logger,
            operation="initialize_db",
            duration_ms=0,
            context={"db_path": self.db_path},
        )

    async def _run(self, operation: str, func: Callable[[], T], code: ErrorCode, key: str | None = None) -> T:
        def locked() -> T:
            with self._lock:
                if self.conn is None:
                    raise sqlite3.ProgrammingError("Durable store is closed")
                return func()

        try:
            return await asyncio.to_thread(locked)
        except (sqlite3.Error, orjson.JSONDecodeError, orjson.JSONEncodeError, TypeError) as e:
            raise create_store_error(
                f"Durable store {operation} failed: {e!s}",
                operation=operation,
                code=code,
                original_error=e,
                cache_key=key,
            ) from e

    async def get(self, key: str) -> DurableRecord | None:
        """Fetch a cached response by its (unsanitized) cache key."""
        record_key = sanitize_key(key)

        def query() -> DurableRecord | None:
            assert self.conn is not None
            row = self.conn.execute(
                f"SELECT payload, expires_at, has_results FROM {DurableTables.CACHED_RESPONSES} "
                "WHERE cache_key = ?",
                (record_key,),
            ).fetchone()
            if row is None:
                return None
            payload, expires_at, has_results = row
            return DurableRecord(
                key=key,
                payload=orjson.loads(payload),
                expires_at=float(expires_at),
                has_results=bool(has_results),
            )

        return await self._run("get", query, ErrorCode.STORE_READ_FAILED, key)

    async def put(self, record: DurableRecord) -> None:
        record_key = sanitize_key(record.key)

        def upsert() -> None:
            assert self.conn is not None
            self.conn.execute(
                f"INSERT OR REPLACE INTO {DurableTables.CACHED_RESPONSES} "
                "(cache_key, payload, expires_at, has_results, updated_at) VALUES (?, ?, ?, ?, ?)",
                (
                    record_key,
                    orjson.dumps(record.payload).decode("utf-8"),
                    record.expires_at,
                    int(record.has_results),
                    self._clock(),
                ),
            )

        await self._run("put", upsert, ErrorCode.STORE_WRITE_FAILED, record.key)

    async def record_missing(self, query: str) -> MissingQueryRecord:
        """Increment the missing-search record of ``query`` and return it."""
        query_key = sanitize_key(query)

        def increment() -> MissingQueryRecord:
            assert self.conn is not None
            now = self._clock()
            row = self.conn.execute(
                f"SELECT query, count, last_requested_at, flagged FROM {DurableTables.MISSING_SEARCHES} "
                "WHERE query_key = ?",
                (query_key,),
            ).fetchone()
            if row is None:
                record = MissingQueryRecord.first(query, now)
            else:
                record = MissingQueryRecord(row[0], int(row[1]), float(row[2]), bool(row[3])).bumped(now)

            self.conn.execute(
                f"INSERT OR REPLACE INTO {DurableTables.MISSING_SEARCHES} "
                "(query_key, query, count, last_requested_at, flagged) VALUES (?, ?, ?, ?, ?)",
                (query_key, record.query, record.count, record.last_requested_at, int(record.flagged)),
            )
            return record

        return await self._run("record_missing", increment, ErrorCode.STORE_WRITE_FAILED, query)

    async def list_missing(self, flagged_only: bool = False) -> list[MissingQueryRecord]:
        """List missing searches, most requested first."""

        def query() -> list[MissingQueryRecord]:
            assert self.conn is not None
            sql = f"SELECT query, count, last_requested_at, flagged FROM {DurableTables.MISSING_SEARCHES}"
            if flagged_only:
                sql += " WHERE flagged = 1"
            sql += " ORDER BY count DESC, last_requested_at DESC"
            return [
                MissingQueryRecord(row[0], int(row[1]), float(row[2]), bool(row[3]))
                for row in self.conn.execute(sql).fetchall()
            ]

        return await self._run("list_missing", query, ErrorCode.STORE_READ_FAILED)

    async def purge_expired(self) -> int:
        def delete() -> int:
            assert self.conn is not None
            cursor = self.conn.execute(
                f"DELETE FROM {DurableTables.CACHED_RESPONSES} WHERE expires_at <= ?",
                (self._clock(),),
            )
            return cursor.rowcount

        purged = await self._run("purge_expired", delete, ErrorCode.STORE_WRITE_FAILED)
        if purged:
            logger.info("Purged %d expired durable records", purged)
        return purged

    def get_stats(self) -> dict[str, Any]:
        if self.conn is None:
            return {"db_path": self.db_path, "closed": True}
        with self._lock:
            total = self.conn.execute(f"SELECT COUNT(*) FROM {DurableTables.CACHED_RESPONSES}").fetchone()[0]
            valid = self.conn.execute(
                f"SELECT COUNT(*) FROM {DurableTables.CACHED_RESPONSES} WHERE expires_at > ?",
                (self._clock(),),
            ).fetchone()[0]
            missing = self.conn.execute(f"SELECT COUNT(*) FROM {DurableTables.MISSING_SEARCHES}").fetchone()[0]
        return {
            "db_path": self.db_path,
            "total_entries": total,
            "valid_entries": valid,
            "expired_entries": total - valid,
            "missing_searches": missing,
        }

    async def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self.conn is not None:
                self.conn.close()
                self.conn = None
                logger.debug("Closed durable store connection: %s", self.db_path)


__all__ = ["SQLiteDurableStore"]
