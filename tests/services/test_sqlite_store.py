"""Tests for the SQLite durable store."""

from __future__ import annotations

import pytest
import pytest_asyncio

from tunevault.services.durable import DurableRecord, DurableStore, SQLiteDurableStore
from tunevault.shared.errors import ErrorCode, StoreUnavailableError


@pytest_asyncio.fixture
async def store(temp_dir, wall_clock):
    durable = SQLiteDurableStore(temp_dir / "cache" / "durable.db", clock=wall_clock)
    yield durable
    await durable.close()


@pytest.mark.integration
class TestCachedResponses:
    def test_satisfies_protocol(self, store) -> None:
        """Test that the SQLite store implements DurableStore."""
        assert isinstance(store, DurableStore)

    @pytest.mark.asyncio
    async def test_put_and_get_round_trip(self, store, wall_clock) -> None:
        """Test storing and reading back a record."""
        record = DurableRecord("song:abc123", {"id": "abc123", "name": "Tum Hi Ho"}, wall_clock() + 60, True)

        await store.put(record)
        loaded = await store.get("song:abc123")

        assert loaded == record

    @pytest.mark.asyncio
    async def test_expired_records_are_still_returned(self, store, wall_clock) -> None:
        """Test that expired records are returned for the caller to judge."""
        # Given: a record that has expired
        await store.put(DurableRecord("song:1", {"id": "1"}, wall_clock() + 10, True))
        wall_clock.advance(20)

        # When: reading it
        loaded = await store.get("song:1")

        # Then: the caller decides freshness
        assert loaded is not None
        assert not loaded.is_fresh(wall_clock())

    @pytest.mark.asyncio
    async def test_keys_with_unsafe_characters_are_sanitized(self, store, wall_clock) -> None:
        """Test that keys with unsafe characters are stored safely."""
        await store.put(DurableRecord("search:a.b/c:1:20", {"results": []}, wall_clock() + 60, False))

        assert await store.get("search:a_b_c:1:20") is not None
        assert (await store.get("search:a.b/c:1:20")).has_results is False

    @pytest.mark.asyncio
    async def test_purge_removes_only_expired(self, store, wall_clock) -> None:
        """Test that purging removes only expired records."""
        await store.put(DurableRecord("old", [1], wall_clock() + 5, True))
        await store.put(DurableRecord("new", [2], wall_clock() + 500, True))
        wall_clock.advance(10)

        assert await store.purge_expired() == 1
        assert await store.get("old") is None
        assert await store.get("new") is not None
        assert store.get_stats()["total_entries"] == 1

    @pytest.mark.asyncio
    async def test_closed_store_raises_store_unavailable(self, store) -> None:
        """Test that a closed store raises StoreUnavailableError."""
        await store.close()

        with pytest.raises(StoreUnavailableError) as exc_info:
            await store.get("song:1")

        assert exc_info.value.code == ErrorCode.STORE_READ_FAILED


@pytest.mark.integration
class TestMissingSearches:
    @pytest.mark.asyncio
    async def test_flagged_on_second_request(self, store) -> None:
        """Test that a missing query is flagged on its second request."""
        first = await store.record_missing("zzzz unknown")
        second = await store.record_missing("zzzz unknown")

        assert (first.count, first.flagged) == (1, False)
        assert (second.count, second.flagged) == (2, True)

    @pytest.mark.asyncio
    async def test_list_orders_by_count(self, store) -> None:
        """Test that missing queries are listed by request count."""
        await store.record_missing("once")
        await store.record_missing("twice")
        await store.record_missing("twice")

        everything = await store.list_missing()
        flagged = await store.list_missing(flagged_only=True)

        assert [record.query for record in everything] == ["twice", "once"]
        assert [record.query for record in flagged] == ["twice"]


def test_in_memory_database(wall_clock) -> None:
    """Test that an in-memory database starts empty."""
    store = SQLiteDurableStore(":memory:", clock=wall_clock)

    assert store.get_stats()["total_entries"] == 0
