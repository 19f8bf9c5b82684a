"""
Pytest configuration and shared fixtures for TuneVault tests.

This module provides common fixtures used across the test suite: a
controllable clock, an in-memory durable store and sample upstream items.
"""

from __future__ import annotations

import tempfile
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from tunevault.services.durable.base import DurableRecord, MissingQueryRecord, sanitize_key
from tunevault.shared.errors import create_store_error


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MemoryDurableStore:
    """In-memory DurableStore used to observe what the orchestrator writes."""

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.clock = clock or FakeClock(1_700_000_000.0)
        self.records: dict[str, DurableRecord] = {}
        self.missing: dict[str, MissingQueryRecord] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.get_calls = 0
        self.put_calls = 0

    async def get(self, key: str) -> DurableRecord | None:
        self.get_calls += 1
        if self.fail_reads:
            raise create_store_error("read failed", operation="get", cache_key=key)
        return self.records.get(sanitize_key(key))

    async def put(self, record: DurableRecord) -> None:
        self.put_calls += 1
        if self.fail_writes:
            raise create_store_error("write failed", operation="put", cache_key=record.key)
        self.records[sanitize_key(record.key)] = record

    async def record_missing(self, query: str) -> MissingQueryRecord:
        if self.fail_writes:
            raise create_store_error("write failed", operation="record_missing")
        key = sanitize_key(query)
        existing = self.missing.get(key)
        now = self.clock()
        record = MissingQueryRecord.first(query, now) if existing is None else existing.bumped(now)
        self.missing[key] = record
        return record

    async def list_missing(self, flagged_only: bool = False) -> list[MissingQueryRecord]:
        return [record for record in self.missing.values() if record.flagged or not flagged_only]

    async def purge_expired(self) -> int:
        expired = [key for key, record in self.records.items() if not record.is_fresh(self.clock())]
        for key in expired:
            del self.records[key]
        return len(expired)

    async def close(self) -> None:
        return None


def make_song(
    song_id: str,
    name: str,
    artists: str = "Arijit Singh",
    album: str = "Aashiqui 2",
    language: str = "hindi",
) -> dict[str, Any]:
    """Raw upstream song in the catalog API's shape."""
    return {
        "id": song_id,
        "name": name,
        "type": "song",
        "language": language,
        "duration": 262,
        "album": {"id": f"al-{song_id}", "name": album},
        "artists": {"primary": [{"id": f"ar-{index}", "name": artist} for index, artist in enumerate(artists.split(", "))]},
        "image": [
            {"quality": "50x50", "url": f"https://img.example/{song_id}-50.jpg"},
            {"quality": "150x150", "url": f"https://img.example/{song_id}-150.jpg"},
            {"quality": "500x500", "url": f"https://img.example/{song_id}-500.jpg"},
        ],
        "downloadUrl": [
            {"quality": "12kbps", "url": f"https://aac.example/{song_id}_12.mp4"},
            {"quality": "96kbps", "url": f"https://aac.example/{song_id}_96.mp4"},
            {"quality": "160kbps", "url": f"https://aac.example/{song_id}_160.mp4"},
            {"quality": "320kbps", "url": f"https://aac.example/{song_id}_320.mp4"},
        ],
    }


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def wall_clock() -> FakeClock:
    return FakeClock(1_700_000_000.0)


@pytest.fixture
def memory_store(wall_clock: FakeClock) -> MemoryDurableStore:
    return MemoryDurableStore(wall_clock)


@pytest.fixture
def sample_songs() -> list[dict[str, Any]]:
    """Upstream search results for "tum hi ho" in upstream order."""
    return [
        make_song("s1", "Galliyan", artists="Ankit Tiwari", album="Ek Villain"),
        make_song("s2", "Tum Hi Ho (Unplugged)"),
        make_song("s3", "Tum Hi Ho"),
    ]


@pytest.fixture
def song_factory() -> Any:
    return make_song
