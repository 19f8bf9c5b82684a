"""Tests for the catalog service failure policy and bulk helpers."""

from __future__ import annotations

import pytest

from tunevault.services.cache_orchestrator import CachedFetchOrchestrator
from tunevault.services.catalog_service import CatalogService
from tunevault.services.ttl_cache import TTLCache
from tunevault.services.upstream.models import Entity, EntityList, GlobalSearch, SearchPage
from tunevault.shared.errors import CircuitOpenError, ErrorCode, ParseError, UpstreamError

from conftest import make_song


def circuit_open() -> CircuitOpenError:
    return CircuitOpenError("Upstream circuit is open, failing fast", retry_after=30)


@pytest.fixture
def client(mocker):
    upstream = mocker.Mock()
    for name in (
        "search",
        "get_song",
        "get_songs",
        "get_song_suggestions",
        "get_artist",
        "get_artist_songs",
        "get_artist_albums",
        "get_album",
        "get_playlist",
    ):
        setattr(upstream, name, mocker.AsyncMock(name=name))
    return upstream


@pytest.fixture
def catalog(client, clock) -> CatalogService:
    return CatalogService(client, CachedFetchOrchestrator(cache=TTLCache(clock=clock)))


class TestSearch:
    @pytest.mark.asyncio
    async def test_song_search_is_ranked_mapped_and_cached(self, catalog, client, sample_songs) -> None:
        """Test that song search results are ranked, mapped and cached."""
        # Given: the upstream returns results in its own order
        client.search.return_value = SearchPage(results=sample_songs, total=3)

        # When: searching twice
        first = await catalog.search_songs("tum hi ho")
        second = await catalog.search_songs("tum hi ho")

        # Then: results are ranked, in client format and served from cache
        assert [song["name"] for song in first["results"]][:2] == ["Tum Hi Ho", "Tum Hi Ho (Unplugged)"]
        assert first["results"][0]["artist"] == "Arijit Singh"
        assert first["total"] == 3
        assert second == first
        client.search.assert_awaited_once_with("/api/search/songs", "tum hi ho", 1, 20)

    @pytest.mark.asyncio
    async def test_artist_search_keeps_upstream_order(self, catalog, client) -> None:
        """Test that artist search keeps the upstream order."""
        artists = [{"id": "a2", "name": "Zed"}, {"id": "a1", "name": "Arijit Singh"}]
        client.search.return_value = SearchPage(results=artists, total=2)

        result = await catalog.search_artists("arijit")

        assert result == {"results": artists, "total": 2}

    @pytest.mark.asyncio
    async def test_search_degrades_while_circuit_open(self, catalog, client) -> None:
        """Test that a search returns an uncached fallback while the circuit is open."""
        # Given: the breaker is open
        client.search.side_effect = circuit_open()

        # When: searching
        result = await catalog.search_songs("tum hi ho")
        await catalog.search_songs("tum hi ho")

        # Then: an empty degraded result is returned and not cached
        assert result["results"] == []
        assert result["_isFallback"] is True
        assert client.search.await_count == 2

    @pytest.mark.asyncio
    async def test_global_search_sections(self, catalog, client, sample_songs) -> None:
        """Test that global search returns mapped sections."""
        client.search.return_value = GlobalSearch(
            songs=sample_songs,
            albums=[{"id": "al1", "name": "Aashiqui 2", "primaryArtists": "Mithoon"}],
            artists=[{"id": "ar1", "name": "Arijit Singh"}],
        )

        result = await catalog.search("tum hi ho")

        assert result["songs"][0]["name"] == "Tum Hi Ho"
        assert result["albums"] == []
        assert result["artists"] == [{"id": "ar1", "name": "Arijit Singh"}]
        assert result["topQuery"] == []

    @pytest.mark.asyncio
    async def test_global_search_degrades_every_section(self, catalog, client) -> None:
        """Test that a degraded global search has every section empty."""
        client.search.side_effect = circuit_open()

        result = await catalog.search("tum hi ho")

        assert result["songs"] == result["albums"] == result["artists"] == []
        assert result["_isFallback"] is True

    @pytest.mark.asyncio
    async def test_other_upstream_errors_propagate(self, catalog, client) -> None:
        """Test that non-circuit upstream errors reach the caller."""
        client.search.side_effect = UpstreamError(ErrorCode.UPSTREAM_SERVER_ERROR, "HTTP 500", status_code=500)

        with pytest.raises(UpstreamError):
            await catalog.search_songs("tum hi ho")


class TestDetails:
    @pytest.mark.asyncio
    async def test_song_details_are_mapped(self, catalog, client) -> None:
        """Test that song details are mapped to the client shape."""
        client.get_song.return_value = EntityList(items=[make_song("abc123", "Tum Hi Ho")])

        song = await catalog.get_song("abc123")

        assert song["id"] == "abc123"
        assert song["streams"]["high"].endswith("_320.mp4")

    @pytest.mark.asyncio
    async def test_details_propagate_circuit_errors(self, catalog, client) -> None:
        """Test that detail lookups propagate an open circuit."""
        client.get_song.side_effect = circuit_open()

        with pytest.raises(CircuitOpenError):
            await catalog.get_song("abc123")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("identifier", ["", "  ", "Unknown Artist", None])
    async def test_placeholder_ids_never_reach_upstream(self, catalog, client, identifier) -> None:
        """Test that placeholder ids are answered without an upstream call."""
        assert await catalog.get_song(identifier) is None
        assert await catalog.get_artist(identifier) is None
        assert await catalog.get_album(identifier) is None

        client.get_song.assert_not_awaited()
        client.get_artist.assert_not_awaited()
        client.get_album.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unexpected_payload_kind_is_a_parse_error(self, catalog, client) -> None:
        """Test that a payload of the wrong kind raises ParseError."""
        client.get_artist.return_value = EntityList(items=[])

        with pytest.raises(ParseError):
            await catalog.get_artist("ar1")

    @pytest.mark.asyncio
    async def test_artist_songs_are_mapped(self, catalog, client) -> None:
        """Test that an artist's songs are mapped."""
        client.get_artist_songs.return_value = Entity(
            data={"total": 40, "songs": [make_song("s3", "Tum Hi Ho")]}
        )

        result = await catalog.get_artist_songs("ar1", page=2)

        assert result["total"] == 40
        assert [song["id"] for song in result["songs"]] == ["s3"]
        client.get_artist_songs.assert_awaited_once_with("ar1", 2)

    @pytest.mark.asyncio
    async def test_playlist_songs_are_mapped(self, catalog, client) -> None:
        """Test that a playlist's songs are mapped."""
        client.get_playlist.return_value = Entity(
            data={"id": "pl1", "name": "Top Hits", "songs": [make_song("s3", "Tum Hi Ho")]}
        )

        playlist = await catalog.get_playlist("pl1")

        assert playlist["name"] == "Top Hits"
        assert playlist["songs"][0]["album"] == "Aashiqui 2"

    @pytest.mark.asyncio
    async def test_ranked_suggestions(self, catalog, client) -> None:
        """Test that suggestions are ranked against the seed song."""
        client.get_song_suggestions.return_value = EntityList(
            items=[
                make_song("en", "Perfect", artists="Ed Sheeran", language="english"),
                make_song("hi", "Channa Mereya", artists="Arijit Singh", language="hindi"),
            ]
        )

        ranked = await catalog.get_ranked_suggestions("s3", target_artist="Arijit", target_language="hindi")

        assert [song["id"] for song in ranked] == ["hi", "en"]


class TestBulkSongs:
    @pytest.mark.asyncio
    async def test_cached_songs_skip_upstream(self, catalog, client) -> None:
        """Test that only uncached songs are fetched in bulk."""
        # Given: one song already cached
        catalog.orchestrator.prime("song:a", {"id": "a", "name": "Cached"}, 60)
        client.get_songs.return_value = EntityList(items=[make_song("c", "C"), make_song("b", "B")])

        # When: requesting three songs and a placeholder
        songs = await catalog.get_songs_bulk(["a", "b", "Unknown Artist", "c"])

        # Then: only the missing ids were fetched and request order is kept
        client.get_songs.assert_awaited_once_with(["b", "c"])
        assert [song["id"] for song in songs] == ["a", "b", "c"]
        assert "song:b" in catalog.orchestrator.cache

    @pytest.mark.asyncio
    async def test_circuit_open_returns_cached_songs(self, catalog, client) -> None:
        """Test that an open circuit still serves the songs already cached."""
        # Given: song a is cached and the upstream circuit is open
        catalog.orchestrator.prime("song:a", {"id": "a", "name": "Cached"}, 60)
        client.get_songs.side_effect = circuit_open()

        # When: requesting a cached and an uncached song
        songs = await catalog.get_songs_bulk(["b", "a"])

        # Then: the cached song comes back and nothing is primed for b
        client.get_songs.assert_awaited_once_with(["b"])
        assert songs == [{"id": "a", "name": "Cached"}]
        assert "song:b" not in catalog.orchestrator.cache

    @pytest.mark.asyncio
    async def test_circuit_open_without_cache_returns_empty_list(self, catalog, client) -> None:
        """Test that an open circuit with a cold cache yields no songs."""
        client.get_songs.side_effect = circuit_open()

        assert await catalog.get_songs_bulk(["a", "b"]) == []

    @pytest.mark.asyncio
    async def test_preload_uses_long_ttl(self, catalog, client, clock) -> None:
        """Test that preloaded songs outlive the normal song TTL."""
        client.get_songs.return_value = EntityList(items=[make_song("a", "A"), make_song("b", "B")])

        primed = await catalog.preload_songs(["a", "b"])
        clock.advance(6 * 3600 + 1)

        assert primed == 2
        assert "song:a" in catalog.orchestrator.cache
        assert "song:b" in catalog.orchestrator.cache


class TestPersistentTier:
    def test_enabled_when_store_configured(self, client, clock, memory_store) -> None:
        """Test that the persistent tier is used when a store is configured."""
        orchestrator = CachedFetchOrchestrator(cache=TTLCache(clock=clock), durable_store=memory_store)

        assert CatalogService(client, orchestrator).use_persistent_tier is True

    def test_disabled_without_store(self, catalog) -> None:
        """Test that the persistent tier is off without a store."""
        assert catalog.use_persistent_tier is False
