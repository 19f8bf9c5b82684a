"""Catalog service.

Builds the producers behind every catalog read and applies the failure
policy per operation: searches degrade to an empty, uncached result while
the upstream circuit is open; detail lookups propagate the error so the
caller can answer with a proper status.
"""

from __future__ import annotations

import logging
from typing import Any

from tunevault.config.models.cache_settings import CacheSettings
from tunevault.core.mapping import map_album, map_song
from tunevault.core.ranking import rank_albums, rank_songs, rank_suggestions
from tunevault.services.cache_orchestrator import CachedFetchOrchestrator
from tunevault.services.upstream.client import UpstreamClient
from tunevault.services.upstream.models import (
    Entity,
    EntityList,
    GlobalSearch,
    SearchPage,
    UpstreamPayload,
)
from tunevault.shared.constants import (
    CacheDefaults,
    CacheNamespace,
    CacheTTL,
    PlaceholderIds,
    UpstreamDefaults,
    UpstreamEndpoints,
    make_cache_key,
)
from tunevault.shared.errors import CircuitOpenError, create_parse_error
from tunevault.shared.logging import log_operation_error

logger = logging.getLogger(__name__)


def _is_placeholder(identifier: str | None) -> bool:
    return identifier is None or identifier.strip() in PlaceholderIds.VALUES


def _expect(payload: UpstreamPayload, *kinds: type, operation: str) -> Any:
    if isinstance(payload, kinds):
        return payload
    raise create_parse_error(
        f"Unexpected upstream payload for {operation}: {payload.kind}",
        operation=operation,
        payload_kind=payload.kind,
    )


def _entities(payload: UpstreamPayload, operation: str) -> list[dict[str, Any]]:
    """Items of a list-shaped payload; a single entity becomes a one-item list."""
    resolved = _expect(payload, EntityList, Entity, SearchPage, operation=operation)
    if isinstance(resolved, EntityList):
        return list(resolved.items)
    if isinstance(resolved, SearchPage):
        return list(resolved.results)
    return [resolved.data]


def _degraded(**sections: Any) -> dict[str, Any]:
    return {**sections, CacheDefaults.FALLBACK_MARKER: True}


class CatalogService:
    """Cached, rate-limit aware access to the music catalog.

    Args:
        client: Upstream API client
        orchestrator: Cached-fetch orchestrator
        cache_settings: TTL policy (defaults to CacheSettings())
        use_persistent_tier: Consult the durable store; defaults to whether one is configured
    """

    def __init__(
        self,
        client: UpstreamClient,
        orchestrator: CachedFetchOrchestrator,
        cache_settings: CacheSettings | None = None,
        use_persistent_tier: bool | None = None,
    ) -> None:
        self.client = client
        self.orchestrator = orchestrator
        self.cache_settings = cache_settings or CacheSettings()
        if use_persistent_tier is None:
            use_persistent_tier = orchestrator.durable_store is not None
        self.use_persistent_tier = use_persistent_tier

    async def _fetch(self, namespace: str, params: tuple[Any, ...], producer: Any) -> Any:
        key = make_cache_key(namespace, *params)
        return await self.orchestrator.fetch(
            key,
            self.cache_settings.ttl_for(namespace),
            producer,
            use_persistent_tier=self.use_persistent_tier,
        )

    def _log_degraded(self, error: CircuitOpenError, operation: str) -> None:
        log_operation_error(logger, error, operation=operation, level=logging.WARNING)

    # Searches

    async def search(
        self,
        query: str,
        page: int = UpstreamDefaults.SEARCH_PAGE,
        limit: int = UpstreamDefaults.SEARCH_LIMIT,
    ) -> dict[str, Any]:
        """Combined search over songs, albums, artists and playlists."""

        async def produce() -> dict[str, Any]:
            try:
                payload = await self.client.search(UpstreamEndpoints.SEARCH, query, page, limit)
            except CircuitOpenError as e:
                self._log_degraded(e, "search")
                return _degraded(songs=[], albums=[], artists=[], playlists=[], topQuery=[])

            sections = _expect(payload, GlobalSearch, operation="search")
            return {
                "songs": [map_song(song) for song in rank_songs(query, list(sections.songs))],
                "albums": [map_album(album) for album in rank_albums(query, list(sections.albums))],
                "artists": list(sections.artists),
                "playlists": list(sections.playlists),
                "topQuery": list(sections.top_query),
            }

        return await self._fetch(CacheNamespace.SEARCH, (query, page, limit), produce)

    async def _typed_search(
        self,
        namespace: str,
        endpoint: str,
        query: str,
        page: int,
        limit: int,
    ) -> dict[str, Any]:
        async def produce() -> dict[str, Any]:
            try:
                payload = await self.client.search(endpoint, query, page, limit)
            except CircuitOpenError as e:
                self._log_degraded(e, namespace)
                return _degraded(results=[])

            result_page = _expect(payload, SearchPage, operation=namespace)
            results = list(result_page.results)
            if namespace == CacheNamespace.SEARCH_SONGS:
                results = [map_song(song) for song in rank_songs(query, results)]
            elif namespace == CacheNamespace.SEARCH_ALBUMS:
                results = [map_album(album) for album in rank_albums(query, results)]
            return {"results": results, "total": result_page.total}

        return await self._fetch(namespace, (query, page, limit), produce)

    async def search_songs(
        self,
        query: str,
        page: int = UpstreamDefaults.SEARCH_PAGE,
        limit: int = UpstreamDefaults.SEARCH_LIMIT,
    ) -> dict[str, Any]:
        return await self._typed_search(
            CacheNamespace.SEARCH_SONGS, UpstreamEndpoints.SEARCH_SONGS, query, page, limit
        )

    async def search_albums(
        self,
        query: str,
        page: int = UpstreamDefaults.SEARCH_PAGE,
        limit: int = UpstreamDefaults.SEARCH_LIMIT,
    ) -> dict[str, Any]:
        return await self._typed_search(
            CacheNamespace.SEARCH_ALBUMS, UpstreamEndpoints.SEARCH_ALBUMS, query, page, limit
        )

    async def search_artists(
        self,
        query: str,
        page: int = UpstreamDefaults.SEARCH_PAGE,
        limit: int = UpstreamDefaults.SEARCH_LIMIT,
    ) -> dict[str, Any]:
        return await self._typed_search(
            CacheNamespace.SEARCH_ARTISTS, UpstreamEndpoints.SEARCH_ARTISTS, query, page, limit
        )

    async def search_playlists(
        self,
        query: str,
        page: int = UpstreamDefaults.SEARCH_PAGE,
        limit: int = UpstreamDefaults.SEARCH_LIMIT,
    ) -> dict[str, Any]:
        return await self._typed_search(
            CacheNamespace.SEARCH_PLAYLISTS, UpstreamEndpoints.SEARCH_PLAYLISTS, query, page, limit
        )

    # Details

    async def get_song(self, song_id: str) -> dict[str, Any] | None:
        """Song details in client format, or None for a placeholder id."""
        if _is_placeholder(song_id):
            return None

        async def produce() -> dict[str, Any] | None:
            songs = _entities(await self.client.get_song(song_id), "get_song")
            return map_song(songs[0]) if songs else None

        return await self._fetch(CacheNamespace.SONG, (song_id,), produce)

    async def get_song_suggestions(self, song_id: str) -> list[dict[str, Any]] | None:
        """Raw upstream suggestions for a song."""
        if _is_placeholder(song_id):
            return None

        async def produce() -> list[dict[str, Any]]:
            return _entities(await self.client.get_song_suggestions(song_id), "get_song_suggestions")

        return await self._fetch(CacheNamespace.SUGGESTIONS, (song_id,), produce)

    async def get_ranked_suggestions(
        self,
        song_id: str,
        target_artist: str | None = None,
        target_language: str | None = None,
    ) -> list[dict[str, Any]]:
        """Suggestions boosted towards the listener's artist and language."""
        suggestions = await self.get_song_suggestions(song_id) or []
        ranked = rank_suggestions(suggestions, target_artist, target_language)
        return [song for song in (map_song(raw) for raw in ranked) if song is not None]

    async def get_artist(self, artist_id: str) -> dict[str, Any] | None:
        if _is_placeholder(artist_id):
            return None

        async def produce() -> dict[str, Any]:
            return dict(_expect(await self.client.get_artist(artist_id), Entity, operation="get_artist").data)

        return await self._fetch(CacheNamespace.ARTIST, (artist_id,), produce)

    async def get_artist_songs(
        self,
        artist_id: str,
        page: int = UpstreamDefaults.SEARCH_PAGE,
    ) -> dict[str, Any] | None:
        if _is_placeholder(artist_id):
            return None

        async def produce() -> dict[str, Any]:
            data = _expect(
                await self.client.get_artist_songs(artist_id, page), Entity, operation="get_artist_songs"
            ).data
            songs = data.get("songs") if isinstance(data.get("songs"), list) else []
            return {
                "total": data.get("total", len(songs)),
                "songs": [song for song in (map_song(raw) for raw in songs) if song is not None],
            }

        return await self._fetch(CacheNamespace.ARTIST_SONGS, (artist_id, page), produce)

    async def get_artist_albums(
        self,
        artist_id: str,
        page: int = UpstreamDefaults.SEARCH_PAGE,
    ) -> dict[str, Any] | None:
        if _is_placeholder(artist_id):
            return None

        async def produce() -> dict[str, Any]:
            data = _expect(
                await self.client.get_artist_albums(artist_id, page), Entity, operation="get_artist_albums"
            ).data
            albums = data.get("albums") if isinstance(data.get("albums"), list) else []
            return {
                "total": data.get("total", len(albums)),
                "albums": [album for album in (map_album(raw) for raw in albums) if album is not None],
            }

        return await self._fetch(CacheNamespace.ARTIST_ALBUMS, (artist_id, page), produce)

    async def get_album(self, album_id: str) -> dict[str, Any] | None:
        if _is_placeholder(album_id):
            return None

        async def produce() -> dict[str, Any] | None:
            return map_album(_expect(await self.client.get_album(album_id), Entity, operation="get_album").data)

        return await self._fetch(CacheNamespace.ALBUM, (album_id,), produce)

    async def get_playlist(self, playlist_id: str) -> dict[str, Any] | None:
        if _is_placeholder(playlist_id):
            return None

        async def produce() -> dict[str, Any]:
            data = dict(_expect(await self.client.get_playlist(playlist_id), Entity, operation="get_playlist").data)
            songs = data.get("songs") if isinstance(data.get("songs"), list) else []
            data["songs"] = [song for song in (map_song(raw) for raw in songs) if song is not None]
            return data

        return await self._fetch(CacheNamespace.PLAYLIST, (playlist_id,), produce)

    # Bulk

    async def get_songs_bulk(self, song_ids: list[str]) -> list[dict[str, Any]]:
        """Songs for ``song_ids`` in request order.

        Cached songs are served from the TTL cache, the rest are fetched in a
        single upstream call and primed under ``song:<id>``. While the upstream
        circuit is open only the cached songs are returned.
        """
        ids = [song_id for song_id in song_ids if not _is_placeholder(song_id)]
        if not ids:
            return []

        found: dict[str, dict[str, Any]] = {}
        missing: list[str] = []
        for song_id in ids:
            cached = self.orchestrator.cache.get(make_cache_key(CacheNamespace.SONG, song_id))
            if cached is not None:
                found[song_id] = cached
            elif song_id not in missing:
                missing.append(song_id)

        if missing:
            try:
                payload = await self.client.get_songs(missing)
            except CircuitOpenError as e:
                self._log_degraded(e, "get_songs_bulk")
                payload = None

            if payload is not None:
                ttl = self.cache_settings.ttl_for(CacheNamespace.SONG)
                for raw in _entities(payload, "get_songs_bulk"):
                    song = map_song(raw)
                    if song is None or song.get("id") is None:
                        continue
                    song_id = str(song["id"])
                    found[song_id] = song
                    self.orchestrator.prime(make_cache_key(CacheNamespace.SONG, song_id), song, ttl)

        return [found[song_id] for song_id in dict.fromkeys(ids) if song_id in found]

    async def preload_songs(self, song_ids: list[str], ttl_seconds: int = CacheTTL.PRELOAD) -> int:
        """Warm the cache with trending songs so they survive a rate-limit window.

        Returns:
            Number of songs primed
        """
        songs = await self.get_songs_bulk(song_ids)
        for song in songs:
            self.orchestrator.prime(make_cache_key(CacheNamespace.SONG, song["id"]), song, ttl_seconds)
        logger.info("Preloaded %d of %d songs", len(songs), len(song_ids))
        return len(songs)


__all__ = ["CatalogService"]
