"""Cache configuration model.

This module contains the cache configuration model: the in-process TTL
cache size, the optional durable tier and per-namespace TTL overrides.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from tunevault.shared.constants import CacheDefaults, CacheNamespace, CacheTTL


def _default_ttls() -> dict[str, int]:
    return {
        CacheNamespace.SEARCH: CacheTTL.SEARCH,
        CacheNamespace.SEARCH_SONGS: CacheTTL.SEARCH,
        CacheNamespace.SEARCH_ALBUMS: CacheTTL.SEARCH,
        CacheNamespace.SEARCH_ARTISTS: CacheTTL.SEARCH,
        CacheNamespace.SEARCH_PLAYLISTS: CacheTTL.SEARCH,
        CacheNamespace.SONG: CacheTTL.SONG,
        CacheNamespace.SUGGESTIONS: CacheTTL.SUGGESTIONS,
        CacheNamespace.ARTIST: CacheTTL.ARTIST,
        CacheNamespace.ARTIST_SONGS: CacheTTL.ARTIST_SONGS,
        CacheNamespace.ARTIST_ALBUMS: CacheTTL.ARTIST_ALBUMS,
        CacheNamespace.ALBUM: CacheTTL.ALBUM,
        CacheNamespace.PLAYLIST: CacheTTL.PLAYLIST,
    }


class CacheSettings(BaseModel):
    """Cache configuration.

    This class manages the in-process cache limits, the durable
    fallback store and TTL values per key namespace.
    """

    max_entries: int = Field(
        default=CacheDefaults.MAX_ENTRIES,
        gt=0,
        description="Maximum number of in-process cache entries",
    )
    durable_enabled: bool = Field(
        default=False,
        description="Enable the SQLite durable fallback store",
    )
    durable_path: str = Field(
        default=CacheDefaults.DURABLE_PATH,
        description="Path of the SQLite durable store",
    )
    write_queue_size: int = Field(
        default=CacheDefaults.WRITE_QUEUE_SIZE,
        gt=0,
        description="Maximum number of pending durable writes",
    )
    ttls: dict[str, int] = Field(
        default_factory=_default_ttls,
        description="TTL in seconds per cache namespace",
    )

    def ttl_for(self, namespace: str) -> int:
        """Return the TTL for a namespace, falling back to the built-in policy."""
        if namespace in self.ttls:
            return self.ttls[namespace]
        return _default_ttls().get(namespace, CacheTTL.SEARCH)


__all__ = ["CacheSettings"]
