"""
Cache Configuration Constants

TTL policy per cache namespace, key grammar helpers and the durable
store layout.
"""

# Base time units for TTL calculations
BASE_SECOND = 1
BASE_MINUTE = 60 * BASE_SECOND
BASE_HOUR = 60 * BASE_MINUTE
BASE_DAY = 24 * BASE_HOUR


class CacheNamespace:
    """Cache key namespaces (the segment before the first colon)."""

    SEARCH = "search"
    SEARCH_SONGS = "searchSongs"
    SEARCH_ALBUMS = "searchAlbums"
    SEARCH_ARTISTS = "searchArtists"
    SEARCH_PLAYLISTS = "searchPlaylists"
    SONG = "song"
    SUGGESTIONS = "suggestions"
    ARTIST = "artist"
    ARTIST_SONGS = "artistSongs"
    ARTIST_ALBUMS = "artistAlbums"
    ALBUM = "album"
    PLAYLIST = "playlist"

    SEPARATOR = ":"


class CacheTTL:
    """Time-to-live per namespace, in seconds."""

    SEARCH = 10 * BASE_MINUTE
    SONG = 6 * BASE_HOUR
    SUGGESTIONS = 6 * BASE_HOUR
    ARTIST = BASE_DAY
    ARTIST_SONGS = 6 * BASE_HOUR
    ARTIST_ALBUMS = BASE_DAY
    ALBUM = BASE_DAY
    PLAYLIST = 6 * BASE_HOUR
    PRELOAD = BASE_DAY


class CacheDefaults:
    """In-process cache and durable tier defaults."""

    MAX_ENTRIES = 5000
    WRITE_QUEUE_SIZE = 256
    DURABLE_PATH = "cache/tunevault.db"

    # Marker a producer sets on a degraded payload
    FALLBACK_MARKER = "_isFallback"

    # A missing search is flagged once requested this many times
    MISSING_FLAG_THRESHOLD = 2


class DurableTables:
    """SQLite table names for the durable tier."""

    CACHED_RESPONSES = "cached_responses"
    MISSING_SEARCHES = "missing_searches"

    # Characters replaced with "_" when addressing a record
    UNSAFE_KEY_CHARS = ".$#[]/"


def make_cache_key(namespace: str, *params: object) -> str:
    """Build a colon-delimited cache key."""
    return CacheNamespace.SEPARATOR.join([namespace, *(str(param) for param in params)])


def is_search_key(key: str) -> bool:
    """Return True when the key's namespace is one of the search namespaces."""
    namespace = key.split(CacheNamespace.SEPARATOR, 1)[0]
    return namespace.startswith(CacheNamespace.SEARCH)


__all__ = [
    "BASE_DAY",
    "BASE_HOUR",
    "BASE_MINUTE",
    "CacheDefaults",
    "CacheNamespace",
    "CacheTTL",
    "DurableTables",
    "is_search_key",
    "make_cache_key",
]
