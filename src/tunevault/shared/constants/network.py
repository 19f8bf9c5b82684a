"""Upstream network constants.

Endpoints of the catalog API and the default retry/circuit policy.
"""


class UpstreamEndpoints:
    """Path templates on the upstream catalog API."""

    SEARCH = "/api/search"
    SEARCH_SONGS = "/api/search/songs"
    SEARCH_ALBUMS = "/api/search/albums"
    SEARCH_ARTISTS = "/api/search/artists"
    SEARCH_PLAYLISTS = "/api/search/playlists"
    SONGS = "/api/songs"
    SONG = "/api/songs/{song_id}"
    SONG_SUGGESTIONS = "/api/songs/{song_id}/suggestions"
    ARTIST = "/api/artists/{artist_id}"
    ARTIST_SONGS = "/api/artists/{artist_id}/songs"
    ARTIST_ALBUMS = "/api/artists/{artist_id}/albums"
    ALBUMS = "/api/albums"
    PLAYLISTS = "/api/playlists"


class UpstreamDefaults:
    """Default client policy."""

    BASE_URL = "https://saavn.sumit.co"
    USER_AGENT = "TuneVault/0.1"

    TIMEOUT = 10.0
    RETRY_ATTEMPTS = 3
    RETRY_DELAY = 1.0
    RETRY_JITTER = 1.0
    MAX_RETRY_DELAY = 30.0
    CIRCUIT_COOLDOWN = 60.0
    MIN_REQUEST_INTERVAL = 0.0

    SEARCH_LIMIT = 20
    SEARCH_PAGE = 1
    SUGGESTION_LIMIT = 10


class PlaceholderIds:
    """Identifiers that never reach the upstream."""

    UNKNOWN_ARTIST = "Unknown Artist"
    VALUES = frozenset({"", UNKNOWN_ARTIST})


__all__ = [
    "PlaceholderIds",
    "UpstreamDefaults",
    "UpstreamEndpoints",
]
