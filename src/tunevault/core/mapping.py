"""Catalog item shaping.

Extracts the searchable fields of raw upstream items into RankableItem
and reshapes songs and albums into the compact client format.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from tunevault.shared.constants import ImageQuality

UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"


def _variant_url(variant: Any) -> str:
    if isinstance(variant, dict):
        return str(variant.get("url") or variant.get("link") or "")
    if isinstance(variant, str):
        return variant
    return ""


def extract_variants(value: Any) -> dict[str, str]:
    """Map ``[{quality, url}]`` lists to ``{quality: url}`` preserving order.

    A bare string is returned under the ``"default"`` quality.
    """
    if isinstance(value, str):
        return {"default": value} if value else {}
    if not isinstance(value, list):
        return {}

    variants: dict[str, str] = {}
    for index, variant in enumerate(value):
        url = _variant_url(variant)
        if not url:
            continue
        quality = variant.get("quality") if isinstance(variant, dict) else None
        variants.setdefault(str(quality or index), url)
    return variants


def extract_artist_names(raw: dict[str, Any]) -> tuple[str, ...]:
    """Artist names from ``primaryArtists`` (string or list) or ``artists.primary``."""
    primary = raw.get("primaryArtists")
    if isinstance(primary, str) and primary.strip():
        return tuple(name.strip() for name in primary.split(",") if name.strip())
    if isinstance(primary, list):
        names = [_name_of(artist) for artist in primary]
        return tuple(name for name in names if name)

    artists = raw.get("artists")
    if isinstance(artists, dict):
        names = [_name_of(artist) for artist in artists.get("primary") or []]
        return tuple(name for name in names if name)
    if isinstance(artists, str) and artists.strip():
        return tuple(name.strip() for name in artists.split(",") if name.strip())
    if isinstance(artists, list):
        names = [_name_of(artist) for artist in artists]
        return tuple(name for name in names if name)

    artist = raw.get("artist")
    if isinstance(artist, str) and artist.strip():
        return (artist.strip(),)
    return ()


def _name_of(value: Any) -> str:
    if isinstance(value, dict):
        return str(value.get("name") or value.get("title") or "").strip()
    if isinstance(value, str):
        return value.strip()
    return ""


def extract_album_name(raw: dict[str, Any]) -> str:
    album = raw.get("album")
    if isinstance(album, dict):
        return _name_of(album)
    if isinstance(album, str):
        return album.strip()
    return ""


@dataclass(frozen=True)
class RankableItem:
    """Searchable view of a song or album.

    Attributes:
        name: Primary display name
        artist_names: Primary artist names in upstream order
        album_name: Album name (songs only, empty for albums)
        image_variants: Image URLs keyed by quality label
        stream_variants: Stream URLs keyed by quality label (songs only)
        raw: The upstream item this view was built from
    """

    name: str
    artist_names: tuple[str, ...] = ()
    album_name: str = ""
    image_variants: dict[str, str] = field(default_factory=dict)
    stream_variants: dict[str, str] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def artist_text(self) -> str:
        return ", ".join(self.artist_names)

    @classmethod
    def from_song(cls, raw: dict[str, Any]) -> RankableItem:
        return cls(
            name=_name_of(raw),
            artist_names=extract_artist_names(raw),
            album_name=extract_album_name(raw),
            image_variants=extract_variants(raw.get("image")),
            stream_variants=extract_variants(raw.get("downloadUrl")),
            raw=raw,
        )

    @classmethod
    def from_album(cls, raw: dict[str, Any]) -> RankableItem:
        return cls(
            name=_name_of(raw),
            artist_names=extract_artist_names(raw),
            image_variants=extract_variants(raw.get("image")),
            raw=raw,
        )


def thumbnail_url(value: Any) -> str:
    """Pick the 150x150 image, falling back to the first variant.

    String images have their ``500x500`` segment rewritten to ``150x150``.
    """
    if isinstance(value, str):
        return value.replace("500x500", ImageQuality.THUMBNAIL)
    variants = extract_variants(value)
    if not variants:
        return ""
    return variants.get(ImageQuality.THUMBNAIL) or next(iter(variants.values()))


def stream_urls(value: Any) -> dict[str, str]:
    """Low/medium/high stream URLs from a ``downloadUrl`` value."""
    streams = {"low": "", "medium": "", "high": ""}
    if isinstance(value, list):
        variants = extract_variants(value)
        streams["low"] = variants.get(ImageQuality.STREAM_LOW) or variants.get("96", "")
        streams["medium"] = variants.get(ImageQuality.STREAM_MEDIUM) or variants.get("160", "")
        streams["high"] = variants.get(ImageQuality.STREAM_HIGH) or variants.get("320", "")
        if not streams["high"] and variants:
            streams["high"] = next(iter(variants.values()))
    elif isinstance(value, str):
        streams["high"] = value
    return streams


def map_song(raw: dict[str, Any] | None) -> dict[str, Any] | None:
    """Reshape a raw upstream song into the compact client format."""
    if not raw:
        return None

    item = RankableItem.from_song(raw)
    return {
        "id": raw.get("id"),
        "name": item.name,
        "artist": item.artist_text or UNKNOWN_ARTIST,
        "album": item.album_name or UNKNOWN_ALBUM,
        "image": thumbnail_url(raw.get("image")),
        "duration": raw.get("duration"),
        "language": raw.get("language"),
        "streams": stream_urls(raw.get("downloadUrl") or raw.get("url")),
    }


def map_album(raw: dict[str, Any] | None) -> dict[str, Any] | None:
    """Reshape a raw upstream album (and its songs) into the client format."""
    if not raw:
        return None

    item = RankableItem.from_album(raw)
    songs = raw.get("songs") if isinstance(raw.get("songs"), list) else []
    return {
        "id": raw.get("id"),
        "name": item.name,
        "artist": item.artist_text or UNKNOWN_ARTIST,
        "image": thumbnail_url(raw.get("image")),
        "year": raw.get("year"),
        "language": raw.get("language"),
        "songCount": raw.get("songCount"),
        "songs": [mapped for mapped in (map_song(song) for song in songs) if mapped is not None],
    }


__all__ = [
    "RankableItem",
    "extract_album_name",
    "extract_artist_names",
    "extract_variants",
    "map_album",
    "map_song",
    "stream_urls",
    "thumbnail_url",
]
