"""Upstream response models.

The catalog API wraps every body as ``{"success": ..., "data": ...}`` but
the shape of ``data`` differs per endpoint. Bodies are resolved once, at the
client boundary, into one of four tagged variants:

- SearchPage: paginated search (``results`` plus ``total``)
- GlobalSearch: the combined search with per-type sections
- EntityList: a list of entities (bulk songs, suggestions)
- Entity: a single object (song, album, artist, playlist)

Anything else raises ParseError.
"""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tunevault.shared.errors import create_parse_error

RawItem = dict[str, Any]

GLOBAL_SECTIONS = ("songs", "albums", "artists", "playlists", "topQuery")


class BaseUpstreamModel(BaseModel):
    """Base model that ignores fields the upstream adds over time."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class UpstreamEnvelope(BaseUpstreamModel):
    """Outer wrapper of every catalog response."""

    success: bool | None = None
    message: str | None = None
    data: Any = None


class SearchPage(BaseUpstreamModel):
    """One page of a typed search."""

    kind: Literal["search_page"] = "search_page"
    results: list[RawItem] = Field(default_factory=list)
    total: int = 0
    start: int = 0


class GlobalSearch(BaseUpstreamModel):
    """Combined search result split into sections."""

    kind: Literal["global_search"] = "global_search"
    songs: list[RawItem] = Field(default_factory=list)
    albums: list[RawItem] = Field(default_factory=list)
    artists: list[RawItem] = Field(default_factory=list)
    playlists: list[RawItem] = Field(default_factory=list)
    top_query: list[RawItem] = Field(default_factory=list)


class EntityList(BaseUpstreamModel):
    """A bare list of entities."""

    kind: Literal["entity_list"] = "entity_list"
    items: list[RawItem] = Field(default_factory=list)


class Entity(BaseUpstreamModel):
    """A single catalog object."""

    kind: Literal["entity"] = "entity"
    data: RawItem


UpstreamPayload = Union[SearchPage, GlobalSearch, EntityList, Entity]


def _section_items(section: Any) -> list[RawItem]:
    if isinstance(section, dict):
        section = section.get("results", [])
    if section is None:
        return []
    if not isinstance(section, list):
        raise create_parse_error(
            "Search section is neither a list nor an object with results",
            operation="parse_envelope",
            section_type=type(section).__name__,
        )
    return [item for item in section if isinstance(item, dict)]


def _classify(data: Any) -> UpstreamPayload:
    if isinstance(data, list):
        return EntityList(items=[item for item in data if isinstance(item, dict)])

    if not isinstance(data, dict):
        raise create_parse_error(
            "Upstream data is not a JSON object or array",
            operation="parse_envelope",
            data_type=type(data).__name__,
        )

    if isinstance(data.get("results"), list):
        results = [item for item in data["results"] if isinstance(item, dict)]
        return SearchPage(
            results=results,
            total=data.get("total") if isinstance(data.get("total"), int) else len(results),
            start=data.get("start") if isinstance(data.get("start"), int) else 0,
        )

    if any(isinstance(data.get(name), dict) for name in GLOBAL_SECTIONS):
        return GlobalSearch(
            songs=_section_items(data.get("songs")),
            albums=_section_items(data.get("albums")),
            artists=_section_items(data.get("artists")),
            playlists=_section_items(data.get("playlists")),
            top_query=_section_items(data.get("topQuery")),
        )

    return Entity(data=data)


def parse_envelope(body: Any) -> UpstreamPayload:
    """Resolve a decoded upstream body into a tagged variant.

    Bodies without the ``data`` wrapper are classified as-is.

    Raises:
        ParseError: If the body is not JSON-shaped, reports failure, or has no data
    """
    if isinstance(body, list):
        return _classify(body)

    if not isinstance(body, dict):
        raise create_parse_error(
            "Upstream body is not a JSON object",
            operation="parse_envelope",
            body_type=type(body).__name__,
        )

    if "data" not in body:
        return _classify(body)

    try:
        envelope = UpstreamEnvelope.model_validate(body)
    except ValidationError as e:
        raise create_parse_error(
            "Upstream envelope failed validation",
            operation="parse_envelope",
            original_error=e,
        ) from e

    if envelope.success is False:
        raise create_parse_error(
            envelope.message or "Upstream reported an unsuccessful response",
            operation="parse_envelope",
        )
    if envelope.data is None:
        raise create_parse_error("Upstream envelope has no data", operation="parse_envelope")

    return _classify(envelope.data)


__all__ = [
    "Entity",
    "EntityList",
    "GlobalSearch",
    "RawItem",
    "SearchPage",
    "UpstreamEnvelope",
    "UpstreamPayload",
    "parse_envelope",
]
