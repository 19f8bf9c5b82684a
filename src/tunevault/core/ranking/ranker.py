"""Fuzzy result ranking.

Orders raw upstream songs or albums by similarity to the search query:

1. Query and item fields are normalized (see ``normalize_text``).
2. Each field is compared with ``rapidfuzz.fuzz.WRatio``; the item score is
   the weighted mean over name (2.0), artists (1.2) and, for songs,
   album (0.8).
3. An item qualifies when its best field similarity reaches 0.65.
4. Qualifying items are sorted by descending score, upstream order on ties.
5. When nothing qualifies, items whose name contains the query are kept.
6. Songs are deduplicated by (name, artist); albums are not.

The ranking is a pure function of ``(query, items)``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from rapidfuzz import fuzz

from tunevault.core.mapping import RankableItem
from tunevault.core.ranking.normalizer import normalize_text
from tunevault.shared.constants import RankingThresholds, RankingWeights

logger = logging.getLogger(__name__)


class ItemKind(Enum):
    """Kind of catalog item being ranked."""

    SONG = "song"
    ALBUM = "album"


@dataclass(frozen=True)
class ScoredItem:
    """Ranking result for one item."""

    index: int
    score: float
    best_field: float
    item: RankableItem


def field_similarity(query: str, text: str) -> float:
    """Similarity between two normalized strings on a 0..1 scale."""
    if not query or not text:
        return 0.0
    return fuzz.WRatio(query, text) / 100.0


def _weighted_fields(item: RankableItem, kind: ItemKind) -> list[tuple[str, float]]:
    fields = [
        (normalize_text(item.name), RankingWeights.NAME),
        (normalize_text(item.artist_text), RankingWeights.ARTISTS),
    ]
    if kind is ItemKind.SONG:
        fields.append((normalize_text(item.album_name), RankingWeights.ALBUM))
    return fields


def score_item(query: str, item: RankableItem, kind: ItemKind, index: int = 0) -> ScoredItem:
    """Score one item against an already normalized query."""
    fields = _weighted_fields(item, kind)
    similarities = [(field_similarity(query, text), weight) for text, weight in fields]

    total_weight = sum(weight for _, weight in similarities)
    score = sum(similarity * weight for similarity, weight in similarities) / total_weight
    best_field = max(similarity for similarity, _ in similarities)
    return ScoredItem(index=index, score=score, best_field=best_field, item=item)


def _to_rankable(raw: dict[str, Any], kind: ItemKind) -> RankableItem:
    if kind is ItemKind.SONG:
        return RankableItem.from_song(raw)
    return RankableItem.from_album(raw)


def dedupe_songs(items: list[RankableItem]) -> list[RankableItem]:
    """Keep the first song for each (normalized name, normalized artist) pair."""
    seen: set[tuple[str, str]] = set()
    unique: list[RankableItem] = []
    for item in items:
        key = (normalize_text(item.name), normalize_text(item.artist_text))
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def rank_items(
    query: str,
    items: list[dict[str, Any]],
    kind: ItemKind = ItemKind.SONG,
) -> list[dict[str, Any]]:
    """Rank raw upstream items against ``query``.

    Args:
        query: The user's search text (raw, normalized here)
        items: Raw upstream items in upstream order
        kind: Whether the items are songs or albums

    Returns:
        Raw items in ranked order, deduplicated for songs
    """
    candidates = [_to_rankable(raw, kind) for raw in items if isinstance(raw, dict)]
    normalized_query = normalize_text(query)

    if not normalized_query:
        ranked = candidates
    else:
        scored = [score_item(normalized_query, item, kind, index) for index, item in enumerate(candidates)]
        qualifying = [entry for entry in scored if entry.best_field >= RankingThresholds.MIN_FIELD_SIMILARITY]
        # Stable sort: ties keep upstream order
        qualifying.sort(key=lambda entry: -entry.score)
        ranked = [entry.item for entry in qualifying]

        if not ranked and candidates:
            ranked = [item for item in candidates if normalized_query in normalize_text(item.name)]
            logger.debug(
                "No fuzzy match for %r, substring fallback kept %d of %d",
                normalized_query,
                len(ranked),
                len(candidates),
            )

    if kind is ItemKind.SONG:
        ranked = dedupe_songs(ranked)

    return [item.raw for item in ranked]


def rank_songs(query: str, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return rank_items(query, items, ItemKind.SONG)


def rank_albums(query: str, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return rank_items(query, items, ItemKind.ALBUM)


__all__ = [
    "ItemKind",
    "ScoredItem",
    "dedupe_songs",
    "field_similarity",
    "rank_albums",
    "rank_items",
    "rank_songs",
    "score_item",
]
