"""Ordering of "similar song" suggestions.

Suggestions sharing the listener's current language or artist are boosted
to the front; everything else keeps the upstream order.
"""

from __future__ import annotations

from typing import Any

from tunevault.core.mapping import extract_artist_names
from tunevault.shared.constants import SuggestionBoost


def suggestion_score(
    song: dict[str, Any],
    target_artist: str | None = None,
    target_language: str | None = None,
) -> int:
    """Boost score of one raw suggestion."""
    score = 0
    if target_language and song.get("language") == target_language:
        score += SuggestionBoost.LANGUAGE
    if target_artist and any(target_artist in name for name in extract_artist_names(song)):
        score += SuggestionBoost.ARTIST
    return score


def rank_suggestions(
    songs: list[dict[str, Any]],
    target_artist: str | None = None,
    target_language: str | None = None,
) -> list[dict[str, Any]]:
    """Order suggestions by descending boost, stable for equal boosts."""
    if not target_artist and not target_language:
        return list(songs)
    return sorted(songs, key=lambda song: -suggestion_score(song, target_artist, target_language))


__all__ = ["rank_suggestions", "suggestion_score"]
