"""Ranking constants for fuzzy search ordering."""


class RankingWeights:
    """Per-field weights for the weighted item score."""

    NAME = 2.0
    ARTISTS = 1.2
    ALBUM = 0.8


class RankingThresholds:
    """Similarity bounds, on a 0..1 scale."""

    # An item qualifies when its best field similarity reaches this value
    MIN_FIELD_SIMILARITY = 0.65


class SuggestionBoost:
    """Score boosts for suggestion ordering."""

    LANGUAGE = 5
    ARTIST = 5


class ImageQuality:
    """Image and stream quality labels on upstream items."""

    THUMBNAIL = "150x150"
    STREAM_LOW = "96kbps"
    STREAM_MEDIUM = "160kbps"
    STREAM_HIGH = "320kbps"


__all__ = [
    "ImageQuality",
    "RankingThresholds",
    "RankingWeights",
    "SuggestionBoost",
]
