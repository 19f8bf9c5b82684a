"""Search result ranking."""

from .normalizer import normalize_text
from .ranker import ItemKind, rank_albums, rank_items, rank_songs
from .suggestions import rank_suggestions

__all__ = [
    "ItemKind",
    "normalize_text",
    "rank_albums",
    "rank_items",
    "rank_songs",
    "rank_suggestions",
]
