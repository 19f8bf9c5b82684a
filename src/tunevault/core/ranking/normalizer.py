"""Text normalization for ranking and missing-search bookkeeping."""

from __future__ import annotations

import html
import re
import unicodedata

_PUNCTUATION = re.compile(r"[^\w\s]", re.UNICODE)
_UNDERSCORE = re.compile(r"_+")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str | None) -> str:
    """Normalize text for comparison.

    Decodes HTML entities, lowercases, replaces punctuation with spaces,
    collapses whitespace and trims.

    Example:
        >>> normalize_text("Tum Hi Ho (From &quot;Aashiqui 2&quot;)")
        'tum hi ho from aashiqui 2'
    """
    if not text:
        return ""

    normalized = html.unescape(text)
    normalized = unicodedata.normalize("NFKC", normalized).lower()
    normalized = _PUNCTUATION.sub(" ", normalized)
    normalized = _UNDERSCORE.sub(" ", normalized)
    return _WHITESPACE.sub(" ", normalized).strip()


__all__ = ["normalize_text"]
