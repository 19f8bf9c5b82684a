"""Upstream catalog API client and response models."""

from .client import UpstreamClient
from .models import (
    Entity,
    EntityList,
    GlobalSearch,
    SearchPage,
    UpstreamPayload,
    parse_envelope,
)

__all__ = [
    "Entity",
    "EntityList",
    "GlobalSearch",
    "SearchPage",
    "UpstreamClient",
    "UpstreamPayload",
    "parse_envelope",
]
