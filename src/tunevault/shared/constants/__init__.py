"""
TuneVault Constants Module

Centralized constants for TuneVault. Magic values and default policy live
here so the services, config models and CLI agree on them.
"""

from .cache import (
    BASE_DAY,
    BASE_HOUR,
    BASE_MINUTE,
    CacheDefaults,
    CacheNamespace,
    CacheTTL,
    DurableTables,
    is_search_key,
    make_cache_key,
)
from .http_codes import ContentTypes, HTTPHeaders, HTTPStatusCodes
from .network import PlaceholderIds, UpstreamDefaults, UpstreamEndpoints
from .ranking import ImageQuality, RankingThresholds, RankingWeights, SuggestionBoost

__all__ = [
    "BASE_DAY",
    "BASE_HOUR",
    "BASE_MINUTE",
    "CacheDefaults",
    "CacheNamespace",
    "CacheTTL",
    "ContentTypes",
    "DurableTables",
    "HTTPHeaders",
    "HTTPStatusCodes",
    "ImageQuality",
    "PlaceholderIds",
    "RankingThresholds",
    "RankingWeights",
    "SuggestionBoost",
    "UpstreamDefaults",
    "UpstreamEndpoints",
    "is_search_key",
    "make_cache_key",
]
