"""TuneVault services: caching tiers, upstream access and the catalog facade."""

from .cache_orchestrator import CachedFetchOrchestrator
from .catalog_service import CatalogService
from .circuit_breaker import CircuitBreaker, CircuitState
from .request_queue import SerialRequestQueue
from .ttl_cache import TTLCache

__all__ = [
    "CachedFetchOrchestrator",
    "CatalogService",
    "CircuitBreaker",
    "CircuitState",
    "SerialRequestQueue",
    "TTLCache",
]
