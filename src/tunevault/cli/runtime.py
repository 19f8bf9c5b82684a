"""
Wiring of the catalog stack for CLI commands.

Builds the upstream client, the caching tiers and the catalog service
from Settings, and tears them down in reverse order.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from tunevault.config.models.settings import Settings
from tunevault.services.cache_orchestrator import CachedFetchOrchestrator
from tunevault.services.catalog_service import CatalogService
from tunevault.services.durable.sqlite_store import SQLiteDurableStore
from tunevault.services.durable.writer import BestEffortWriter
from tunevault.services.ttl_cache import TTLCache
from tunevault.services.upstream.client import UpstreamClient
from tunevault.shared.errors import ApplicationError, ErrorCode, ErrorContext

logger = logging.getLogger(__name__)


@dataclass
class CatalogRuntime:
    """Live catalog stack for one command invocation."""

    catalog: CatalogService
    store: SQLiteDurableStore | None

    def require_store(self) -> SQLiteDurableStore:
        if self.store is None:
            raise ApplicationError(
                code=ErrorCode.CONFIG_MISSING,
                message="Durable store is disabled (set cache.durable_enabled = true)",
                context=ErrorContext(operation="require_store"),
            )
        return self.store


@asynccontextmanager
async def build_runtime(settings: Settings) -> AsyncIterator[CatalogRuntime]:
    """Create the catalog stack described by ``settings``."""
    store = SQLiteDurableStore(settings.cache.durable_path) if settings.cache.durable_enabled else None
    orchestrator = CachedFetchOrchestrator(
        cache=TTLCache(max_entries=settings.cache.max_entries),
        durable_store=store,
        writer=BestEffortWriter(max_pending=settings.cache.write_queue_size),
    )
    client = UpstreamClient(settings.upstream)
    catalog = CatalogService(client, orchestrator, cache_settings=settings.cache)

    try:
        yield CatalogRuntime(catalog=catalog, store=store)
    finally:
        await orchestrator.close()
        await client.close()
        if store is not None:
            await store.close()
        logger.debug("Catalog runtime closed")


__all__ = ["CatalogRuntime", "build_runtime"]
