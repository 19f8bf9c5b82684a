"""Durable fallback store: protocol, SQLite backend and background writer."""

from .base import DurableRecord, DurableStore, MissingQueryRecord, sanitize_key
from .sqlite_store import SQLiteDurableStore
from .writer import BestEffortWriter

__all__ = [
    "BestEffortWriter",
    "DurableRecord",
    "DurableStore",
    "MissingQueryRecord",
    "SQLiteDurableStore",
    "sanitize_key",
]
