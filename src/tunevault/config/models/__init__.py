"""Configuration models package."""

from .app_settings import LoggingSettings
from .cache_settings import CacheSettings
from .settings import Settings
from .upstream_settings import UpstreamSettings

__all__ = [
    "CacheSettings",
    "LoggingSettings",
    "Settings",
    "UpstreamSettings",
]
