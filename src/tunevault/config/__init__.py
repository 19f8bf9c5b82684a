"""TuneVault Configuration Module

Unified access to configuration models and settings management:
- Settings: Main configuration facade
- Loader functions: get_config, load_settings, reload_config
- Domain models: Upstream, Cache and Logging settings
"""

from __future__ import annotations

from .loader import SettingsLoader, get_config, load_settings, reload_config
from .models import CacheSettings, LoggingSettings, Settings, UpstreamSettings

__all__ = [
    "CacheSettings",
    "LoggingSettings",
    "Settings",
    "SettingsLoader",
    "UpstreamSettings",
    "get_config",
    "load_settings",
    "reload_config",
]
