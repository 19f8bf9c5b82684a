"""Settings loader and singleton manager.

This module handles:
- Environment variable loading from .env files
- Configuration file loading from TOML
- Thread-safe singleton pattern for Settings instance
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from tunevault.config.models.settings import Settings
from tunevault.shared.errors import ApplicationError, ErrorCode, ErrorContext

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATHS = (
    Path("config/tunevault.toml"),
    Path("tunevault.toml"),
    Path.home() / ".tunevault" / "config.toml",
)


class SettingsLoader:
    """Thread-safe singleton manager for Settings.

    Uses double-checked locking pattern to ensure thread-safety
    while minimizing lock overhead.
    """

    def __init__(self, config_path: str | Path | None = None) -> None:
        self._config_path = config_path
        self._instance: Settings | None = None
        self._lock = threading.RLock()

    def get_config(self) -> Settings:
        """Get the global settings instance, loading it if necessary."""
        # First check (without lock)
        if self._instance is None:
            with self._lock:
                if self._instance is None:
                    self._instance = load_settings(self._config_path)

        return self._instance

    def reload_config(self) -> Settings:
        """Reload the settings instance from .env, TOML and environment."""
        with self._lock:
            self._instance = load_settings(self._config_path)

        return self._instance


def _load_env_file(env_file: Path = Path(".env")) -> None:
    """Load environment variables from a .env file when present.

    Values already set in the process environment win over the file.
    """
    if env_file.exists():
        load_dotenv(env_file, override=False)
        logger.debug("Loaded environment from %s", env_file)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from a TOML configuration file or the environment.

    Args:
        config_path: Optional path to a TOML file. When None, the default
            locations are tried before falling back to environment variables.

    Returns:
        Settings instance loaded from the first available source

    Raises:
        ApplicationError: If the file is missing or the values are invalid
    """
    _load_env_file()

    try:
        if config_path:
            return Settings.from_toml_file(config_path)

        for candidate in DEFAULT_CONFIG_PATHS:
            if candidate.exists():
                return Settings.from_toml_file(candidate)

        return Settings()
    except FileNotFoundError as e:
        raise ApplicationError(
            code=ErrorCode.CONFIG_MISSING,
            message=str(e),
            context=ErrorContext(
                operation="load_settings",
                additional_data={"config_path": str(config_path)},
            ),
            original_error=e,
        ) from e
    except ValidationError as e:
        raise ApplicationError(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=f"Invalid configuration: {e.error_count()} error(s)",
            context=ErrorContext(
                operation="load_settings",
                additional_data={"config_path": str(config_path)},
            ),
            original_error=e,
        ) from e


# Global loader instance
_loader = SettingsLoader()


def get_config() -> Settings:
    """Get the global settings instance (thread-safe)."""
    return _loader.get_config()


def reload_config() -> Settings:
    """Reload the global settings instance from configuration sources."""
    return _loader.reload_config()


__all__ = [
    "SettingsLoader",
    "get_config",
    "load_settings",
    "reload_config",
]
