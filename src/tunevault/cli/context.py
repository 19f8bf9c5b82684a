"""
CLI Context Management Module

Global CLI state shared by all Typer commands, held in a ContextVar:

- log_level: Logging level override (None uses the configured level)
- json_output: JSON output mode
- config_path: Optional TOML configuration file
"""

from __future__ import annotations

import contextvars
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class LogLevel(str, Enum):
    """Log level enumeration for type safety."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CliContext(BaseModel):
    """
    CLI context model for managing global state.

    Attributes:
        log_level: Logging level override
        json_output: Whether to output in JSON format
        config_path: TOML configuration file, if given
    """

    log_level: LogLevel | None = Field(default=None, description="Logging level override")
    json_output: bool = Field(default=False, description="Whether to output in JSON format")
    config_path: Path | None = Field(default=None, description="Configuration file path")


_cli_context: contextvars.ContextVar[CliContext | None] = contextvars.ContextVar(
    "tunevault_cli_context",
    default=None,
)


def set_cli_context(context: CliContext) -> None:
    _cli_context.set(context)


def get_cli_context() -> CliContext:
    """Return the current CLI context (defaults when no callback ran)."""
    context = _cli_context.get()
    if context is None:
        context = CliContext()
        _cli_context.set(context)
    return context


__all__ = ["CliContext", "LogLevel", "get_cli_context", "set_cli_context"]
