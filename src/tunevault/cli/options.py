"""
Reusable Typer Options Module

Option factories shared by the main callback and individual commands.
Each call returns a fresh OptionInfo, so one definition can back the
same option on several commands.
"""

from pathlib import Path
from typing import Any

import typer


def log_level_option() -> Any:
    return typer.Option(
        "--log-level",
        case_sensitive=False,
        help="Set the logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    )


def json_output_option() -> Any:
    return typer.Option(
        "--json",
        help="Enable machine-readable JSON output instead of tables.",
    )


def config_option() -> Any:
    return typer.Option(
        "--config",
        "-c",
        help="Path to a TOML configuration file.",
        dir_okay=False,
    )


def version_option() -> Any:
    return typer.Option(
        "--version",
        "-V",
        help="Show version information and exit.",
        is_eager=True,
    )


def page_option() -> Any:
    return typer.Option("--page", "-p", min=1, help="Result page (1-based).")


def limit_option() -> Any:
    return typer.Option("--limit", "-n", min=1, max=100, help="Results per page.")


__all__ = [
    "config_option",
    "json_output_option",
    "limit_option",
    "log_level_option",
    "page_option",
    "version_option",
]
