"""
CLI Error Handling Utilities

Consistent error output and exit codes for CLI commands.
"""

from __future__ import annotations

import logging

import typer

from rich.markup import escape

from tunevault.cli.output import error_console, format_json_output
from tunevault.shared.errors import (
    ApplicationError,
    CircuitOpenError,
    InfrastructureError,
    TuneVaultError,
)
from tunevault.shared.logging import log_operation_error

logger = logging.getLogger(__name__)

EXIT_ERROR = 1
EXIT_UNAVAILABLE = 69
EXIT_CONFIG = 78


def exit_code_for(error: TuneVaultError) -> int:
    """Map an error to a process exit code (sysexits-style)."""
    if isinstance(error, ApplicationError):
        return EXIT_CONFIG
    if isinstance(error, (CircuitOpenError, InfrastructureError)):
        return EXIT_UNAVAILABLE
    return EXIT_ERROR


def _describe(error: TuneVaultError) -> str:
    if isinstance(error, CircuitOpenError):
        return f"{error.message} (retry in {error.retry_after:.0f}s)"
    return error.message


def handle_cli_error(error: TuneVaultError, command: str, *, json_output: bool = False) -> int:
    """Log and print ``error``; returns the exit code for the command."""
    log_operation_error(logger, error, operation=command, additional_context={"command": command})

    message = _describe(error)
    if json_output:
        typer.echo(format_json_output(False, command, errors=[f"{error.code.value}: {message}"]).decode("utf-8"))
    else:
        error_console.print(f"[red bold]Error:[/red bold] {escape(message)}", highlight=False)

    return exit_code_for(error)


__all__ = ["exit_code_for", "handle_cli_error"]
