"""
CLI output helpers.

JSON output goes through orjson in a fixed envelope; human output is
rendered with Rich tables.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable

import orjson
import typer
from rich.console import Console
from rich.table import Table

console = Console()
error_console = Console(stderr=True)


def format_json_output(
    success: bool,
    command: str,
    data: Any | None = None,
    errors: list[str] | None = None,
) -> bytes:
    """Format command output as JSON."""
    output = {
        "success": success,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "command": command,
        "data": data,
        "errors": errors or [],
    }
    return orjson.dumps(output, option=orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS)


def emit_json(command: str, data: Any) -> None:
    typer.echo(format_json_output(True, command, data).decode("utf-8"))


def songs_table(title: str, songs: Iterable[dict[str, Any]]) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Artist")
    table.add_column("Album")
    table.add_column("Language", style="dim")

    for index, song in enumerate(songs, start=1):
        table.add_row(
            str(index),
            str(song.get("id") or ""),
            str(song.get("name") or ""),
            str(song.get("artist") or ""),
            str(song.get("album") or ""),
            str(song.get("language") or ""),
        )
    return table


def albums_table(title: str, albums: Iterable[dict[str, Any]]) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Artist")
    table.add_column("Year", justify="right")

    for index, album in enumerate(albums, start=1):
        table.add_row(
            str(index),
            str(album.get("id") or ""),
            str(album.get("name") or ""),
            str(album.get("artist") or ""),
            str(album.get("year") or ""),
        )
    return table


def entities_table(title: str, entities: Iterable[dict[str, Any]]) -> Table:
    """Generic id/name/type table for artists and playlists."""
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Type", style="dim")

    for index, entity in enumerate(entities, start=1):
        table.add_row(
            str(index),
            str(entity.get("id") or ""),
            str(entity.get("name") or entity.get("title") or ""),
            str(entity.get("type") or ""),
        )
    return table


def missing_table(records: Iterable[dict[str, Any]]) -> Table:
    table = Table(title="Missing searches")
    table.add_column("Query", style="bold")
    table.add_column("Count", justify="right")
    table.add_column("Last requested", style="dim")
    table.add_column("Flagged")
    for record in records:
        last = datetime.fromtimestamp(record["lastRequestedAt"], tz=timezone.utc).strftime("%Y-%m-%d %H:%M")
        table.add_row(record["query"], str(record["count"]), last, "yes" if record["flagged"] else "")
    return table


def details_table(title: str, details: dict[str, Any], skip: Iterable[str] = ()) -> Table:
    """Two-column key/value table for a single entity."""
    skipped = set(skip)
    table = Table(title=title, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in details.items():
        if key in skipped or isinstance(value, (list, dict)):
            continue
        table.add_row(key, "" if value is None else str(value))
    return table


__all__ = [
    "albums_table",
    "console",
    "details_table",
    "emit_json",
    "entities_table",
    "error_console",
    "format_json_output",
    "missing_table",
    "songs_table",
]
