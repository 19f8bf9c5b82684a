"""
TuneVault Typer CLI Application

Operational front end for the catalog access layer: run searches and
lookups through the same cache/circuit-breaker stack the service uses,
and inspect or maintain the durable store.
"""

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Awaitable, Callable, Optional

import typer

from tunevault import __version__
from tunevault.cli.context import CliContext, LogLevel, get_cli_context, set_cli_context
from tunevault.cli.error_handler import handle_cli_error
from tunevault.cli.options import (
    config_option,
    json_output_option,
    limit_option,
    log_level_option,
    page_option,
    version_option,
)
from tunevault.cli.output import (
    albums_table,
    console,
    details_table,
    emit_json,
    entities_table,
    missing_table,
    songs_table,
)
from tunevault.cli.runtime import CatalogRuntime, build_runtime
from tunevault.config.loader import get_config, load_settings
from tunevault.config.models.settings import Settings
from tunevault.shared.constants import CacheDefaults, UpstreamDefaults
from tunevault.shared.errors import TuneVaultError
from tunevault.shared.logging import setup_structured_logger

logger = logging.getLogger(__name__)


class SearchType(str, Enum):
    """What a search command looks for."""

    ALL = "all"
    SONGS = "songs"
    ALBUMS = "albums"
    ARTISTS = "artists"
    PLAYLISTS = "playlists"


app = typer.Typer(
    name="tunevault",
    help="Resilient, cached access to the music catalog API.",
    rich_markup_mode="rich",
    no_args_is_help=True,
    invoke_without_command=True,
)


@app.callback()
def main(
    log_level: Annotated[Optional[LogLevel], log_level_option()] = None,
    json_output: Annotated[bool, json_output_option()] = False,
    config: Annotated[Optional[Path], config_option()] = None,
    version: Annotated[bool, version_option()] = False,
) -> None:
    """Process the common options."""
    if version:
        typer.echo(f"TuneVault v{__version__}")
        raise typer.Exit

    set_cli_context(CliContext(log_level=log_level, json_output=json_output, config_path=config))


def _load_settings(context: CliContext) -> Settings:
    settings = load_settings(context.config_path) if context.config_path else get_config()
    level = context.log_level.value if context.log_level else settings.logging.level
    setup_structured_logger(
        level=level,
        log_file=settings.logging.file,
        use_rich_console=settings.logging.rich_console,
    )
    return settings


def _execute(command: str, operation: Callable[[CatalogRuntime], Awaitable[Any]]) -> Any:
    """Run ``operation`` against a fresh catalog runtime, mapping errors to exit codes."""
    context = get_cli_context()

    async def runner() -> Any:
        async with build_runtime(settings) as runtime:
            return await operation(runtime)

    try:
        settings = _load_settings(context)
        return asyncio.run(runner())
    except TuneVaultError as e:
        raise typer.Exit(handle_cli_error(e, command, json_output=context.json_output)) from e


def _not_found(command: str, what: str, identifier: str) -> None:
    if get_cli_context().json_output:
        emit_json(command, None)
    else:
        console.print(f"No {what} found for [cyan]{identifier}[/cyan]")
    raise typer.Exit(code=1)


@app.command("search")
def search_command(
    query: Annotated[str, typer.Argument(help="Search text.")],
    search_type: Annotated[
        SearchType,
        typer.Option("--type", "-t", case_sensitive=False, help="What to search for."),
    ] = SearchType.ALL,
    page: Annotated[int, page_option()] = UpstreamDefaults.SEARCH_PAGE,
    limit: Annotated[int, limit_option()] = UpstreamDefaults.SEARCH_LIMIT,
) -> None:
    """Search the catalog (results are fuzzy-ranked and cached)."""
    methods = {
        SearchType.ALL: "search",
        SearchType.SONGS: "search_songs",
        SearchType.ALBUMS: "search_albums",
        SearchType.ARTISTS: "search_artists",
        SearchType.PLAYLISTS: "search_playlists",
    }

    async def operation(runtime: CatalogRuntime) -> Any:
        return await getattr(runtime.catalog, methods[search_type])(query, page, limit)

    result = _execute("search", operation)

    if get_cli_context().json_output:
        emit_json("search", result)
        return

    if result.get(CacheDefaults.FALLBACK_MARKER):
        console.print("[yellow]Upstream is rate limited, showing no results for now.[/yellow]")

    if search_type is SearchType.ALL:
        console.print(songs_table(f"Songs for '{query}'", result.get("songs", [])))
        console.print(albums_table(f"Albums for '{query}'", result.get("albums", [])))
        console.print(entities_table(f"Artists for '{query}'", result.get("artists", [])))
    elif search_type is SearchType.SONGS:
        console.print(songs_table(f"Songs for '{query}'", result.get("results", [])))
    elif search_type is SearchType.ALBUMS:
        console.print(albums_table(f"Albums for '{query}'", result.get("results", [])))
    else:
        console.print(entities_table(f"{search_type.value.title()} for '{query}'", result.get("results", [])))


@app.command("song")
def song_command(song_id: Annotated[str, typer.Argument(help="Song id.")]) -> None:
    """Show one song."""
    song = _execute("song", lambda runtime: runtime.catalog.get_song(song_id))
    if song is None:
        _not_found("song", "song", song_id)

    if get_cli_context().json_output:
        emit_json("song", song)
        return
    console.print(details_table(song.get("name") or song_id, song))
    for quality, url in song.get("streams", {}).items():
        if url:
            console.print(f"[dim]{quality}:[/dim] {url}")


@app.command("album")
def album_command(album_id: Annotated[str, typer.Argument(help="Album id.")]) -> None:
    """Show an album and its songs."""
    album = _execute("album", lambda runtime: runtime.catalog.get_album(album_id))
    if album is None:
        _not_found("album", "album", album_id)

    if get_cli_context().json_output:
        emit_json("album", album)
        return
    console.print(details_table(album.get("name") or album_id, album))
    console.print(songs_table("Tracks", album.get("songs", [])))


@app.command("artist")
def artist_command(
    artist_id: Annotated[str, typer.Argument(help="Artist id.")],
    songs: Annotated[bool, typer.Option("--songs", help="List the artist's songs.")] = False,
    albums: Annotated[bool, typer.Option("--albums", help="List the artist's albums.")] = False,
    page: Annotated[int, page_option()] = UpstreamDefaults.SEARCH_PAGE,
) -> None:
    """Show an artist, optionally with songs or albums."""

    async def operation(runtime: CatalogRuntime) -> dict[str, Any] | None:
        artist = await runtime.catalog.get_artist(artist_id)
        if artist is None:
            return None
        result: dict[str, Any] = {"artist": artist}
        if songs:
            result["songs"] = await runtime.catalog.get_artist_songs(artist_id, page)
        if albums:
            result["albums"] = await runtime.catalog.get_artist_albums(artist_id, page)
        return result

    result = _execute("artist", operation)
    if result is None:
        _not_found("artist", "artist", artist_id)

    if get_cli_context().json_output:
        emit_json("artist", result)
        return
    artist = result["artist"]
    console.print(details_table(str(artist.get("name") or artist_id), artist))
    if result.get("songs"):
        console.print(songs_table("Songs", result["songs"].get("songs", [])))
    if result.get("albums"):
        console.print(albums_table("Albums", result["albums"].get("albums", [])))


@app.command("suggestions")
def suggestions_command(
    song_id: Annotated[str, typer.Argument(help="Song id to base suggestions on.")],
    artist: Annotated[Optional[str], typer.Option("--artist", help="Boost this artist.")] = None,
    language: Annotated[Optional[str], typer.Option("--language", help="Boost this language.")] = None,
) -> None:
    """Similar songs, boosted towards an artist and/or language."""
    songs = _execute(
        "suggestions",
        lambda runtime: runtime.catalog.get_ranked_suggestions(song_id, artist, language),
    )

    if get_cli_context().json_output:
        emit_json("suggestions", songs)
        return
    console.print(songs_table(f"Suggestions for {song_id}", songs))


@app.command("missing")
def missing_command(
    show_all: Annotated[bool, typer.Option("--all", help="Include searches not yet flagged.")] = False,
) -> None:
    """List searches that returned no results."""

    async def operation(runtime: CatalogRuntime) -> list[dict[str, Any]]:
        records = await runtime.require_store().list_missing(flagged_only=not show_all)
        return [record.to_dict() for record in records]

    records = _execute("missing", operation)

    if get_cli_context().json_output:
        emit_json("missing", records)
        return
    console.print(missing_table(records))


@app.command("purge")
def purge_command() -> None:
    """Delete expired records from the durable store."""
    purged = _execute("purge", lambda runtime: runtime.require_store().purge_expired())

    if get_cli_context().json_output:
        emit_json("purge", {"purged": purged})
        return
    console.print(f"Purged [bold]{purged}[/bold] expired record(s)")


def run() -> None:
    """Console-script entry point."""
    app()


__all__ = ["LogLevel", "SearchType", "app", "run"]
