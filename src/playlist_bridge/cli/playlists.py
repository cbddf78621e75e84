"""CLI: bridge playlists list|tracks|create"""

import json
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

console = Console()


def _get_client():
    from playlist_bridge.cli.main import _get_client
    return _get_client()


def _run(coro):
    from playlist_bridge.cli.main import _run
    return _run(coro)


def _slot(secondary: bool):
    from playlist_bridge.cli.main import _slot
    return _slot(secondary)


@click.group()
def playlists():
    """Browse playlists of either account."""


@playlists.command("list")
@click.option("--secondary", is_flag=True)
@click.option("--json-output", "--json", is_flag=True)
def playlists_list(secondary: bool, json_output: bool):
    """List owned playlists."""

    async def _list():
        async with _get_client() as client:
            view = client.view(_slot(secondary))
            try:
                result = await view.playlists()
            finally:
                view.close()
        if json_output:
            click.echo(result.model_dump_json(indent=2))
            return
        table = Table(title=f"Playlists ({result.total} total)")
        table.add_column("ID", style="bold")
        table.add_column("Name")
        table.add_column("Tracks", justify="right")
        for p in result.items:
            table.add_row(p.id, p.name, str(p.track_count))
        console.print(table)

    _run(_list())


@playlists.command("tracks")
@click.argument("playlist_id")
@click.option("--secondary", is_flag=True)
@click.option("--search", default=None, help="Filter tracks")
@click.option("--all", "load_all", is_flag=True, help="Follow pagination to the end")
@click.option("--json-output", "--json", is_flag=True)
def playlists_tracks(playlist_id: str, secondary: bool, search: Optional[str], load_all: bool, json_output: bool):
    """Show tracks of a playlist (`liked` for saved tracks)."""

    async def _tracks():
        async with _get_client() as client:
            view = client.view(_slot(secondary))
            try:
                page = await view.open(playlist_id)
                if search:
                    page = await view.search(search)
                if load_all:
                    page = await view.load_all()
            finally:
                view.close()
        if json_output:
            click.echo(json.dumps([item.track.model_dump() for item in page.items], indent=2))
            return
        table = Table(title=f"{playlist_id} ({len(page.items)} of {page.total})")
        table.add_column("#", justify="right")
        table.add_column("Title", style="bold")
        table.add_column("Artists")
        table.add_column("Length", justify="right")
        table.add_column("URI", style="dim")
        for i, item in enumerate(page.items, 1):
            t = item.track
            table.add_row(str(i), t.name, t.artist_names, t.duration, t.uri)
        console.print(table)
        if page.has_more:
            console.print("[dim]More tracks available, use --all[/dim]")

    _run(_tracks())


@playlists.command("create")
@click.argument("name")
@click.option("--secondary", is_flag=True)
def playlists_create(name: str, secondary: bool):
    """Create a playlist."""

    async def _create():
        async with _get_client() as client:
            view = client.view(_slot(secondary))
            try:
                with console.status("Creating playlist..."):
                    playlist = await view.create_playlist(name)
            finally:
                view.close()
        console.print(f"[green]Playlist created: {playlist.id}[/green]")

    _run(_create())
