"""CLI: bridge transfer add|remove"""

from typing import Optional

import click
from rich.console import Console

from playlist_bridge.models.transfer import TrackAction

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


def _transfer(kind: TrackAction, track_uri: str, playlist_id: str, complement: Optional[str],
              move: bool, primary: bool) -> None:
    if move and not complement:
        raise click.UsageError("--move needs --other PLAYLIST_ID")

    async def _do():
        async with _get_client() as client:
            with console.status(f"{kind.value.capitalize()}ing track..."):
                event = await client.transfer(
                    kind, track_uri, playlist_id,
                    complement_id=complement, complete=move, slot=_slot(not primary),
                )
        if event.ok:
            verb = "added to" if kind is TrackAction.ADD else "removed from"
            suffix = f" (moved, {complement} updated)" if move else ""
            console.print(f"[green]Track {verb} {playlist_id}{suffix}.[/green]")
        else:
            console.print(f"[red]Transfer failed: {event.cause}[/red]")
            raise SystemExit(1)

    _run(_do())


@click.group()
def transfer():
    """Add or remove tracks, optionally as a move between accounts."""


@transfer.command("add")
@click.argument("track_uri")
@click.option("--to", "playlist_id", required=True, help="Playlist to add to")
@click.option("--other", "complement", default=None, help="Playlist open in the other account")
@click.option("--move", is_flag=True, help="Also remove the track from --other")
@click.option("--primary", is_flag=True, help="Target playlist belongs to the primary account")
def transfer_add(track_uri: str, playlist_id: str, complement: Optional[str], move: bool, primary: bool):
    """Add TRACK_URI to a playlist."""
    _transfer(TrackAction.ADD, track_uri, playlist_id, complement, move, primary)


@transfer.command("remove")
@click.argument("track_uri")
@click.option("--from", "playlist_id", required=True, help="Playlist to remove from")
@click.option("--other", "complement", default=None, help="Playlist open in the other account")
@click.option("--move", is_flag=True, help="Also add the track to --other")
@click.option("--primary", is_flag=True, help="Target playlist belongs to the primary account")
def transfer_remove(track_uri: str, playlist_id: str, complement: Optional[str], move: bool, primary: bool):
    """Remove TRACK_URI from a playlist."""
    _transfer(TrackAction.REMOVE, track_uri, playlist_id, complement, move, primary)
