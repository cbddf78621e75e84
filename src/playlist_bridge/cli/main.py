"""
Playlist bridge CLI: `bridge` command.

Commands:
  bridge auth login|status|logout     Per-slot OAuth sessions
  bridge playlists list|tracks|create Browse either account
  bridge transfer add|remove          Copy or move tracks between accounts
"""

import asyncio
import logging

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install playlist-bridge[cli]")

from playlist_bridge.client import AsyncPlaylistBridge
from playlist_bridge.config import Settings
from playlist_bridge.errors import AuthRequiredError, BridgeError
from playlist_bridge.models.session import Slot

console = Console()


def _slot(secondary: bool) -> Slot:
    return Slot.SECONDARY if secondary else Slot.PRIMARY


def _print_redirect(slot: Slot, url: str) -> None:
    console.print(f"[yellow]Authorize the {slot} account:[/yellow] {url}")


def _get_client() -> AsyncPlaylistBridge:
    return AsyncPlaylistBridge(Settings.load(), redirect=_print_redirect)


def _run(coro):
    try:
        return asyncio.run(coro)
    except AuthRequiredError as e:
        flag = " --secondary" if e.slot is Slot.SECONDARY else ""
        console.print(f"[red]Not logged in ({e.slot}). Run `bridge auth login{flag}` first.[/red]")
        raise SystemExit(1)
    except BridgeError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def main(verbose: bool):
    """Playlist bridge: move tracks between two music accounts."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


# Register subcommands from separate modules
from playlist_bridge.cli.auth import auth
from playlist_bridge.cli.playlists import playlists
from playlist_bridge.cli.transfer import transfer

main.add_command(auth)
main.add_command(playlists)
main.add_command(transfer)


if __name__ == "__main__":
    main()
