"""CLI: bridge auth login|status|logout"""

import click
from rich.console import Console

from playlist_bridge.errors import AuthRequiredError
from playlist_bridge.models.session import Slot

console = Console()


def _get_client():
    from playlist_bridge.cli.main import _get_client
    return _get_client()


def _run(coro):
    from playlist_bridge.cli.main import _run
    return _run(coro)


def _slot(secondary: bool) -> Slot:
    from playlist_bridge.cli.main import _slot
    return _slot(secondary)


@click.group()
def auth():
    """Authentication commands."""


@auth.command("login")
@click.option("--secondary", is_flag=True, help="Log in the secondary account")
@click.option("--no-browser", is_flag=True, help="Only print the authorization URL")
def auth_login(secondary: bool, no_browser: bool):
    """Log in through the provider's authorization page."""
    slot = _slot(secondary)

    async def _login():
        async with _get_client() as client:
            url = None
            try:
                with console.status("Requesting authorization URL..."):
                    await client.login(slot)
            except AuthRequiredError as e:
                url = e.url
            if not url:
                console.print("[red]Server did not return an authorization URL.[/red]")
                raise SystemExit(1)
            if not no_browser:
                click.launch(url)

            code = click.prompt("Authorization code")
            with console.status("Verifying..."):
                session = await client.complete_login(slot, code)
            console.print(f"[green]Logged in {slot} slot (valid for {session.expires_in}s).[/green]")
            view = client.view(slot)
            try:
                user = await view.user()
            finally:
                view.close()
            console.print(f"[dim]Account: {user.display_name or user.id}[/dim]")

    _run(_login())


@auth.command("status")
def auth_status():
    """Show which slots hold a valid session."""

    async def _status():
        async with _get_client() as client:
            for slot in Slot:
                session = client.sessions.get_token(slot)
                if session is None:
                    console.print(f"{slot}: [yellow]not logged in[/yellow]")
                elif client.sessions.is_expired(session):
                    console.print(f"{slot}: [yellow]expired (will refresh on next use)[/yellow]")
                else:
                    remaining = session.expires_at - client.sessions.now()
                    console.print(f"{slot}: [green]logged in[/green] ({remaining}s left)")

    _run(_status())


@auth.command("logout")
@click.option("--secondary", is_flag=True)
def auth_logout(secondary: bool):
    """Clear the saved credential of a slot."""
    slot = _slot(secondary)

    async def _logout():
        async with _get_client() as client:
            client.logout(slot)
        console.print(f"[green]Logged out of {slot} slot.[/green]")

    _run(_logout())
