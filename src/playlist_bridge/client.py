"""
AsyncPlaylistBridge: wires the process-wide pieces together.

One SessionStore, one BroadcastCache, one TrackListAccumulator and one
TransferCoordinator per client, all partitioned by slot. Views are handed out
per UI panel and must be closed when the panel goes away.
"""

from typing import Any, Optional

import httpx

from playlist_bridge.accumulator import TrackListAccumulator
from playlist_bridge.auth import RedirectHandler, SessionStore
from playlist_bridge.cache import BroadcastCache
from playlist_bridge.catalog import CatalogClient
from playlist_bridge.config import Settings
from playlist_bridge.errors import report_error
from playlist_bridge.loader import TrackLoader
from playlist_bridge.models.session import Session, Slot
from playlist_bridge.models.transfer import TrackAction, TransferAction, TransferEvent
from playlist_bridge.storage import TokenStorage
from playlist_bridge.transfer import ErrorReporter, TransferCoordinator
from playlist_bridge.transport.http import HttpClient
from playlist_bridge.views import SlotView


class AsyncPlaylistBridge:
    """Async dual-slot playlist client."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        redirect: Optional[RedirectHandler] = None,
        reporter: ErrorReporter = report_error,
        catalog: Optional[CatalogClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or Settings.load()
        self.http = HttpClient(base_url=self.settings.base_url, timeout=self.settings.timeout, transport=transport)
        self.catalog = catalog or CatalogClient(self.http, providers=self.settings.providers)
        self.sessions = SessionStore(self.catalog, TokenStorage(self.settings.token_file), redirect=redirect)
        self.cache = BroadcastCache()
        self.accumulator = TrackListAccumulator()
        self.loader = TrackLoader(self.catalog, self.sessions, self.cache, self.accumulator)
        self.transfers = TransferCoordinator(
            self.catalog, self.sessions, self.loader,
            server_side_moves=self.settings.server_side_moves,
            reporter=reporter,
        )
        self.sessions.add_logout_handler(self.loader.reset_slot)

    def view(self, slot: Slot) -> SlotView:
        return SlotView(self.loader, slot, locale=self.settings.locale)

    def is_authenticated(self, slot: Slot) -> bool:
        return self.sessions.is_authenticated(slot)

    async def login(self, slot: Slot) -> None:
        """Start authorization. Raises AuthRequiredError carrying the redirect URL."""
        await self.sessions.authorize(slot)

    async def complete_login(self, slot: Slot, authorization_code: str) -> Session:
        return await self.sessions.exchange(slot, authorization_code)

    def logout(self, slot: Slot) -> None:
        self.sessions.logout(slot)

    async def transfer(
        self,
        kind: TrackAction,
        track_uri: str,
        playlist_id: str,
        *,
        complement_id: Optional[str] = None,
        complete: bool = False,
        slot: Slot = Slot.SECONDARY,
    ) -> TransferEvent:
        action = TransferAction(
            kind=kind,
            track_uri=track_uri,
            source_slot_playlist_id=playlist_id,
            complement_id=complement_id,
            complete=complete,
            slot=slot,
        )
        return await self.transfers.execute(action)

    async def close(self) -> None:
        await self.http.close()

    async def __aenter__(self) -> "AsyncPlaylistBridge":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
