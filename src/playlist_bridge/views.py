"""
Slot views: one panel of the UI bound to an account slot.

All work a view starts runs inside its Scope; close() cancels that work and
makes sure nothing it was waiting for is written afterwards.
"""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Optional, TypeVar

from playlist_bridge.loader import TrackLoader
from playlist_bridge.models.catalog import LIKED_ID, FeaturedPlaylists, Paging, Playlist, TrackPage, User
from playlist_bridge.models.session import Slot
from playlist_bridge.scope import Scope

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SlotView:
    def __init__(self, loader: TrackLoader, slot: Slot, locale: str = "en_US"):
        self._loader = loader
        self._slot = slot
        self._locale = locale
        self._scope = Scope(f"{slot.value}-view")
        self._more_lock = asyncio.Lock()
        self._cleanups: list[Callable[[], None]] = []
        self.playlist_id: Optional[str] = None
        self.search_query: Optional[str] = None

    @property
    def slot(self) -> Slot:
        return self._slot

    @property
    def scope(self) -> Scope:
        return self._scope

    @property
    def closed(self) -> bool:
        return self._scope.cancelled

    @property
    def tracks(self) -> Optional[TrackPage]:
        return self._loader.accumulator.current(self._slot)

    async def _run(self, coro: Coroutine[Any, Any, T]) -> T:
        return await self._scope.spawn(coro)

    async def user(self) -> User:
        return await self._run(self._loader.user(self._slot, self._scope))

    async def playlists(self) -> Paging[Playlist]:
        return await self._run(self._loader.playlists(self._slot, self._scope))

    async def featured(self) -> FeaturedPlaylists:
        return await self._run(self._loader.featured(self._slot, self._locale, self._scope))

    async def open(self, playlist_id: str) -> Optional[TrackPage]:
        """Show playlist_id (or the liked tracks) from its first page."""
        self.playlist_id = playlist_id
        self.search_query = None
        return await self._run(self._loader.tracks(self._slot, playlist_id, scope=self._scope))

    async def playlist(self) -> Optional[Playlist]:
        if self.playlist_id is None or self.playlist_id == LIKED_ID:
            return None
        return await self._run(self._loader.playlist(self._slot, self.playlist_id, self._scope))

    async def search(self, query: Optional[str]) -> Optional[TrackPage]:
        if self.playlist_id is None:
            raise RuntimeError("No playlist open")
        self.search_query = query or None
        return await self._run(self._loader.tracks(
            self._slot, self.playlist_id, search=self.search_query, scope=self._scope,
        ))

    async def load_more(self) -> Optional[TrackPage]:
        """Append the next page. Continuations are serialized per view."""
        async with self._more_lock:
            current = self.tracks
            if current is None or not current.has_more or current.parent_id != self.playlist_id:
                return current
            return await self._run(self._loader.tracks(
                self._slot, current.parent_id, cursor=current.cursor, scope=self._scope,
            ))

    async def load_all(self) -> Optional[TrackPage]:
        previous, current = None, self.tracks
        while current is not None and current.has_more and current is not previous:
            previous, current = current, await self.load_more()
        return current

    async def refresh(self) -> Optional[TrackPage]:
        if self.playlist_id is None:
            return None
        self.search_query = None
        return await self._run(self._loader.reload(self._slot, self.playlist_id, self._scope))

    async def create_playlist(self, name: str) -> Playlist:
        return await self._run(self._loader.create_playlist(self._slot, name, self._scope))

    def on_tracks(self, listener: Callable[[TrackPage], None]) -> None:
        self._cleanups.append(self._loader.accumulator.listen(self._slot, listener))

    def close(self) -> None:
        if self.closed:
            return
        self._scope.close()
        for cleanup in self._cleanups:
            cleanup()
        self._cleanups.clear()
        self._loader.accumulator.reset(self._slot)
        logger.debug(f"Closed {self._slot} view")

    async def __aenter__(self) -> "SlotView":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.close()
