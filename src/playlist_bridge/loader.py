"""
Track loader: the read path shared by every view.

Each call first makes sure the slot holds a valid credential, then asks the
broadcast cache for the resource; track pages are additionally folded into the
slot's accumulated list. Fetches go through SessionStore.authorized() so a
token the server rejects is refreshed once before giving up.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from playlist_bridge.accumulator import TrackListAccumulator
from playlist_bridge.auth import SessionStore
from playlist_bridge.cache import BroadcastCache, ResourceKind
from playlist_bridge.catalog import CatalogClient
from playlist_bridge.models.catalog import LIKED_ID, FeaturedPlaylists, Paging, Playlist, TrackPage, User
from playlist_bridge.models.session import Slot
from playlist_bridge.scope import Scope

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TrackLoader:
    def __init__(
        self,
        catalog: CatalogClient,
        sessions: SessionStore,
        cache: BroadcastCache,
        accumulator: TrackListAccumulator,
    ):
        self._catalog = catalog
        self._sessions = sessions
        self._cache = cache
        self._accumulator = accumulator

    @property
    def cache(self) -> BroadcastCache:
        return self._cache

    @property
    def accumulator(self) -> TrackListAccumulator:
        return self._accumulator

    def _fetch(self, slot: Slot, call: Callable[[], Awaitable[T]]) -> Callable[[], Awaitable[T]]:
        return lambda: self._sessions.authorized(slot, call)

    async def user(self, slot: Slot, scope: Optional[Scope] = None) -> User:
        await self._sessions.ensure_valid(slot)
        return await self._cache.get(
            slot, ResourceKind.USER, None,
            self._fetch(slot, lambda: self._catalog.fetch_user(slot)), scope,
        )

    async def playlists(self, slot: Slot, scope: Optional[Scope] = None) -> Paging[Playlist]:
        await self._sessions.ensure_valid(slot)
        return await self._cache.get(
            slot, ResourceKind.PLAYLISTS, None,
            self._fetch(slot, lambda: self._catalog.fetch_playlists(slot)), scope,
        )

    async def playlist(self, slot: Slot, playlist_id: str, scope: Optional[Scope] = None) -> Playlist:
        await self._sessions.ensure_valid(slot)
        return await self._cache.get(
            slot, ResourceKind.PLAYLIST, playlist_id,
            self._fetch(slot, lambda: self._catalog.fetch_playlist(slot, playlist_id)), scope,
        )

    async def featured(self, slot: Slot, locale: str, scope: Optional[Scope] = None) -> FeaturedPlaylists:
        await self._sessions.ensure_valid(slot)
        return await self._cache.get(
            slot, ResourceKind.FEATURED, locale,
            self._fetch(slot, lambda: self._catalog.fetch_featured_playlists(slot, locale)), scope,
        )

    async def tracks(
        self,
        slot: Slot,
        playlist_id: str,
        cursor: Optional[str] = None,
        search: Optional[str] = None,
        scope: Optional[Scope] = None,
        fold: bool = True,
    ) -> Optional[TrackPage]:
        """Load one page and fold it into the slot's list. Returns the accumulated
        list, or None if scope was closed before the page arrived. With fold=False
        the page is only cached and returned as fetched."""
        await self._sessions.ensure_valid(slot)
        page = await self._cache.get(
            slot, ResourceKind.TRACKS, (playlist_id, cursor, search),
            self._fetch(slot, lambda: self._catalog.fetch_track_page(slot, playlist_id, cursor, search)), scope,
        )
        if not fold:
            return page
        return self._accumulator.apply(slot, page, scope)

    def invalidate_playlist(self, slot: Slot, playlist_id: str) -> None:
        self._cache.invalidate(slot, ResourceKind.PLAYLIST, playlist_id)
        dropped = self._cache.invalidate_where(slot, ResourceKind.TRACKS, lambda key: key[0] == playlist_id)
        logger.debug(f"Invalidated {playlist_id} on {slot} slot ({dropped} track pages)")

    async def reload(
        self, slot: Slot, playlist_id: str, scope: Optional[Scope] = None, reseed: bool = True,
    ) -> Optional[TrackPage]:
        """Force a refetch of playlist_id. With reseed, the slot's list restarts from its first page."""
        self.invalidate_playlist(slot, playlist_id)
        tracks = self.tracks(slot, playlist_id, scope=scope, fold=reseed)
        if playlist_id == LIKED_ID:
            return await tracks
        _, page = await asyncio.gather(self.playlist(slot, playlist_id, scope), tracks)
        return page

    async def create_playlist(self, slot: Slot, name: str, scope: Optional[Scope] = None) -> Playlist:
        user = await self.user(slot, scope)
        created = await self._sessions.authorized(slot, lambda: self._catalog.create_playlist(slot, user.id, name))
        logger.info(f"Created playlist {created.id} ({name!r}) on {slot} slot")
        self._cache.invalidate(slot, ResourceKind.PLAYLISTS)
        await self.playlists(slot, scope)
        return created

    def reset_slot(self, slot: Slot) -> None:
        self._cache.invalidate_slot(slot)
        self._accumulator.reset(slot)
