"""
Catalog client: stateless request functions against the bridge server.

Each call is parameterized by slot so the transport can attach that slot's
credential. Paths are prefixed by the provider the slot is bound to.
"""

import base64
from typing import Any, Optional

from playlist_bridge.models.catalog import (
    LIKED_ID,
    FeaturedPlaylists,
    Paging,
    Playlist,
    PlaylistTrack,
    TrackPage,
    User,
)
from playlist_bridge.models.session import Session, Slot
from playlist_bridge.transport.http import HttpClient

DEFAULT_PROVIDER = "spotify"


def encode_cursor(cursor: str) -> str:
    return base64.b64encode(cursor.encode("utf-8")).decode("ascii")


class CatalogClient:
    def __init__(self, http: HttpClient, providers: Optional[dict[Slot, str]] = None):
        self._http = http
        self._providers = dict(providers or {})

    @property
    def http(self) -> HttpClient:
        return self._http

    def provider(self, slot: Slot) -> str:
        return self._providers.get(slot, DEFAULT_PROVIDER)

    def _path(self, slot: Slot, path: str) -> str:
        return f"/{self.provider(slot)}{path}"

    async def fetch_user(self, slot: Slot) -> User:
        data = await self._http.get(self._path(slot, "/me"), slot)
        return User.model_validate(data)

    async def fetch_playlists(self, slot: Slot) -> Paging[Playlist]:
        data = await self._http.get(self._path(slot, "/playlists"), slot)
        return Paging[Playlist].model_validate(data)

    async def fetch_playlist(self, slot: Slot, playlist_id: str) -> Playlist:
        data = await self._http.get(self._path(slot, f"/playlists/{playlist_id}"), slot)
        return Playlist.model_validate(data)

    async def fetch_track_page(
        self,
        slot: Slot,
        playlist_id: str,
        cursor: Optional[str] = None,
        search: Optional[str] = None,
    ) -> TrackPage:
        """Fetch one page of tracks. A cursor marks the page as a continuation."""
        params: dict[str, str] = {}
        if cursor:
            params["next"] = encode_cursor(cursor)
        if search:
            params["search"] = search
        if playlist_id == LIKED_ID:
            path = self._path(slot, "/me/tracks")
        else:
            path = self._path(slot, f"/playlists/{playlist_id}/tracks")
        data = await self._http.get(path, slot, params=params or None)
        paging = Paging[PlaylistTrack].model_validate(data)
        return TrackPage.from_paging(paging, parent_id=playlist_id, from_next=cursor is not None)

    async def fetch_featured_playlists(self, slot: Slot, locale: str = "en_US") -> FeaturedPlaylists:
        data = await self._http.get(self._path(slot, "/featured"), slot, params={"locale": locale})
        return FeaturedPlaylists.model_validate(data)

    async def create_playlist(self, slot: Slot, owner_id: str, name: str) -> Playlist:
        data = await self._http.post(self._path(slot, f"/users/{owner_id}/playlists"), slot, {"name": name})
        return Playlist.model_validate(data)

    async def add_track(
        self, slot: Slot, playlist_id: str, track_uri: str, origin_playlist_id: Optional[str] = None,
    ) -> Any:
        params = {"from": origin_playlist_id} if origin_playlist_id else None
        return await self._http.post(
            self._path(slot, f"/playlists/{playlist_id}"), slot, {"uris": [track_uri]}, params=params,
        )

    async def remove_track(
        self, slot: Slot, playlist_id: str, track_uri: str, target_playlist_id: Optional[str] = None,
    ) -> Any:
        params = {"to": target_playlist_id} if target_playlist_id else None
        return await self._http.delete(
            self._path(slot, f"/playlists/{playlist_id}"), slot, {"uris": [track_uri]}, params=params,
        )

    async def refresh(self, slot: Slot, refresh_token: str) -> Session:
        """Trade a refresh token for a new access token."""
        data = await self._http.get(
            self._path(slot, "/verify"), slot, params={"refresh_token": refresh_token}, authenticated=False,
        )
        return Session.model_validate(data)

    async def exchange_code(self, slot: Slot, authorization_code: str) -> Session:
        """Trade the code returned by the OAuth redirect for a session."""
        data = await self._http.get(
            self._path(slot, "/verify"), slot, params={"authorization_code": authorization_code},
            authenticated=False,
        )
        return Session.model_validate(data)

    async def authorize(self, slot: Slot) -> str:
        """Start the OAuth flow and return the provider URL the user must visit."""
        return await self._http.get(self._path(slot, "/authorize"), slot, authenticated=False, text=True)
