"""Shared fakes: an in-memory catalog client that records every call."""

import asyncio
from pathlib import Path
from typing import Any, Optional

import pytest

from playlist_bridge.accumulator import TrackListAccumulator
from playlist_bridge.auth import SessionStore
from playlist_bridge.cache import BroadcastCache
from playlist_bridge.loader import TrackLoader
from playlist_bridge.models.catalog import Paging, Playlist, PlaylistTrack, Track, TrackPage, User
from playlist_bridge.models.session import Session, Slot
from playlist_bridge.storage import TokenStorage
from playlist_bridge.transfer import TransferCoordinator

NOW = 1_700_000_000


def make_page(parent_id: str, uris: list[str], cursor: Optional[str] = None,
              from_next: bool = False, total: Optional[int] = None) -> TrackPage:
    return TrackPage(
        parent_id=parent_id,
        items=tuple(PlaylistTrack(track=Track(uri=u, name=u)) for u in uris),
        cursor=cursor,
        total=len(uris) if total is None else total,
        from_next=from_next,
    )


class FakeHttp:
    def __init__(self) -> None:
        self.tokens: dict[Slot, Optional[str]] = {}

    def set_token(self, slot: Slot, token: Optional[str]) -> None:
        self.tokens[slot] = token


class FakeCatalog:
    def __init__(self) -> None:
        self.http = FakeHttp()
        self.calls: list[tuple[Any, ...]] = []
        self.gates: dict[str, asyncio.Event] = {}
        self.held: dict[str, asyncio.Event] = {}
        self.failures: dict[str, Exception] = {}
        self.failing_once: dict[str, Exception] = {}
        self.pages: dict[tuple[str, Optional[str], Optional[str]], TrackPage] = {}
        self.refreshed = Session(access_token="fresh", refresh_token=None, expires_in=3600)
        self.authorize_url = "https://accounts.example/authorize?client_id=abc"

    async def _call(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        gate = self.held.pop(name, None) or self.gates.get(name)
        if gate is not None:
            await gate.wait()
        error = self.failing_once.pop(name, None) or self.failures.get(name)
        if error is not None:
            raise error

    def hold_next(self, name: str) -> asyncio.Event:
        """Hold only the next call to name until the returned event is set."""
        gate = self.held[name] = asyncio.Event()
        return gate

    def fail_next(self, name: str, error: Exception) -> None:
        self.failing_once[name] = error

    def count(self, name: str, *args: Any) -> int:
        return sum(1 for c in self.calls if c[0] == name and c[1:1 + len(args)] == args)

    def named(self, name: str) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == name]

    async def fetch_user(self, slot: Slot) -> User:
        await self._call("fetch_user", slot)
        return User(id=f"{slot.value}-user", display_name=slot.value.title())

    async def fetch_playlists(self, slot: Slot) -> Paging[Playlist]:
        await self._call("fetch_playlists", slot)
        items = [Playlist(id=f"{slot.value}-pl-{i}", name=f"List {i}") for i in range(2)]
        return Paging[Playlist](items=items, total=len(items))

    async def fetch_playlist(self, slot: Slot, playlist_id: str) -> Playlist:
        await self._call("fetch_playlist", slot, playlist_id)
        return Playlist(id=playlist_id, name=playlist_id, snapshot_id=f"snap-{len(self.calls)}")

    async def fetch_track_page(self, slot: Slot, playlist_id: str, cursor: Optional[str] = None,
                               search: Optional[str] = None) -> TrackPage:
        n = len(self.calls) + 1
        await self._call("fetch_track_page", slot, playlist_id, cursor, search)
        page = self.pages.get((playlist_id, cursor, search))
        if page is None:
            page = make_page(playlist_id, [f"svc:track:{playlist_id}-{n}"])
        return page.model_copy(update={"from_next": cursor is not None})

    async def fetch_featured_playlists(self, slot: Slot, locale: str = "en_US") -> Any:
        await self._call("fetch_featured_playlists", slot, locale)
        return {"message": "Featured", "locale": locale}

    async def create_playlist(self, slot: Slot, owner_id: str, name: str) -> Playlist:
        await self._call("create_playlist", slot, owner_id, name)
        return Playlist(id="new-playlist", name=name, owner=User(id=owner_id))

    async def add_track(self, slot: Slot, playlist_id: str, track_uri: str,
                        origin_playlist_id: Optional[str] = None) -> None:
        await self._call("add_track", slot, playlist_id, track_uri, origin_playlist_id)

    async def remove_track(self, slot: Slot, playlist_id: str, track_uri: str,
                           target_playlist_id: Optional[str] = None) -> None:
        await self._call("remove_track", slot, playlist_id, track_uri, target_playlist_id)

    async def refresh(self, slot: Slot, refresh_token: str) -> Session:
        await self._call("refresh", slot, refresh_token)
        return self.refreshed

    async def exchange_code(self, slot: Slot, authorization_code: str) -> Session:
        await self._call("exchange_code", slot, authorization_code)
        return Session(access_token=f"code-{authorization_code}", refresh_token="r-1", expires_in=3600)

    async def authorize(self, slot: Slot) -> str:
        await self._call("authorize", slot)
        return self.authorize_url


class Clock:
    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now


def valid_session(**overrides: Any) -> Session:
    data = {"access_token": "token", "refresh_token": "refresh", "created_at": NOW - 10, "expires_in": 3600}
    data.update(overrides)
    return Session(**data)


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def token_file(tmp_path: Path) -> Path:
    return tmp_path / "tokens.json"


@pytest.fixture
def redirects() -> list[tuple[Slot, str]]:
    return []


@pytest.fixture
def store(catalog: FakeCatalog, token_file: Path, clock: Clock, redirects: list) -> SessionStore:
    return SessionStore(
        catalog,  # type: ignore[arg-type]
        TokenStorage(token_file),
        redirect=lambda slot, url: redirects.append((slot, url)),
        clock=clock,
    )


@pytest.fixture
def logged_in(store: SessionStore) -> SessionStore:
    store.set_token(Slot.PRIMARY, valid_session(access_token="primary-token"))
    store.set_token(Slot.SECONDARY, valid_session(access_token="secondary-token"))
    return store


@pytest.fixture
def loader(catalog: FakeCatalog, logged_in: SessionStore) -> TrackLoader:
    return TrackLoader(catalog, logged_in, BroadcastCache(), TrackListAccumulator())  # type: ignore[arg-type]


@pytest.fixture
def reported() -> list[BaseException]:
    return []


@pytest.fixture
def coordinator(catalog: FakeCatalog, logged_in: SessionStore, loader: TrackLoader,
                reported: list) -> TransferCoordinator:
    return TransferCoordinator(catalog, logged_in, loader, reporter=reported.append)  # type: ignore[arg-type]
