"""Broadcast cache: single fetch, replay, invalidation, stale-write guard."""

import asyncio
import logging

import pytest

from playlist_bridge.cache import BroadcastCache, ResourceKind
from playlist_bridge.errors import RemoteApiError
from playlist_bridge.models.session import Slot
from playlist_bridge.scope import Scope


class Source:
    """Counts fetches; optionally holds each one until released."""

    def __init__(self, hold: bool = False):
        self.count = 0
        self.gate = asyncio.Event() if hold else None
        self.error = None

    async def __call__(self):
        self.count += 1
        n = self.count
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return f"value-{n}"


@pytest.mark.asyncio
async def test_concurrent_observers_share_one_fetch():
    cache = BroadcastCache()
    source = Source(hold=True)
    waiters = [
        asyncio.ensure_future(cache.get(Slot.PRIMARY, ResourceKind.USER, None, source))
        for _ in range(3)
    ]
    await asyncio.sleep(0)
    assert cache.in_flight(Slot.PRIMARY, ResourceKind.USER)
    source.gate.set()
    assert await asyncio.gather(*waiters) == ["value-1"] * 3
    assert source.count == 1


@pytest.mark.asyncio
async def test_late_subscribers_get_replay():
    cache = BroadcastCache()
    source = Source()
    await cache.get(Slot.PRIMARY, ResourceKind.PLAYLISTS, None, source)

    seen = []
    cache.subscribe(Slot.PRIMARY, ResourceKind.PLAYLISTS, None, seen.append)
    assert seen == ["value-1"]
    assert await cache.get(Slot.PRIMARY, ResourceKind.PLAYLISTS, None, source) == "value-1"
    assert source.count == 1


@pytest.mark.asyncio
async def test_partitions_are_separate():
    cache = BroadcastCache()
    source = Source()
    await cache.get(Slot.PRIMARY, ResourceKind.PLAYLIST, "P1", source)
    await cache.get(Slot.SECONDARY, ResourceKind.PLAYLIST, "P1", source)
    await cache.get(Slot.PRIMARY, ResourceKind.PLAYLIST, "P2", source)
    assert source.count == 3

    cache.invalidate_slot(Slot.SECONDARY)
    assert cache.peek(Slot.PRIMARY, ResourceKind.PLAYLIST, "P1") == "value-1"
    assert cache.peek(Slot.SECONDARY, ResourceKind.PLAYLIST, "P1") is None


@pytest.mark.asyncio
async def test_invalidate_forces_refetch_and_notifies():
    cache = BroadcastCache()
    source = Source()
    seen = []
    cache.subscribe(Slot.SECONDARY, ResourceKind.PLAYLIST, "S1", seen.append)

    await cache.get(Slot.SECONDARY, ResourceKind.PLAYLIST, "S1", source)
    value = await cache.refresh(Slot.SECONDARY, ResourceKind.PLAYLIST, "S1", source)

    assert value == "value-2"
    assert seen == ["value-1", "value-2"]
    assert source.count == 2


@pytest.mark.asyncio
async def test_invalidate_where_matches_keys():
    cache = BroadcastCache()
    source = Source()
    for key in [("S1", None, None), ("S1", "c1", None), ("S2", None, None)]:
        await cache.get(Slot.SECONDARY, ResourceKind.TRACKS, key, source)
    dropped = cache.invalidate_where(Slot.SECONDARY, ResourceKind.TRACKS, lambda key: key[0] == "S1")
    assert dropped == 2
    assert cache.peek(Slot.SECONDARY, ResourceKind.TRACKS, ("S2", None, None)) == "value-3"


@pytest.mark.asyncio
async def test_failure_leaves_previous_value():
    cache = BroadcastCache()
    source = Source()
    seen = []
    cache.subscribe(Slot.PRIMARY, ResourceKind.USER, None, seen.append)
    source.error = RemoteApiError("HTTP 500", status=500)

    with pytest.raises(RemoteApiError):
        await cache.get(Slot.PRIMARY, ResourceKind.USER, None, source)
    assert cache.peek(Slot.PRIMARY, ResourceKind.USER) is None
    assert not cache.in_flight(Slot.PRIMARY, ResourceKind.USER)
    assert seen == []

    source.error = None
    assert await cache.get(Slot.PRIMARY, ResourceKind.USER, None, source) == "value-2"


@pytest.mark.asyncio
async def test_closed_scope_drops_late_result():
    cache = BroadcastCache()
    source = Source(hold=True)
    scope = Scope()
    seen = []
    cache.subscribe(Slot.PRIMARY, ResourceKind.TRACKS, "P1", seen.append)

    task = scope.spawn(cache.get(Slot.PRIMARY, ResourceKind.TRACKS, "P1", source, scope))
    await asyncio.sleep(0)
    scope.close()
    source.gate.set()
    with pytest.raises(asyncio.CancelledError):
        await task
    await asyncio.sleep(0)

    assert cache.peek(Slot.PRIMARY, ResourceKind.TRACKS, "P1") is None
    assert seen == []


@pytest.mark.asyncio
async def test_result_kept_while_another_view_waits():
    cache = BroadcastCache()
    source = Source(hold=True)
    closing, staying = Scope("closing"), Scope("staying")

    doomed = closing.spawn(cache.get(Slot.PRIMARY, ResourceKind.USER, None, source, closing))
    kept = staying.spawn(cache.get(Slot.PRIMARY, ResourceKind.USER, None, source, staying))
    await asyncio.sleep(0)
    closing.close()
    source.gate.set()

    assert await kept == "value-1"
    assert doomed.cancelled()
    assert cache.peek(Slot.PRIMARY, ResourceKind.USER) == "value-1"
    assert source.count == 1


@pytest.mark.asyncio
async def test_invalidated_waiter_joins_current_generation():
    cache = BroadcastCache()
    source = Source(hold=True)
    stale = asyncio.ensure_future(cache.get(Slot.PRIMARY, ResourceKind.PLAYLIST, "P1", source))
    await asyncio.sleep(0)
    cache.invalidate(Slot.PRIMARY, ResourceKind.PLAYLIST, "P1")
    source.gate.set()
    assert await stale == "value-2"
    assert cache.peek(Slot.PRIMARY, ResourceKind.PLAYLIST, "P1") == "value-2"
    assert source.count == 2


@pytest.mark.asyncio
async def test_superseded_waiter_gets_refreshed_value():
    cache = BroadcastCache()
    source = Source(hold=True)
    stale = asyncio.ensure_future(cache.get(Slot.SECONDARY, ResourceKind.TRACKS, "S1", source))
    await asyncio.sleep(0)
    fresh = asyncio.ensure_future(cache.refresh(Slot.SECONDARY, ResourceKind.TRACKS, "S1", source))
    await asyncio.sleep(0)
    source.gate.set()
    assert await fresh == "value-2"
    assert await stale == "value-2"
    assert source.count == 2


@pytest.mark.asyncio
async def test_failure_with_no_waiters_is_retrieved(caplog):
    caplog.set_level(logging.DEBUG, logger="playlist_bridge.cache")
    cache = BroadcastCache()
    source = Source(hold=True)
    source.error = RemoteApiError("HTTP 503", status=503)
    scope = Scope("gone")

    waiter = scope.spawn(cache.get(Slot.PRIMARY, ResourceKind.USER, None, source, scope))
    await asyncio.sleep(0)
    scope.close()
    source.gate.set()
    with pytest.raises(asyncio.CancelledError):
        await waiter
    for _ in range(3):
        await asyncio.sleep(0)

    assert "Background fetch failed" in caplog.text
    assert not cache.in_flight(Slot.PRIMARY, ResourceKind.USER)
