"""
Broadcast cache: one fetch per (slot, kind, key), replayed to every observer.

An entry starts its fetch lazily on first demand. Concurrent callers share the
in-flight fetch; callers arriving after completion get the stored value; and
subscribers are called with every new value. The value stays until the entry
is invalidated. A failed fetch leaves the previous state untouched.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Hashable, NamedTuple, Optional

from playlist_bridge.models.session import Slot
from playlist_bridge.scope import Scope, is_live

logger = logging.getLogger(__name__)

Fetch = Callable[[], Awaitable[Any]]
Subscriber = Callable[[Any], None]

_MISSING = object()


class ResourceKind(str, Enum):
    USER = "user"
    PLAYLISTS = "playlists"
    PLAYLIST = "playlist"
    TRACKS = "tracks"
    FEATURED = "featured"


class CacheKey(NamedTuple):
    slot: Slot
    kind: ResourceKind
    key: Hashable = None


class CacheEntry:
    __slots__ = ("key", "value", "generation", "task", "waiters", "subscribers")

    def __init__(self, key: CacheKey):
        self.key = key
        self.value: Any = _MISSING
        self.generation = 0
        self.task: Optional[asyncio.Task[Any]] = None
        self.waiters: list[Optional[Scope]] = []
        self.subscribers: list[Subscriber] = []

    @property
    def has_value(self) -> bool:
        return self.value is not _MISSING


class BroadcastCache:
    def __init__(self) -> None:
        self._entries: dict[CacheKey, CacheEntry] = {}

    def _entry(self, key: CacheKey) -> CacheEntry:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = CacheEntry(key)
        return entry

    def peek(self, slot: Slot, kind: ResourceKind, key: Hashable = None) -> Any:
        entry = self._entries.get(CacheKey(slot, kind, key))
        if entry is None or not entry.has_value:
            return None
        return entry.value

    def in_flight(self, slot: Slot, kind: ResourceKind, key: Hashable = None) -> bool:
        entry = self._entries.get(CacheKey(slot, kind, key))
        return entry is not None and entry.task is not None

    async def get(
        self,
        slot: Slot,
        kind: ResourceKind,
        key: Hashable,
        fetch: Fetch,
        scope: Optional[Scope] = None,
    ) -> Any:
        """Return the cached value, joining or starting the underlying fetch.

        A caller whose fetch was invalidated while it waited joins the entry's
        current generation instead, so it never sees a superseded value.
        """
        entry = self._entry(CacheKey(slot, kind, key))
        while True:
            if entry.has_value:
                logger.debug(f"Cache hit {entry.key}")
                return entry.value
            if entry.task is None:
                logger.debug(f"Cache miss {entry.key}, fetching")
                entry.waiters = []
                entry.task = asyncio.ensure_future(self._run(entry, entry.generation, fetch))
                entry.task.add_done_callback(self._consume)
            generation = entry.generation
            entry.waiters.append(scope)
            # Shield: a waiter torn down mid-flight must not cancel the shared fetch
            value = await asyncio.shield(entry.task)
            if entry.generation == generation:
                return value
            logger.debug(f"Fetch for {entry.key} was superseded, joining generation {entry.generation}")

    def _consume(self, task: asyncio.Task) -> None:
        # Every waiter may have gone away before the fetch failed
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"Background fetch failed: {task.exception()!r}")

    async def _run(self, entry: CacheEntry, generation: int, fetch: Fetch) -> Any:
        try:
            value = await fetch()
        finally:
            if entry.generation == generation:
                entry.task = None
        if entry.generation != generation:
            logger.debug(f"Discarding result for invalidated entry {entry.key}")
            return value
        if not any(is_live(scope) for scope in entry.waiters):
            logger.warning(f"Dropping late result for {entry.key}: every requesting view was closed")
            return value
        entry.value = value
        for subscriber in list(entry.subscribers):
            subscriber(value)
        return value

    def subscribe(self, slot: Slot, kind: ResourceKind, key: Hashable, subscriber: Subscriber) -> Callable[[], None]:
        """Observe an entry. The current value, if any, is replayed immediately.
        Returns an unsubscribe function."""
        entry = self._entry(CacheKey(slot, kind, key))
        entry.subscribers.append(subscriber)
        if entry.has_value:
            subscriber(entry.value)

        def remove() -> None:
            try:
                entry.subscribers.remove(subscriber)
            except ValueError:
                pass
        return remove

    def invalidate(self, slot: Slot, kind: ResourceKind, key: Hashable = None) -> None:
        entry = self._entries.get(CacheKey(slot, kind, key))
        if entry is not None:
            self._drop(entry)

    def invalidate_where(self, slot: Slot, kind: ResourceKind, predicate: Callable[[Hashable], bool]) -> int:
        dropped = 0
        for entry in list(self._entries.values()):
            if entry.key.slot is slot and entry.key.kind is kind and predicate(entry.key.key):
                self._drop(entry)
                dropped += 1
        return dropped

    def invalidate_slot(self, slot: Slot) -> None:
        for entry in list(self._entries.values()):
            if entry.key.slot is slot:
                self._drop(entry)

    @staticmethod
    def _drop(entry: CacheEntry) -> None:
        # Subscribers stay attached and will see the next value
        entry.generation += 1
        entry.value = _MISSING
        entry.task = None
        entry.waiters = []
        logger.debug(f"Invalidated {entry.key}")

    async def refresh(
        self,
        slot: Slot,
        kind: ResourceKind,
        key: Hashable,
        fetch: Fetch,
        scope: Optional[Scope] = None,
    ) -> Any:
        """Drop the entry and fetch it again."""
        self.invalidate(slot, kind, key)
        return await self.get(slot, kind, key, fetch, scope)

    def __len__(self) -> int:
        return len(self._entries)
