"""
Pagination accumulator: folds successive track pages into one growing list.

A continuation page (from_next) of the same playlist is appended; anything
else replaces what was accumulated: another playlist, a fresh load, a new
search, or an empty continuation.
"""

import logging
from typing import Callable, Hashable, Optional

from playlist_bridge.models.catalog import TrackPage
from playlist_bridge.scope import Scope, is_live

logger = logging.getLogger(__name__)

Listener = Callable[[TrackPage], None]


def accumulate(prev: Optional[TrackPage], page: TrackPage) -> TrackPage:
    if prev is not None and prev.parent_id == page.parent_id and page.from_next and page.items:
        return page.model_copy(update={"items": prev.items + page.items})
    return page


class TrackListAccumulator:
    """Current accumulated page per logical list key."""

    def __init__(self) -> None:
        self._lists: dict[Hashable, TrackPage] = {}
        self._listeners: dict[Hashable, list[Listener]] = {}

    def current(self, list_key: Hashable) -> Optional[TrackPage]:
        return self._lists.get(list_key)

    def apply(self, list_key: Hashable, page: TrackPage, scope: Optional[Scope] = None) -> Optional[TrackPage]:
        """Fold page into the list. Returns the new state, or None when scope was closed."""
        if not is_live(scope):
            logger.warning(f"Dropping page for {page.parent_id}: {scope!r} was closed")
            return None
        prev = self._lists.get(list_key)
        merged = accumulate(prev, page)
        if prev is not None and merged is page and prev.parent_id != page.parent_id:
            logger.debug(f"List {list_key} switched from {prev.parent_id} to {page.parent_id}")
        self._lists[list_key] = merged
        for listener in list(self._listeners.get(list_key, [])):
            listener(merged)
        return merged

    def reset(self, list_key: Hashable) -> None:
        self._lists.pop(list_key, None)

    def reset_where(self, predicate: Callable[[Hashable], bool]) -> None:
        for list_key in [k for k in self._lists if predicate(k)]:
            del self._lists[list_key]

    def listen(self, list_key: Hashable, listener: Listener) -> Callable[[], None]:
        """Receive every new state of list_key. Returns a cleanup function."""
        self._listeners.setdefault(list_key, []).append(listener)

        def remove() -> None:
            try:
                self._listeners.get(list_key, []).remove(listener)
            except ValueError:
                pass
        return remove
