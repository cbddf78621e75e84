"""
Transfer coordinator: executes add/remove/move actions on playlists.

An action runs Idle -> Executing -> Succeeded | Failed. Only one action may
be executing per slot. After the remote calls, the affected playlist is
refetched so the accumulated list catches up with the remote state; nothing
is patched locally. There is no retry and no rollback.
"""

import asyncio
import logging
from typing import Callable, Optional

from playlist_bridge.auth import SessionStore
from playlist_bridge.catalog import CatalogClient
from playlist_bridge.errors import BridgeError, TransferActionError, report_error
from playlist_bridge.loader import TrackLoader
from playlist_bridge.models.session import Slot
from playlist_bridge.models.transfer import TrackAction, TransferAction, TransferEvent, TransferState
from playlist_bridge.scope import Scope

logger = logging.getLogger(__name__)

TransferListener = Callable[[TransferEvent], None]
ErrorReporter = Callable[[BaseException], None]


class TransferCoordinator:
    def __init__(
        self,
        catalog: CatalogClient,
        sessions: SessionStore,
        loader: TrackLoader,
        server_side_moves: bool = False,
        reporter: ErrorReporter = report_error,
    ):
        self._catalog = catalog
        self._sessions = sessions
        self._loader = loader
        self._server_side_moves = server_side_moves
        self._reporter = reporter
        self._in_flight: dict[Slot, TransferAction] = {}
        self._states: dict[Slot, TransferState] = {}
        self._listeners: list[TransferListener] = []

    def state(self, slot: Slot) -> TransferState:
        return self._states.get(slot, TransferState.IDLE)

    def busy(self, slot: Slot) -> bool:
        return slot in self._in_flight

    def add_listener(self, listener: TransferListener) -> Callable[[], None]:
        """Receive every terminal event. Returns a cleanup function."""
        self._listeners.append(listener)
        def remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return remove

    async def execute(self, action: TransferAction, scope: Optional[Scope] = None) -> TransferEvent:
        slot = action.slot
        if slot in self._in_flight:
            error = TransferActionError(
                f"Another transfer is already executing on the {slot} slot",
                code="transfer_in_progress",
                details={"executing": self._in_flight[slot].track_uri},
            )
            return self._emit(TransferEvent.failed(action, error))

        self._in_flight[slot] = action
        self._states[slot] = TransferState.EXECUTING
        try:
            event = await self._perform(action, scope)
        except asyncio.CancelledError:
            self._states[slot] = TransferState.IDLE
            raise
        finally:
            del self._in_flight[slot]
        self._states[slot] = event.state
        return self._emit(event)

    async def _perform(self, action: TransferAction, scope: Optional[Scope]) -> TransferEvent:
        completed: list[str] = []
        try:
            await self._apply(action.slot, action.kind, action.source_slot_playlist_id, action.track_uri,
                              action.complement_id if action.complete else None)
        except BridgeError as e:
            return TransferEvent.failed(action, self._wrap(action, e, completed, failed=action.kind.value))
        completed.append(action.kind.value)

        failure: Optional[TransferActionError] = None
        inverse_issued = action.complete and not self._server_side_moves
        if inverse_issued:
            inverse = action.kind.inverse
            try:
                await self._apply(action.slot.opposite, inverse, action.complement_id, action.track_uri)
                completed.append(inverse.value)
            except BridgeError as e:
                failure = self._wrap(action, e, completed, failed=inverse.value, code="partial_move")

        await self._resync(action.slot, action.source_slot_playlist_id, scope)
        if inverse_issued:
            await self._resync_if_open(action.slot.opposite, action.complement_id, scope)

        if failure is not None:
            return TransferEvent.failed(action, failure)
        return TransferEvent.succeeded(action)

    async def _apply(
        self, slot: Slot, kind: TrackAction, playlist_id: str, track_uri: str, hint: Optional[str] = None,
    ) -> None:
        if kind is TrackAction.ADD:
            await self._sessions.authorized(
                slot, lambda: self._catalog.add_track(slot, playlist_id, track_uri, origin_playlist_id=hint))
        else:
            await self._sessions.authorized(
                slot, lambda: self._catalog.remove_track(slot, playlist_id, track_uri, target_playlist_id=hint))
        logger.debug(f"{kind.value} {track_uri} on {slot}:{playlist_id}")

    async def _resync(self, slot: Slot, playlist_id: str, scope: Optional[Scope]) -> None:
        # Always refetch, but leave a list showing some other playlist alone
        current = self._loader.accumulator.current(slot)
        reseed = current is None or current.parent_id == playlist_id
        try:
            await self._loader.reload(slot, playlist_id, scope, reseed=reseed)
        except BridgeError as e:
            self._reporter(e)

    async def _resync_if_open(self, slot: Slot, playlist_id: str, scope: Optional[Scope]) -> None:
        # Only re-seed the other slot's list when it is showing that playlist
        current = self._loader.accumulator.current(slot)
        if current is not None and current.parent_id == playlist_id:
            await self._resync(slot, playlist_id, scope)
        else:
            self._loader.invalidate_playlist(slot, playlist_id)

    @staticmethod
    def _wrap(
        action: TransferAction, error: BridgeError, completed: list[str], failed: str,
        code: str = "transfer_error",
    ) -> TransferActionError:
        wrapped = TransferActionError(
            f"Failed to {failed} {action.track_uri}: {error}",
            code=code,
            details={"completed": list(completed), "failed": failed, "reason": error.code},
        )
        wrapped.__cause__ = error
        return wrapped

    def _emit(self, event: TransferEvent) -> TransferEvent:
        action = event.action
        if event.ok:
            logger.info(f"Transfer {action.kind.value} {action.track_uri} -> {action.source_slot_playlist_id} succeeded")
        else:
            self._reporter(event.cause)
        for listener in list(self._listeners):
            listener(event)
        return event
