"""
Transfer models: a single add/remove gesture and its terminal outcome.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from playlist_bridge.models.session import Slot


class TrackAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"

    @property
    def inverse(self) -> "TrackAction":
        return TrackAction.REMOVE if self is TrackAction.ADD else TrackAction.ADD


class TransferState(str, Enum):
    IDLE = "idle"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class TransferAction(BaseModel):
    """complete=True makes the action a move: the inverse is also applied to
    complement_id, the playlist open in the opposite slot."""
    model_config = ConfigDict(frozen=True)

    kind: TrackAction
    track_uri: str
    source_slot_playlist_id: str
    complement_id: Optional[str] = None
    complete: bool = False
    slot: Slot = Slot.SECONDARY

    @model_validator(mode="after")
    def _move_needs_complement(self) -> "TransferAction":
        if self.complete and not self.complement_id:
            raise ValueError("complete=True requires complement_id")
        return self


class TransferEvent(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    state: TransferState
    action: TransferAction
    cause: Optional[Exception] = None

    @classmethod
    def succeeded(cls, action: TransferAction) -> "TransferEvent":
        return cls(state=TransferState.SUCCEEDED, action=action)

    @classmethod
    def failed(cls, action: TransferAction, cause: Exception) -> "TransferEvent":
        return cls(state=TransferState.FAILED, action=action, cause=cause)

    @property
    def ok(self) -> bool:
        return self.state is TransferState.SUCCEEDED
