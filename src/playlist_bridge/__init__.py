"""
playlist-bridge: move tracks between playlists of two music accounts.

Holds a primary and a secondary OAuth session side by side, pages through
playlists of either, and transfers tracks between them.
"""

from playlist_bridge.client import AsyncPlaylistBridge
from playlist_bridge.accumulator import TrackListAccumulator, accumulate
from playlist_bridge.auth import SessionStore
from playlist_bridge.cache import BroadcastCache, ResourceKind
from playlist_bridge.catalog import CatalogClient
from playlist_bridge.config import Settings
from playlist_bridge.errors import (
    BridgeError,
    AuthError,
    AuthExpiredError,
    AuthRequiredError,
    RemoteApiError,
    TransferActionError,
)
from playlist_bridge.models import Slot, Session, TrackPage, TrackAction, TransferAction, TransferEvent, TransferState
from playlist_bridge.scope import Scope
from playlist_bridge.transfer import TransferCoordinator
from playlist_bridge.views import SlotView

__version__ = "0.1.0"
__all__ = [
    "AsyncPlaylistBridge",
    "TrackListAccumulator",
    "accumulate",
    "SessionStore",
    "BroadcastCache",
    "ResourceKind",
    "CatalogClient",
    "Settings",
    "BridgeError",
    "AuthError",
    "AuthExpiredError",
    "AuthRequiredError",
    "RemoteApiError",
    "TransferActionError",
    "Slot",
    "Session",
    "TrackPage",
    "TrackAction",
    "TransferAction",
    "TransferEvent",
    "TransferState",
    "Scope",
    "TransferCoordinator",
    "SlotView",
]
