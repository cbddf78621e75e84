from playlist_bridge.models.session import Slot, Session
from playlist_bridge.models.catalog import (
    LIKED_ID,
    Album,
    Artist,
    FeaturedPlaylists,
    Paging,
    Playlist,
    PlaylistTrack,
    Track,
    TrackPage,
    User,
)
from playlist_bridge.models.transfer import TrackAction, TransferAction, TransferEvent, TransferState

__all__ = [
    "Slot",
    "Session",
    "LIKED_ID",
    "Album",
    "Artist",
    "FeaturedPlaylists",
    "Paging",
    "Playlist",
    "PlaylistTrack",
    "Track",
    "TrackPage",
    "User",
    "TrackAction",
    "TransferAction",
    "TransferEvent",
    "TransferState",
]
