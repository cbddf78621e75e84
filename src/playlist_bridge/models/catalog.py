"""
Catalog models: users, playlists and paginated track listings.
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

# Pseudo playlist id for the user's saved ("liked") tracks
LIKED_ID = "liked"

T = TypeVar("T")


class User(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    country: Optional[str] = None
    uri: Optional[str] = None
    external_urls: dict[str, str] = Field(default_factory=dict)


class Artist(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    name: str = ""
    uri: Optional[str] = None


class Album(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    name: str = ""
    release_date: Optional[str] = None


class Track(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    name: str = ""
    uri: str
    duration_ms: int = 0
    explicit: bool = False
    is_local: bool = False
    artists: list[Artist] = Field(default_factory=list)
    album: Optional[Album] = None

    @property
    def duration(self) -> str:
        minutes, remainder = divmod(self.duration_ms, 60000)
        seconds = round(remainder / 1000)
        if seconds == 60:
            minutes, seconds = minutes + 1, 0
        return f"{minutes}:{seconds:02d}"

    @property
    def artist_names(self) -> str:
        return ", ".join(a.name for a in self.artists)


class PlaylistTrack(BaseModel):
    """A playlist entry. Saved tracks share the same shape."""
    model_config = ConfigDict(extra="ignore")

    added_at: Optional[str] = None
    is_local: bool = False
    track: Track


class Paging(BaseModel, Generic[T]):
    model_config = ConfigDict(extra="ignore")

    href: Optional[str] = None
    items: list[T] = Field(default_factory=list)
    limit: int = 0
    next: Optional[str] = None
    offset: int = 0
    previous: Optional[str] = None
    total: int = 0


class Playlist(BaseModel):
    """Remote playlist metadata. Replaced wholesale on every fetch."""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    snapshot_id: Optional[str] = None
    owner: Optional[User] = None
    description: Optional[str] = None
    public: Optional[bool] = None
    tracks: Optional[dict[str, Any]] = None

    @property
    def owner_id(self) -> Optional[str]:
        return self.owner.id if self.owner else None

    @property
    def track_count(self) -> int:
        return int((self.tracks or {}).get("total", 0))


class FeaturedPlaylists(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: str = ""
    playlists: Paging[Playlist] = Field(default_factory=Paging[Playlist])


class TrackPage(BaseModel):
    """One page of tracks for a playlist (or the saved-tracks pseudo playlist).

    from_next marks a page requested as a continuation of a previous one.
    """
    model_config = ConfigDict(frozen=True)

    parent_id: str
    items: tuple[PlaylistTrack, ...] = ()
    cursor: Optional[str] = None
    offset: int = 0
    total: int = 0
    from_next: bool = False

    @classmethod
    def from_paging(cls, paging: Paging[PlaylistTrack], parent_id: str, from_next: bool) -> "TrackPage":
        return cls(
            parent_id=parent_id,
            items=tuple(paging.items),
            cursor=paging.next,
            offset=paging.offset,
            total=paging.total,
            from_next=from_next,
        )

    @property
    def has_more(self) -> bool:
        return self.cursor is not None

    @property
    def uris(self) -> list[str]:
        return [item.track.uri for item in self.items]
