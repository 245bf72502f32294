"""
Shared dataclasses used across the playlist parsing pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class PlaylistDocument:
    """Raw playlist text plus provenance, produced once per parse."""
    id: str
    owner_id: str
    content: str
    created_at: datetime
    updated_at: datetime
    name: str | None = None
    source_url: str | None = None
    last_refreshed: datetime | None = None
    active: bool = True


@dataclass(slots=True)
class PlaylistEntry:
    """One directive line paired with the stream URI that follows it."""
    directive: str
    stream_url: str


@dataclass(slots=True)
class ChannelPayload:
    """In-memory representation of a live channel before persistence."""
    id: str
    name: str
    group: str
    stream_url: str
    playlist_id: str
    logo_url: str | None = None
    favorite: bool = False
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class MoviePayload:
    """In-memory representation of a movie before persistence."""
    id: str
    title: str
    genre: str
    stream_url: str
    playlist_id: str
    thumbnail_url: str | None = None
    favorite: bool = False
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class EpisodePayload:
    """A single episode, owned by exactly one SeriesPayload."""
    id: str
    title: str
    stream_url: str
    season_number: int = 0
    episode_number: int = 0
    thumbnail_url: str | None = None
    duration: int = 0
    description: str | None = None
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class SeriesPayload:
    """A series and its episodes in document order."""
    id: str
    title: str
    genre: str
    playlist_id: str
    thumbnail_url: str | None = None
    favorite: bool = False
    description: str | None = None
    attributes: dict[str, str] = field(default_factory=dict)
    episodes: list[EpisodePayload] = field(default_factory=list)


@dataclass(slots=True)
class Catalog:
    """Everything produced by one parse of a playlist document."""
    document: PlaylistDocument
    channels: list[ChannelPayload] = field(default_factory=list)
    movies: list[MoviePayload] = field(default_factory=list)
    series: list[SeriesPayload] = field(default_factory=list)

    @property
    def episode_count(self) -> int:
        return sum(len(item.episodes) for item in self.series)

    @property
    def entry_count(self) -> int:
        """Number of playlist entries represented in this catalog."""
        return len(self.channels) + len(self.movies) + self.episode_count

    def summary(self) -> dict[str, int]:
        return {
            "channels": len(self.channels),
            "movies": len(self.movies),
            "series": len(self.series),
            "episodes": self.episode_count,
        }


__all__ = [
    "PlaylistDocument",
    "PlaylistEntry",
    "ChannelPayload",
    "MoviePayload",
    "EpisodePayload",
    "SeriesPayload",
    "Catalog",
]
