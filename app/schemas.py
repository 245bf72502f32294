from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


T = TypeVar("T")


class PlaylistImportRequest(BaseModel):
    """Import a playlist from a URL or from inline text"""
    url: str | None = Field(None, description="HTTP/HTTPS URL of the playlist document")
    content: str | None = Field(None, description="Full playlist document text")
    name: str | None = Field(None, max_length=200, description="Display name for the playlist")

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str | None) -> str | None:
        """Validate playlist URL is HTTP/HTTPS"""
        if v is None:
            return v
        v = v.strip()
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError(f"Playlist URL must be HTTP/HTTPS: {v}")
        return v

    @model_validator(mode='after')
    def validate_source(self):
        """Exactly one of url or content must be given"""
        if (self.url is None) == (self.content is None):
            raise ValueError("Provide exactly one of 'url' or 'content'")
        return self


class FavoriteRequest(BaseModel):
    """Favorite flag update"""
    favorite: bool = Field(..., description="New favorite state")


class CatalogCounts(BaseModel):
    """Entity counts for a playlist"""
    channels: int = 0
    movies: int = 0
    series: int = 0
    episodes: int = 0


class PlaylistResponse(BaseModel):
    """Playlist summary"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    name: str | None
    url: str | None
    active: bool
    created_at: datetime
    updated_at: datetime
    last_refreshed: datetime | None
    counts: CatalogCounts | None = None


class ChannelResponse(BaseModel):
    """Channel data"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    playlist_id: str
    name: str
    group: str
    stream_url: str
    logo_url: str | None
    favorite: bool
    attributes: dict[str, str]


class MovieResponse(BaseModel):
    """Movie data"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    playlist_id: str
    title: str
    genre: str
    stream_url: str
    thumbnail_url: str | None
    favorite: bool
    attributes: dict[str, str]


class EpisodeResponse(BaseModel):
    """Episode data"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    season_number: int
    episode_number: int
    stream_url: str
    thumbnail_url: str | None
    duration: int
    description: str | None
    attributes: dict[str, str]


class SeriesResponse(BaseModel):
    """Series data; episodes are included only on detail lookups"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    playlist_id: str
    title: str
    genre: str
    thumbnail_url: str | None
    description: str | None
    favorite: bool
    attributes: dict[str, str]
    episode_count: int = 0
    episodes: list[EpisodeResponse] | None = None


class PageResponse(BaseModel, Generic[T]):
    """One page of results"""
    items: list[T]
    page: int = Field(..., description="Zero-based page index")
    size: int
    total_items: int
    total_pages: int


class ImportResponse(BaseModel):
    """Outcome of an import or refresh"""
    status: str
    playlist: PlaylistResponse
    counts: CatalogCounts
    duration_seconds: float
