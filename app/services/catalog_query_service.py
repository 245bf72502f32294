"""
Catalog Query Service

Business logic for querying playlists and their parsed content.
Every read is scoped to the requesting owner.
"""
import logging
import math
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import settings
from app.models import Channel, Episode, Movie, Playlist, Series
from app.schemas import (
    CatalogCounts,
    ChannelResponse,
    MovieResponse,
    PageResponse,
    PlaylistResponse,
    SeriesResponse,
)

logger = logging.getLogger(__name__)


class PlaylistServiceError(RuntimeError):
    """Base error for playlist service operations."""


class PlaylistNotFoundError(PlaylistServiceError):
    """Raised when a playlist or entity does not exist for the requesting owner."""


async def get_owned_playlist(db: AsyncSession, playlist_id: str, owner_id: str) -> Playlist:
    """
    Load a playlist, enforcing ownership

    Raises:
        PlaylistNotFoundError: If the playlist is missing or belongs to another owner
    """
    playlist = await db.get(Playlist, playlist_id)
    if playlist is None or playlist.owner_id != owner_id:
        raise PlaylistNotFoundError(f"Playlist {playlist_id} not found")
    return playlist


async def count_playlist_content(db: AsyncSession, playlist_id: str) -> CatalogCounts:
    """Count stored entities for a playlist"""
    counts: dict[str, int] = {}
    for key, model in (("channels", Channel), ("movies", Movie), ("series", Series)):
        result = await db.execute(
            select(func.count(model.id)).where(model.playlist_id == playlist_id)
        )
        counts[key] = result.scalar_one()

    result = await db.execute(
        select(func.count(Episode.id))
        .join(Series, Episode.series_id == Series.id)
        .where(Series.playlist_id == playlist_id)
    )
    counts["episodes"] = result.scalar_one()
    return CatalogCounts(**counts)


async def playlist_response(db: AsyncSession, playlist: Playlist) -> PlaylistResponse:
    """Build a playlist summary including entity counts"""
    response = PlaylistResponse.model_validate(playlist)
    response.counts = await count_playlist_content(db, playlist.id)
    return response


async def list_playlists(db: AsyncSession, owner_id: str) -> list[PlaylistResponse]:
    """List every playlist of an owner, newest first"""
    result = await db.execute(
        select(Playlist)
        .where(Playlist.owner_id == owner_id)
        .order_by(Playlist.created_at.desc())
    )
    playlists = list(result.scalars().all())
    logger.info("Listing %s playlists for owner %s", len(playlists), owner_id)
    return [await playlist_response(db, playlist) for playlist in playlists]


def _page_bounds(page: int, size: int | None) -> tuple[int, int]:
    """Clamp pagination parameters to configured limits"""
    effective_size = size or settings.default_page_size
    effective_size = max(1, min(effective_size, settings.max_page_size))
    return max(0, page), effective_size


async def _paginate(
    db: AsyncSession,
    stmt: Select[Any],
    page: int,
    size: int | None,
) -> tuple[list[Any], int, int, int]:
    """Run a select for one page and return (rows, page, size, total)"""
    page, size = _page_bounds(page, size)

    total_result = await db.execute(select(func.count()).select_from(stmt.subquery()))
    total = total_result.scalar_one()

    result = await db.execute(stmt.offset(page * size).limit(size))
    return list(result.scalars().all()), page, size, total


def _page(items: list[Any], page: int, size: int, total: int) -> dict[str, Any]:
    return {
        "items": items,
        "page": page,
        "size": size,
        "total_items": total,
        "total_pages": math.ceil(total / size) if total else 0,
    }


async def list_channels(
    db: AsyncSession,
    owner_id: str,
    playlist_id: str,
    *,
    group: str | None = None,
    search: str | None = None,
    page: int = 0,
    size: int | None = None,
) -> PageResponse[ChannelResponse]:
    """
    List channels of a playlist

    Args:
        db: Database session
        owner_id: Requesting owner
        playlist_id: Playlist to read
        group: Optional exact group filter
        search: Optional case-insensitive name substring
        page: Zero-based page index
        size: Page size (defaults to settings.default_page_size)
    """
    await get_owned_playlist(db, playlist_id, owner_id)

    stmt = select(Channel).where(Channel.playlist_id == playlist_id)
    if group:
        stmt = stmt.where(Channel.group == group)
    if search:
        stmt = stmt.where(func.lower(Channel.name).contains(search.lower(), autoescape=True))
    stmt = stmt.order_by(Channel.group, Channel.name)

    rows, page, size, total = await _paginate(db, stmt, page, size)
    items = [ChannelResponse.model_validate(row) for row in rows]
    return PageResponse[ChannelResponse](**_page(items, page, size, total))


async def list_movies(
    db: AsyncSession,
    owner_id: str,
    playlist_id: str,
    *,
    group: str | None = None,
    search: str | None = None,
    page: int = 0,
    size: int | None = None,
) -> PageResponse[MovieResponse]:
    """List movies of a playlist, filtered by genre and title substring"""
    await get_owned_playlist(db, playlist_id, owner_id)

    stmt = select(Movie).where(Movie.playlist_id == playlist_id)
    if group:
        stmt = stmt.where(Movie.genre == group)
    if search:
        stmt = stmt.where(func.lower(Movie.title).contains(search.lower(), autoescape=True))
    stmt = stmt.order_by(Movie.title)

    rows, page, size, total = await _paginate(db, stmt, page, size)
    items = [MovieResponse.model_validate(row) for row in rows]
    return PageResponse[MovieResponse](**_page(items, page, size, total))


async def list_series(
    db: AsyncSession,
    owner_id: str,
    playlist_id: str,
    *,
    group: str | None = None,
    search: str | None = None,
    page: int = 0,
    size: int | None = None,
) -> PageResponse[SeriesResponse]:
    """List series of a playlist without their episodes"""
    await get_owned_playlist(db, playlist_id, owner_id)

    stmt = (
        select(Series)
        .where(Series.playlist_id == playlist_id)
        .options(selectinload(Series.episodes))
    )
    if group:
        stmt = stmt.where(Series.genre == group)
    if search:
        stmt = stmt.where(func.lower(Series.title).contains(search.lower(), autoescape=True))
    stmt = stmt.order_by(Series.title)

    rows, page, size, total = await _paginate(db, stmt, page, size)
    items = [_series_response(row, include_episodes=False) for row in rows]
    return PageResponse[SeriesResponse](**_page(items, page, size, total))


async def get_series(db: AsyncSession, owner_id: str, series_id: str) -> SeriesResponse:
    """
    Get a series with its episodes in playlist order

    Raises:
        PlaylistNotFoundError: If the series is missing or not owned by owner_id
    """
    result = await db.execute(
        select(Series)
        .where(Series.id == series_id)
        .options(selectinload(Series.episodes))
    )
    series = result.scalar_one_or_none()
    if series is None:
        raise PlaylistNotFoundError(f"Series {series_id} not found")

    await get_owned_playlist(db, series.playlist_id, owner_id)
    return _series_response(series, include_episodes=True)


def _series_response(series: Series, *, include_episodes: bool) -> SeriesResponse:
    response = SeriesResponse.model_validate(series, from_attributes=True)
    response.episode_count = len(series.episodes)
    if not include_episodes:
        response.episodes = None
    return response


FAVORITE_MODELS: dict[str, type[Channel] | type[Movie] | type[Series]] = {
    "channel": Channel,
    "movie": Movie,
    "series": Series,
}


async def set_favorite(
    db: AsyncSession,
    owner_id: str,
    kind: str,
    entity_id: str,
    favorite: bool,
) -> ChannelResponse | MovieResponse | SeriesResponse:
    """
    Set the favorite flag on a channel, movie or series

    Args:
        db: Database session
        owner_id: Requesting owner
        kind: One of 'channel', 'movie', 'series'
        entity_id: Entity identifier
        favorite: New flag value

    Raises:
        PlaylistNotFoundError: If the entity is missing or not owned by owner_id
    """
    model = FAVORITE_MODELS[kind]
    options = [selectinload(Series.episodes)] if model is Series else []
    result = await db.execute(select(model).where(model.id == entity_id).options(*options))
    entity = result.scalar_one_or_none()
    if entity is None:
        raise PlaylistNotFoundError(f"{kind.capitalize()} {entity_id} not found")

    await get_owned_playlist(db, entity.playlist_id, owner_id)

    entity.favorite = favorite
    await db.commit()
    logger.info("Set favorite=%s on %s %s", favorite, kind, entity_id)

    if isinstance(entity, Series):
        return _series_response(entity, include_episodes=False)
    if isinstance(entity, Movie):
        return MovieResponse.model_validate(entity)
    return ChannelResponse.model_validate(entity)
