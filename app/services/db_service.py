"""
Database operations for playlist catalogs

This module contains the write-side database operations for playlists and
the channels, movies, series and episodes parsed from them.
"""
import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog_types import Catalog, PlaylistDocument
from app.config import settings
from app.models import Channel, Episode, Movie, Playlist, Series


logger = logging.getLogger(__name__)


async def _insert_chunked(db: AsyncSession, model: type, rows: Sequence[dict[str, Any]]) -> None:
    """Insert rows using executemany batches."""
    chunk_size = settings.playlist_insert_chunk_size
    for start_index in range(0, len(rows), chunk_size):
        await db.execute(insert(model), list(rows[start_index:start_index + chunk_size]))


async def store_playlist(db: AsyncSession, document: PlaylistDocument) -> Playlist:
    """
    Insert or update the playlist row for a parsed document.

    Args:
        db: Database session
        document: Parsed playlist document

    Returns:
        The persistent Playlist row
    """
    playlist = await db.get(Playlist, document.id)
    if playlist is None:
        playlist = Playlist(id=document.id, created_at=document.created_at)
        db.add(playlist)
        logger.debug("Creating playlist %s", document.id)

    playlist.owner_id = document.owner_id
    playlist.name = document.name
    playlist.url = document.source_url
    playlist.content = document.content
    playlist.active = document.active
    playlist.updated_at = document.updated_at
    playlist.last_refreshed = document.last_refreshed

    await db.flush()
    return playlist


async def store_catalog(db: AsyncSession, catalog: Catalog) -> dict[str, int]:
    """
    Store a parsed catalog: the playlist row plus every produced entity.

    Args:
        db: Database session
        catalog: Catalog returned by parse_document

    Returns:
        Counts of stored rows per entity type
    """
    await store_playlist(db, catalog.document)
    playlist_id = catalog.document.id

    channel_rows = [
        {
            "id": channel.id,
            "playlist_id": playlist_id,
            "name": channel.name,
            "group": channel.group,
            "stream_url": channel.stream_url,
            "logo_url": channel.logo_url,
            "favorite": channel.favorite,
            "attributes": channel.attributes,
        }
        for channel in catalog.channels
    ]
    movie_rows = [
        {
            "id": movie.id,
            "playlist_id": playlist_id,
            "title": movie.title,
            "genre": movie.genre,
            "stream_url": movie.stream_url,
            "thumbnail_url": movie.thumbnail_url,
            "favorite": movie.favorite,
            "attributes": movie.attributes,
        }
        for movie in catalog.movies
    ]
    series_rows = [
        {
            "id": series.id,
            "playlist_id": playlist_id,
            "title": series.title,
            "genre": series.genre,
            "thumbnail_url": series.thumbnail_url,
            "description": series.description,
            "favorite": series.favorite,
            "attributes": series.attributes,
        }
        for series in catalog.series
    ]
    episode_rows = [
        {
            "id": episode.id,
            "series_id": series.id,
            "position": position,
            "title": episode.title,
            "season_number": episode.season_number,
            "episode_number": episode.episode_number,
            "stream_url": episode.stream_url,
            "thumbnail_url": episode.thumbnail_url,
            "duration": episode.duration,
            "description": episode.description,
            "attributes": episode.attributes,
        }
        for series in catalog.series
        for position, episode in enumerate(series.episodes)
    ]

    logger.info(
        "Storing playlist %s: %s channels, %s movies, %s series, %s episodes",
        playlist_id,
        len(channel_rows),
        len(movie_rows),
        len(series_rows),
        len(episode_rows),
    )

    await _insert_chunked(db, Channel, channel_rows)
    await _insert_chunked(db, Movie, movie_rows)
    await _insert_chunked(db, Series, series_rows)
    await _insert_chunked(db, Episode, episode_rows)

    return {
        "channels": len(channel_rows),
        "movies": len(movie_rows),
        "series": len(series_rows),
        "episodes": len(episode_rows),
    }


async def delete_playlist_content(db: AsyncSession, playlist_id: str) -> int:
    """
    Delete every channel, movie, series and episode of a playlist.

    Args:
        db: Database session
        playlist_id: Playlist whose content is removed

    Returns:
        Number of deleted top-level entities (channels + movies + series)
    """
    deleted_count = 0
    for model in (Channel, Movie, Series):
        result = await db.execute(
            select(func.count(model.id)).where(model.playlist_id == playlist_id)
        )
        deleted_count += result.scalar_one_or_none() or 0

    series_ids = select(Series.id).where(Series.playlist_id == playlist_id)
    await db.execute(delete(Episode).where(Episode.series_id.in_(series_ids)))
    await db.execute(delete(Series).where(Series.playlist_id == playlist_id))
    await db.execute(delete(Movie).where(Movie.playlist_id == playlist_id))
    await db.execute(delete(Channel).where(Channel.playlist_id == playlist_id))

    logger.info("Deleted %s entities from playlist %s", deleted_count, playlist_id)
    return deleted_count


async def delete_playlist(db: AsyncSession, playlist_id: str) -> None:
    """Delete a playlist and everything parsed from it."""
    await delete_playlist_content(db, playlist_id)
    await db.execute(delete(Playlist).where(Playlist.id == playlist_id))
    logger.info("Deleted playlist %s", playlist_id)

