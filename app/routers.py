from typing import Annotated
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response
import logging

from app.database import get_db
from app.schemas import (
    ChannelResponse,
    FavoriteRequest,
    ImportResponse,
    MovieResponse,
    PageResponse,
    PlaylistImportRequest,
    PlaylistResponse,
    SeriesResponse,
)
from app.services import (
    PlaylistNotFoundError,
    PlaylistRefreshError,
    PlaylistSourceError,
    get_owned_playlist,
    get_series,
    import_playlist,
    list_channels,
    list_movies,
    list_playlists,
    list_series,
    playlist_response,
    playlist_scheduler,
    refresh_all_playlists,
    refresh_playlist,
    remove_playlist,
    set_favorite,
)


logger = logging.getLogger(__name__)

main_router = APIRouter()

OwnerId = Annotated[str, Header(alias="X-Owner-Id", min_length=1, description="Opaque owner identifier")]
DbSession = Annotated[AsyncSession, Depends(get_db)]
Page = Annotated[int, Query(ge=0, description="Zero-based page index")]
PageSize = Annotated[int | None, Query(ge=1, description="Page size")]


def _not_found(exc: PlaylistNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc))


@main_router.get("/")
async def root() -> dict:
    """Root endpoint with service information"""
    next_run = playlist_scheduler.get_next_run_time()

    return {
        "service": "Playlist Catalog Service",
        "version": "0.1.0",
        "next_scheduled_refresh": next_run.isoformat() if next_run else None,
        "endpoints": {
            "playlists": "/playlists - List or import playlists",
            "refresh": "/refresh - Manually trigger refresh of all URL-backed playlists",
            "series": "/series/{id} - Series with episodes",
            "health": "/health - Health check"
        }
    }


@main_router.get("/health")
async def health_check() -> dict:
    """Health check endpoint"""
    next_run = playlist_scheduler.get_next_run_time()
    return {
        "status": "ok",
        "scheduler_running": playlist_scheduler.running,
        "next_refresh": next_run.isoformat() if next_run else None
    }


@main_router.post("/refresh")
async def trigger_refresh() -> dict:
    """
    Manually trigger a refresh of every URL-backed playlist

    This will download, parse and store each playlist again
    """
    logger.info("Manual playlist refresh triggered via API")
    result = await refresh_all_playlists()

    if "error" in result:
        raise HTTPException(status_code=500, detail=result["error"])

    return result


@main_router.get("/playlists", response_model=list[PlaylistResponse])
async def get_playlists(owner_id: OwnerId, db: DbSession) -> list[PlaylistResponse]:
    """List the caller's playlists"""
    return await list_playlists(db, owner_id)


@main_router.post("/playlists", response_model=ImportResponse, status_code=201)
async def create_playlist(
    request: PlaylistImportRequest,
    owner_id: OwnerId,
    db: DbSession,
) -> ImportResponse:
    """
    Import a playlist from a URL or from inline content

    The document is parsed into channels, movies and series and stored.
    """
    try:
        summary = await import_playlist(
            owner_id,
            url=request.url,
            content=request.content,
            name=request.name,
        )
    except PlaylistSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc))

    return await _import_response(db, summary, owner_id)


@main_router.get("/playlists/{playlist_id}", response_model=PlaylistResponse)
async def get_playlist(playlist_id: str, owner_id: OwnerId, db: DbSession) -> PlaylistResponse:
    """Get a single playlist with entity counts"""
    try:
        playlist = await get_owned_playlist(db, playlist_id, owner_id)
    except PlaylistNotFoundError as exc:
        raise _not_found(exc)
    return await playlist_response(db, playlist)


@main_router.delete("/playlists/{playlist_id}", status_code=204)
async def delete_playlist(playlist_id: str, owner_id: OwnerId) -> Response:
    """Delete a playlist and everything parsed from it"""
    try:
        await remove_playlist(playlist_id, owner_id)
    except PlaylistNotFoundError as exc:
        raise _not_found(exc)
    return Response(status_code=204)


@main_router.post("/playlists/{playlist_id}/refresh", response_model=ImportResponse)
async def refresh_single_playlist(
    playlist_id: str,
    owner_id: OwnerId,
    db: DbSession,
) -> ImportResponse:
    """Re-download and re-parse one playlist from its URL"""
    try:
        summary = await refresh_playlist(playlist_id, owner_id)
    except PlaylistNotFoundError as exc:
        raise _not_found(exc)
    except PlaylistRefreshError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except PlaylistSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc))

    return await _import_response(db, summary, owner_id)


@main_router.get("/playlists/{playlist_id}/channels", response_model=PageResponse[ChannelResponse])
async def get_channels(
    playlist_id: str,
    owner_id: OwnerId,
    db: DbSession,
    page: Page = 0,
    size: PageSize = None,
    group: str | None = None,
    search: str | None = None,
) -> PageResponse[ChannelResponse]:
    """List channels of a playlist"""
    try:
        return await list_channels(
            db, owner_id, playlist_id, group=group, search=search, page=page, size=size
        )
    except PlaylistNotFoundError as exc:
        raise _not_found(exc)


@main_router.get("/playlists/{playlist_id}/movies", response_model=PageResponse[MovieResponse])
async def get_movies(
    playlist_id: str,
    owner_id: OwnerId,
    db: DbSession,
    page: Page = 0,
    size: PageSize = None,
    group: str | None = None,
    search: str | None = None,
) -> PageResponse[MovieResponse]:
    """List movies of a playlist"""
    try:
        return await list_movies(
            db, owner_id, playlist_id, group=group, search=search, page=page, size=size
        )
    except PlaylistNotFoundError as exc:
        raise _not_found(exc)


@main_router.get("/playlists/{playlist_id}/series", response_model=PageResponse[SeriesResponse])
async def get_series_list(
    playlist_id: str,
    owner_id: OwnerId,
    db: DbSession,
    page: Page = 0,
    size: PageSize = None,
    group: str | None = None,
    search: str | None = None,
) -> PageResponse[SeriesResponse]:
    """List series of a playlist (episodes omitted)"""
    try:
        return await list_series(
            db, owner_id, playlist_id, group=group, search=search, page=page, size=size
        )
    except PlaylistNotFoundError as exc:
        raise _not_found(exc)


@main_router.get("/series/{series_id}", response_model=SeriesResponse)
async def get_series_detail(series_id: str, owner_id: OwnerId, db: DbSession) -> SeriesResponse:
    """Get a series with its episodes in playlist order"""
    try:
        return await get_series(db, owner_id, series_id)
    except PlaylistNotFoundError as exc:
        raise _not_found(exc)


@main_router.put("/channels/{channel_id}/favorite", response_model=ChannelResponse)
async def favorite_channel(
    channel_id: str,
    request: FavoriteRequest,
    owner_id: OwnerId,
    db: DbSession,
):
    """Mark or unmark a channel as favorite"""
    return await _set_favorite(db, owner_id, "channel", channel_id, request.favorite)


@main_router.put("/movies/{movie_id}/favorite", response_model=MovieResponse)
async def favorite_movie(
    movie_id: str,
    request: FavoriteRequest,
    owner_id: OwnerId,
    db: DbSession,
):
    """Mark or unmark a movie as favorite"""
    return await _set_favorite(db, owner_id, "movie", movie_id, request.favorite)


@main_router.put("/series/{series_id}/favorite", response_model=SeriesResponse)
async def favorite_series(
    series_id: str,
    request: FavoriteRequest,
    owner_id: OwnerId,
    db: DbSession,
):
    """Mark or unmark a series as favorite"""
    return await _set_favorite(db, owner_id, "series", series_id, request.favorite)


async def _set_favorite(db: AsyncSession, owner_id: str, kind: str, entity_id: str, favorite: bool):
    try:
        return await set_favorite(db, owner_id, kind, entity_id, favorite)
    except PlaylistNotFoundError as exc:
        raise _not_found(exc)


async def _import_response(db: AsyncSession, summary, owner_id: str) -> ImportResponse:
    playlist = await get_owned_playlist(db, summary.playlist_id, owner_id)
    return ImportResponse(
        status=summary.status,
        playlist=await playlist_response(db, playlist),
        counts=summary.counts,
        duration_seconds=summary.duration_seconds,
    )
