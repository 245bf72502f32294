"""
Playlist Import Service

Coordinates download, parsing and persistence of playlists: single imports,
per-playlist refresh, and the library-wide refresh run used by the scheduler.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

import httpx
from sqlalchemy import select

from app.catalog_types import Catalog
from app.config import settings
from app.database import session_scope
from app.models import Playlist
from app.services.catalog_query_service import (
    PlaylistNotFoundError,
    PlaylistServiceError,
    get_owned_playlist,
)
from app.services.db_service import delete_playlist, delete_playlist_content, store_catalog
from app.services.fetch_coordinator import get_refresh_coordinator
from app.services.playlist_downloader_service import parse_document_async, process_single_source
from app.utils.file_operations import sanitize_url
from app.utils.logging_helpers import (
    log_catalog_summary,
    log_refresh_end,
    log_refresh_start,
    log_source_processing,
)


logger = logging.getLogger(__name__)


class PlaylistSourceError(PlaylistServiceError):
    """Raised when a playlist source cannot be downloaded or parsed."""


class PlaylistRefreshError(PlaylistServiceError):
    """Raised when a playlist cannot be refreshed (e.g. it has no URL)."""


@dataclass(slots=True)
class ImportSummary:
    playlist_id: str
    started_at: datetime
    completed_at: datetime
    status: Literal["success", "failed"]
    source_url: str | None = None
    counts: dict[str, int] = field(default_factory=dict)
    error: str | None = None

    @property
    def duration_seconds(self) -> float:
        return max(0.0, (self.completed_at - self.started_at).total_seconds())

    def to_dict(self) -> dict:
        payload = {
            "playlist_id": self.playlist_id,
            "source_url": sanitize_url(self.source_url) if self.source_url else None,
            "status": self.status,
            "counts": dict(self.counts),
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "duration_seconds": self.duration_seconds,
        }
        if self.error:
            payload["error"] = self.error
        return payload


async def _download_catalog(
    url: str,
    owner_id: str,
    *,
    name: str | None,
    document_id: str | None = None,
) -> Catalog:
    """Download and parse a URL source, translating failures to PlaylistSourceError"""
    try:
        return await process_single_source(url, owner_id, name=name, document_id=document_id)
    except httpx.HTTPError as exc:
        logger.error("Failed to download %s: %s", sanitize_url(url), exc)
        raise PlaylistSourceError(f"Failed to download playlist: {exc}") from exc
    except ValueError as exc:
        raise PlaylistSourceError(str(exc)) from exc


async def _persist_catalog(catalog: Catalog, *, replace: bool) -> dict[str, int]:
    """
    Write a catalog in one transaction, optionally replacing existing content

    Raises:
        PlaylistNotFoundError: If replacing and the playlist was deleted meanwhile
    """
    async with session_scope() as session:
        if replace:
            if await session.get(Playlist, catalog.document.id) is None:
                raise PlaylistNotFoundError(f"Playlist {catalog.document.id} not found")
            await delete_playlist_content(session, catalog.document.id)
        counts = await store_catalog(session, catalog)
    log_catalog_summary(logger, catalog.document.id, counts)
    return counts


async def import_playlist(
    owner_id: str,
    *,
    url: str | None = None,
    content: str | None = None,
    name: str | None = None,
) -> ImportSummary:
    """
    Import a new playlist from a URL or from inline text

    Args:
        owner_id: Owner of the new playlist
        url: Playlist URL (downloaded)
        content: Playlist document text

    Keyword Args:
        name: Display name; derived from the source when omitted

    Returns:
        ImportSummary for the stored playlist

    Raises:
        PlaylistSourceError: If download or parsing fails
    """
    started_at = datetime.now(timezone.utc)

    if url is not None:
        catalog = await _download_catalog(
            url,
            owner_id,
            name=name or f"Playlist from {sanitize_url(url)}",
        )
    else:
        try:
            catalog = await parse_document_async(
                content or "",
                owner_id,
                name=name or "Playlist from uploaded content",
                parse_timeout_seconds=settings.playlist_parse_timeout_sec,
            )
        except ValueError as exc:
            raise PlaylistSourceError(str(exc)) from exc

    catalog.document.last_refreshed = datetime.now(timezone.utc)
    counts = await _persist_catalog(catalog, replace=False)

    logger.info("Imported playlist %s for owner %s", catalog.document.id, owner_id)
    return ImportSummary(
        playlist_id=catalog.document.id,
        started_at=started_at,
        completed_at=datetime.now(timezone.utc),
        status="success",
        source_url=url,
        counts=counts,
    )


async def refresh_playlist(playlist_id: str, owner_id: str) -> ImportSummary:
    """
    Re-download and re-parse a URL-backed playlist, replacing its content

    The playlist keeps its id, name and creation time. Existing content is
    only replaced once the new document has been parsed successfully.

    Raises:
        PlaylistNotFoundError: If the playlist is missing or not owned by owner_id
        PlaylistRefreshError: If the playlist has no URL
        PlaylistSourceError: If download or parsing fails
    """
    started_at = datetime.now(timezone.utc)

    async with session_scope() as session:
        playlist = await get_owned_playlist(session, playlist_id, owner_id)
        url, name, created_at = playlist.url, playlist.name, playlist.created_at

    if not url:
        raise PlaylistRefreshError("Cannot refresh a playlist without URL")

    catalog = await _download_catalog(url, owner_id, name=name, document_id=playlist_id)
    catalog.document.created_at = created_at
    catalog.document.last_refreshed = datetime.now(timezone.utc)

    counts = await _persist_catalog(catalog, replace=True)

    logger.info("Refreshed playlist %s", playlist_id)
    return ImportSummary(
        playlist_id=playlist_id,
        started_at=started_at,
        completed_at=datetime.now(timezone.utc),
        status="success",
        source_url=url,
        counts=counts,
    )


async def remove_playlist(playlist_id: str, owner_id: str) -> None:
    """
    Delete a playlist and all of its content

    Raises:
        PlaylistNotFoundError: If the playlist is missing or not owned by owner_id
    """
    async with session_scope() as session:
        await get_owned_playlist(session, playlist_id, owner_id)
        await delete_playlist(session, playlist_id)


class PlaylistRefreshPipeline:
    """Refreshes every active URL-backed playlist with bounded concurrency."""

    def __init__(self, *, max_concurrency: int = 4) -> None:
        self._semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def run(self) -> dict:
        started_at = datetime.now(timezone.utc)
        targets = await self._load_targets()
        logger.info("Refreshing %s URL-backed playlists", len(targets))

        tasks = [
            asyncio.create_task(self._refresh_one(index, len(targets), playlist_id, owner_id, url))
            for index, (playlist_id, owner_id, url) in enumerate(targets, start=1)
        ]
        summaries = list(await asyncio.gather(*tasks))

        return self._build_result(started_at, summaries)

    async def _load_targets(self) -> list[tuple[str, str, str]]:
        async with session_scope() as session:
            result = await session.execute(
                select(Playlist.id, Playlist.owner_id, Playlist.url)
                .where(Playlist.active.is_(True), Playlist.url.is_not(None))
                .order_by(Playlist.created_at)
            )
            return [(row.id, row.owner_id, row.url) for row in result.all()]

    async def _refresh_one(
        self,
        index: int,
        total: int,
        playlist_id: str,
        owner_id: str,
        url: str,
    ) -> ImportSummary:
        async with self._semaphore:
            log_source_processing(logger, index, total, sanitize_url(url))
            started_at = datetime.now(timezone.utc)
            try:
                return await refresh_playlist(playlist_id, owner_id)
            except Exception as exc:
                logger.error(
                    "[Playlist %s] Refresh failed: %s",
                    playlist_id,
                    exc,
                    exc_info=True,
                )
                return ImportSummary(
                    playlist_id=playlist_id,
                    started_at=started_at,
                    completed_at=datetime.now(timezone.utc),
                    status="failed",
                    source_url=url,
                    error=str(exc),
                )

    def _build_result(self, started_at: datetime, summaries: list[ImportSummary]) -> dict:
        successes = sum(1 for summary in summaries if summary.status == "success")
        failures = sum(1 for summary in summaries if summary.status == "failed")

        return {
            "status": "success",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "started_at": started_at.isoformat(),
            "playlists_processed": len(summaries),
            "playlists_succeeded": successes,
            "playlists_failed": failures,
            "playlist_details": [summary.to_dict() for summary in summaries],
        }


async def refresh_all_playlists() -> dict:
    """
    Main entry point for the library refresh, with concurrency protection.

    Returns:
        Dictionary with refresh statistics or error/skip message.
    """
    async def _run() -> dict:
        log_refresh_start(logger)
        try:
            result = await PlaylistRefreshPipeline().run()
        except RuntimeError as exc:
            logger.error("Playlist refresh failed: %s", exc, exc_info=True)
            return {"error": str(exc)}
        log_refresh_end(logger)
        return result

    return await get_refresh_coordinator().execute(_run)
