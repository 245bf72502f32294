"""
Playlist Downloader Service

Handles downloading playlist documents and parsing them off the event loop.
Separated from orchestration logic for better testability.
"""
import asyncio
import logging
from uuid import uuid4

from app.catalog_types import Catalog
from app.config import settings
from app.services.m3u_parser_service import parse_document
from app.utils.file_operations import cleanup_temp_file, download_file, read_text_file, sanitize_url


logger = logging.getLogger(__name__)


async def fetch_playlist_text(source_url: str) -> str:
    """
    Download a playlist and return its text

    Args:
        source_url: URL to download from

    Returns:
        Full playlist document

    Raises:
        httpx.HTTPError: If download fails after all retries
    """
    temp_file = None
    try:
        temp_file = await download_file(
            source_url,
            f"playlist_{uuid4().hex}.m3u",
            timeout=settings.playlist_download_timeout_sec,
            max_retries=settings.playlist_download_max_retries,
            backoff_factor=settings.playlist_download_backoff_factor,
        )
        text = await read_text_file(temp_file)
        logger.debug("Read %s characters from %s", len(text), sanitize_url(source_url))
        return text
    finally:
        if temp_file:
            cleanup_temp_file(temp_file)


async def parse_document_async(
    text: str,
    owner_id: str,
    *,
    name: str | None = None,
    source_url: str | None = None,
    document_id: str | None = None,
    parse_timeout_seconds: int | None = None
) -> Catalog:
    """
    Parse a playlist document in the thread pool with timeout protection.

    The parse itself is synchronous and cannot be interrupted; on timeout the
    caller stops waiting and the worker thread finishes in the background.

    Args:
        text: Full playlist document
        owner_id: Owner identifier stamped on the document

    Keyword Args:
        name: Optional playlist display name
        source_url: Optional URL the document came from
        document_id: Existing document id to reuse
        parse_timeout_seconds: Timeout in seconds (0/None disables timeout)

    Raises:
        ValueError: If parsing times out
    """
    effective_timeout = parse_timeout_seconds if parse_timeout_seconds and parse_timeout_seconds > 0 else None
    timeout_display = f"{effective_timeout}s" if effective_timeout else "disabled"

    logger.debug(
        "Offloading playlist parsing to thread pool executor (%s characters, timeout: %s)...",
        len(text),
        timeout_display,
    )

    loop = asyncio.get_running_loop()
    parse_task = loop.run_in_executor(
        None,
        lambda: parse_document(
            text,
            owner_id,
            name=name,
            source_url=source_url,
            document_id=document_id,
        ),
    )

    try:
        if effective_timeout:
            return await asyncio.wait_for(parse_task, timeout=effective_timeout)
        return await parse_task
    except asyncio.TimeoutError:
        logger.error("Playlist parsing timed out after %s", timeout_display)
        raise ValueError("Playlist parsing timed out - document may be too large")


async def process_single_source(
    source_url: str,
    owner_id: str,
    *,
    name: str | None = None,
    document_id: str | None = None,
) -> Catalog:
    """
    Download and parse a single playlist source

    Args:
        source_url: URL to download from
        owner_id: Owner identifier stamped on the document
        name: Optional playlist display name
        document_id: Existing document id to reuse (refresh)

    Returns:
        Parsed catalog
    """
    sanitized_url = sanitize_url(source_url)
    logger.info("Fetching playlist %s", sanitized_url)
    text = await fetch_playlist_text(source_url)

    catalog = await parse_document_async(
        text,
        owner_id,
        name=name,
        source_url=source_url,
        document_id=document_id,
        parse_timeout_seconds=settings.playlist_parse_timeout_sec,
    )
    logger.info("Playlist %s parsed: %s", sanitized_url, catalog.summary())
    return catalog
