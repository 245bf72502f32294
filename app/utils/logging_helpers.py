"""
Structured logging helpers for consistent log formatting.
"""
import logging
from datetime import datetime, timezone
from collections.abc import Mapping


def log_source_processing(logger: logging.Logger, idx: int, total: int, url: str) -> None:
    """
    Log playlist processing header.

    Args:
        logger: Logger instance
        idx: Current playlist index (1-based)
        total: Total number of playlists
        url: Sanitized playlist URL
    """
    logger.info(f"Processing playlist {idx}/{total}: {url}")


def log_refresh_start(logger: logging.Logger) -> None:
    """Log library refresh start."""
    logger.info(f"Playlist refresh started at {datetime.now(timezone.utc).isoformat()}")


def log_refresh_end(logger: logging.Logger) -> None:
    """Log library refresh end."""
    logger.info(f"Playlist refresh completed at {datetime.now(timezone.utc).isoformat()}")


def log_catalog_summary(
    logger: logging.Logger,
    playlist_id: str,
    counts: Mapping[str, int]
) -> None:
    """
    Log stored catalog counts.

    Args:
        logger: Logger instance
        playlist_id: Playlist the catalog belongs to
        counts: Entity counts keyed by entity type
    """
    logger.info(
        f"Catalog summary for {playlist_id} - Channels: {counts.get('channels', 0)}, "
        f"Movies: {counts.get('movies', 0)}, Series: {counts.get('series', 0)}, "
        f"Episodes: {counts.get('episodes', 0)}"
    )
