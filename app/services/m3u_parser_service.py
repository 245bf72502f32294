from collections.abc import Iterator
from datetime import datetime, timezone
from uuid import uuid4
import logging
import re

from app.catalog_types import (
    Catalog,
    ChannelPayload,
    EpisodePayload,
    MoviePayload,
    PlaylistDocument,
    PlaylistEntry,
)
from app.utils.content_classifier import DEFAULT_GROUP, ContentKind, classify_group
from app.utils.data_merging import SeriesAggregator
from app.utils.m3u_attributes import parse_directive
from app.utils.title_heuristics import infer_season_episode, infer_series_name

logger = logging.getLogger(__name__)

DIRECTIVE_MARKER = "#EXTINF"
STREAM_URL_MARKER = "http"

LINE_BREAK_PATTERN = re.compile(r"\r\n|\r|\n")


def tokenize_document(text: str) -> Iterator[PlaylistEntry]:
    """
    Pair each directive line with the stream URI line that follows it.

    A directive overwrites any directive still pending. A URI line with no
    pending directive, and any other line, is ignored.

    Args:
        text: Full playlist document

    Yields:
        PlaylistEntry objects in document order
    """
    pending_directive: str | None = None

    for line_number, line in enumerate(LINE_BREAK_PATTERN.split(text), start=1):
        if line.startswith(DIRECTIVE_MARKER):
            if pending_directive is not None:
                # Ambiguous input: the earlier directive is dropped
                logger.debug("Line %s: directive replaces a directive with no stream URL", line_number)
            pending_directive = line
        elif line.startswith(STREAM_URL_MARKER):
            if pending_directive is None:
                logger.debug("Line %s: skipping stream URL without a preceding directive", line_number)
                continue
            yield PlaylistEntry(directive=pending_directive, stream_url=line)
            pending_directive = None

    if pending_directive is not None:
        logger.debug("Document ended with a directive that has no stream URL")


def parse_document(
    text: str,
    owner_id: str,
    *,
    name: str | None = None,
    source_url: str | None = None,
    document_id: str | None = None,
) -> Catalog:
    """
    Parse a playlist document into channels, movies and series

    Args:
        text: Full playlist document, already fetched
        owner_id: Opaque owner identifier stamped on the document
        name: Optional display name for the document
        source_url: Optional URL the document was fetched from
        document_id: Reuse an existing document id (refresh); a new UUID otherwise

    Returns:
        Catalog with the document record and every produced entity.
        Malformed input never raises; an empty document yields an empty catalog.
    """
    now = datetime.now(timezone.utc)
    document = PlaylistDocument(
        id=document_id or str(uuid4()),
        owner_id=owner_id,
        content=text,
        name=name,
        source_url=source_url,
        created_at=now,
        updated_at=now,
    )

    catalog = Catalog(document=document)
    series = SeriesAggregator(document.id)

    for entry in tokenize_document(text):
        _process_entry(entry, document.id, catalog, series)

    catalog.series = series.values()

    logger.info(
        "Playlist parsing complete: %s channels, %s movies, %s series (%s episodes)",
        len(catalog.channels),
        len(catalog.movies),
        len(catalog.series),
        catalog.episode_count,
    )

    return catalog


def _process_entry(
    entry: PlaylistEntry,
    playlist_id: str,
    catalog: Catalog,
    series: SeriesAggregator,
) -> None:
    """Route one entry to the channel list, the movie list or the series aggregator"""
    title, attributes = parse_directive(entry.directive)
    group = attributes.get("group-title", DEFAULT_GROUP)
    logo = attributes.get("tvg-logo")

    kind = classify_group(group)

    if kind is ContentKind.MOVIE:
        catalog.movies.append(MoviePayload(
            id=str(uuid4()),
            title=title,
            genre=group,
            stream_url=entry.stream_url,
            playlist_id=playlist_id,
            thumbnail_url=logo,
            attributes=dict(attributes),
        ))
    elif kind is ContentKind.SERIES:
        season_number, episode_number = infer_season_episode(title)
        episode = EpisodePayload(
            id=str(uuid4()),
            title=title,
            stream_url=entry.stream_url,
            season_number=season_number,
            episode_number=episode_number,
            thumbnail_url=logo,
            attributes=dict(attributes),
        )
        series.add_episode(
            infer_series_name(title),
            episode,
            genre=group,
            thumbnail_url=logo,
            attributes=attributes,
        )
    else:
        catalog.channels.append(ChannelPayload(
            id=str(uuid4()),
            name=title,
            group=group,
            stream_url=entry.stream_url,
            playlist_id=playlist_id,
            logo_url=logo,
            attributes=dict(attributes),
        ))
