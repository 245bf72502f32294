"""
Data merging utilities

This module groups series episodes under a shared series identity.
"""
import logging
from collections.abc import Mapping
from uuid import uuid4

from app.catalog_types import EpisodePayload, SeriesPayload

logger = logging.getLogger(__name__)


class SeriesAggregator:
    """
    Accumulates episodes into series keyed by inferred series name.

    Scoped to a single parse pass. The first episode seen for a name supplies
    the series-level genre, thumbnail and attributes; later episodes are only
    appended. Episodes keep document order and are never shared between series.
    """

    def __init__(self, playlist_id: str):
        self.playlist_id = playlist_id
        self._series: dict[str, SeriesPayload] = {}

    def __len__(self) -> int:
        return len(self._series)

    def __contains__(self, series_name: object) -> bool:
        return series_name in self._series

    def add_episode(
        self,
        series_name: str,
        episode: EpisodePayload,
        *,
        genre: str,
        thumbnail_url: str | None,
        attributes: Mapping[str, str],
    ) -> SeriesPayload:
        """
        Add an episode under the given series name.

        Args:
            series_name: Merge key (exact, case-sensitive)
            episode: Episode to append
            genre: Group label of the entry
            thumbnail_url: Logo of the entry
            attributes: Attribute map of the entry

        Returns:
            The series the episode was appended to
        """
        series = self._series.get(series_name)
        if series is None:
            series = SeriesPayload(
                id=str(uuid4()),
                title=series_name,
                genre=genre,
                playlist_id=self.playlist_id,
                thumbnail_url=thumbnail_url,
                attributes=dict(attributes),
            )
            self._series[series_name] = series
            logger.debug("New series '%s' (genre=%s)", series_name, genre)
        else:
            logger.debug(
                "Appending episode '%s' to series '%s' (%s episodes so far)",
                episode.title,
                series_name,
                len(series.episodes),
            )

        series.episodes.append(episode)
        return series

    def values(self) -> list[SeriesPayload]:
        """Series in order of first appearance."""
        return list(self._series.values())
