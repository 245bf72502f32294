"""
Content classification

Decides whether a playlist entry is a live channel, a movie or a series
episode based on its group label.
"""
from enum import Enum


DEFAULT_GROUP = "No Category"


class ContentKind(str, Enum):
    """Kind of catalog entity an entry becomes."""

    CHANNEL = "channel"
    MOVIE = "movie"
    SERIES = "series"


MOVIE_KEYWORDS = ("movie", "cinema", "film")
SERIES_KEYWORDS = ("series", "tv shows", "episodes")

# Evaluated top to bottom, first hit wins
CATEGORY_RULES: tuple[tuple[ContentKind, tuple[str, ...]], ...] = (
    (ContentKind.MOVIE, MOVIE_KEYWORDS),
    (ContentKind.SERIES, SERIES_KEYWORDS),
)


def classify_group(group: str | None) -> ContentKind:
    """
    Classify an entry by its group label.

    Matching is a case-insensitive substring test against each keyword set.

    Args:
        group: Value of the group-title attribute (None falls back to DEFAULT_GROUP)

    Returns:
        ContentKind for the entry; CHANNEL when no keyword matches
    """
    label = (group if group is not None else DEFAULT_GROUP).lower()

    for kind, keywords in CATEGORY_RULES:
        if any(keyword in label for keyword in keywords):
            return kind

    return ContentKind.CHANNEL
