"""
Title heuristics for series episodes

Infers a series identity and a (season, episode) pair from an episode title.
Both are driven by ordered rule tables; the first matching rule wins.
"""
import re
import string
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar


T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class TitleRule(Generic[T]):
    """A named title shape and how to read a value out of a match."""
    name: str
    pattern: re.Pattern[str]
    extract: Callable[[re.Match[str]], T]


def _series_name(match: re.Match[str]) -> str:
    return match.group(1).strip(string.whitespace)


def _season_episode(match: re.Match[str]) -> tuple[int, int]:
    return int(match.group(1)), int(match.group(2))


# All patterns are ASCII-only: \s and \d do not match Unicode spaces or digits.
# Matched against the whole title
SERIES_NAME_RULES: tuple[TitleRule[str], ...] = (
    TitleRule("sxxexx", re.compile(r"(.+?)\s+[Ss]\d+[Ee]\d+.*", re.ASCII), _series_name),
    TitleRule(
        "season_episode_words",
        re.compile(r"(.+?)\s+-\s+Season\s+\d+\s+Episode\s+\d+.*", re.ASCII),
        _series_name,
    ),
    TitleRule("nxnn", re.compile(r"(.+?)\s+\d+x\d+.*", re.ASCII), _series_name),
)

# Searched anywhere in the title
SEASON_EPISODE_RULES: tuple[TitleRule[tuple[int, int]], ...] = (
    TitleRule("sxxexx", re.compile(r"[Ss](\d+)[Ee](\d+)", re.ASCII), _season_episode),
    TitleRule(
        "season_episode_words",
        re.compile(r"Season\s+(\d+)\s+Episode\s+(\d+)", re.ASCII),
        _season_episode,
    ),
    TitleRule("nxnn", re.compile(r"(\d+)x(\d+)", re.ASCII), _season_episode),
)


def first_fullmatch(rules: Sequence[TitleRule[T]], title: str) -> T | None:
    """Apply the first rule whose pattern matches the entire title."""
    for rule in rules:
        match = rule.pattern.fullmatch(title)
        if match:
            return rule.extract(match)
    return None


def first_search(rules: Sequence[TitleRule[T]], title: str) -> T | None:
    """Apply the first rule whose pattern occurs anywhere in the title."""
    for rule in rules:
        match = rule.pattern.search(title)
        if match:
            return rule.extract(match)
    return None


def infer_series_name(title: str) -> str:
    """
    Infer the series identity used to group episodes.

    Args:
        title: Raw episode title, e.g. 'Breaking Bad S01E02'

    Returns:
        Trimmed series name, or the unmodified title when no shape matches
    """
    name = first_fullmatch(SERIES_NAME_RULES, title)
    return title if name is None else name


def infer_season_episode(title: str) -> tuple[int, int]:
    """
    Infer (season, episode) numbers from an episode title.

    Runs independently of infer_series_name, so the winning rule may differ.

    Returns:
        (season, episode), or (0, 0) when no numeric pattern is found
    """
    numbers = first_search(SEASON_EPISODE_RULES, title)
    return (0, 0) if numbers is None else numbers
