"""Tests for document tokenization and catalog assembly."""
from __future__ import annotations

import asyncio

import pytest

from app.services.m3u_parser_service import parse_document, tokenize_document
from app.services.playlist_downloader_service import parse_document_async


def _structure(catalog) -> dict:
    """Catalog contents with generated identities and timestamps removed."""

    return {
        "owner": catalog.document.owner_id,
        "channels": [(c.name, c.group, c.stream_url, c.logo_url, c.attributes) for c in catalog.channels],
        "movies": [(m.title, m.genre, m.stream_url, m.thumbnail_url, m.attributes) for m in catalog.movies],
        "series": [
            (
                s.title,
                s.genre,
                s.attributes,
                [(e.title, e.season_number, e.episode_number, e.stream_url) for e in s.episodes],
            )
            for s in catalog.series
        ],
    }


def test_tokenizer_pairs_directives_with_following_urls() -> None:
    text = "#EXTM3U\n#EXTINF:-1,One\nhttp://a\n\n#EXTINF:-1,Two\nhttps://b\n"

    entries = list(tokenize_document(text))

    assert [(entry.directive, entry.stream_url) for entry in entries] == [
        ("#EXTINF:-1,One", "http://a"),
        ("#EXTINF:-1,Two", "https://b"),
    ]


def test_tokenizer_drops_url_without_directive() -> None:
    text = "http://orphan\n#EXTINF:-1,Kept\nhttp://kept\n"

    entries = list(tokenize_document(text))

    assert [entry.stream_url for entry in entries] == ["http://kept"]
    assert entries[0].directive == "#EXTINF:-1,Kept"


def test_consecutive_directives_keep_only_the_later_one() -> None:
    text = "#EXTINF:-1,First\n#EXTINF:-1,Second\nhttp://stream\n"

    entries = list(tokenize_document(text))

    assert len(entries) == 1
    assert entries[0].directive == "#EXTINF:-1,Second"


def test_trailing_directive_without_url_is_dropped() -> None:
    assert list(tokenize_document("#EXTINF:-1,Dangling")) == []


def test_tokenizer_handles_crlf_and_cr_line_endings() -> None:
    text = "#EXTINF:-1,One\r\nhttp://a\r#EXTINF:-1,Two\rhttp://b"

    assert [entry.stream_url for entry in tokenize_document(text)] == ["http://a", "http://b"]


def test_other_lines_are_inert() -> None:
    text = "#EXTM3U\n#EXTVLCOPT:http-user-agent=x\n#EXTINF:-1,One\n# comment\nhttp://a\n"

    entries = list(tokenize_document(text))

    assert [(entry.directive, entry.stream_url) for entry in entries] == [("#EXTINF:-1,One", "http://a")]


def test_sample_document_yields_expected_catalog(sample_playlist: str) -> None:
    catalog = parse_document(sample_playlist, "owner-1")

    assert [movie.title for movie in catalog.movies] == ["Inception (2010)"]
    assert [channel.name for channel in catalog.channels] == ["CNN Live"]
    assert len(catalog.series) == 1

    series = catalog.series[0]
    assert series.title == "Breaking Bad"
    assert series.genre == "Series"
    assert [(e.season_number, e.episode_number) for e in series.episodes] == [(1, 1), (1, 2)]
    assert [e.stream_url for e in series.episodes] == [
        "http://example.com/bb101.mp4",
        "http://example.com/bb102.mp4",
    ]
    assert catalog.summary() == {"channels": 1, "movies": 1, "series": 1, "episodes": 2}


def test_entity_count_matches_paired_entries(sample_playlist: str) -> None:
    catalog = parse_document(sample_playlist, "owner-1")

    assert catalog.entry_count == len(list(tokenize_document(sample_playlist)))


def test_orphan_url_does_not_corrupt_next_entry() -> None:
    text = (
        "http://orphan.example/stream\n"
        '#EXTINF:-1 group-title="News" tvg-logo="http://img/n.png",News 24\n'
        "http://news.example/live\n"
    )

    catalog = parse_document(text, "owner-1")

    assert len(catalog.channels) == 1
    channel = catalog.channels[0]
    assert channel.name == "News 24"
    assert channel.stream_url == "http://news.example/live"
    assert channel.logo_url == "http://img/n.png"


def test_missing_group_defaults_to_no_category_channel() -> None:
    catalog = parse_document("#EXTINF:0,Show Title\nhttp://stream\n", "owner-1")

    assert catalog.movies == [] and catalog.series == []
    assert catalog.channels[0].group == "No Category"
    assert catalog.channels[0].logo_url is None
    assert catalog.channels[0].attributes == {}


def test_mixed_keyword_group_is_a_movie() -> None:
    text = '#EXTINF:-1 group-title="Movie Series Mashup",Crossover S01E01\nhttp://x\n'

    catalog = parse_document(text, "owner-1")

    assert [movie.title for movie in catalog.movies] == ["Crossover S01E01"]
    assert catalog.series == []


def test_stream_url_is_kept_verbatim() -> None:
    url = "http://host:8080/live/user/pass/123.ts?token=a%20b&x=1 "
    catalog = parse_document(f"#EXTINF:-1,Channel\n{url}\n", "owner-1")

    assert catalog.channels[0].stream_url == url


def test_every_entity_is_stamped_with_the_document() -> None:
    catalog = parse_document(
        '#EXTINF:-1 group-title="Series",A S01E01\nhttp://a\n#EXTINF:-1,B\nhttp://b\n',
        "tenant-42",
        name="Mine",
        source_url="http://lists/x.m3u",
    )

    document = catalog.document
    assert document.owner_id == "tenant-42"
    assert document.name == "Mine"
    assert document.source_url == "http://lists/x.m3u"
    assert document.last_refreshed is None
    assert all(c.playlist_id == document.id for c in catalog.channels)
    assert all(s.playlist_id == document.id for s in catalog.series)


def test_attribute_maps_are_not_shared_between_entities() -> None:
    text = (
        '#EXTINF:-1 group-title="Series" tvg-id="x",Show S01E01\nhttp://a\n'
        '#EXTINF:-1 group-title="Series" tvg-id="y",Show S01E02\nhttp://b\n'
    )

    series = parse_document(text, "owner-1").series[0]

    assert series.attributes is not series.episodes[0].attributes
    series.episodes[0].attributes["tvg-id"] = "changed"
    assert series.attributes["tvg-id"] == "x"
    assert series.episodes[1].attributes["tvg-id"] == "y"


def test_differently_worded_titles_merge_when_identity_matches() -> None:
    text = (
        '#EXTINF:-1 group-title="TV Shows",Lost S01E01\nhttp://a\n'
        '#EXTINF:-1 group-title="TV Shows",Lost - Season 1 Episode 2\nhttp://b\n'
        '#EXTINF:-1 group-title="TV Shows",Lost 1x03\nhttp://c\n'
        '#EXTINF:-1 group-title="TV Shows",Lost Pilot Special\nhttp://d\n'
    )

    series = parse_document(text, "owner-1").series

    assert [s.title for s in series] == ["Lost", "Lost Pilot Special"]
    assert [(e.season_number, e.episode_number) for e in series[0].episodes] == [(1, 1), (1, 2), (1, 3)]
    assert [(e.season_number, e.episode_number) for e in series[1].episodes] == [(0, 0)]


def test_empty_document_yields_empty_catalog() -> None:
    catalog = parse_document("", "owner-1")

    assert catalog.channels == [] and catalog.movies == [] and catalog.series == []
    assert catalog.document.content == ""
    assert catalog.entry_count == 0


def test_parsing_twice_is_structurally_identical(sample_playlist: str) -> None:
    first = parse_document(sample_playlist, "owner-1")
    second = parse_document(sample_playlist, "owner-1")

    assert _structure(first) == _structure(second)
    assert first.document.id != second.document.id


def test_document_id_can_be_reused() -> None:
    catalog = parse_document("#EXTINF:-1,A\nhttp://a\n", "owner-1", document_id="existing")

    assert catalog.document.id == "existing"
    assert catalog.channels[0].playlist_id == "existing"


def test_async_parse_matches_sync_parse(sample_playlist: str) -> None:
    catalog = asyncio.run(parse_document_async(sample_playlist, "owner-1", parse_timeout_seconds=30))

    assert _structure(catalog) == _structure(parse_document(sample_playlist, "owner-1"))


def test_async_parse_without_timeout() -> None:
    catalog = asyncio.run(parse_document_async("", "owner-1", parse_timeout_seconds=0))

    assert catalog.entry_count == 0


@pytest.mark.parametrize("owner_id", ["", "tenant with spaces"])
def test_owner_id_is_opaque(owner_id: str) -> None:
    assert parse_document("", owner_id).document.owner_id == owner_id


def test_titles_differing_only_in_whitespace_are_separate_series() -> None:
    text = (
        '#EXTINF:-1 group-title="Series",Special\nhttp://x/1\n'
        '#EXTINF:-1 group-title="Series",Special \nhttp://x/2\n'
    )

    catalog = parse_document(text, "owner-1")

    assert [series.title for series in catalog.series] == ["Special", "Special "]
    assert catalog.series[1].episodes[0].title == "Special "
