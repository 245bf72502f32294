"""Shared fixtures for the playlist catalog test suite."""
from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.services.fetch_coordinator import reset_refresh_coordinator


SAMPLE_PLAYLIST = """#EXTM3U
#EXTINF:-1 group-title="Movies",Inception (2010)
http://example.com/inception.mp4
#EXTINF:-1 group-title="Series",Breaking Bad S01E01
http://example.com/bb101.mp4
#EXTINF:-1 group-title="Series",Breaking Bad S01E02
http://example.com/bb102.mp4
#EXTINF:-1 group-title="News",CNN Live
http://example.com/cnn.m3u8
"""


@pytest.fixture()
def sample_playlist() -> str:
    """The four-entry playlist used across parser and API tests."""

    return SAMPLE_PLAYLIST


@pytest.fixture()
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Provide a test client backed by an isolated SQLite database."""

    monkeypatch.setattr(settings, "database_path", str(tmp_path / "playlists.db"))
    monkeypatch.setattr(settings, "playlist_refresh_enabled", False)
    reset_refresh_coordinator()

    from app.main import app

    with TestClient(app) as test_client:
        yield test_client

    reset_refresh_coordinator()
