"""End-to-end tests for the playlist HTTP API."""
from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from app.services.playlist_import_service import remove_playlist


OWNER = {"X-Owner-Id": "owner-1"}
OTHER_OWNER = {"X-Owner-Id": "owner-2"}


def _import_content(client: TestClient, content: str, name: str | None = "Sample") -> dict:
    response = client.post("/playlists", json={"content": content, "name": name}, headers=OWNER)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture()
def fake_download(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Serve playlist text from a dict instead of the network."""

    documents: dict[str, str] = {}

    async def _fetch(url: str) -> str:
        if url not in documents:
            raise httpx.ConnectError(f"cannot reach {url}")
        return documents[url]

    monkeypatch.setattr("app.services.playlist_downloader_service.fetch_playlist_text", _fetch)
    return documents


def test_health_endpoint_reports_ok_status(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "scheduler_running": False, "next_refresh": None}


def test_import_from_content_stores_catalog(client: TestClient, sample_playlist: str) -> None:
    payload = _import_content(client, sample_playlist)

    assert payload["status"] == "success"
    assert payload["counts"] == {"channels": 1, "movies": 1, "series": 1, "episodes": 2}
    playlist = payload["playlist"]
    assert playlist["owner_id"] == "owner-1"
    assert playlist["name"] == "Sample"
    assert playlist["url"] is None
    assert playlist["last_refreshed"] is not None
    assert playlist["counts"] == payload["counts"]


def test_series_detail_keeps_episode_order(client: TestClient, sample_playlist: str) -> None:
    playlist_id = _import_content(client, sample_playlist)["playlist"]["id"]

    listing = client.get(f"/playlists/{playlist_id}/series", headers=OWNER).json()
    assert listing["total_items"] == 1
    summary = listing["items"][0]
    assert summary["title"] == "Breaking Bad"
    assert summary["episode_count"] == 2
    assert summary["episodes"] is None

    detail = client.get(f"/series/{summary['id']}", headers=OWNER).json()
    assert [(e["season_number"], e["episode_number"]) for e in detail["episodes"]] == [(1, 1), (1, 2)]
    assert [e["title"] for e in detail["episodes"]] == ["Breaking Bad S01E01", "Breaking Bad S01E02"]


def test_channels_and_movies_listing(client: TestClient, sample_playlist: str) -> None:
    playlist_id = _import_content(client, sample_playlist)["playlist"]["id"]

    channels = client.get(f"/playlists/{playlist_id}/channels", headers=OWNER).json()
    movies = client.get(f"/playlists/{playlist_id}/movies", headers=OWNER).json()

    assert [c["name"] for c in channels["items"]] == ["CNN Live"]
    assert channels["items"][0]["stream_url"] == "http://example.com/cnn.m3u8"
    assert channels["items"][0]["group"] == "News"
    assert [m["title"] for m in movies["items"]] == ["Inception (2010)"]
    assert movies["items"][0]["attributes"] == {"group-title": "Movies"}


def test_channel_pagination_and_search(client: TestClient) -> None:
    content = "\n".join(
        f'#EXTINF:-1 group-title="{"Sports" if i % 2 else "News"}",Channel {i:02d}\nhttp://c/{i}'
        for i in range(5)
    )
    playlist_id = _import_content(client, content)["playlist"]["id"]

    first_page = client.get(
        f"/playlists/{playlist_id}/channels", params={"page": 0, "size": 2}, headers=OWNER
    ).json()
    assert first_page["total_items"] == 5
    assert first_page["total_pages"] == 3
    assert len(first_page["items"]) == 2

    sports = client.get(
        f"/playlists/{playlist_id}/channels", params={"group": "Sports"}, headers=OWNER
    ).json()
    assert [c["name"] for c in sports["items"]] == ["Channel 01", "Channel 03"]

    search = client.get(
        f"/playlists/{playlist_id}/channels", params={"search": "channel 04"}, headers=OWNER
    ).json()
    assert [c["name"] for c in search["items"]] == ["Channel 04"]


def test_other_owner_cannot_read_playlist(client: TestClient, sample_playlist: str) -> None:
    playlist_id = _import_content(client, sample_playlist)["playlist"]["id"]

    assert client.get(f"/playlists/{playlist_id}", headers=OTHER_OWNER).status_code == 404
    assert client.get(f"/playlists/{playlist_id}/channels", headers=OTHER_OWNER).status_code == 404
    assert client.get("/playlists", headers=OTHER_OWNER).json() == []
    assert len(client.get("/playlists", headers=OWNER).json()) == 1


def test_owner_header_is_required(client: TestClient) -> None:
    assert client.get("/playlists").status_code == 422


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"url": "http://example.com/list.m3u", "content": "#EXTM3U"},
        {"url": "ftp://example.com/list.m3u"},
    ],
)
def test_import_request_validation(client: TestClient, body: dict) -> None:
    response = client.post("/playlists", json=body, headers=OWNER)

    assert response.status_code == 422


def test_empty_content_imports_empty_playlist(client: TestClient) -> None:
    payload = _import_content(client, "")

    assert payload["counts"] == {"channels": 0, "movies": 0, "series": 0, "episodes": 0}


def test_import_from_url_and_refresh(
    client: TestClient, fake_download: dict[str, str], sample_playlist: str
) -> None:
    url = "http://lists.example/playlist.m3u"
    fake_download[url] = sample_playlist

    response = client.post("/playlists", json={"url": url}, headers=OWNER)
    assert response.status_code == 201, response.text
    playlist = response.json()["playlist"]
    assert playlist["url"] == url
    assert playlist["name"] == f"Playlist from {url}"

    fake_download[url] = "#EXTINF:-1 group-title=\"News\",BBC News\nhttp://example.com/bbc.m3u8\n"
    refreshed = client.post(f"/playlists/{playlist['id']}/refresh", headers=OWNER)

    assert refreshed.status_code == 200, refreshed.text
    body = refreshed.json()
    assert body["playlist"]["id"] == playlist["id"]
    assert body["playlist"]["name"] == playlist["name"]
    assert body["counts"] == {"channels": 1, "movies": 0, "series": 0, "episodes": 0}
    channels = client.get(f"/playlists/{playlist['id']}/channels", headers=OWNER).json()
    assert [c["name"] for c in channels["items"]] == ["BBC News"]


def test_failed_refresh_keeps_existing_content(
    client: TestClient, fake_download: dict[str, str], sample_playlist: str
) -> None:
    url = "http://lists.example/flaky.m3u"
    fake_download[url] = sample_playlist
    playlist_id = client.post("/playlists", json={"url": url}, headers=OWNER).json()["playlist"]["id"]

    del fake_download[url]
    response = client.post(f"/playlists/{playlist_id}/refresh", headers=OWNER)

    assert response.status_code == 502
    counts = client.get(f"/playlists/{playlist_id}", headers=OWNER).json()["counts"]
    assert counts == {"channels": 1, "movies": 1, "series": 1, "episodes": 2}


def test_download_failure_on_import_is_bad_gateway(
    client: TestClient, fake_download: dict[str, str]
) -> None:
    response = client.post("/playlists", json={"url": "http://unreachable.example/x.m3u"}, headers=OWNER)

    assert response.status_code == 502


def test_refresh_without_url_is_rejected(client: TestClient, sample_playlist: str) -> None:
    playlist_id = _import_content(client, sample_playlist)["playlist"]["id"]

    response = client.post(f"/playlists/{playlist_id}/refresh", headers=OWNER)

    assert response.status_code == 400


def test_refresh_all_reports_each_playlist(
    client: TestClient, fake_download: dict[str, str], sample_playlist: str
) -> None:
    good_url = "http://lists.example/good.m3u"
    gone_url = "http://lists.example/gone.m3u"
    fake_download[good_url] = sample_playlist
    fake_download[gone_url] = sample_playlist
    client.post("/playlists", json={"url": good_url}, headers=OWNER)
    client.post("/playlists", json={"url": gone_url}, headers=OTHER_OWNER)
    _import_content(client, sample_playlist)
    del fake_download[gone_url]

    result = client.post("/refresh").json()

    assert result["playlists_processed"] == 2
    assert result["playlists_succeeded"] == 1
    assert result["playlists_failed"] == 1
    failed = [detail for detail in result["playlist_details"] if detail["status"] == "failed"]
    assert failed[0]["source_url"] == gone_url


def test_favorite_toggle(client: TestClient, sample_playlist: str) -> None:
    playlist_id = _import_content(client, sample_playlist)["playlist"]["id"]
    channel = client.get(f"/playlists/{playlist_id}/channels", headers=OWNER).json()["items"][0]
    assert channel["favorite"] is False

    response = client.put(f"/channels/{channel['id']}/favorite", json={"favorite": True}, headers=OWNER)
    assert response.status_code == 200
    assert response.json()["favorite"] is True

    series = client.get(f"/playlists/{playlist_id}/series", headers=OWNER).json()["items"][0]
    response = client.put(f"/series/{series['id']}/favorite", json={"favorite": True}, headers=OWNER)
    assert response.json()["favorite"] is True

    forbidden = client.put(f"/channels/{channel['id']}/favorite", json={"favorite": False}, headers=OTHER_OWNER)
    assert forbidden.status_code == 404
    assert client.put("/movies/missing/favorite", json={"favorite": True}, headers=OWNER).status_code == 404


def test_delete_playlist(client: TestClient, sample_playlist: str) -> None:
    playlist_id = _import_content(client, sample_playlist)["playlist"]["id"]
    series_id = client.get(f"/playlists/{playlist_id}/series", headers=OWNER).json()["items"][0]["id"]

    assert client.delete(f"/playlists/{playlist_id}", headers=OTHER_OWNER).status_code == 404
    assert client.delete(f"/playlists/{playlist_id}", headers=OWNER).status_code == 204

    assert client.get(f"/playlists/{playlist_id}", headers=OWNER).status_code == 404
    assert client.get(f"/series/{series_id}", headers=OWNER).status_code == 404


def test_refresh_does_not_recreate_playlist_deleted_during_download(
    client: TestClient, fake_download: dict[str, str], sample_playlist: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    url = "http://lists.example/vanishing.m3u"
    fake_download[url] = sample_playlist
    playlist_id = client.post("/playlists", json={"url": url}, headers=OWNER).json()["playlist"]["id"]

    async def _fetch_after_delete(source_url: str) -> str:
        await remove_playlist(playlist_id, "owner-1")
        return sample_playlist

    monkeypatch.setattr(
        "app.services.playlist_downloader_service.fetch_playlist_text", _fetch_after_delete
    )

    response = client.post(f"/playlists/{playlist_id}/refresh", headers=OWNER)

    assert response.status_code == 404
    assert client.get(f"/playlists/{playlist_id}", headers=OWNER).status_code == 404
    assert client.get("/playlists", headers=OWNER).json() == []
