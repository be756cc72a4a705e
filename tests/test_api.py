"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from streamarr.api.app import create_app
from streamarr.config import Config

CANONICAL = "https://vpt.pixelsport.to:443/psportsgate/psportsgate100"
LEGACY = "https://vp.pixelsport.to:443/psportsgate/psportsgate100"


@pytest.fixture
def client(tmp_path, monkeypatch):
    for name in (
        "STREAM_URL_DOMAIN",
        "STREAM_URL_PORT",
        "STREAM_URL_PATH",
        "LEGACY_STREAM_DOMAINS",
    ):
        monkeypatch.delenv(name, raising=False)
    app = create_app(
        config=Config(),
        db_path=tmp_path / "api.db",
        cache_path=tmp_path / "api-cache.json",
        configure_logging=False,
    )
    with TestClient(app) as client:
        yield client


@pytest.fixture
def file_only_client(tmp_path):
    app = create_app(
        config=Config(),
        cache_path=tmp_path / "api-cache.json",
        use_database=False,
        configure_logging=False,
    )
    with TestClient(app) as client:
        yield client


# =============================================================================
# HEALTH
# =============================================================================


class TestHealth:
    def test_ready(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["mapping_version"] == 4
        assert body["overrides"]["db_loaded"] is True
        assert body["startup"]["override_source"] == "database"
        assert body["startup"]["error"] is None

    def test_file_only(self, file_only_client):
        body = file_only_client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["startup"]["override_source"] == "file"
        assert body["startup"]["error"] is None


# =============================================================================
# STREAM SOURCES
# =============================================================================


class TestStreamSources:
    """CRUD over the override store."""

    def test_list_covers_catalog(self, client):
        body = client.get("/api/v1/stream-sources").json()
        assert body["total"] == 184
        first = body["sources"][0]
        assert set(first) >= {"id", "displayName", "teamName", "leagueId", "url", "isActive"}

    def test_list_filtered_by_league(self, client):
        body = client.get("/api/v1/stream-sources", params={"league": "mlb"}).json()
        assert body["total"] == 30
        assert all(s["leagueId"] == "mlb" for s in body["sources"])

    def test_list_rejects_unknown_league(self, client):
        assert client.get("/api/v1/stream-sources", params={"league": "cricket"}).status_code == 422

    def test_latest_flags_stale_clients(self, client):
        body = client.get("/api/v1/stream-sources/latest", params={"v": 3}).json()
        assert body["mappingVersion"] == 4
        assert body["stale"] is True
        body = client.get("/api/v1/stream-sources/latest", params={"v": 4}).json()
        assert body["stale"] is False

    def test_get_one(self, client):
        body = client.get("/api/v1/stream-sources/210").json()
        assert body["teamName"] == "Boston Red Sox"
        assert body["url"] == f"{CANONICAL}/210.m3u8"
        assert body["isDefault"] is True

    def test_get_unknown(self, client):
        assert client.get("/api/v1/stream-sources/9999").status_code == 404

    def test_playback_urls(self, client):
        body = client.get("/api/v1/stream-sources/210/playback").json()
        assert body["streamId"] == 210
        assert body["url"] == f"{CANONICAL}/210.m3u8"
        assert body["alternateUrl"] == f"{LEGACY}/210.m3u8"

    def test_playback_inactive_or_unknown(self, client):
        client.patch("/api/v1/stream-sources/210", json={"isActive": False})
        assert client.get("/api/v1/stream-sources/210/playback").status_code == 404
        assert client.get("/api/v1/stream-sources/9999/playback").status_code == 404

    def test_create_then_conflict(self, client):
        payload = {"id": 500, "teamName": "Wrexham AFC", "url": "https://x.test/500.m3u8"}
        response = client.post("/api/v1/stream-sources", json=payload)
        assert response.status_code == 201
        assert response.json()["url"] == f"{CANONICAL}/500.m3u8"
        assert client.post("/api/v1/stream-sources", json=payload).status_code == 409

    def test_create_requires_url(self, client):
        response = client.post("/api/v1/stream-sources", json={"id": 500})
        assert response.status_code == 422

    def test_patch_preserves_other_fields(self, client):
        client.patch("/api/v1/stream-sources/210", json={"priority": 3})
        body = client.patch("/api/v1/stream-sources/210", json={"isActive": False}).json()
        assert body["priority"] == 3
        assert body["isActive"] is False
        assert body["teamName"] == "Boston Red Sox"
        assert body["isDefault"] is False

    def test_put_snake_case_accepted(self, client):
        body = client.put("/api/v1/stream-sources/201", json={"team_name": "O's"}).json()
        assert body["teamName"] == "O's"

    def test_invalid_update(self, client):
        response = client.patch("/api/v1/stream-sources/210", json={"url": "  "})
        assert response.status_code == 422

    def test_delete(self, client):
        client.patch("/api/v1/stream-sources/210", json={"priority": 3})
        assert client.delete("/api/v1/stream-sources/210").status_code == 204
        assert client.delete("/api/v1/stream-sources/210").status_code == 404
        assert client.get("/api/v1/stream-sources/210").json()["isDefault"] is True


# =============================================================================
# GAMES
# =============================================================================


class TestGameStreams:
    def test_resolves_both_sides(self, client):
        response = client.post(
            "/api/v1/games/streams",
            json={
                "league": "mlb",
                "homeTeam": {"name": "Boston Red Sox"},
                "awayTeam": {"name": "Baltimore Orioles"},
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["homeStreamUrl"] == f"{CANONICAL}/210.m3u8"
        assert body["awayStreamUrl"] == f"{CANONICAL}/201.m3u8"

    def test_title_only(self, client):
        body = client.post("/api/v1/games/streams", json={"name": "Lakers vs Celtics"}).json()
        assert body["awayStreamUrl"] == f"{CANONICAL}/91.m3u8"
        assert body["homeStreamUrl"] == f"{CANONICAL}/66.m3u8"
        assert body["home"]["stage"] == "nickname"

    def test_no_stream_available(self, client):
        response = client.post(
            "/api/v1/games/streams",
            json={"homeTeam": {"name": "Hogwarts"}, "awayTeam": {"name": "Durmstrang"}},
        )
        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "no_stream_available"
        assert body["homeStreamUrl"] is None
        assert body["awayStreamUrl"] is None


# =============================================================================
# MAPPING VERSIONS
# =============================================================================


class TestMappingVersions:
    def test_list(self, client):
        body = client.get("/api/v1/mapping-versions").json()
        assert [v["version"] for v in body["versions"]] == [1, 2, 3, 4]
        assert body["current"] == 4

    def test_record_and_reject(self, client):
        response = client.post("/api/v1/mapping-versions", json={"version": 5, "note": "NBA moved"})
        assert response.status_code == 201
        response = client.post("/api/v1/mapping-versions", json={"version": 5})
        assert response.status_code == 409

    def test_unavailable_without_database(self, file_only_client):
        assert file_only_client.get("/api/v1/mapping-versions").status_code == 503
        assert file_only_client.get("/api/v1/stream-sources/210").status_code == 200
