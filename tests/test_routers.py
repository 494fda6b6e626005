"""
Tests for the HTTP surface
"""
import pytest
from fastapi.testclient import TestClient

from tests.fakes import FakePipeline
from xmltv_bridge.config import settings
from xmltv_bridge.dependencies import get_guide_service, get_warm_scheduler
from xmltv_bridge.main import app
from xmltv_bridge.services.guide_cache import TTLCache
from xmltv_bridge.services.guide_service import GuideService
from xmltv_bridge.services.scheduler_service import GuideWarmScheduler
from xmltv_bridge.services.xmltv_builder import EMPTY_DOCUMENT


OVERRIDE_URL = "https://lists.example/override.m3u"


@pytest.fixture
def pipeline():
    return FakePipeline()


@pytest.fixture
def guide_service(pipeline):
    return GuideService(
        pipeline,
        TTLCache(),
        default_playlist_url=settings.default_playlist_url,
        ttl_seconds=settings.guide_cache_ttl_sec,
    )


@pytest.fixture
def client(guide_service):
    # Lifespan is not entered, so no network-bound services are built
    app.dependency_overrides[get_guide_service] = lambda: guide_service
    app.dependency_overrides[get_warm_scheduler] = lambda: GuideWarmScheduler(guide_service, None)
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestGuideEndpoint:
    """Tests for GET /xmltv and /epg.xml"""

    def test_serves_guide_with_public_caching(self, client, pipeline):
        response = client.get("/xmltv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert response.headers["cache-control"] == f"public, max-age={settings.guide_cache_max_age_sec}"
        assert response.text.startswith("<tv build=\"1\"")
        assert pipeline.runs == [settings.default_playlist_url]

    def test_epg_alias_shares_cached_document(self, client, pipeline):
        first = client.get("/xmltv")
        second = client.get("/epg.xml")

        assert second.status_code == 200
        assert second.text == first.text
        assert len(pipeline.runs) == 1

    def test_build_failure_serves_empty_guide_without_caching(self, client, pipeline):
        pipeline.failing.add(settings.default_playlist_url)

        response = client.get("/xmltv")

        assert response.status_code == 200
        assert response.text == EMPTY_DOCUMENT
        assert "cache-control" not in response.headers

    def test_playlist_override(self, client, pipeline):
        response = client.get("/xmltv", params={"m3u": OVERRIDE_URL})

        assert response.status_code == 200
        assert pipeline.runs == [OVERRIDE_URL]

    def test_blank_override_uses_default(self, client, pipeline):
        client.get("/xmltv", params={"m3u": "  "})
        assert pipeline.runs == [settings.default_playlist_url]

    def test_non_http_override_serves_empty_guide(self, client, pipeline):
        response = client.get("/epg.xml", params={"m3u": "ftp://lists.example/tv.m3u"})

        assert response.status_code == 200
        assert response.text == EMPTY_DOCUMENT
        assert "cache-control" not in response.headers
        assert pipeline.runs == []


class TestInfoEndpoints:

    def test_health_reports_cache_state(self, client):
        before = client.get("/health").json()
        client.get("/xmltv")
        after = client.get("/health").json()

        assert before["status"] == "ok"
        assert before["guide_cached"] is False
        assert after["guide_cached"] is True
        assert after["guide_rebuilding"] is False
        assert after["warm_scheduler_running"] is False
        assert after["next_warm_up"] is None

    def test_root(self, client):
        body = client.get("/").json()

        assert body["service"] == "XMLTV Bridge"
        assert body["default_playlist"] == settings.default_playlist_url
        assert set(body["endpoints"]) == {"xmltv", "epg.xml", "health"}
