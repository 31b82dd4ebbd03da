"""
HTTP endpoint integration tests for the PPV sports catalog.

These tests verify that FastAPI endpoints:
- Serve the addon manifest, catalog, meta and stream resources
- Answer empty catalogs before the first sync and 404s for unknown resources
- Expose the sync status and manual trigger
- Echo correlation ids

Uses FastAPI TestClient for in-memory HTTP testing, with a mocked
upstream and an in-memory publisher (see tests/conftest.py).
"""
import pytest
from fastapi.testclient import TestClient

# Add project root to path
import sys
from pathlib import Path
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from app.services.sync.transformer import transform
from app.models.catalog import RawStreamDetail


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def published(memory_publisher, sample_details):
    """Publish the sample NBA details directly, without a sync cycle."""
    items = [
        transform("NBA", RawStreamDetail.model_validate(data))
        for data in sample_details.values()
    ]
    memory_publisher.publish("NBA", items)
    return memory_publisher


# =============================================================================
# ROOT AND HEALTH
# =============================================================================

class TestRootAndHealthEndpoints:
    """Test root and health check endpoints."""

    def test_root_endpoint(self, test_client: TestClient):
        """Test root endpoint returns service information."""
        response = test_client.get("/")

        assert response.status_code == 200
        data = response.json()

        assert "name" in data
        assert "version" in data
        assert data["manifest"] == "/manifest.json"

    def test_health_with_scheduler_disabled(self, test_client: TestClient, published):
        """Test health is 200 when the scheduler is disabled by configuration."""
        response = test_client.get("/health")

        assert response.status_code == 200
        data = response.json()

        assert data["status"] == "healthy"
        assert data["components"]["scheduler"]["enabled"] is False
        assert data["components"]["publisher"]["published"] == {"NBA": 3}


# =============================================================================
# ADDON RESOURCES
# =============================================================================

class TestManifestEndpoint:
    """Test /manifest.json."""

    def test_manifest_lists_sport_catalogs(self, test_client: TestClient):
        """Test the manifest declares one type and catalog per sport."""
        response = test_client.get("/manifest.json")

        assert response.status_code == 200
        data = response.json()

        assert data["resources"] == ["catalog", "meta", "stream"]
        assert data["types"] == ["NBA"]
        assert data["idPrefixes"] == ["vgstream_"]
        assert data["catalogs"] == [{"type": "NBA", "id": "nbaStreams", "name": "NBA Streams"}]


class TestCatalogEndpoint:
    """Test /catalog/<sport>/<sport>Streams.json."""

    def test_empty_before_first_sync(self, test_client: TestClient):
        """Test an empty catalog (not an error) before anything is published."""
        response = test_client.get("/catalog/NBA/nbaStreams.json")

        assert response.status_code == 200
        assert response.json() == {"metas": []}

    def test_lists_published_entries(self, test_client: TestClient, published):
        """Test the catalog lists published entries in listing order."""
        response = test_client.get("/catalog/NBA/nbaStreams.json")

        assert response.status_code == 200
        metas = response.json()["metas"]

        assert [meta["id"] for meta in metas] == ["vgstream_101", "vgstream_102", "vgstream_103"]
        assert metas[0] == {
            "id": "vgstream_101",
            "type": "NBA",
            "name": "Lakers vs Celtics",
            "poster": "p1",
            "genres": ["Sports"],
        }

    def test_sport_is_case_insensitive(self, test_client: TestClient, published):
        """Test the sport segment matches regardless of case."""
        response = test_client.get("/catalog/nba/nbaStreams.json")

        assert response.status_code == 200
        assert len(response.json()["metas"]) == 3

    def test_unknown_sport(self, test_client: TestClient):
        """Test 404 for a sport that is not configured."""
        response = test_client.get("/catalog/NFL/nflStreams.json")
        assert response.status_code == 404

    def test_unknown_catalog_name(self, test_client: TestClient):
        """Test 404 for a catalog id that does not belong to the sport."""
        response = test_client.get("/catalog/NBA/other.json")
        assert response.status_code == 404


class TestMetaEndpoint:
    """Test /meta/<sport>/<id>.json."""

    def test_published_meta(self, test_client: TestClient, published):
        """Test the meta document of a published item."""
        response = test_client.get("/meta/NBA/vgstream_102.json")

        assert response.status_code == 200
        meta = response.json()["meta"]

        assert meta["id"] == "vgstream_102"
        assert meta["description"] == "NBA Game: Bulls vs Knicks (NBA League Pass)"
        assert meta["logo"] == "p2"
        assert meta["background"] == "p2"
        assert meta["runtime"] == ""

    def test_unknown_item(self, test_client: TestClient, published):
        """Test 404 for an item that is not published."""
        response = test_client.get("/meta/NBA/vgstream_999.json")
        assert response.status_code == 404

    def test_foreign_prefix(self, test_client: TestClient, published):
        """Test 404 for ids that do not carry this addon's prefix."""
        response = test_client.get("/meta/NBA/tt0111161.json")
        assert response.status_code == 404

    def test_custom_prefix(self, test_client: TestClient, memory_publisher, test_settings):
        """Test meta lookup with a configured prefix other than the default."""
        from app.main import app
        from app.core.dependencies import get_settings

        ppv_settings = test_settings.model_copy(update={"ID_PREFIX": "ppv"})
        app.dependency_overrides[get_settings] = lambda: ppv_settings
        memory_publisher.publish("NBA", [
            transform("NBA", RawStreamDetail(id=101, name="Game", poster="p", m3u8="u"), id_prefix="ppv"),
        ])

        assert test_client.get("/meta/NBA/ppv_101.json").status_code == 200
        assert test_client.get("/meta/NBA/vgstream_101.json").status_code == 404


class TestStreamEndpoint:
    """Test /stream/<sport>/<id>.json."""

    def test_published_stream(self, test_client: TestClient, published):
        """Test the stream document of a published item."""
        response = test_client.get("/stream/NBA/vgstream_102.json")

        assert response.status_code == 200
        assert response.json() == {
            "streams": [{
                "title": "NBA League Pass",
                "url": "u2",
                "type": "tv",
                "behaviorHints": {"notWebReady": False},
                "id": 102,
            }]
        }

    def test_unpublished_item_has_no_streams(self, test_client: TestClient):
        """Test an empty stream list (not an error) for unknown items."""
        response = test_client.get("/stream/NBA/vgstream_999.json")

        assert response.status_code == 200
        assert response.json() == {"streams": []}


# =============================================================================
# SERVICE API
# =============================================================================

class TestStreamLinksEndpoint:
    """Test /api/v1/streams/<sport>."""

    def test_lists_links(self, test_client: TestClient, published):
        """Test one link per published item."""
        response = test_client.get("/api/v1/streams/NBA")

        assert response.status_code == 200
        links = response.json()

        assert links[0] == {
            "name": "Lakers vs Celtics",
            "link": "u1",
            "id": "101",
            "thumbnail": "p1",
        }
        assert [link["id"] for link in links] == ["101", "102", "103"]

    def test_unknown_sport(self, test_client: TestClient):
        """Test 404 for a sport that is not configured."""
        response = test_client.get("/api/v1/streams/Curling")
        assert response.status_code == 404


class TestSyncEndpoints:
    """Test /api/v1/sync/*."""

    def test_manual_sync_publishes_catalog(self, test_client: TestClient, upstream):
        """Test a manual cycle fills the catalog served by the addon routes."""
        assert test_client.get("/catalog/NBA/nbaStreams.json").json() == {"metas": []}

        response = test_client.post("/api/v1/sync/run")

        assert response.status_code == 200
        results = response.json()["results"]
        assert results["status"] == "success"
        assert results["sports"]["NBA"]["published"] == 3

        metas = test_client.get("/catalog/NBA/nbaStreams.json").json()["metas"]
        assert [meta["id"] for meta in metas] == ["vgstream_101", "vgstream_102", "vgstream_103"]
        upstream.fetch_listing.assert_awaited_once_with(37)

    def test_status_after_sync(self, test_client: TestClient):
        """Test the status reports the last cycle and published counts."""
        test_client.post("/api/v1/sync/run")

        response = test_client.get("/api/v1/sync/status")

        assert response.status_code == 200
        data = response.json()

        assert data["cycles_completed"] == 1
        assert data["last_cycle"]["status"] == "success"
        assert data["published"] == {"NBA": 3}
        assert data["scheduler"] == {"running": False, "jobs": []}

    def test_status_without_orchestrator(self, test_client: TestClient):
        """Test 503 when the orchestrator has not been initialized."""
        from app.main import app
        from app.core.dependencies import get_orchestrator

        del app.dependency_overrides[get_orchestrator]

        response = test_client.get("/api/v1/sync/status")

        # The lifespan never ran, so app.state has no orchestrator
        assert response.status_code == 503


# =============================================================================
# MIDDLEWARE
# =============================================================================

class TestCorrelationId:
    """Test correlation id propagation."""

    def test_echoes_request_header(self, test_client: TestClient):
        """Test a supplied X-Correlation-ID is echoed back."""
        response = test_client.get("/manifest.json", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_generates_header(self, test_client: TestClient):
        """Test a correlation id is generated when none is supplied."""
        response = test_client.get("/manifest.json")

        assert response.headers.get("X-Correlation-ID")


class TestCORSHeaders:
    """Test CORS headers are properly set."""

    def test_cors_headers_on_get(self, test_client: TestClient):
        """Test CORS headers are present on GET request."""
        response = test_client.get(
            "/manifest.json",
            headers={"Origin": "http://localhost:3000"}
        )

        assert response.status_code == 200
        assert response.headers.get("access-control-allow-origin") == "*"
