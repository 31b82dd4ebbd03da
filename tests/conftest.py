"""Shared pytest fixtures for ppv-catalog tests."""
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, Optional
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from app.core.exceptions import UpstreamError
from app.models.catalog import RawStreamDetail, RawStreamRef, SportListing
from app.services.sync.publisher import FilePublisher, MemoryPublisher

NBA_ID = 37


# =============================================================================
# UPSTREAM PAYLOADS
# =============================================================================

def listing_body(*categories: Dict[str, Any]) -> Dict[str, Any]:
    """Body of GET /api/streams with the given categories."""
    return {"success": True, "streams": list(categories)}


def category(category_id, stream_ids: Iterable, name: str = "Basketball") -> Dict[str, Any]:
    return {
        "id": category_id,
        "category": name,
        "streams": [{"id": stream_id, "name": f"stream {stream_id}"} for stream_id in stream_ids],
    }


def detail_data(stream_id, name: str = "", poster: str = "", m3u8: str = "", tag: Optional[str] = None) -> Dict[str, Any]:
    data = {
        "id": stream_id,
        "name": name or f"Game {stream_id}",
        "poster": poster or f"https://img.example/{stream_id}.png",
        "m3u8": m3u8 or f"https://cdn.example/{stream_id}/index.m3u8",
    }
    if tag is not None:
        data["tag"] = tag
    return data


@pytest.fixture
def sample_details() -> Dict[int, Dict[str, Any]]:
    """Upstream detail records keyed by stream id."""
    return {
        101: detail_data(101, name="Lakers vs Celtics", poster="p1", m3u8="u1"),
        102: detail_data(102, name="Bulls vs Knicks", poster="p2", m3u8="u2", tag="NBA League Pass"),
        103: detail_data(103, name="Heat vs Suns", poster="p3", m3u8="u3"),
    }


# =============================================================================
# FAKE UPSTREAM CLIENT
# =============================================================================

def make_upstream(
    listings: Dict[Any, Iterable],
    details: Dict[Any, Dict[str, Any]],
    failing: Iterable = (),
) -> Mock:
    """
    Mock PPVClient with AsyncMock fetch methods.

    Args:
        listings: sport id -> stream ids; unknown sport ids give empty listings
        details: stream id -> detail data
        failing: stream ids whose detail fetch raises UpstreamError
    """
    failing = set(failing)

    async def fetch_listing(sport_id):
        if sport_id not in listings:
            return SportListing.empty(sport_id)
        return SportListing(
            id=sport_id,
            streams=[RawStreamRef(id=stream_id) for stream_id in listings[sport_id]],
        )

    async def fetch_detail(stream_id):
        if stream_id in failing or stream_id not in details:
            raise UpstreamError(f"HTTP 500 for stream {stream_id}", status_code=500)
        return RawStreamDetail.model_validate(details[stream_id])

    client = Mock()
    client.fetch_listing = AsyncMock(side_effect=fetch_listing)
    client.fetch_detail = AsyncMock(side_effect=fetch_detail)
    client.close = AsyncMock()
    return client


@pytest.fixture
def upstream(sample_details) -> Mock:
    """Upstream with NBA listing [101, 102, 103], all details healthy."""
    return make_upstream({NBA_ID: [101, 102, 103]}, sample_details)


def mock_transport_client(handler) -> httpx.AsyncClient:
    """httpx client whose requests are answered by `handler(request)`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# =============================================================================
# PUBLISHERS
# =============================================================================

@pytest.fixture
def memory_publisher() -> MemoryPublisher:
    return MemoryPublisher()


@pytest.fixture
def file_publisher(tmp_path) -> FilePublisher:
    return FilePublisher(str(tmp_path / "published"))


@pytest.fixture(params=["memory", "file"])
def any_publisher(request, tmp_path):
    """Each publisher strategy in turn."""
    if request.param == "memory":
        return MemoryPublisher()
    return FilePublisher(str(tmp_path / "published"))


# =============================================================================
# FASTAPI TEST CLIENT FIXTURE
# =============================================================================

@pytest.fixture
def test_settings():
    from app.core.config import Settings

    return Settings(
        ENVIRONMENT="test",
        SPORTS={"NBA": NBA_ID},
        SCHEDULER_ENABLED=False,
        PUBLISH_MODE="memory",
    )


@pytest.fixture
def orchestrator(upstream, memory_publisher):
    from app.services.sync.orchestrator import CatalogSyncOrchestrator

    return CatalogSyncOrchestrator(
        client=upstream,
        publisher=memory_publisher,
        sports={"NBA": NBA_ID},
    )


@pytest.fixture
def test_client(memory_publisher, orchestrator, test_settings):
    """
    FastAPI TestClient backed by an in-memory publisher and a mocked upstream.

    The client is not used as a context manager, so the lifespan (and with
    it the scheduler and the real upstream client) never starts.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/manifest.json")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from app.main import app
    from app.core.dependencies import get_orchestrator, get_publisher, get_settings

    app.dependency_overrides[get_publisher] = lambda: memory_publisher
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_settings] = lambda: test_settings

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()
