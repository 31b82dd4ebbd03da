"""
FastAPI dependencies for the published catalog.

The publisher and orchestrator are created by app.main and stored on
app.state; handlers receive them through these dependencies so tests can
swap them with app.dependency_overrides.
"""
from fastapi import HTTPException, Request

from app.core.config import Settings, settings
from app.services.sync.orchestrator import CatalogSyncOrchestrator
from app.services.sync.publisher import CatalogPublisher


def get_settings() -> Settings:
    return settings


def get_publisher(request: Request) -> CatalogPublisher:
    """Publisher whose read path backs the catalog/meta/stream endpoints."""
    return request.app.state.publisher


def get_orchestrator(request: Request) -> CatalogSyncOrchestrator:
    """Sync orchestrator; only available once the app has started."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Sync orchestrator not initialized")
    return orchestrator
