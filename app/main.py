"""
Main FastAPI application for the PPV sports catalog addon.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from app.core.config import Settings, settings
from app.core.dependencies import get_publisher, get_settings
from app.core.exceptions import NotFoundError
from app.core.logging import configure_logging, get_logger
from app.core.middleware import CorrelationIdMiddleware
from app.core import metrics
from app.api.routes import addon, streams, sync
from app.services.sync.orchestrator import CatalogSyncOrchestrator
from app.services.sync.publisher import CatalogPublisher, build_publisher
from app.services.upstream.ppv_client import PPVClient

# Load environment variables from .env file
from dotenv import load_dotenv
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

configure_logging(
    level=settings.LOG_LEVEL,
    json_output=settings.LOG_JSON
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan events."""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    client = PPVClient(
        base_url=settings.UPSTREAM_BASE_URL,
        timeout=settings.UPSTREAM_TIMEOUT,
        user_agent=settings.USER_AGENT,
    )
    orchestrator = CatalogSyncOrchestrator(
        client=client,
        publisher=app.state.publisher,
        sports=settings.SPORTS,
        id_prefix=settings.ID_PREFIX,
        stream_title=settings.STREAM_TITLE,
    )
    app.state.orchestrator = orchestrator

    from app.core.scheduler import start_scheduler, stop_scheduler
    if settings.SCHEDULER_ENABLED:
        await start_scheduler(orchestrator, interval_minutes=settings.SYNC_INTERVAL_MINUTES)
        logger.info("Catalog sync scheduler started")
    else:
        logger.info("Scheduler disabled; catalogs refresh only via POST /api/v1/sync/run")

    metrics.update_scheduler_metrics()
    logger.info(f"Serving sports: {', '.join(settings.SPORTS)} ({settings.PUBLISH_MODE} publisher)")

    yield

    # Shutdown
    await stop_scheduler()
    metrics.update_scheduler_metrics()
    await client.close()
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Media-addon catalog of live sports streams synchronized from the PPV API",
    lifespan=lifespan
)

# The publisher exists before startup so the read path always answers,
# with empty catalogs until the first sync completes
app.state.publisher = build_publisher(settings)

app.add_middleware(CorrelationIdMiddleware)

instrumentator = Instrumentator()
instrumentator.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Addon resources keep the original unversioned paths (/manifest.json, /catalog/...)
app.include_router(addon.router)
# Service API
app.include_router(streams.router, prefix="/api/v1")
app.include_router(sync.router, prefix="/api/v1")


@app.get("/")
async def root():
    """Service information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "manifest": "/manifest.json",
        "sports": list(settings.SPORTS),
    }


@app.get("/health")
async def health_check(
    publisher: CatalogPublisher = Depends(get_publisher),
    app_settings: Settings = Depends(get_settings),
):
    """
    Health check.

    Reports scheduler state and published item counts. The service is
    degraded (503) when the scheduler should be running but is not.
    """
    from app.core.scheduler import get_scheduler

    scheduler = get_scheduler()
    scheduler_running = bool(scheduler and scheduler.running)
    metrics.update_scheduler_metrics()

    healthy = scheduler_running or not app_settings.SCHEDULER_ENABLED
    health_status = {
        "status": "healthy" if healthy else "degraded",
        "version": app_settings.APP_VERSION,
        "components": {
            "scheduler": {
                "status": "running" if scheduler_running else "stopped",
                "enabled": app_settings.SCHEDULER_ENABLED,
                "jobs": scheduler.get_jobs() if scheduler else [],
            },
            "publisher": {
                "mode": app_settings.PUBLISH_MODE,
                "published": {
                    sport: len(publisher.get_catalog(sport))
                    for sport in app_settings.SPORTS
                },
            },
        },
    }

    return JSONResponse(
        status_code=200 if healthy else 503,
        content=health_status
    )


# Exception handlers
@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)}
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
