"""Sync API routes for catalog synchronization health and control.

Provides endpoints for:
- Sync status (last cycle, per-sport results, scheduler jobs)
- Manual cycle trigger
"""
import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException

from app.core.dependencies import get_orchestrator, get_publisher
from app.core.scheduler import get_scheduler
from app.services.sync.orchestrator import CatalogSyncOrchestrator
from app.services.sync.publisher import CatalogPublisher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


@router.get("/status")
async def get_sync_status(
    orchestrator: CatalogSyncOrchestrator = Depends(get_orchestrator),
    publisher: CatalogPublisher = Depends(get_publisher),
) -> Dict:
    """
    Get catalog sync status.

    Returns:
        Orchestrator status, published item counts per sport and the
        scheduler's jobs (empty when the scheduler is disabled)
    """
    status = orchestrator.get_status()
    status['published'] = {
        sport: len(publisher.get_catalog(sport))
        for sport in orchestrator.sports
    }

    scheduler = get_scheduler()
    status['scheduler'] = {
        'running': bool(scheduler and scheduler.running),
        'jobs': scheduler.get_jobs() if scheduler else [],
    }
    return status


@router.post("/run")
async def trigger_sync(
    orchestrator: CatalogSyncOrchestrator = Depends(get_orchestrator),
) -> Dict:
    """
    Run a sync cycle now and wait for it to finish.

    Returns 409 if a cycle (scheduled or manual) is already running.
    """
    if orchestrator.running:
        raise HTTPException(status_code=409, detail="A sync cycle is already running")

    cycle = await orchestrator.run_cycle()
    if cycle.get('skipped'):
        raise HTTPException(status_code=409, detail="A sync cycle is already running")

    return {
        'message': 'Sync cycle completed',
        'results': cycle
    }
