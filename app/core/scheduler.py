"""
Periodic catalog sync scheduler.

Runs the full sync cycle once at startup and then every
SYNC_INTERVAL_MINUTES (6 by default). A tick that fires while the
previous cycle is still running is skipped, never queued.

Scheduler: APScheduler (lightweight, FastAPI-compatible)
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.services.sync.orchestrator import CatalogSyncOrchestrator

logger = logging.getLogger(__name__)

SYNC_JOB_ID = 'catalog_sync'


class CatalogScheduler:
    """Owns the APScheduler instance and the catalog sync job."""

    def __init__(self, orchestrator: CatalogSyncOrchestrator, interval_minutes: int = 6):
        self.orchestrator = orchestrator
        self.interval_minutes = interval_minutes
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.running = False

    async def start(self):
        """Start the scheduler; the first cycle runs immediately."""
        if self.running:
            logger.warning("Scheduler already running")
            return

        logger.info("Starting catalog sync scheduler...")

        self.scheduler = AsyncIOScheduler(
            timezone=timezone.utc,
            job_defaults={
                'coalesce': True,  # Combine missed runs into one
                'max_instances': 1,  # Skip ticks while a cycle is running
                'misfire_grace_time': 60
            }
        )

        self.scheduler.add_job(
            self._sync_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=SYNC_JOB_ID,
            name='Sync PPV catalogs',
            next_run_time=datetime.now(timezone.utc),
        )

        self.scheduler.start()
        self.running = True

        logger.info(f"Scheduled: catalog sync every {self.interval_minutes} minutes")

    async def stop(self):
        """Stop the scheduler."""
        if not self.running:
            return

        logger.info("Stopping scheduler...")
        self.scheduler.shutdown(wait=False)
        self.running = False
        logger.info("Scheduler stopped")

    async def _sync_job(self):
        try:
            cycle = await self.orchestrator.run_cycle()
            if not cycle.get('skipped'):
                logger.info(f"Catalog sync finished: {cycle['status']} ({cycle['duration_ms']}ms)")
        except Exception as e:
            logger.error(f"Catalog sync failed: {e}", exc_info=True)

    def get_jobs(self) -> list[dict]:
        """Scheduled jobs with their next run time."""
        if not self.scheduler:
            return []
        return [
            {
                'id': job.id,
                'name': job.name,
                'next_run_time': job.next_run_time.isoformat() if job.next_run_time else None,
            }
            for job in self.scheduler.get_jobs()
        ]


# Global scheduler instance
_scheduler: Optional[CatalogScheduler] = None


async def start_scheduler(orchestrator: CatalogSyncOrchestrator, interval_minutes: int = 6) -> CatalogScheduler:
    """Start the global scheduler."""
    global _scheduler
    if _scheduler is None:
        _scheduler = CatalogScheduler(orchestrator, interval_minutes=interval_minutes)
        await _scheduler.start()
    return _scheduler


async def stop_scheduler():
    """Stop the global scheduler."""
    global _scheduler
    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None


def get_scheduler() -> Optional[CatalogScheduler]:
    """Get the global scheduler instance."""
    return _scheduler
