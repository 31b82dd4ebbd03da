#!/usr/bin/env python3
"""
Standalone catalog sync runner (no HTTP server).

Publishes the catalogs as static JSON files, either once or on a timer,
so any static web server can serve them.

Usage:
    python run_scheduler.py                      # Sync now, then every 6 minutes
    python run_scheduler.py --once               # One-shot sync, then exit
    python run_scheduler.py --interval 10        # Custom period in minutes
    python run_scheduler.py --publish-dir ./www  # Output directory
"""
import asyncio
import argparse
import signal
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from app.core.config import settings
from app.core.logging import configure_logging, get_logger
from app.core.scheduler import CatalogScheduler
from app.services.sync.orchestrator import CatalogSyncOrchestrator
from app.services.sync.publisher import FilePublisher
from app.services.upstream.ppv_client import PPVClient

configure_logging(level=settings.LOG_LEVEL, json_output=settings.LOG_JSON)
logger = get_logger(__name__)


def build_orchestrator(publish_dir: str) -> CatalogSyncOrchestrator:
    client = PPVClient(
        base_url=settings.UPSTREAM_BASE_URL,
        timeout=settings.UPSTREAM_TIMEOUT,
        user_agent=settings.USER_AGENT,
    )
    return CatalogSyncOrchestrator(
        client=client,
        publisher=FilePublisher(publish_dir),
        sports=settings.SPORTS,
        id_prefix=settings.ID_PREFIX,
        stream_title=settings.STREAM_TITLE,
    )


async def run_once(publish_dir: str) -> bool:
    """Run a single cycle. True if every sport synced."""
    orchestrator = build_orchestrator(publish_dir)
    try:
        cycle = await orchestrator.run_cycle()
    finally:
        await orchestrator.client.close()

    for sport, result in cycle['sports'].items():
        if result['success']:
            logger.info(f"{sport}: {result['published']} published, {result['failed']} failed")
        else:
            logger.error(f"{sport}: {result['error']}")
    return cycle['status'] == 'success'


class SchedulerRunner:
    """Runner for the periodic sync scheduler."""

    def __init__(self, publish_dir: str, interval_minutes: int):
        self.publish_dir = publish_dir
        self.interval_minutes = interval_minutes
        self.shutdown = asyncio.Event()

    async def start(self):
        """Start the scheduler and run until SIGINT/SIGTERM."""
        orchestrator = build_orchestrator(self.publish_dir)
        scheduler = CatalogScheduler(orchestrator, interval_minutes=self.interval_minutes)
        await scheduler.start()

        logger.info(f"Publishing to {self.publish_dir}; press Ctrl+C to stop")

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._set_shutdown)

        await self.shutdown.wait()

        await scheduler.stop()
        await orchestrator.client.close()
        logger.info("Scheduler runner stopped")

    def _set_shutdown(self):
        logger.info("Shutdown signal received")
        self.shutdown.set()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Sync PPV sports catalogs to static JSON files'
    )

    parser.add_argument(
        '--once',
        action='store_true',
        help='Run a single sync cycle and exit (exit code 1 if any sport failed)'
    )

    parser.add_argument(
        '--interval',
        type=int,
        default=settings.SYNC_INTERVAL_MINUTES,
        metavar='MINUTES',
        help='Minutes between sync cycles (default: %(default)s)'
    )

    parser.add_argument(
        '--publish-dir',
        default=settings.PUBLISH_DIR,
        help='Directory receiving catalog/, meta/ and stream/ (default: %(default)s)'
    )

    args = parser.parse_args()

    if args.interval < 1:
        parser.error('--interval must be at least 1 minute')

    if args.once:
        return 0 if asyncio.run(run_once(args.publish_dir)) else 1

    runner = SchedulerRunner(args.publish_dir, args.interval)
    try:
        asyncio.run(runner.start())
    except KeyboardInterrupt:
        logger.info("Received interrupt, shutting down...")
    return 0


if __name__ == '__main__':
    sys.exit(main())
