"""
Catalog sync orchestrator.

One cycle, for each configured sport:
1. Fetch the sport listing (sequential)
2. Fetch every stream detail concurrently and wait for all of them
3. Transform the successful details into catalog documents
4. Publish them, replacing the sport's previous generation

Failures are isolated at two levels: a failed detail is skipped and the
rest of the sport is still published; a failed sport is logged and the
remaining sports still run. Cycles never overlap.
"""
import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from app.core import metrics
from app.core.exceptions import UpstreamError
from app.core.logging import clear_correlation_id, get_logger, new_cycle_id, set_correlation_id
from app.models.catalog import CatalogItem, RawStreamDetail, SportListing, UpstreamId
from app.services.sync.publisher import CatalogPublisher, is_publishable
from app.services.sync.transformer import DEFAULT_ID_PREFIX, DEFAULT_STREAM_TITLE, transform
from app.services.upstream.ppv_client import PPVClient

logger = get_logger(__name__)


class CatalogSyncOrchestrator:
    """
    Coordinates fetch -> transform -> publish for all configured sports.

    Only the orchestrator writes to the publisher; run_cycle() is guarded
    so that a cycle requested while another is running is skipped.
    """

    def __init__(
        self,
        client: PPVClient,
        publisher: CatalogPublisher,
        sports: Mapping[str, UpstreamId],
        id_prefix: str = DEFAULT_ID_PREFIX,
        stream_title: str = DEFAULT_STREAM_TITLE,
    ):
        """
        Args:
            client: Upstream PPV client
            publisher: Publisher receiving each sport's generation
            sports: Sport name -> upstream category id
            id_prefix: Prefix of synthetic ids
            stream_title: Default stream title for details without a tag
        """
        self.client = client
        self.publisher = publisher
        self.sports = dict(sports)
        self.id_prefix = id_prefix
        self.stream_title = stream_title

        self._cycle_lock = asyncio.Lock()
        self.cycles_completed = 0
        self.last_cycle: Optional[Dict[str, Any]] = None
        self.last_results: Dict[str, Dict[str, Any]] = {}

    @property
    def running(self) -> bool:
        return self._cycle_lock.locked()

    async def _fetch_details(self, listing: SportListing) -> List[Any]:
        """Fetch all details concurrently; failures come back as exception objects."""
        return await asyncio.gather(
            *(self.client.fetch_detail(ref.id) for ref in listing.streams),
            return_exceptions=True,
        )

    async def sync_sport(self, sport_name: str, sport_id: UpstreamId) -> Dict[str, Any]:
        """
        Run fetch -> transform -> publish for one sport.

        A failed listing fetch raises UpstreamError and leaves the previous
        generation published. Failed details are skipped.

        Returns:
            Dict with sport, success, listed, published, failed, duration_ms
        """
        start = time.monotonic()

        listing = await self.client.fetch_listing(sport_id)
        results = await self._fetch_details(listing)

        items: List[CatalogItem] = []
        failed = 0
        for ref, outcome in zip(listing.streams, results):
            if isinstance(outcome, RawStreamDetail):
                item = transform(
                    sport_name,
                    outcome,
                    id_prefix=self.id_prefix,
                    stream_title=self.stream_title,
                )
                if is_publishable(item):
                    items.append(item)
                else:
                    failed += 1
            elif isinstance(outcome, Exception):
                failed += 1
                logger.warning(f"Skipping {sport_name} stream {ref.id}: {outcome}")
            else:
                # CancelledError and friends are not per-item failures
                raise outcome

        published = self.publisher.publish(sport_name, items)
        metrics.record_sport_sync(sport_name, published=published, failed=failed)

        result = {
            'sport': sport_name,
            'success': True,
            'listed': len(listing.streams),
            'published': published,
            'failed': failed,
            'duration_ms': int((time.monotonic() - start) * 1000),
        }
        logger.info(
            f"{sport_name}: published {published}/{len(listing.streams)} streams "
            f"({failed} failed, {result['duration_ms']}ms)"
        )
        return result

    async def run_cycle(self) -> Dict[str, Any]:
        """
        Sync every configured sport once.

        Returns:
            Cycle summary with per-sport results, or {'skipped': True} when
            another cycle is still running
        """
        if self._cycle_lock.locked():
            logger.warning("Sync cycle still running; skipping this one")
            metrics.record_cycle("skipped")
            return {'skipped': True}

        async with self._cycle_lock:
            cycle_id = new_cycle_id()
            token = set_correlation_id(cycle_id)
            started_at = datetime.now(timezone.utc)
            start = time.monotonic()
            try:
                sports: Dict[str, Dict[str, Any]] = {}
                for sport_name, sport_id in self.sports.items():
                    try:
                        sports[sport_name] = await self.sync_sport(sport_name, sport_id)
                    except UpstreamError as e:
                        logger.error(f"{sport_name}: upstream failure, keeping previous catalog: {e}")
                        sports[sport_name] = self._failure(sport_name, e)
                    except Exception as e:
                        logger.exception(f"{sport_name}: sync failed: {e}")
                        sports[sport_name] = self._failure(sport_name, e)

                succeeded = sum(1 for r in sports.values() if r['success'])
                if succeeded == len(sports):
                    status = 'success'
                elif succeeded:
                    status = 'partial'
                else:
                    status = 'failure'

                cycle = {
                    'cycle_id': cycle_id,
                    'status': status,
                    'started_at': started_at.isoformat(),
                    'duration_ms': int((time.monotonic() - start) * 1000),
                    'sports': sports,
                }
                self.last_cycle = cycle
                self.last_results.update(sports)
                self.cycles_completed += 1
                metrics.record_cycle(status)

                logger.info(f"Sync cycle {status}: {succeeded}/{len(sports)} sports ({cycle['duration_ms']}ms)")
                return cycle
            finally:
                clear_correlation_id(token)

    @staticmethod
    def _failure(sport_name: str, error: Exception) -> Dict[str, Any]:
        return {
            'sport': sport_name,
            'success': False,
            'error': str(error),
        }

    def get_status(self) -> Dict[str, Any]:
        """Status of the most recent cycle and of each sport's last sync."""
        return {
            'running': self.running,
            'cycles_completed': self.cycles_completed,
            'last_cycle': (
                {k: v for k, v in self.last_cycle.items() if k != 'sports'}
                if self.last_cycle else None
            ),
            'sports': {
                name: self.last_results.get(name)
                for name in self.sports
            },
        }
