"""
Prometheus metrics for the catalog sync service.

Metrics exposed:
- Sync cycle counters and per-sport published/failed item counts
- Upstream PPV API request outcomes
- Scheduler status gauge

HTTP request metrics come from prometheus-fastapi-instrumentator (see app.main).
"""
from prometheus_client import Counter, Gauge

# Sync Metrics
sync_cycles_total = Counter(
    "sync_cycles_total",
    "Total sync cycles by outcome",
    ["status"]
)

sync_items_published = Gauge(
    "sync_items_published",
    "Items in the currently published generation",
    ["sport"]
)

sync_items_failed_total = Counter(
    "sync_items_failed_total",
    "Total items skipped because their detail fetch failed",
    ["sport"]
)

# Upstream API Metrics
upstream_requests_total = Counter(
    "upstream_requests_total",
    "Total upstream PPV API requests",
    ["endpoint", "outcome"]
)

# Scheduler Metrics
scheduler_running = Gauge(
    "scheduler_running",
    "Whether the sync scheduler is running (1=running, 0=stopped)"
)


def record_upstream_request(endpoint: str, success: bool):
    """Record an upstream request outcome ('listing' or 'detail')."""
    upstream_requests_total.labels(
        endpoint=endpoint,
        outcome="success" if success else "failure"
    ).inc()


def record_sport_sync(sport: str, published: int, failed: int):
    """Record the result of one sport's sync."""
    sync_items_published.labels(sport=sport).set(published)
    if failed:
        sync_items_failed_total.labels(sport=sport).inc(failed)


def record_cycle(status: str):
    """Record a finished cycle: 'success', 'partial', 'failure' or 'skipped'."""
    sync_cycles_total.labels(status=status).inc()


def update_scheduler_metrics():
    """Refresh the scheduler gauge from the global scheduler."""
    from app.core.scheduler import get_scheduler

    scheduler = get_scheduler()
    scheduler_running.set(1 if scheduler and scheduler.running else 0)
