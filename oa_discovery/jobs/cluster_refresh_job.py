"""Background job for periodic semantic cluster refresh."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from oa_discovery.services.discovery_service import DiscoveryService

logger = logging.getLogger(__name__)

JOB_ID = "cluster_refresh"


async def run_cluster_refresh_job(service: DiscoveryService) -> bool:
    """Execute a single refresh run.

    Errors are logged and swallowed so the schedule keeps running.
    Returns True if clusters were recomputed.
    """
    try:
        refreshed = await service.refresh_clusters()
    except Exception:
        logger.exception("Error refreshing clusters")
        return False
    if refreshed:
        logger.info("Clusters refreshed in background (pool size %d)", service.pool.size())
    return refreshed


def setup_cluster_refresh_scheduler(
    service: DiscoveryService,
    interval_minutes: int = 30,
    enabled: bool = True,
) -> AsyncIOScheduler | None:
    """Set up APScheduler for periodic cluster refresh.

    Args:
        service: Discovery service whose clusters are refreshed.
        interval_minutes: Fixed interval, independent of request activity.
        enabled: Whether to start the scheduler.

    Returns:
        The scheduler instance, or None if disabled.
    """
    if not enabled:
        logger.info("Cluster refresh scheduler disabled")
        return None

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_cluster_refresh_job,
        trigger=IntervalTrigger(minutes=interval_minutes),
        args=[service],
        id=JOB_ID,
        name="Semantic Cluster Refresh",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    logger.info("Cluster refresh scheduler started every %d minutes", interval_minutes)
    return scheduler
