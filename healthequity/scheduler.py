"""Background scheduler for the periodic source health probe."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from healthequity.config import PORT, PUBLIC_BASE_URL, SCHEDULE

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()

# Last result of the source health probe, served on /api/status
last_health: dict = {}


async def _safe_run(name: str, coro):
    """Run a coroutine with error handling so one failure doesn't stop others."""
    try:
        result = await coro
        logger.info(f"Scheduler: {name} completed (result: {result})")
        return result
    except Exception as e:
        logger.error(f"Scheduler: {name} failed: {e}")
        return None


def _probe_base_url() -> str:
    return PUBLIC_BASE_URL or f"http://127.0.0.1:{PORT}"


async def job_source_health():
    from healthequity.services.orchestrator import health_check

    result = await _safe_run("Source health", health_check(_probe_base_url()))
    if result is not None:
        last_health.clear()
        last_health.update(result)


def setup_scheduler():
    """Configure all scheduled jobs."""
    scheduler.add_job(
        job_source_health,
        IntervalTrigger(minutes=SCHEDULE["source_health"]),
        id="source_health",
        name="Probe scraping sources",
        replace_existing=True,
    )

    scheduler.start()
    logger.info("Scheduler started with all jobs configured")
