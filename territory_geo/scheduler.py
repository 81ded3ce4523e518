"""
Scheduler module using APScheduler.
Runs the territory pipeline (historical scan, assignment, audit, dissolve)
at a fixed interval.
Started and stopped by the API lifespan so jobs share the server loop.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from territory_geo.config import get_settings
from territory_geo.pipeline import run_pipeline

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None


JOB_ID = "territory_geo_pipeline"


async def _pipeline_job() -> dict | None:
    """Run one pipeline pass; a failed pass is logged and the next one still fires."""
    try:
        logger.info("Scheduled pipeline run starting")
        stats = await run_pipeline()
    except Exception as e:
        logger.error("Scheduled pipeline run failed: %s", e, exc_info=True)
        return None
    logger.info(
        "Scheduled pipeline run done: %d assigned, %d contaminated, %d corrected, %d dissolved",
        stats["records_assigned"], stats["records_contaminated"],
        stats["records_corrected"], stats["territories_dissolved"],
    )
    return stats


def create_scheduler() -> AsyncIOScheduler:
    """Create the scheduler with the territory pipeline as its only job."""
    global _scheduler
    settings = get_settings().scheduler

    _scheduler = AsyncIOScheduler()
    _scheduler.add_job(
        _pipeline_job,
        trigger=IntervalTrigger(minutes=settings.interval_minutes),
        id=JOB_ID,
        name="Territory assignment, audit and dissolve",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    logger.info("Scheduler configured: territory pipeline every %d minutes",
                settings.interval_minutes)
    return _scheduler


def start_scheduler() -> AsyncIOScheduler | None:
    settings = get_settings().scheduler
    if not settings.enabled:
        logger.info("Scheduler disabled (SCHEDULER_ENABLED is not true)")
        return None

    scheduler = create_scheduler()
    scheduler.start()
    logger.info("Scheduler started")
    return scheduler


def stop_scheduler() -> None:
    global _scheduler
    if _scheduler is not None:
        _scheduler.shutdown(wait=True)
        logger.info("Scheduler stopped")
        _scheduler = None


async def run_once():
    """Run the pipeline once (for CLI / testing)."""
    from territory_geo.db import close_pool, get_pool

    await get_pool()
    try:
        return await run_pipeline()
    finally:
        await close_pool()
