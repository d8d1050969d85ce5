"""APScheduler integration for FastAPI.

Runs the periodic broker sync when TV_AUTO_SYNC_MINUTES is set.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from tradevault.config import settings

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()

SYNC_JOB_ID = "broker_sync"


def add_sync_job(minutes: int):
    """Add or replace the job that syncs all active broker connections."""
    from tradevault.engine.broker_sync import sync_all_connections

    scheduler.add_job(
        sync_all_connections,
        trigger=IntervalTrigger(minutes=minutes),
        id=SYNC_JOB_ID,
        name="Broker sync",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=60,
    )
    logger.info(f"Scheduled broker sync every {minutes}m")


def start_scheduler():
    """Start the scheduler if auto sync is enabled."""
    if settings.auto_sync_minutes <= 0:
        logger.info("Auto sync disabled (TV_AUTO_SYNC_MINUTES=0)")
        return
    add_sync_job(settings.auto_sync_minutes)
    scheduler.start()
    logger.info("Scheduler started")


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")


def get_scheduler_status() -> dict:
    """Return scheduler state and job details."""
    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
        })
    return {
        "running": scheduler.running,
        "auto_sync_minutes": settings.auto_sync_minutes,
        "jobs": jobs,
    }
