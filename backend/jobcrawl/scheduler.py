"""
Background Scheduler - Periodic retention cleanup

Deletes postings older than RETENTION_DAYS every CLEANUP_INTERVAL_HOURS
using APScheduler. Crawls themselves are only triggered on request.
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from jobcrawl.config import Settings
from jobcrawl.database import Database, cleanup_old_jobs

logger = logging.getLogger(__name__)

CLEANUP_JOB_ID = "cleanup_old_jobs"


def create_scheduler(db: Database, settings: Settings) -> AsyncIOScheduler:
    """Build a scheduler with the retention job registered (not started)."""
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        cleanup_old_jobs,
        trigger=IntervalTrigger(hours=settings.cleanup_interval_hours),
        args=[db, settings.retention_days],
        id=CLEANUP_JOB_ID,
        replace_existing=True,
    )
    return scheduler


def start_scheduler(db: Database, settings: Settings) -> AsyncIOScheduler:
    """Start the background scheduler"""
    scheduler = create_scheduler(db, settings)
    scheduler.start()
    logger.info(
        f"Scheduler started: removing jobs older than {settings.retention_days} days "
        f"every {settings.cleanup_interval_hours} hours"
    )
    return scheduler


def stop_scheduler(scheduler: Optional[AsyncIOScheduler]) -> None:
    """Stop the background scheduler"""
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
