"""
Worker Scheduler.

Runs APScheduler inside the worker process. The cron triggers only enqueue the
retention sweep jobs; the sweeps themselves run through the normal worker path
so their outcome is recorded on the broker like any other job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from ..config import Settings, get_settings
from ..queue import JobType, QueueClient

logger = logging.getLogger(__name__)

# (job type, minute past RETENTION_SWEEP_HOUR)
SWEEP_SCHEDULE = (
    (JobType.DELETE_SOFT_DELETED_COLLECTIONS, 0),
    (JobType.DELETE_SOFT_DELETED_PRODUCTS, 5),
    (JobType.DELETE_OLD_NOTIFICATIONS, 10),
    (JobType.DELETE_SOFT_DELETED_NOTIFICATIONS, 15),
)


@dataclass(frozen=True)
class SchedulerStatus:
    running: bool
    scheduled_jobs_count: int


_scheduler: Optional[AsyncIOScheduler] = None


def _timezone(settings: Settings) -> ZoneInfo:
    try:
        return ZoneInfo(settings.scheduler_timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown SCHEDULER_TIMEZONE %r, using UTC", settings.scheduler_timezone)
        return ZoneInfo("UTC")


async def enqueue_sweep(queue: QueueClient, job_type: JobType) -> None:
    job = await queue.enqueue(job_type, {})
    logger.info("Scheduled sweep %s enqueued as job %s", job_type.value, job.id)


def build_scheduler(queue: QueueClient, settings: Optional[Settings] = None) -> AsyncIOScheduler:
    """Configured but not started scheduler with one cron job per sweep."""
    settings = settings or get_settings()
    tz = _timezone(settings)
    scheduler = AsyncIOScheduler(timezone=tz)
    for job_type, minute in SWEEP_SCHEDULE:
        scheduler.add_job(
            enqueue_sweep,
            trigger=CronTrigger(hour=settings.retention_sweep_hour, minute=minute, timezone=tz),
            args=[queue, job_type],
            id=job_type.value,
            name=f"Retention sweep: {job_type.value}",
            replace_existing=True,
        )
    return scheduler


def start_scheduler(queue: QueueClient, settings: Optional[Settings] = None) -> bool:
    """
    Start the sweep scheduler in this worker process (must be called from a running event loop).
    Returns True if it is running afterwards.
    """
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        return True

    settings = settings or get_settings()
    if settings.testing or not settings.scheduler_enabled:
        logger.info("Sweep scheduler disabled")
        return False

    _scheduler = build_scheduler(queue, settings)
    _scheduler.start()
    logger.info("Sweep scheduler started (%s jobs)", len(_scheduler.get_jobs()))
    return True


def stop_scheduler() -> None:
    global _scheduler
    if _scheduler is not None and _scheduler.running:
        _scheduler.shutdown(wait=False)
    _scheduler = None


def get_status() -> SchedulerStatus:
    running = bool(_scheduler is not None and _scheduler.running)
    count = len(_scheduler.get_jobs()) if running else 0
    return SchedulerStatus(running=running, scheduled_jobs_count=count)
