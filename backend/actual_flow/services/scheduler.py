import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore

from ..config import get_settings
from .sync_service import SyncService

logger = logging.getLogger(__name__)

IMPORT_JOB_ID = "lunch_flow_import"

# Global scheduler instance
_scheduler: Optional[AsyncIOScheduler] = None


async def scheduled_import_job():
    """
    Background job that imports from every mapped account.
    This runs in the scheduler context.
    """
    # Imported here to avoid a cycle with dependencies -> services
    from ..dependencies import get_importer, get_session_factory

    logger.info("Starting scheduled transaction import")

    session_factory = await get_session_factory()
    async with session_factory() as session:
        service = SyncService(session)
        try:
            result = await service.run_import(get_importer(), trigger='scheduled')
        except Exception as e:
            # Already recorded on the sync log; keep the scheduler alive
            logger.error(f"Scheduled import failed, will retry on schedule: {e}")
            return

    logger.info(f"Scheduled import complete: {result.message}")


def get_scheduler() -> AsyncIOScheduler:
    """Get the global scheduler instance."""
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler(
            jobstores={'default': MemoryJobStore()},
            job_defaults={
                'coalesce': True,  # Combine multiple pending executions
                'max_instances': 1,  # Only one import at a time
                'misfire_grace_time': 60 * 30  # 30 minute grace period
            }
        )
    return _scheduler


def schedule_import(cron: Optional[str] = None):
    """Schedule or replace the import job from a crontab expression."""
    cron = cron or get_settings().actual_flow_cron
    scheduler = get_scheduler()

    # Jobs added before start() are queued, and replace_existing only
    # applies once they reach the job store
    try:
        scheduler.remove_job(IMPORT_JOB_ID)
    except JobLookupError:
        pass

    job = scheduler.add_job(
        scheduled_import_job,
        trigger=CronTrigger.from_crontab(cron),
        id=IMPORT_JOB_ID,
        name="Import Lunch Flow transactions",
        replace_existing=True
    )

    logger.info(f"Scheduled transaction import with cron schedule '{cron}'")
    return job


async def initialize_scheduler():
    """Start the scheduler and register the import job."""
    settings = get_settings()
    scheduler = get_scheduler()

    if scheduler.running:
        return

    schedule_import(settings.actual_flow_cron)
    scheduler.start()
    logger.info("Scheduler started")

    if settings.actual_flow_run_on_startup:
        logger.info("Running initial import on startup...")
        scheduler.add_job(scheduled_import_job, id=f"{IMPORT_JOB_ID}_startup")


async def shutdown_scheduler():
    """Shutdown the scheduler gracefully."""
    global _scheduler
    if _scheduler and _scheduler.running:
        _scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")
    _scheduler = None


def get_scheduled_jobs():
    """Get list of currently scheduled jobs."""
    scheduler = get_scheduler()
    jobs = []

    for job in scheduler.get_jobs():
        next_run_time = getattr(job, "next_run_time", None)
        jobs.append({
            'id': job.id,
            'name': job.name,
            'next_run_time': next_run_time.isoformat() if next_run_time else None,
            'trigger': str(job.trigger)
        })

    return jobs
