"""
Background scheduler for periodic calendar autosave.

Uses APScheduler to write the calendar store to disk every few minutes,
so a crash loses at most one interval of changes.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from calendar_app.config import get_settings
from calendar_app.core.dependencies import get_calendar_store
from calendar_app.core.exceptions import CalendarStorageError

logger = logging.getLogger(__name__)

AUTOSAVE_JOB_ID = "calendar_autosave_job"

# Singleton scheduler instance
scheduler = AsyncIOScheduler()


async def autosave_calendars() -> bool:
    """Callback for the autosave job. Returns True if the store was written.

    A coroutine, so AsyncIOScheduler runs it on the event loop, the same
    thread the request handlers mutate calendars on.
    """
    store = get_calendar_store()
    try:
        store.save()
        return True
    except CalendarStorageError as e:
        logger.error(f"❌ Autosave failed: {e.message} ({e.detail})", exc_info=True)
        return False


def update_autosave_schedule(interval_minutes: int | None):
    """Add, update, or remove the autosave job.

    Args:
        interval_minutes: Minutes between saves, or None/0 to disable.
    """
    if not interval_minutes:
        if scheduler.get_job(AUTOSAVE_JOB_ID):
            scheduler.remove_job(AUTOSAVE_JOB_ID)
            logger.info(f"🔕 Removed scheduled job: {AUTOSAVE_JOB_ID}")
        return

    scheduler.add_job(
        func=autosave_calendars,
        trigger=IntervalTrigger(minutes=interval_minutes),
        id=AUTOSAVE_JOB_ID,
        replace_existing=True,
    )
    logger.info(f"🔔 Scheduled {AUTOSAVE_JOB_ID} every {interval_minutes} minute(s)")


def init_scheduler():
    """Register the autosave job from settings and start the scheduler.

    Called during FastAPI lifespan startup.
    """
    settings = get_settings()
    if settings.AUTOSAVE_ENABLED:
        update_autosave_schedule(settings.AUTOSAVE_INTERVAL_MINUTES)

    scheduler.start()

    jobs = scheduler.get_jobs()
    if jobs:
        logger.info(f"📅 Scheduler started with {len(jobs)} job(s):")
        for job in jobs:
            logger.info(f"   - {job.id}: every {settings.AUTOSAVE_INTERVAL_MINUTES} minute(s)")
    else:
        logger.info("📅 Scheduler started (autosave disabled)")


def shutdown_scheduler():
    """Gracefully shutdown the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("📅 Scheduler shut down.")
