"""
Background scheduler for calendar maintenance.
Handles:
- Nightly compaction of calendar entries past the retention window
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from workout_calendar.constants import PRUNE_HOUR
from workout_calendar.database import SessionLocal
from workout_calendar.exceptions import StorageException
from workout_calendar.repositories.key_value_repository import KeyValueRepository
from workout_calendar.services.calendar_store import CalendarStore

logger = logging.getLogger("workout_calendar.scheduler")

# Create scheduler instance
scheduler = AsyncIOScheduler()


async def run_calendar_prune(session_factory=SessionLocal) -> int:
    """Job: drop calendar entries older than the retention window"""
    db = session_factory()
    try:
        store = CalendarStore(KeyValueRepository(db))
        dropped = store.prune()
        logger.info(f"Calendar prune finished, {dropped} entries removed")
        return dropped
    except StorageException as e:
        logger.error(f"Scheduler Error (Prune): {e}")
        return 0
    finally:
        db.close()


def start_scheduler():
    """Register jobs and start the scheduler"""
    if scheduler.running:
        return
    scheduler.add_job(
        run_calendar_prune,
        CronTrigger(hour=PRUNE_HOUR, minute=0),
        id="calendar_prune",
        replace_existing=True
    )
    scheduler.start()
    logger.info(f"Scheduler started (calendar prune daily at {PRUNE_HOUR:02d}:00)")


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
