"""Background scheduler — daily follow-up emails.

One APScheduler cron job:
  - followup_emails: daily at FOLLOWUP_HOUR in FOLLOWUP_TIMEZONE, when
    FOLLOWUP_EMAILS_ENABLED is on
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

log = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def configure_scheduler() -> None:
    """Register jobs according to settings. Call before scheduler.start()."""
    from .config import settings

    if settings.followup_emails_enabled:
        scheduler.add_job(
            _job_followups,
            CronTrigger(hour=settings.followup_hour, minute=0, timezone=settings.followup_timezone),
            id="followup_emails",
            name="Daily bid follow-up emails",
            replace_existing=True,
        )
        log.info(
            f"Follow-up emails scheduled daily at {settings.followup_hour:02d}:00 "
            f"{settings.followup_timezone}"
        )
    else:
        log.info("Follow-up emails disabled")


async def _job_followups():
    """Cron entry point: run today's follow-ups with a fresh session."""
    from .database import SessionLocal
    from .services.followup_service import run_followups

    db = SessionLocal()
    try:
        await run_followups(db)
    except Exception:
        log.exception("Follow-up job failed")
    finally:
        db.close()
