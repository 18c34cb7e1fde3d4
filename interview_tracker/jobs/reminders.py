from __future__ import annotations
import asyncio
import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from interview_tracker.config import settings
from interview_tracker.database import SessionLocal
from interview_tracker.models import Reminder

logger = logging.getLogger(__name__)


def mark_due_reminders_sent(db: Session, now: datetime | None = None) -> int:
    """
    Flag every unsent reminder whose time has come. Returns the number flagged.

    Idempotent: a second run right after the first updates nothing, and two
    overlapping runs cannot flag a row twice.
    """
    now = now or datetime.now(timezone.utc)
    result = db.execute(
        update(Reminder)
        .where(Reminder.is_sent.is_(False), Reminder.reminder_date <= now)
        .values(is_sent=True)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount or 0


# ---------- Entry points ----------

def run_reminder_sweep() -> int:
    db = SessionLocal()
    try:
        processed = mark_due_reminders_sent(db)
        if processed:
            logger.info("Processed %d reminder(s)", processed)
        return processed
    except Exception:
        db.rollback()
        logger.exception("Reminder sweep failed")
        raise
    finally:
        db.close()


async def reminder_sweep_loop(interval_minutes: int) -> None:
    """Run the sweep every ``interval_minutes`` until cancelled. A failed cycle is skipped."""
    while True:
        await asyncio.sleep(interval_minutes * 60)
        try:
            await run_in_threadpool(run_reminder_sweep)
        except Exception:
            # already logged; the next cycle retries from scratch
            continue


if __name__ == "__main__":
    from interview_tracker.logging_config import configure_logging

    configure_logging(settings.LOG_LEVEL)
    run_reminder_sweep()
