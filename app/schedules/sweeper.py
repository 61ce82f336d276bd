"""Missed-workout sweeper.

Marks schedules whose start passed more than two hours ago without being
started as MISSED. Runs from the APScheduler job registered in the app
lifespan, or once from scripts/mark_missed_workouts.py.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from loguru import logger
from sqlalchemy import update
from sqlalchemy.orm import Session

from app.db.session import get_session
from app.schedules.models import ScheduleStatus, WorkoutSchedule
from app.utils.timezone import to_utc_naive, utcnow

MISSED_GRACE_PERIOD = timedelta(hours=2)


def sweep(session: Session, now: datetime | None = None) -> int:
    """Mark stale SCHEDULED rows as MISSED in one conditional bulk update.

    Only rows still SCHEDULED at write time are touched, so a concurrent
    start or cancel is never overwritten.

    Args:
        session: Database session (committed here)
        now: Reference time (defaults to current UTC time)

    Returns:
        Number of schedules marked missed
    """
    cutoff = (to_utc_naive(now) if now else utcnow()) - MISSED_GRACE_PERIOD
    result = session.execute(
        update(WorkoutSchedule)
        .where(
            WorkoutSchedule.status == ScheduleStatus.SCHEDULED.value,
            WorkoutSchedule.scheduled_date < cutoff,
        )
        .values(status=ScheduleStatus.MISSED.value)
        .execution_options(synchronize_session=False)
    )
    session.commit()

    count = result.rowcount or 0
    if count > 0:
        logger.info(f"Marked {count} workouts as missed", cutoff=cutoff.isoformat())
    return count


def missed_sweep_tick() -> None:
    """Run one sweep cycle.

    Called by APScheduler. Failures are logged; the next tick retries.
    """
    logger.debug("[SCHEDULER] Starting missed-workout sweep")
    try:
        with get_session() as session:
            sweep(session)
    except Exception as e:
        logger.exception("[SCHEDULER] Missed-workout sweep failed: {}", e)
