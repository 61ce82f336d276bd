"""Conflict detection for workout schedules.

Two-phase check:
1. Coarse query on the indexed scheduled_date column: active schedules of the
   user starting within [candidate_start - 180 min, candidate_end).
2. Exact interval overlap in application code using each match's own duration.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.schedules.models import ACTIVE_STATUSES, WorkoutSchedule
from app.utils.timezone import to_utc_naive

CONFLICT_LOOKBACK = timedelta(minutes=180)


def windows_overlap(
    start1: datetime,
    end1: datetime,
    start2: datetime,
    end2: datetime,
) -> bool:
    """Check if two half-open time windows overlap.

    Adjacent windows (one ends exactly when the other starts) do not overlap.
    """
    return start1 < end2 and end1 > start2


def check_conflict(
    session: Session,
    user_id: str,
    candidate_start: datetime,
    duration_minutes: int,
    exclude_schedule_id: str | None = None,
) -> WorkoutSchedule | None:
    """Find an active schedule overlapping the candidate window.

    Args:
        session: Database session
        user_id: Owner of the schedules to check against
        candidate_start: Candidate start time (aware or naive UTC)
        duration_minutes: Candidate duration in minutes
        exclude_schedule_id: Schedule to ignore (the one being rescheduled)

    Returns:
        First overlapping schedule in start order, or None
    """
    start = to_utc_naive(candidate_start)
    end = start + timedelta(minutes=duration_minutes)

    stmt = (
        select(WorkoutSchedule)
        .where(
            WorkoutSchedule.user_id == user_id,
            WorkoutSchedule.status.in_(ACTIVE_STATUSES),
            WorkoutSchedule.scheduled_date < end,
            WorkoutSchedule.scheduled_date >= start - CONFLICT_LOOKBACK,
        )
        .order_by(WorkoutSchedule.scheduled_date)
    )
    if exclude_schedule_id is not None:
        stmt = stmt.where(WorkoutSchedule.id != exclude_schedule_id)

    for existing in session.execute(stmt).scalars():
        if windows_overlap(start, end, existing.scheduled_date, existing.ends_at):
            logger.debug(
                "[SCHEDULE] Conflict found",
                user_id=user_id,
                candidate_start=start.isoformat(),
                existing_schedule_id=existing.id,
            )
            return existing

    return None
