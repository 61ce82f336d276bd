"""Workout service.

Lookup and session-creation helpers the schedule lifecycle depends on.
Callers own the database session and the commit.
"""

from __future__ import annotations

from datetime import datetime

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.utils.timezone import utcnow
from app.workouts.models import Workout, WorkoutSession


def get_workout(session: Session, workout_id: str) -> Workout | None:
    """Get a catalog workout by id."""
    return session.execute(select(Workout).where(Workout.id == workout_id)).scalar_one_or_none()


def create_workout_session(
    session: Session,
    *,
    user_id: str,
    workout_id: str,
    schedule_id: str | None = None,
    start_time: datetime | None = None,
) -> WorkoutSession:
    """Create a workout session (not committed).

    Args:
        session: Database session
        user_id: User performing the workout
        workout_id: Workout being performed
        schedule_id: Schedule the session was started from, if any
        start_time: Naive UTC start time (defaults to now)

    Returns:
        Pending WorkoutSession (flushed, id assigned)
    """
    workout_session = WorkoutSession(
        user_id=user_id,
        workout_id=workout_id,
        schedule_id=schedule_id,
        start_time=start_time or utcnow(),
    )
    session.add(workout_session)
    session.flush()
    logger.debug(
        "Workout session created",
        session_id=workout_session.id,
        user_id=user_id,
        workout_id=workout_id,
        schedule_id=schedule_id,
    )
    return workout_session


def get_recent_sessions(
    session: Session,
    user_id: str,
    start: datetime,
    end: datetime,
) -> list[WorkoutSession]:
    """Get a user's workout sessions started in [start, end), newest first."""
    stmt = (
        select(WorkoutSession)
        .where(
            WorkoutSession.user_id == user_id,
            WorkoutSession.start_time >= start,
            WorkoutSession.start_time < end,
        )
        .order_by(WorkoutSession.start_time.desc())
    )
    return list(session.execute(stmt).scalars().all())
