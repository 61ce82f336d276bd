"""Schedule lifecycle service.

Single entry point for creating, reading, rescheduling, cancelling and
starting workout schedules. Every operation is scoped to the owning user
by query predicate; a schedule owned by someone else is reported exactly
like a missing one.

Status transitions handled here:
    SCHEDULED -> IN_PROGRESS   (start)
    SCHEDULED -> CANCELLED     (cancel)
COMPLETED is set by the session completion flow and MISSED by the sweeper.

Create, reschedule and reactivation lock the owner's users row before the
conflict check, so the check and the write commit as one unit per user.
Start locks the schedule row itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.db.models import User
from app.schedules.conflicts import check_conflict
from app.schedules.errors import (
    InvalidScheduleStateError,
    ScheduleConflictError,
    ScheduleNotFoundError,
    ScheduleValidationError,
)
from app.schedules.models import ACTIVE_STATUSES, ScheduleStatus, WorkoutSchedule
from app.schedules.recurrence import expand
from app.schedules.schemas import ScheduleCreateRequest, ScheduleUpdateRequest, check_time_matches_date, time_of
from app.utils.timezone import start_of_day, to_utc_naive, utcnow
from app.workouts.models import WorkoutSession
from app.workouts.service import create_workout_session, get_workout

DEFAULT_REMINDER_TIME = 30
UPCOMING_WINDOW = timedelta(days=7)
UPCOMING_LIMIT = 5


@dataclass(frozen=True)
class ScheduleFilters:
    """Filters for listing schedules.

    The date range applies only when both bounds are given.
    """

    start_date: datetime | None = None
    end_date: datetime | None = None
    status: ScheduleStatus | None = None
    workout_id: str | None = None


def _lock_user(session: Session, user_id: str) -> None:
    """Serialize scheduling writes for one user (SELECT ... FOR UPDATE).

    SQLite ignores the lock; its database-level write lock already serializes writers.
    """
    session.execute(select(User.id).where(User.id == user_id).with_for_update()).first()


def _raise_conflict(conflicting: WorkoutSchedule, user_id: str) -> None:
    logger.warning(
        "[SCHEDULE] Conflict detected",
        user_id=user_id,
        conflicting_schedule_id=conflicting.id,
    )
    raise ScheduleConflictError(conflicting_schedule_id=conflicting.id)


def create_schedule(session: Session, user_id: str, data: ScheduleCreateRequest) -> WorkoutSchedule:
    """Schedule a workout, expanding recurrences when requested.

    Args:
        session: Database session
        user_id: Owner of the new schedule
        data: Validated create request

    Returns:
        The persisted parent schedule

    Raises:
        ScheduleNotFoundError: If the workout does not exist
        ScheduleConflictError: If the window overlaps an active schedule
    """
    workout = get_workout(session, data.workout_id)
    if workout is None:
        raise ScheduleNotFoundError("Workout not found")

    scheduled_date = to_utc_naive(data.scheduled_date)
    duration = data.duration or workout.duration

    _lock_user(session, user_id)
    conflicting = check_conflict(session, user_id, scheduled_date, duration)
    if conflicting is not None:
        _raise_conflict(conflicting, user_id)

    schedule = WorkoutSchedule(
        user_id=user_id,
        workout_id=workout.id,
        scheduled_date=scheduled_date,
        scheduled_time=data.scheduled_time,
        duration=duration,
        status=ScheduleStatus.SCHEDULED.value,
        notes=data.notes,
        reminder_enabled=data.reminder_enabled if data.reminder_enabled is not None else True,
        reminder_time=data.reminder_time if data.reminder_time is not None else DEFAULT_REMINDER_TIME,
        is_recurring=data.is_recurring,
        recurrence_rule=data.recurrence_rule.value if data.recurrence_rule else None,
        recurrence_end=to_utc_naive(data.recurrence_end) if data.recurrence_end else None,
    )
    session.add(schedule)
    session.flush()

    instances: list[WorkoutSchedule] = []
    if schedule.is_recurring and schedule.recurrence_rule:
        instances = expand(session, schedule)

    session.commit()

    logger.info(
        f"Schedule created: {schedule.id} for user {user_id}",
        workout_id=workout.id,
        recurring_instances=len(instances),
    )
    return schedule


def get_schedule(session: Session, schedule_id: str, user_id: str, *, for_update: bool = False) -> WorkoutSchedule:
    """Load a schedule owned by the user, with its workout and sessions.

    for_update locks the row (SELECT ... FOR UPDATE) until commit.

    Raises:
        ScheduleNotFoundError: If absent or owned by another user
    """
    stmt = (
        select(WorkoutSchedule)
        .where(
            WorkoutSchedule.id == schedule_id,
            WorkoutSchedule.user_id == user_id,
        )
        .options(selectinload(WorkoutSchedule.workout), selectinload(WorkoutSchedule.sessions))
    )
    if for_update:
        stmt = stmt.with_for_update(of=WorkoutSchedule).execution_options(populate_existing=True)
    schedule = session.execute(stmt).scalar_one_or_none()
    if schedule is None:
        raise ScheduleNotFoundError()
    return schedule


def list_schedules(session: Session, user_id: str, filters: ScheduleFilters | None = None) -> list[WorkoutSchedule]:
    """List a user's schedules ordered by scheduled_date ascending."""
    filters = filters or ScheduleFilters()
    stmt = select(WorkoutSchedule).where(WorkoutSchedule.user_id == user_id)

    if filters.start_date is not None and filters.end_date is not None:
        stmt = stmt.where(
            WorkoutSchedule.scheduled_date >= to_utc_naive(filters.start_date),
            WorkoutSchedule.scheduled_date <= to_utc_naive(filters.end_date),
        )
    if filters.status is not None:
        stmt = stmt.where(WorkoutSchedule.status == filters.status.value)
    if filters.workout_id is not None:
        stmt = stmt.where(WorkoutSchedule.workout_id == filters.workout_id)

    stmt = stmt.options(
        selectinload(WorkoutSchedule.workout),
        selectinload(WorkoutSchedule.sessions),
    ).order_by(WorkoutSchedule.scheduled_date)
    return list(session.execute(stmt).scalars().all())


def get_upcoming(session: Session, user_id: str, now: datetime | None = None) -> list[WorkoutSchedule]:
    """Scheduled workouts from today (UTC midnight) through the next 7 days, at most 5."""
    today = start_of_day((to_utc_naive(now) if now else utcnow()).date())
    schedules = list_schedules(
        session,
        user_id,
        ScheduleFilters(
            start_date=today,
            end_date=today + UPCOMING_WINDOW,
            status=ScheduleStatus.SCHEDULED,
        ),
    )
    return schedules[:UPCOMING_LIMIT]


def update_schedule(
    session: Session,
    schedule_id: str,
    user_id: str,
    patch: ScheduleUpdateRequest,
) -> WorkoutSchedule:
    """Apply a partial update.

    Conflicts are re-checked when the start time moves or the schedule
    becomes active again. Moving the date without a time resets
    scheduled_time to the new UTC HH:MM.

    Raises:
        ScheduleNotFoundError: If absent or owned by another user
        ScheduleConflictError: If the window overlaps another active schedule
        ScheduleValidationError: If a time-only patch disagrees with the stored date
    """
    schedule = get_schedule(session, schedule_id, user_id)
    changes: dict[str, Any] = patch.model_dump(exclude_unset=True)

    new_date = to_utc_naive(changes["scheduled_date"]) if changes.get("scheduled_date") is not None else None
    new_status = ScheduleStatus(changes["status"]).value if changes.get("status") is not None else None
    reactivating = new_status in ACTIVE_STATUSES and schedule.status not in ACTIVE_STATUSES

    if new_date is None and changes.get("scheduled_time") is not None:
        try:
            check_time_matches_date(schedule.scheduled_date, changes["scheduled_time"])
        except ValueError as e:
            raise ScheduleValidationError(str(e)) from e

    if new_date is not None or reactivating:
        _lock_user(session, user_id)
        conflicting = check_conflict(
            session,
            user_id,
            new_date or schedule.scheduled_date,
            schedule.duration,
            exclude_schedule_id=schedule.id,
        )
        if conflicting is not None:
            _raise_conflict(conflicting, user_id)

    if new_date is not None:
        schedule.scheduled_date = new_date
        if "scheduled_time" not in changes:
            schedule.scheduled_time = time_of(new_date)

    if "scheduled_time" in changes:
        schedule.scheduled_time = changes["scheduled_time"]
    if "notes" in changes:
        schedule.notes = changes["notes"]
    if changes.get("reminder_enabled") is not None:
        schedule.reminder_enabled = changes["reminder_enabled"]
    if changes.get("reminder_time") is not None:
        schedule.reminder_time = changes["reminder_time"]
    if new_status is not None:
        schedule.status = new_status

    session.commit()
    logger.info(f"Schedule updated: {schedule_id}", fields=sorted(changes))
    return schedule


def cancel_schedule(session: Session, schedule_id: str, user_id: str) -> WorkoutSchedule:
    """Soft-cancel a schedule. Re-cancelling re-applies the same status.

    Raises:
        ScheduleNotFoundError: If absent or owned by another user
    """
    schedule = get_schedule(session, schedule_id, user_id)
    schedule.status = ScheduleStatus.CANCELLED.value
    session.commit()
    logger.info(f"Schedule cancelled: {schedule_id}")
    return schedule


def start_schedule(
    session: Session,
    schedule_id: str,
    user_id: str,
    now: datetime | None = None,
) -> WorkoutSession:
    """Start a scheduled workout.

    The schedule row is locked before the status check, so concurrent starts
    serialize and only one creates a session. The new workout session and the
    IN_PROGRESS status are committed together.

    Raises:
        ScheduleNotFoundError: If absent or owned by another user
        InvalidScheduleStateError: If the schedule is not SCHEDULED
    """
    schedule = get_schedule(session, schedule_id, user_id, for_update=True)
    if schedule.status != ScheduleStatus.SCHEDULED.value:
        raise InvalidScheduleStateError()

    workout_session = create_workout_session(
        session,
        user_id=user_id,
        workout_id=schedule.workout_id,
        schedule_id=schedule.id,
        start_time=to_utc_naive(now) if now else None,
    )
    schedule.status = ScheduleStatus.IN_PROGRESS.value
    session.commit()

    logger.info(f"Scheduled workout started: {schedule_id}, session: {workout_session.id}")
    return workout_session
