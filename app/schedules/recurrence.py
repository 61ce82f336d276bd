"""Recurring schedule expansion.

A recurring schedule is a parent template; expansion materializes concrete
future instances that are independent once created.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterator
from datetime import datetime, timedelta
from enum import StrEnum

from loguru import logger
from sqlalchemy.orm import Session

from app.schedules.models import ScheduleStatus, WorkoutSchedule

MAX_RECURRING_INSTANCES = 52


class RecurrenceRule(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


def parse_recurrence_rule(raw: str | None) -> RecurrenceRule | None:
    """Parse a stored rule string, case-insensitively.

    Returns None for a missing or unrecognized rule.
    """
    if raw is None:
        return None
    try:
        return RecurrenceRule(raw.strip().lower())
    except ValueError:
        return None


def add_months(dt: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def _step(anchor: datetime, rule: RecurrenceRule, n: int) -> datetime:
    if rule is RecurrenceRule.DAILY:
        return anchor + timedelta(days=n)
    if rule is RecurrenceRule.WEEKLY:
        return anchor + timedelta(weeks=n)
    # Offsets are taken from the anchor so Jan 31 -> Feb 29 -> Mar 31 does not drift.
    return add_months(anchor, n)


def recurrence_dates(
    start: datetime,
    rule: RecurrenceRule,
    end: datetime,
    limit: int = MAX_RECURRING_INSTANCES,
) -> Iterator[datetime]:
    """Yield occurrence dates after start, up to and including end.

    The start date itself belongs to the parent and is never yielded.
    At most `limit` dates are produced.
    """
    n = 1
    while n <= limit:
        occurrence = _step(start, rule, n)
        if occurrence > end:
            return
        yield occurrence
        n += 1


def expand(session: Session, parent: WorkoutSchedule) -> list[WorkoutSchedule]:
    """Materialize recurring instances for a parent schedule.

    Instances copy workout, time hint, duration and reminder settings from the
    parent. They are not conflict-checked. All instances are added in one
    batch; nothing is added when the rule is unrecognized or the end is missing.

    Args:
        session: Database session (caller commits)
        parent: Persisted recurring parent schedule

    Returns:
        Created instances in date order
    """
    rule = parse_recurrence_rule(parent.recurrence_rule)
    if rule is None or parent.recurrence_end is None:
        logger.warning(
            "[SCHEDULE] Recurrence not expanded",
            schedule_id=parent.id,
            recurrence_rule=parent.recurrence_rule,
            has_recurrence_end=parent.recurrence_end is not None,
        )
        return []

    instances = [
        WorkoutSchedule(
            user_id=parent.user_id,
            workout_id=parent.workout_id,
            scheduled_date=occurrence,
            scheduled_time=parent.scheduled_time,
            duration=parent.duration,
            status=ScheduleStatus.SCHEDULED.value,
            reminder_enabled=parent.reminder_enabled,
            reminder_time=parent.reminder_time,
            parent_schedule_id=parent.id,
            is_recurring=False,
        )
        for occurrence in recurrence_dates(parent.scheduled_date, rule, parent.recurrence_end)
    ]

    if instances:
        session.add_all(instances)
        logger.info(f"Created {len(instances)} recurring instances for schedule {parent.id}")

    return instances
