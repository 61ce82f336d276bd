"""Month calendar view of a user's schedules."""

from __future__ import annotations

import calendar
from datetime import date

from sqlalchemy.orm import Session

from app.schedules.errors import ScheduleValidationError
from app.schedules.models import ScheduleStatus
from app.schedules.schemas import CalendarEntry
from app.schedules.service import ScheduleFilters, list_schedules
from app.utils.timezone import end_of_day, start_of_day


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a month."""
    if not 1 <= month <= 12:
        raise ScheduleValidationError(f"Invalid month: {month}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def build_calendar(session: Session, user_id: str, year: int, month: int) -> dict[str, list[CalendarEntry]]:
    """Group a month of schedules by UTC calendar date.

    Keys are ISO dates (YYYY-MM-DD); days without schedules are absent.
    Entries keep the scheduled_date ascending order of the query.

    Raises:
        ScheduleValidationError: If month is outside 1..12
    """
    first_day, last_day = month_bounds(year, month)
    schedules = list_schedules(
        session,
        user_id,
        ScheduleFilters(start_date=start_of_day(first_day), end_date=end_of_day(last_day)),
    )

    grouped: dict[str, list[CalendarEntry]] = {}
    for schedule in schedules:
        key = schedule.scheduled_date.date().isoformat()
        grouped.setdefault(key, []).append(
            CalendarEntry(
                id=schedule.id,
                title=schedule.workout.title if schedule.workout else "",
                time=schedule.scheduled_time,
                status=ScheduleStatus(schedule.status),
                difficulty=schedule.workout.difficulty if schedule.workout else None,
            )
        )
    return grouped
