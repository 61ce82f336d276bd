"""iCalendar (RFC 5545) feed for calendar subscriptions.

Upcoming schedules become confirmed events and recent workout sessions
become past events. build_ical_feed is pure text rendering;
build_user_feed loads the rows for one user.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from loguru import logger
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.schedules.models import ScheduleStatus, WorkoutSchedule
from app.schedules.service import ScheduleFilters, list_schedules
from app.utils.timezone import end_of_day, start_of_day, to_utc, to_utc_naive, utcnow
from app.workouts.models import Difficulty, WorkoutSession
from app.workouts.service import get_recent_sessions

CRLF = "\r\n"
MAX_LINE_OCTETS = 75
DEFAULT_EVENT_MINUTES = 60

PRIORITY_BY_DIFFICULTY: dict[str, int] = {
    Difficulty.EXTREME.value: 1,
    Difficulty.HARD.value: 3,
    Difficulty.MEDIUM.value: 5,
}
DEFAULT_PRIORITY = 7

CALENDAR_HEADER = [
    "BEGIN:VCALENDAR",
    "VERSION:2.0",
    "PRODID:-//Epic Fitness//Workout Calendar//EN",
    "CALSCALE:GREGORIAN",
    "METHOD:PUBLISH",
    "X-WR-CALNAME:Epic Fitness Workouts",
    "X-WR-CALDESC:Your personalized workout schedule from Epic Fitness",
    "X-WR-TIMEZONE:UTC",
    "REFRESH-INTERVAL;VALUE=DURATION:PT4H",
    "X-PUBLISHED-TTL:PT4H",
]


def format_ical_datetime(dt: datetime) -> str:
    """Format as UTC basic form, e.g. 20240101T100000Z."""
    return to_utc(dt).strftime("%Y%m%dT%H%M%SZ")


def escape_text(value: str) -> str:
    """Escape a TEXT property value."""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def fold_line(line: str) -> str:
    """Fold a content line into chunks of at most 75 octets.

    Continuation lines start with a single space. Multi-byte characters
    are never split.
    """
    if len(line.encode("utf-8")) <= MAX_LINE_OCTETS:
        return line

    chunks: list[str] = []
    current = ""
    current_octets = 0
    limit = MAX_LINE_OCTETS
    for char in line:
        char_octets = len(char.encode("utf-8"))
        if current_octets + char_octets > limit:
            chunks.append(current)
            current = ""
            current_octets = 0
            limit = MAX_LINE_OCTETS - 1  # leading space
        current += char
        current_octets += char_octets
    chunks.append(current)
    return (CRLF + " ").join(chunks)


def _priority(difficulty: str | None) -> int:
    return PRIORITY_BY_DIFFICULTY.get(difficulty or "", DEFAULT_PRIORITY)


def _schedule_event(schedule: WorkoutSchedule, stamp: str, domain: str) -> list[str]:
    workout = schedule.workout
    title = workout.title if workout else "Workout"
    difficulty = workout.difficulty if workout else None
    calories = workout.calories_burn if workout and workout.calories_burn is not None else "N/A"
    description = (
        f"{(workout.description if workout else None) or ''}\n\n"
        f"Difficulty: {difficulty or 'N/A'}\n"
        f"Estimated calories: {calories}\n\n"
        "Open in Epic Fitness to start workout"
    )
    return [
        "BEGIN:VEVENT",
        f"UID:scheduled-{schedule.id}@{domain}",
        f"DTSTAMP:{stamp}",
        f"DTSTART:{format_ical_datetime(schedule.scheduled_date)}",
        f"DTEND:{format_ical_datetime(schedule.ends_at)}",
        f"SUMMARY:{escape_text(title)}",
        f"DESCRIPTION:{escape_text(description)}",
        "LOCATION:Epic Fitness App",
        "STATUS:CONFIRMED",
        "CATEGORIES:FITNESS,WORKOUT",
        f"PRIORITY:{_priority(difficulty)}",
        "END:VEVENT",
    ]


def _session_event(workout_session: WorkoutSession, stamp: str, domain: str) -> list[str]:
    workout = workout_session.workout
    title = workout.title if workout else "Workout"
    if workout_session.end_time is not None:
        end_time = workout_session.end_time
    else:
        minutes = workout_session.duration or (workout.duration if workout else None) or DEFAULT_EVENT_MINUTES
        end_time = workout_session.start_time + timedelta(minutes=minutes)
    duration = workout_session.duration if workout_session.duration is not None else "N/A"
    calories = workout_session.calories_burned if workout_session.calories_burned is not None else "N/A"
    description = f"Workout completed!\nDuration: {duration} minutes\nCalories burned: {calories}"
    return [
        "BEGIN:VEVENT",
        f"UID:completed-{workout_session.id}@{domain}",
        f"DTSTAMP:{stamp}",
        f"DTSTART:{format_ical_datetime(workout_session.start_time)}",
        f"DTEND:{format_ical_datetime(end_time)}",
        f"SUMMARY:{escape_text(f'{title} (Completed)')}",
        f"DESCRIPTION:{escape_text(description)}",
        "STATUS:CONFIRMED",
        "CATEGORIES:FITNESS,COMPLETED",
        "END:VEVENT",
    ]


def build_ical_feed(
    schedules: Iterable[WorkoutSchedule],
    sessions: Iterable[WorkoutSession],
    now: datetime,
    domain: str = "epicfitness.com",
) -> str:
    """Render a VCALENDAR document.

    Args:
        schedules: Upcoming schedules (with workout loaded)
        sessions: Recent workout sessions (with workout loaded)
        now: Timestamp used for every DTSTAMP
        domain: Domain part of event UIDs

    Returns:
        Calendar text with CRLF line endings
    """
    stamp = format_ical_datetime(now)
    lines = list(CALENDAR_HEADER)
    for schedule in schedules:
        lines.extend(_schedule_event(schedule, stamp, domain))
    for workout_session in sessions:
        lines.extend(_session_event(workout_session, stamp, domain))
    lines.append("END:VCALENDAR")
    return CRLF.join(fold_line(line) for line in lines) + CRLF


def build_user_feed(session: Session, user_id: str, now: datetime | None = None) -> str:
    """Load a user's feed window and render it.

    Schedules from today through CALENDAR_FEED_DAYS_AHEAD days (cancelled ones
    excluded), plus workout sessions started in the CALENDAR_FEED_DAYS_BACK
    days before today.
    """
    now = to_utc_naive(now) if now else utcnow()
    today = now.date()

    schedules = [
        s
        for s in list_schedules(
            session,
            user_id,
            ScheduleFilters(
                start_date=start_of_day(today),
                end_date=end_of_day(today + timedelta(days=settings.calendar_feed_days_ahead)),
            ),
        )
        if s.status != ScheduleStatus.CANCELLED.value
    ]
    sessions = get_recent_sessions(
        session,
        user_id,
        start=start_of_day(today - timedelta(days=settings.calendar_feed_days_back)),
        end=start_of_day(today),
    )
    logger.debug(
        "Building calendar feed",
        user_id=user_id,
        schedules=len(schedules),
        sessions=len(sessions),
    )
    return build_ical_feed(schedules, sessions, now, domain=settings.calendar_feed_domain)
