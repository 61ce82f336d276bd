"""Tests for the iCalendar feed."""

from datetime import datetime

from app.schedules.ical import (
    build_ical_feed,
    build_user_feed,
    escape_text,
    fold_line,
    format_ical_datetime,
)
from app.schedules.models import ScheduleStatus
from app.workouts.models import WorkoutSession

NOW = datetime(2030, 5, 1, 12, 0)


def _unfold(text: str) -> list[str]:
    return text.replace("\r\n ", "").split("\r\n")


class TestFormatting:
    def test_format_datetime(self):
        assert format_ical_datetime(datetime(2024, 1, 8, 7, 5, 9)) == "20240108T070509Z"

    def test_escape_text(self):
        assert escape_text("a,b;c\\d\ne") == "a\\,b\\;c\\\\d\\ne"

    def test_short_line_not_folded(self):
        assert fold_line("SUMMARY:Leg Day") == "SUMMARY:Leg Day"

    def test_long_line_folded_at_75_octets(self):
        line = "DESCRIPTION:" + "x" * 200

        folded = fold_line(line)

        parts = folded.split("\r\n")
        assert all(len(p.encode("utf-8")) <= 75 for p in parts)
        assert all(p.startswith(" ") for p in parts[1:])
        assert folded.replace("\r\n ", "") == line

    def test_fold_does_not_split_multibyte_chars(self):
        line = "SUMMARY:" + "💪" * 40

        parts = fold_line(line).split("\r\n")

        assert all(len(p.encode("utf-8")) <= 75 for p in parts)
        assert "".join(p.removeprefix(" ") if i else p for i, p in enumerate(parts)) == line


class TestBuildIcalFeed:
    def test_schedule_and_session_events(self, db_session, user, workout, make_schedule):
        schedule = make_schedule(datetime(2030, 5, 2, 7, 0), duration=45)
        workout_session = WorkoutSession(
            user_id=user.id,
            workout_id=workout.id,
            start_time=datetime(2030, 4, 28, 18, 0),
            duration=50,
            calories_burned=400,
        )
        db_session.add(workout_session)
        db_session.commit()

        text = build_ical_feed([schedule], [workout_session], NOW, domain="example.com")
        lines = _unfold(text)

        assert text.endswith("\r\n")
        assert lines[0] == "BEGIN:VCALENDAR"
        assert "END:VCALENDAR" in lines
        assert f"UID:scheduled-{schedule.id}@example.com" in lines
        assert "DTSTART:20300502T070000Z" in lines
        assert "DTEND:20300502T074500Z" in lines
        assert "SUMMARY:Leg Day" in lines
        assert "PRIORITY:3" in lines
        assert "DTSTAMP:20300501T120000Z" in lines
        assert f"UID:completed-{workout_session.id}@example.com" in lines
        assert "DTEND:20300428T185000Z" in lines
        assert "SUMMARY:Leg Day (Completed)" in lines
        assert lines.count("BEGIN:VEVENT") == 2

    def test_priority_by_difficulty(self, db_session, workout, make_schedule):
        schedule = make_schedule(datetime(2030, 5, 2, 7, 0))
        expected = {"EXTREME": "PRIORITY:1", "HARD": "PRIORITY:3", "MEDIUM": "PRIORITY:5", "EASY": "PRIORITY:7"}

        for difficulty, priority in expected.items():
            workout.difficulty = difficulty
            assert priority in _unfold(build_ical_feed([schedule], [], NOW))


class TestBuildUserFeed:
    def test_window_and_cancelled_exclusion(self, db_session, user, workout, make_schedule):
        included = make_schedule(datetime(2030, 5, 10, 7, 0))
        make_schedule(datetime(2030, 5, 11, 7, 0), status=ScheduleStatus.CANCELLED)
        make_schedule(datetime(2030, 4, 30, 7, 0))  # before today
        make_schedule(datetime(2030, 6, 15, 7, 0))  # beyond 30 days
        recent = WorkoutSession(user_id=user.id, workout_id=workout.id, start_time=datetime(2030, 4, 27, 7, 0))
        old = WorkoutSession(user_id=user.id, workout_id=workout.id, start_time=datetime(2030, 4, 1, 7, 0))
        db_session.add_all([recent, old])
        db_session.commit()

        lines = _unfold(build_user_feed(db_session, user.id, now=NOW))

        uids = [line for line in lines if line.startswith("UID:")]
        assert uids == [
            f"UID:scheduled-{included.id}@epicfitness.com",
            f"UID:completed-{recent.id}@epicfitness.com",
        ]
