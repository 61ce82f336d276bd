"""API contract schemas for workout scheduling.

Request models enforce the boundary constraints before anything reaches the
schedule lifecycle; response models shape what the routes return.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schedules.models import ScheduleStatus, WorkoutSchedule
from app.schedules.recurrence import RecurrenceRule
from app.utils.timezone import to_utc
from app.workouts.models import Workout, WorkoutSession

TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


def normalize_time(value: str) -> str:
    """Zero-pad the hour: "7:30" -> "07:30"."""
    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{minutes}"


def time_of(scheduled_date: datetime) -> str:
    """UTC HH:MM of a timestamp."""
    return to_utc(scheduled_date).strftime("%H:%M")


def check_time_matches_date(scheduled_date: datetime | None, scheduled_time: str | None) -> None:
    """Reject a display time that disagrees with the UTC time of scheduled_date."""
    if scheduled_date is None or scheduled_time is None:
        return
    expected = time_of(scheduled_date)
    if normalize_time(scheduled_time) != expected:
        raise ValueError(f"scheduled_time {scheduled_time} does not match scheduled_date (expected {expected} UTC)")


def _normalize_optional_time(value: str | None) -> str | None:
    return normalize_time(value) if value is not None else None


# ============================================================================
# Requests
# ============================================================================


class ScheduleCreateRequest(BaseModel):
    """Request body for POST /schedules."""

    workout_id: str = Field(min_length=1, description="Workout to schedule")
    scheduled_date: datetime = Field(description="ISO 8601 start timestamp")
    scheduled_time: str | None = Field(default=None, pattern=TIME_PATTERN, description="Display time (HH:MM, 24h)")
    duration: int | None = Field(default=None, ge=1, le=300, description="Duration in minutes (defaults to workout duration)")
    notes: str | None = Field(default=None, max_length=500)
    reminder_enabled: bool | None = Field(default=None)
    reminder_time: int | None = Field(default=None, ge=5, le=1440, description="Reminder lead time in minutes")
    is_recurring: bool = Field(default=False)
    recurrence_rule: RecurrenceRule | None = Field(default=None, description="daily | weekly | monthly")
    recurrence_end: datetime | None = Field(default=None, description="ISO 8601 last possible occurrence")

    @field_validator("recurrence_rule", mode="before")
    @classmethod
    def lowercase_rule(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("scheduled_time")
    @classmethod
    def pad_time(cls, value: str | None) -> str | None:
        return _normalize_optional_time(value)

    @model_validator(mode="after")
    def validate_consistency(self) -> ScheduleCreateRequest:
        check_time_matches_date(self.scheduled_date, self.scheduled_time)
        if self.is_recurring:
            if self.recurrence_rule is None:
                raise ValueError("recurrence_rule is required when is_recurring is true")
            if self.recurrence_end is None:
                raise ValueError("recurrence_end is required when is_recurring is true")
        if self.recurrence_end is not None and to_utc(self.recurrence_end) < to_utc(self.scheduled_date):
            raise ValueError("recurrence_end must not be before scheduled_date")
        return self


class ScheduleUpdateRequest(BaseModel):
    """Request body for PUT /schedules/{id}.

    Only the fields present in the body are applied. Duration, recurrence
    settings and the target workout cannot be changed. IN_PROGRESS is only
    reachable through POST /schedules/{id}/start.
    """

    scheduled_date: datetime | None = Field(default=None)
    scheduled_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    notes: str | None = Field(default=None, max_length=500)
    reminder_enabled: bool | None = Field(default=None)
    reminder_time: int | None = Field(default=None, ge=5, le=1440)
    status: ScheduleStatus | None = Field(default=None)

    @field_validator("scheduled_time")
    @classmethod
    def pad_time(cls, value: str | None) -> str | None:
        return _normalize_optional_time(value)

    @field_validator("status")
    @classmethod
    def reject_in_progress(cls, value: ScheduleStatus | None) -> ScheduleStatus | None:
        if value is ScheduleStatus.IN_PROGRESS:
            raise ValueError("IN_PROGRESS can only be set by starting the workout")
        return value

    @model_validator(mode="after")
    def validate_consistency(self) -> ScheduleUpdateRequest:
        check_time_matches_date(self.scheduled_date, self.scheduled_time)
        return self


# ============================================================================
# Responses
# ============================================================================


class WorkoutSummary(BaseModel):
    id: str
    title: str
    difficulty: str
    duration: int
    calories_burn: int | None = None
    target_muscles: list[str] = Field(default_factory=list)
    equipment: list[str] = Field(default_factory=list)

    @classmethod
    def from_model(cls, workout: Workout) -> WorkoutSummary:
        return cls(
            id=workout.id,
            title=workout.title,
            difficulty=workout.difficulty,
            duration=workout.duration,
            calories_burn=workout.calories_burn,
            target_muscles=list(workout.target_muscles or []),
            equipment=list(workout.equipment or []),
        )


class WorkoutSessionSchema(BaseModel):
    """A workout session started from a schedule."""

    id: str
    workout_id: str
    schedule_id: str | None = None
    start_time: datetime
    end_time: datetime | None = None
    completed: bool
    duration: int | None = None
    calories_burned: int | None = None

    @classmethod
    def from_model(cls, workout_session: WorkoutSession) -> WorkoutSessionSchema:
        return cls(
            id=workout_session.id,
            workout_id=workout_session.workout_id,
            schedule_id=workout_session.schedule_id,
            start_time=to_utc(workout_session.start_time),
            end_time=to_utc(workout_session.end_time) if workout_session.end_time else None,
            completed=workout_session.completed,
            duration=workout_session.duration,
            calories_burned=workout_session.calories_burned,
        )


class ScheduleSchema(BaseModel):
    """A workout schedule as returned by the API."""

    id: str
    workout_id: str
    scheduled_date: datetime = Field(description="UTC start timestamp")
    ends_at: datetime = Field(description="UTC end of the scheduled window")
    scheduled_time: str | None = None
    duration: int
    status: ScheduleStatus
    notes: str | None = None
    reminder_enabled: bool
    reminder_time: int
    is_recurring: bool
    recurrence_rule: str | None = None
    recurrence_end: datetime | None = None
    parent_schedule_id: str | None = None
    workout: WorkoutSummary | None = None
    sessions: list[WorkoutSessionSchema] = Field(default_factory=list)

    @classmethod
    def from_model(cls, schedule: WorkoutSchedule, *, include_sessions: bool = True) -> ScheduleSchema:
        return cls(
            id=schedule.id,
            workout_id=schedule.workout_id,
            scheduled_date=to_utc(schedule.scheduled_date),
            ends_at=to_utc(schedule.ends_at),
            scheduled_time=schedule.scheduled_time,
            duration=schedule.duration,
            status=ScheduleStatus(schedule.status),
            notes=schedule.notes,
            reminder_enabled=schedule.reminder_enabled,
            reminder_time=schedule.reminder_time,
            is_recurring=schedule.is_recurring,
            recurrence_rule=schedule.recurrence_rule,
            recurrence_end=to_utc(schedule.recurrence_end) if schedule.recurrence_end else None,
            parent_schedule_id=schedule.parent_schedule_id,
            workout=WorkoutSummary.from_model(schedule.workout) if schedule.workout else None,
            sessions=[WorkoutSessionSchema.from_model(s) for s in schedule.sessions] if include_sessions else [],
        )


class ScheduleResponse(BaseModel):
    success: bool = True
    data: ScheduleSchema
    message: str | None = None


class ScheduleListResponse(BaseModel):
    success: bool = True
    data: list[ScheduleSchema]
    count: int


class UpcomingSchedulesResponse(BaseModel):
    success: bool = True
    data: list[ScheduleSchema]


class WorkoutSessionResponse(BaseModel):
    success: bool = True
    data: WorkoutSessionSchema
    message: str | None = None


class CalendarEntry(BaseModel):
    """One schedule inside a calendar day cell."""

    id: str
    title: str
    time: str | None = None
    status: ScheduleStatus
    difficulty: str | None = None


class CalendarResponse(BaseModel):
    """Response for GET /schedules/calendar."""

    success: bool = True
    data: dict[str, list[CalendarEntry]] = Field(description="Entries keyed by ISO date (YYYY-MM-DD)")
    year: int
    month: int


class CalendarTokenData(BaseModel):
    token: str
    subscription_url: str
    webcal_url: str


class CalendarTokenResponse(BaseModel):
    success: bool = True
    data: CalendarTokenData
