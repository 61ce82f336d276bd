"""Workout schedule API routes.

All routes are scoped to the authenticated user. Business errors raised by
the schedule lifecycle are translated into HTTP errors here.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger

from app.api.dependencies.auth import get_current_user_id
from app.db.session import get_session
from app.schedules import service
from app.schedules.calendar_view import build_calendar
from app.schedules.errors import ScheduleConflictError, ScheduleError
from app.schedules.models import ScheduleStatus
from app.schedules.schemas import (
    CalendarResponse,
    ScheduleCreateRequest,
    ScheduleListResponse,
    ScheduleResponse,
    ScheduleSchema,
    ScheduleUpdateRequest,
    UpcomingSchedulesResponse,
    WorkoutSessionResponse,
    WorkoutSessionSchema,
)
from app.utils.timezone import utcnow

router = APIRouter(prefix="/schedules", tags=["schedules"])


def _http_error(e: ScheduleError) -> HTTPException:
    if isinstance(e, ScheduleConflictError):
        return HTTPException(
            status_code=e.status_code,
            detail={"message": e.message, "conflicting_schedule_id": e.conflicting_schedule_id},
        )
    return HTTPException(status_code=e.status_code, detail=e.message)


@router.post("", response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
def create_schedule(
    request: ScheduleCreateRequest,
    user_id: str = Depends(get_current_user_id),
) -> ScheduleResponse:
    """Schedule a workout.

    Raises:
        HTTPException: 404 if the workout does not exist
        HTTPException: 409 if the time window overlaps an active schedule
    """
    logger.info(f"Creating schedule for user_id={user_id}, workout_id={request.workout_id}")
    try:
        with get_session() as session:
            schedule = service.create_schedule(session, user_id, request)
            return ScheduleResponse(
                data=ScheduleSchema.from_model(schedule),
                message="Workout scheduled successfully",
            )
    except ScheduleError as e:
        raise _http_error(e) from e


@router.get("", response_model=ScheduleListResponse)
def list_schedules(
    start_date: datetime | None = Query(default=None, description="Range start (applied with end_date)"),
    end_date: datetime | None = Query(default=None, description="Range end (applied with start_date)"),
    status_filter: ScheduleStatus | None = Query(default=None, alias="status"),
    workout_id: str | None = Query(default=None),
    user_id: str = Depends(get_current_user_id),
) -> ScheduleListResponse:
    filters = service.ScheduleFilters(
        start_date=start_date,
        end_date=end_date,
        status=status_filter,
        workout_id=workout_id,
    )
    with get_session() as session:
        schedules = service.list_schedules(session, user_id, filters)
        data = [ScheduleSchema.from_model(s) for s in schedules]
    return ScheduleListResponse(data=data, count=len(data))


@router.get("/calendar", response_model=CalendarResponse)
def get_calendar(
    year: int | None = Query(default=None, ge=1, le=9999),
    month: int | None = Query(default=None),
    user_id: str = Depends(get_current_user_id),
) -> CalendarResponse:
    """Month view of schedules grouped by date. Defaults to the current UTC month."""
    today = utcnow()
    year = year if year is not None else today.year
    month = month if month is not None else today.month
    try:
        with get_session() as session:
            data = build_calendar(session, user_id, year, month)
    except ScheduleError as e:
        raise _http_error(e) from e
    return CalendarResponse(data=data, year=year, month=month)


@router.get("/upcoming", response_model=UpcomingSchedulesResponse)
def get_upcoming(user_id: str = Depends(get_current_user_id)) -> UpcomingSchedulesResponse:
    with get_session() as session:
        schedules = service.get_upcoming(session, user_id)
        data = [ScheduleSchema.from_model(s) for s in schedules]
    return UpcomingSchedulesResponse(data=data)


@router.get("/{schedule_id}", response_model=ScheduleResponse)
def get_schedule(
    schedule_id: str,
    user_id: str = Depends(get_current_user_id),
) -> ScheduleResponse:
    try:
        with get_session() as session:
            schedule = service.get_schedule(session, schedule_id, user_id)
            return ScheduleResponse(data=ScheduleSchema.from_model(schedule))
    except ScheduleError as e:
        raise _http_error(e) from e


@router.put("/{schedule_id}", response_model=ScheduleResponse)
def update_schedule(
    schedule_id: str,
    request: ScheduleUpdateRequest,
    user_id: str = Depends(get_current_user_id),
) -> ScheduleResponse:
    """Reschedule or edit a schedule.

    Raises:
        HTTPException: 404 if not found
        HTTPException: 409 if the new time overlaps another active schedule
    """
    try:
        with get_session() as session:
            schedule = service.update_schedule(session, schedule_id, user_id, request)
            return ScheduleResponse(
                data=ScheduleSchema.from_model(schedule),
                message="Schedule updated successfully",
            )
    except ScheduleError as e:
        raise _http_error(e) from e


@router.delete("/{schedule_id}", response_model=ScheduleResponse)
def cancel_schedule(
    schedule_id: str,
    user_id: str = Depends(get_current_user_id),
) -> ScheduleResponse:
    """Cancel a schedule. The row is kept with status CANCELLED."""
    try:
        with get_session() as session:
            schedule = service.cancel_schedule(session, schedule_id, user_id)
            return ScheduleResponse(
                data=ScheduleSchema.from_model(schedule),
                message="Workout cancelled successfully",
            )
    except ScheduleError as e:
        raise _http_error(e) from e


@router.post("/{schedule_id}/start", response_model=WorkoutSessionResponse)
def start_schedule(
    schedule_id: str,
    user_id: str = Depends(get_current_user_id),
) -> WorkoutSessionResponse:
    """Start a scheduled workout, creating a workout session.

    Raises:
        HTTPException: 400 if the schedule is not in SCHEDULED status
        HTTPException: 404 if not found
    """
    try:
        with get_session() as session:
            workout_session = service.start_schedule(session, schedule_id, user_id)
            return WorkoutSessionResponse(
                data=WorkoutSessionSchema.from_model(workout_session),
                message="Workout started successfully",
            )
    except ScheduleError as e:
        raise _http_error(e) from e
