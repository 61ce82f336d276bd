"""Workout schedule database model."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from enum import StrEnum

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.models import Base
from app.utils.timezone import utcnow
from app.workouts.models import Workout, WorkoutSession


class ScheduleStatus(StrEnum):
    """Lifecycle status of a workout schedule."""

    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    MISSED = "MISSED"


ACTIVE_STATUSES: tuple[str, ...] = (ScheduleStatus.SCHEDULED.value, ScheduleStatus.IN_PROGRESS.value)


class WorkoutSchedule(Base):
    """A user's intent to perform a workout at a specific time.

    Schema:
    - scheduled_date: Start timestamp (naive UTC). Single source of truth for
      ordering and conflict detection.
    - scheduled_time: Display-only "HH:MM" hint
    - duration: Minutes; the effective window is [scheduled_date, scheduled_date + duration)
    - status: SCHEDULED | IN_PROGRESS | COMPLETED | CANCELLED | MISSED
    - reminder_enabled / reminder_time: Notification preference (stored only)
    - is_recurring / recurrence_rule / recurrence_end: Recurrence template settings
    - parent_schedule_id: Recurring parent that generated this instance (weak reference)

    Rows are never hard-deleted; cancellation is a status change.
    """

    __tablename__ = "workout_schedules"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    workout_id: Mapped[str] = mapped_column(String, ForeignKey("workouts.id"), nullable=False, index=True)

    scheduled_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    scheduled_time: Mapped[str | None] = mapped_column(String(5), nullable=True)  # HH:MM format
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default=ScheduleStatus.SCHEDULED.value)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    reminder_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    reminder_time: Mapped[int] = mapped_column(Integer, nullable=False, default=30)

    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    recurrence_rule: Mapped[str | None] = mapped_column(String, nullable=True)
    recurrence_end: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    parent_schedule_id: Mapped[str | None] = mapped_column(
        String,
        ForeignKey("workout_schedules.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    workout: Mapped[Workout] = relationship("Workout")
    sessions: Mapped[list[WorkoutSession]] = relationship(
        "WorkoutSession",
        back_populates="schedule",
        order_by="WorkoutSession.start_time",
    )

    __table_args__ = (
        Index("idx_workout_schedules_user_date", "user_id", "scheduled_date"),  # Conflict pre-filter and range listing
        Index("idx_workout_schedules_status_date", "status", "scheduled_date"),  # Missed-workout sweep
    )

    @property
    def ends_at(self) -> datetime:
        """End of the effective time window (exclusive)."""
        return self.scheduled_date + timedelta(minutes=self.duration)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES
