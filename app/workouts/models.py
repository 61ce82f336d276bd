"""Workout database models.

Workouts are catalog templates; a WorkoutSession is one execution of a
workout by a user, optionally started from a schedule.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.models import Base
from app.utils.timezone import utcnow


class Difficulty(StrEnum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"
    EXTREME = "EXTREME"


class Workout(Base):
    """Workout table - catalog template for workouts.

    Schema:
    - id: UUID primary key
    - title: Workout title
    - description: Workout description
    - difficulty: EASY | MEDIUM | HARD | EXTREME
    - duration: Estimated duration in minutes (default for schedules)
    - calories_burn: Estimated calories burned
    - target_muscles: JSON list of muscle names
    - equipment: JSON list of equipment names
    """

    __tablename__ = "workouts"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    difficulty: Mapped[str] = mapped_column(String, nullable=False, default=Difficulty.MEDIUM.value)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    calories_burn: Mapped[int | None] = mapped_column(Integer, nullable=True)
    target_muscles: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    equipment: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class WorkoutSession(Base):
    """A user's execution of a workout.

    Created when a scheduled workout is started. Completion (end_time,
    completed, calories_burned) is recorded by the session flow.
    """

    __tablename__ = "workout_sessions"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    workout_id: Mapped[str] = mapped_column(String, ForeignKey("workouts.id"), nullable=False, index=True)
    schedule_id: Mapped[str | None] = mapped_column(
        String,
        ForeignKey("workout_schedules.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    end_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    calories_burned: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    workout: Mapped[Workout] = relationship("Workout")
    schedule = relationship("WorkoutSchedule", back_populates="sessions")

    __table_args__ = (
        Index("idx_workout_sessions_user_start", "user_id", "start_time"),
    )
