"""Root conftest for all tests.

This file makes shared fixtures available across all test modules.
"""

from contextlib import contextmanager

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

# Modules that import get_session directly and must see the test session
_GET_SESSION_CONSUMERS = (
    "app.api.schedules",
    "app.api.calendar_feed",
    "app.api.dependencies.auth",
    "app.schedules.sweeper",
)


# Enable foreign key constraints for SQLite
@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints in SQLite connections."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(scope="session", autouse=True)
def ensure_models_imported():
    """Ensure all models are imported so SQLAlchemy metadata is complete."""
    import app.db.models
    import app.schedules.models
    import app.workouts.models

    from app.db.models import Base

    for table in ("users", "workouts", "workout_sessions", "workout_schedules"):
        assert table in Base.metadata.tables, f"{table} not registered in Base.metadata"

    yield


@pytest.fixture(autouse=True)
def auth_secret(monkeypatch):
    """Sign tokens with a fixed key during tests."""
    from app.config.settings import settings

    monkeypatch.setattr(settings, "auth_secret_key", "test-secret-key")
    monkeypatch.setattr(settings, "auth_algorithm", "HS256")


@pytest.fixture(scope="function")
def db_session(monkeypatch):
    """
    Provides a transactional in-memory SQLite DB session for tests.

    This fixture:
    - Creates an isolated in-memory SQLite database per test
    - Patches the engine creation to use SQLite
    - Patches get_session() to return the test session
    - Uses transaction rollback for cleanup; service-level commits
      are released into the outer transaction

    Usage:
        def test_something(db_session):
            db_session.add(WorkoutSchedule(...))
            db_session.commit()
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
    )

    def mock_get_engine():
        return engine

    monkeypatch.setattr("app.db.session._get_engine", mock_get_engine)
    monkeypatch.setattr("app.db.session.get_engine", mock_get_engine)

    from app.db.models import Base

    Base.metadata.create_all(engine)

    connection = engine.connect()
    transaction = connection.begin()

    test_session_local = sessionmaker(bind=connection, autocommit=False, autoflush=False)
    session = test_session_local()

    @contextmanager
    def mock_get_session():
        yield session

    # Patch at the module level (where it's defined)
    import app.db.session as session_module

    monkeypatch.setattr(session_module, "get_session", mock_get_session)

    # Patch where it's imported/used (not just where it's defined)
    import importlib

    for module_name in _GET_SESSION_CONSUMERS:
        module = importlib.import_module(module_name)
        monkeypatch.setattr(module, "get_session", mock_get_session)

    try:
        yield session
    finally:
        session.rollback()
        if transaction.is_active:
            transaction.rollback()
        session.close()
        connection.close()
        engine.dispose()


@pytest.fixture
def user(db_session):
    """A persisted active user."""
    from app.db.models import User

    user = User(email="athlete@example.com", name="Test Athlete")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def other_user(db_session):
    """A second user, for ownership checks."""
    from app.db.models import User

    user = User(email="other@example.com", name="Other Athlete")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def workout(db_session):
    """A 60-minute HARD catalog workout."""
    from app.workouts.models import Difficulty, Workout

    workout = Workout(
        title="Leg Day",
        description="Squats, lunges, deadlifts",
        difficulty=Difficulty.HARD.value,
        duration=60,
        calories_burn=450,
        target_muscles=["quads", "glutes"],
        equipment=["barbell"],
    )
    db_session.add(workout)
    db_session.commit()
    return workout


@pytest.fixture
def make_schedule(db_session, user, workout):
    """Factory persisting a schedule directly, bypassing conflict checks."""
    from app.schedules.models import ScheduleStatus, WorkoutSchedule

    def _make(scheduled_date, duration=60, status=ScheduleStatus.SCHEDULED, user_id=None, **kwargs):
        schedule = WorkoutSchedule(
            user_id=user_id or user.id,
            workout_id=workout.id,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_date.strftime("%H:%M"),
            duration=duration,
            status=str(status),
            **kwargs,
        )
        db_session.add(schedule)
        db_session.commit()
        return schedule

    return _make
