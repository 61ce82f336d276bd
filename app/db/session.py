from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from fastapi import HTTPException
from loguru import logger
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.config.settings import settings


def _is_postgresql(url: str) -> bool:
    return "postgresql" in url.lower() or "postgres" in url.lower()


def _validate_postgresql_driver() -> None:
    """Validate PostgreSQL driver is installed when using PostgreSQL.

    Must actually import psycopg2 because SQLAlchemy imports it when
    creating the engine.
    """
    try:
        import psycopg2  # noqa: F401

        logger.info("PostgreSQL driver (psycopg2) is available")
    except ImportError as e:
        logger.error("PostgreSQL driver (psycopg2) is not installed. Install it with: pip install psycopg2-binary")
        raise ImportError("PostgreSQL driver required. Install with: pip install psycopg2-binary") from e


def test_database_connection() -> None:
    """Run SELECT 1 against the configured database."""
    try:
        with _get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection test successful")
    except Exception as e:
        logger.error(f"Database connection test failed: {e}")
        raise


# Lazy initialization to avoid import-time database connections
_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def _get_engine() -> Engine:
    """Get or create the database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        url = settings.database_url
        connect_args: dict = {}
        if _is_postgresql(url):
            _validate_postgresql_driver()
            connect_args = {"connect_timeout": 10, "application_name": "epic-fitness"}
            logger.info("Using PostgreSQL database")
        else:
            connect_args = {"check_same_thread": False}
            logger.warning("Using SQLite database (local development only)")

        _engine = create_engine(
            url,
            connect_args=connect_args,
            echo=False,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
        logger.info("Database engine initialized")
    return _engine


def get_engine() -> Engine:
    """Get or create the database engine (public API)."""
    return _get_engine()


def _get_session_local() -> sessionmaker:
    """Get or create the session factory (lazy initialization)."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_get_engine())
        logger.info("Database session factory initialized")
    return _SessionLocal


def _handle_session_commit(session: Session) -> None:
    """Commit pending changes, skipping the round trip when there are none."""
    if session.dirty or session.new or session.deleted:
        logger.debug(f"Committing session: dirty={len(session.dirty)}, new={len(session.new)}, deleted={len(session.deleted)}")
        session.commit()
    else:
        logger.debug("No changes to commit, skipping commit")


def get_db() -> Generator[Session, None, None]:
    """Get database session for FastAPI dependencies.

    Plain generator usable with Depends(); FastAPI handles cleanup.
    For non-FastAPI code, use get_session() instead.
    """
    session = _get_session_local()()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Get database session context manager.

    - HTTPException: rolled back and re-raised without logging (expected API responses)
    - ScheduleError: rolled back and re-raised (business rule, not a DB error)
    - Other exceptions: logged as database errors, rolled back and re-raised
    """
    logger.debug("Creating new database session")
    session = _get_session_local()()
    try:
        yield session
        _handle_session_commit(session)
    except HTTPException:
        session.rollback()
        raise
    except Exception as e:
        # Import here to avoid circular imports
        from app.schedules.errors import ScheduleError

        session.rollback()
        if isinstance(e, ScheduleError):
            logger.debug(f"{type(e).__name__} in session, rolled back")
            raise
        logger.exception(f"Database session error, rolling back: {type(e).__name__}: {e}")
        raise
    finally:
        session.close()
        logger.debug("Database session closed")
