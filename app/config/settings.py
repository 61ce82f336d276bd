import os
from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_database_url() -> str:
    """Get database URL, using absolute path for SQLite to avoid path resolution issues.

    SQLite is for local development only. Set DATABASE_URL to a PostgreSQL
    connection string in any shared environment.
    """
    db_url = os.getenv("DATABASE_URL", "")
    if db_url:
        logger.info(f"Using DATABASE_URL from environment: {db_url}")
        return db_url

    db_path = Path(__file__).parent.parent.parent / "fitness.db"
    db_url = f"sqlite:///{db_path.resolve()}"
    logger.warning(f"Using SQLite database (LOCAL DEV ONLY): {db_url}. Set DATABASE_URL to use PostgreSQL.")
    return db_url


class Settings(BaseSettings):
    database_url: str = Field(
        default_factory=get_database_url,
        validation_alias="DATABASE_URL",
    )
    backend_url: str = Field(
        default="http://localhost:8000",  # Default for local dev; MUST be set to backend URL in production
        validation_alias="BACKEND_URL",
    )
    auth_secret_key: str = Field(default="", validation_alias="AUTH_SECRET_KEY")
    auth_algorithm: str = Field(default="HS256", validation_alias="AUTH_ALGORITHM")
    auth_token_expire_days: int = Field(default=30, validation_alias="AUTH_TOKEN_EXPIRE_DAYS")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    missed_sweep_enabled: bool = Field(
        default=True,
        validation_alias="MISSED_SWEEP_ENABLED",
        description="Run the missed-workout sweep on a background scheduler",
    )
    missed_sweep_interval_minutes: int = Field(
        default=15,
        validation_alias="MISSED_SWEEP_INTERVAL_MINUTES",
        description="Minutes between missed-workout sweeps",
    )
    calendar_feed_days_ahead: int = Field(
        default=30,
        validation_alias="CALENDAR_FEED_DAYS_AHEAD",
        description="Days of upcoming schedules included in the iCalendar feed",
    )
    calendar_feed_days_back: int = Field(
        default=7,
        validation_alias="CALENDAR_FEED_DAYS_BACK",
        description="Days of past workout sessions included in the iCalendar feed",
    )
    calendar_feed_domain: str = Field(
        default="epicfitness.com",
        validation_alias="CALENDAR_FEED_DOMAIN",
        description="Domain used in iCalendar event UIDs",
    )

    model_config = SettingsConfigDict(env_file=".env")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("auth_secret_key")
    @classmethod
    def validate_auth_secret_key(cls, value: str) -> str:
        """Warn when tokens would be signed with an empty key.

        Empty keys are tolerated for local development and tests only.
        """
        if not value:
            logger.warning("AUTH_SECRET_KEY is not set. Tokens are signed with an empty key (local development only).")
        return value

    @field_validator("missed_sweep_interval_minutes")
    @classmethod
    def validate_sweep_interval(cls, value: int) -> int:
        if value < 1:
            raise ValueError("MISSED_SWEEP_INTERVAL_MINUTES must be at least 1")
        return value


settings = Settings()
