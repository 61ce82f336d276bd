"""JWT token creation and verification utilities.

Two kinds of stateless tokens are issued by the backend:
- Access tokens: user_id in the 'sub' claim, expire after AUTH_TOKEN_EXPIRE_DAYS
- Calendar feed tokens: user_id in 'sub' plus purpose="calendar_feed", no expiry,
  embedded in subscription URLs that calendar clients poll without headers
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from loguru import logger

from app.config.settings import settings

TOKEN_ISSUER = "epic-fitness-backend"
CALENDAR_FEED_PURPOSE = "calendar_feed"


def _require_user_id(user_id: str) -> str:
    user_id_str = str(user_id) if user_id is not None else ""
    if not user_id_str:
        raise ValueError("user_id cannot be None or empty")
    return user_id_str


def _decode(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            settings.auth_secret_key,
            algorithms=[settings.auth_algorithm],
        )
    except JWTError as e:
        logger.warning(f"JWT decode failed: {e}")
        raise ValueError("Invalid or expired token") from e


def create_access_token(user_id: str) -> str:
    """Create a JWT access token for a user.

    Args:
        user_id: User ID to encode in token

    Returns:
        JWT token string
    """
    now = datetime.now(UTC)
    payload = {
        "sub": _require_user_id(user_id),
        "exp": now + timedelta(days=settings.auth_token_expire_days),
        "iat": now,
        "iss": TOKEN_ISSUER,
    }
    return jwt.encode(payload, settings.auth_secret_key, algorithm=settings.auth_algorithm)


def decode_access_token(token: str) -> str:
    """Decode and verify a JWT access token.

    Returns:
        User ID from the 'sub' claim

    Raises:
        ValueError: If token is invalid, expired, or a calendar feed token
    """
    payload = _decode(token)
    if payload.get("purpose") == CALENDAR_FEED_PURPOSE:
        raise ValueError("Calendar feed token cannot be used for authentication")
    user_id = payload.get("sub")
    if not user_id:
        raise ValueError("Token missing user ID")
    return str(user_id)


def create_calendar_feed_token(user_id: str) -> str:
    """Create a non-expiring token for the iCalendar subscription URL."""
    payload = {
        "sub": _require_user_id(user_id),
        "iat": datetime.now(UTC),
        "iss": TOKEN_ISSUER,
        "purpose": CALENDAR_FEED_PURPOSE,
    }
    return jwt.encode(payload, settings.auth_secret_key, algorithm=settings.auth_algorithm)


def decode_calendar_feed_token(token: str) -> str:
    """Decode a calendar feed token.

    Returns:
        User ID from the 'sub' claim

    Raises:
        ValueError: If token is invalid or not a calendar feed token
    """
    payload = _decode(token)
    if payload.get("purpose") != CALENDAR_FEED_PURPOSE:
        raise ValueError("Not a calendar feed token")
    user_id = payload.get("sub")
    if not user_id:
        raise ValueError("Token missing user ID")
    return str(user_id)
