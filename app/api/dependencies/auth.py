"""FastAPI authentication dependency for JWT-based auth.

Provides get_current_user_id, which extracts and verifies a JWT from the
Authorization header or the session cookie and checks the user is active.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from loguru import logger
from sqlalchemy import select

from app.core.auth_jwt import decode_access_token
from app.db.models import User
from app.db.session import get_session

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def _get_auth_token(request: Request, token: str | None) -> str | None:
    """Extract auth token from either Authorization header or cookie.

    - Mobile/API clients: Bearer token in the Authorization header
    - Web: token in the "session" cookie
    """
    if token:
        return token
    return request.cookies.get("session") or None


def get_current_user_id(request: Request, token: str | None = Depends(oauth2_scheme)) -> str:
    """FastAPI dependency returning the authenticated user's id.

    Raises:
        HTTPException: 401 if token is missing, invalid, or the user does not exist
        HTTPException: 403 if user account is inactive
    """
    auth_token = _get_auth_token(request, token)

    if not auth_token:
        logger.warning(
            f"Auth failed: Missing authentication token. "
            f"Cookie present: {'session' in request.cookies}, "
            f"Path: {request.url.path}, Method: {request.method}"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header or a session cookie.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = decode_access_token(auth_token)
    except ValueError as e:
        logger.warning(f"Auth failed: {e}, Path: {request.url.path}, Method: {request.method}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    with get_session() as session:
        user = session.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
        if user is None:
            logger.warning(f"Auth failed: User not found user_id={user_id}, Path: {request.url.path}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found",
                headers={"WWW-Authenticate": "Bearer"},
            )
        if not user.is_active:
            logger.warning(f"Auth failed: Inactive user user_id={user_id}, Path: {request.url.path}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account inactive",
            )

    return user_id
