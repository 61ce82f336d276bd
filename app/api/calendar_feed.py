"""Calendar subscription endpoints.

POST /calendar/token issues a subscription URL for the authenticated user.
GET /calendar/feed/{token}.ics serves the iCalendar feed; calendar clients
poll it without auth headers, so the token itself identifies the user.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response
from loguru import logger

from app.api.dependencies.auth import get_current_user_id
from app.config.settings import settings
from app.core.auth_jwt import create_calendar_feed_token, decode_calendar_feed_token
from app.db.session import get_session
from app.schedules.ical import build_user_feed
from app.schedules.schemas import CalendarTokenData, CalendarTokenResponse

router = APIRouter(prefix="/calendar", tags=["calendar"])

FEED_FILENAME = "epic-fitness-workouts.ics"


@router.post("/token", response_model=CalendarTokenResponse)
def create_feed_token(user_id: str = Depends(get_current_user_id)) -> CalendarTokenResponse:
    """Issue a calendar subscription token and its https/webcal URLs."""
    token = create_calendar_feed_token(user_id)
    base_url = settings.backend_url.rstrip("/")
    subscription_url = f"{base_url}/calendar/feed/{token}.ics"
    webcal_host = base_url.split("://", 1)[-1]
    logger.info(f"Calendar feed token issued for user_id={user_id}")
    return CalendarTokenResponse(
        data=CalendarTokenData(
            token=token,
            subscription_url=subscription_url,
            webcal_url=f"webcal://{webcal_host}/calendar/feed/{token}.ics",
        )
    )


@router.get("/feed/{token}.ics")
def get_feed(token: str) -> Response:
    """Serve the iCalendar feed for the token's user."""
    try:
        user_id = decode_calendar_feed_token(token)
    except ValueError:
        logger.warning("Calendar feed requested with invalid token")
        return PlainTextResponse("Invalid calendar token", status_code=401)

    with get_session() as session:
        content = build_user_feed(session, user_id)

    return Response(
        content,
        media_type="text/calendar; charset=utf-8",
        headers={
            "Content-Disposition": f'inline; filename="{FEED_FILENAME}"',
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "Expires": "0",
        },
    )
