from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from liftlog.deps.auth import get_current_identity
from liftlog.settings import get_settings

router = APIRouter(prefix="/preferences", tags=["preferences"])

TIMEZONE_COOKIE = "user_timezone"
ONE_YEAR = 60 * 60 * 24 * 365

class TimezoneIn(BaseModel):
    timezone: str = Field(max_length=64)

def parse_timezone(name: str | None) -> ZoneInfo | None:
    """IANA zone names only ("Area/City"); anything else is treated as unset."""
    if not name or "/" not in name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return None

@router.post("/timezone", status_code=status.HTTP_204_NO_CONTENT)
def set_timezone(
    payload: TimezoneIn,
    response: Response,
    _identity: str = Depends(get_current_identity),
):
    # Unknown zones are ignored rather than rejected; the client retries on next load
    if parse_timezone(payload.timezone) is None:
        return
    response.set_cookie(
        key=TIMEZONE_COOKIE,
        value=payload.timezone,
        path="/",
        httponly=True,
        samesite="lax",
        secure=get_settings().is_production,
        max_age=ONE_YEAR,
    )
