"""Holiday router — public holiday list for a year."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from leavedesk.auth.dependencies import get_current_user
from leavedesk.holidays.schemas import HolidayListOut, HolidayOut
from leavedesk.holidays.service import get_holiday_calendar, local_today
from leavedesk.users.models import User

router = APIRouter(prefix="", tags=["holidays"])


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=HolidayListOut)
async def list_holidays(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    user: User = Depends(get_current_user),
):
    """Holidays of ``year`` (defaults to the current year)."""
    target_year = year or local_today().year
    calendar = get_holiday_calendar()
    return HolidayListOut(
        year=target_year,
        holidays=[
            HolidayOut(date=day, name=name)
            for day, name in calendar.names_for_year(target_year)
        ],
    )
