"""Month grid for the calendar screen: days, holidays and slot ranges."""

from __future__ import annotations

import calendar as _calendar
from collections import defaultdict
from datetime import date
from typing import Iterable, Optional

from leavedesk.attendance.schemas import (
    AttendanceOut,
    CalendarDayOut,
    CalendarMonthOut,
    CalendarRecordOut,
)
from leavedesk.attendance.slots import slots_for_record
from leavedesk.holidays.service import HolidayCalendar, get_holiday_calendar, is_weekend


def month_grid(
    records: Iterable[AttendanceOut],
    year: int,
    month: int,
    calendar: Optional[HolidayCalendar] = None,
) -> CalendarMonthOut:
    """One entry per day of ``year``/``month`` with its records and slots.

    Records outside the month are ignored.
    """
    cal = calendar or get_holiday_calendar()
    by_day: dict[date, list[CalendarRecordOut]] = defaultdict(list)
    for record in records:
        if record.date.year != year or record.date.month != month:
            continue
        start_slot, end_slot = slots_for_record(record)
        by_day[record.date].append(
            CalendarRecordOut(
                **record.model_dump(),
                start_slot=start_slot,
                end_slot=end_slot,
            )
        )

    _, last_day = _calendar.monthrange(year, month)
    days: list[CalendarDayOut] = []
    for day_number in range(1, last_day + 1):
        day = date(year, month, day_number)
        holiday_name = cal.name_for(day)
        days.append(
            CalendarDayOut(
                date=day,
                is_weekend=is_weekend(day),
                is_holiday=holiday_name is not None,
                holiday_name=holiday_name,
                records=sorted(by_day.get(day, []), key=lambda r: (r.start_slot, r.id)),
            )
        )
    return CalendarMonthOut(year=year, month=month, days=days)
