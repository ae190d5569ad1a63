"""Working-day calendar — weekends, public holidays, range expansion.

The holiday table is a year-indexed lookup. The default calendar is built
from the bundled tables and, when ``HOLIDAYS_FILE`` is set, merged with the
years found in that JSON file (file entries win for a given year).
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Mapping, Optional
from zoneinfo import ZoneInfo

from leavedesk.common.constants import DATE_FORMAT, TIMEZONE
from leavedesk.config import settings
from leavedesk.holidays.data import DEFAULT_HOLIDAYS

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════
# HolidayCalendar
# ═════════════════════════════════════════════════════════════════════


class HolidayCalendar:
    """Year-indexed holiday lookup: ``{year: {"YYYY-MM-DD": name}}``."""

    def __init__(self, years: Optional[Mapping[int, Mapping[str, str]]] = None) -> None:
        self._years: dict[int, dict[str, str]] = {}
        for year, entries in (years or {}).items():
            self._years[int(year)] = dict(entries)

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        base: Optional[Mapping[int, Mapping[str, str]]] = None,
    ) -> HolidayCalendar:
        """Load a JSON holiday file, replacing matching years of ``base``."""
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        merged: dict[int, dict[str, str]] = {
            int(y): dict(v) for y, v in (base or {}).items()
        }
        for year, entries in raw.items():
            merged[int(year)] = {str(k): str(v) for k, v in entries.items()}
        logger.info("Loaded holiday years %s from %s", sorted(raw), path)
        return cls(merged)

    @property
    def years(self) -> list[int]:
        return sorted(self._years)

    def name_for(self, day: date) -> Optional[str]:
        return self._years.get(day.year, {}).get(day.strftime(DATE_FORMAT))

    def is_holiday(self, day: date) -> bool:
        return self.name_for(day) is not None

    def names_for_year(self, year: int) -> list[tuple[date, str]]:
        """Holidays of ``year`` ordered by date."""
        entries = self._years.get(year, {})
        return sorted(
            (date.fromisoformat(key), name) for key, name in entries.items()
        )


@lru_cache(maxsize=1)
def get_holiday_calendar() -> HolidayCalendar:
    """Process-wide calendar built from defaults and ``HOLIDAYS_FILE``."""
    if settings.HOLIDAYS_FILE:
        return HolidayCalendar.from_file(settings.HOLIDAYS_FILE, base=DEFAULT_HOLIDAYS)
    return HolidayCalendar(DEFAULT_HOLIDAYS)


# ═════════════════════════════════════════════════════════════════════
# Working-day helpers
# ═════════════════════════════════════════════════════════════════════


def local_today(now: Optional[datetime] = None) -> date:
    """Today in the company timezone; defaults for "this year" derive from it."""
    current = now or datetime.now(timezone.utc)
    return current.astimezone(ZoneInfo(TIMEZONE)).date()


def is_weekend(day: date) -> bool:
    # Saturday=5, Sunday=6
    return day.weekday() >= 5


def is_holiday(day: date, calendar: Optional[HolidayCalendar] = None) -> bool:
    return (calendar or get_holiday_calendar()).is_holiday(day)


def is_working_day(day: date, calendar: Optional[HolidayCalendar] = None) -> bool:
    return not is_weekend(day) and not is_holiday(day, calendar)


def expand_range(start: date, end: date) -> list[date]:
    """Every calendar date from ``start`` to ``end`` inclusive.

    Returns an empty list when ``end`` precedes ``start``.
    """
    return list(_iter_days(start, end))


def working_days(
    start: date,
    end: date,
    calendar: Optional[HolidayCalendar] = None,
) -> list[date]:
    """The subset of ``expand_range(start, end)`` that are working days."""
    cal = calendar or get_holiday_calendar()
    return [d for d in _iter_days(start, end) if is_working_day(d, cal)]


def count_working_days(
    start: date,
    end: date,
    calendar: Optional[HolidayCalendar] = None,
) -> int:
    return len(working_days(start, end, calendar))


def _iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
