"""Holiday Pydantic v2 schemas."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel


class HolidayOut(BaseModel):
    date: date
    name: str


class HolidayListOut(BaseModel):
    year: int
    holidays: list[HolidayOut]
