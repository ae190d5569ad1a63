"""Attendance Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update / *Request → request bodies (write)
  - *Out / *Result               → response bodies (read)
"""


from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from leavedesk.common.constants import AttendanceType, LeavePool

# HH:MM, 24-hour clock
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


# ═════════════════════════════════════════════════════════════════════
# Requests
# ═════════════════════════════════════════════════════════════════════


class AttendanceCreate(BaseModel):
    """Register one type over a date range (expanded into working days)."""

    user_id: Optional[int] = Field(
        None, description="Target user; defaults to the caller",
    )
    start_date: date
    end_date: Optional[date] = Field(None, description="Defaults to start_date")
    type: AttendanceType
    reason: Optional[str] = Field(None, max_length=500)
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)

    @model_validator(mode="after")
    def _default_end_date(self) -> "AttendanceCreate":
        if self.end_date is None:
            self.end_date = self.start_date
        return self


class AttendanceUpdate(BaseModel):
    """Edit a single record: move it, retype it, or change its window."""

    date: date
    type: AttendanceType
    reason: Optional[str] = Field(None, max_length=500)
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)


class OverlapCheckRequest(BaseModel):
    """Advisory pre-check before submitting a record."""

    user_id: Optional[int] = None
    date: date
    type: Optional[AttendanceType] = None
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)


# ═════════════════════════════════════════════════════════════════════
# Responses
# ═════════════════════════════════════════════════════════════════════


class AttendanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    user_name: Optional[str] = None
    date: date
    type: str
    reason: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class CreateResult(BaseModel):
    created_dates: list[date]
    leave_usage: Decimal
    leave_type: Optional[LeavePool] = None
    records: list[AttendanceOut] = Field(default_factory=list)


class DeleteResult(BaseModel):
    success: bool = True
    restored: Decimal = Decimal("0")


class OverlapCheckOut(BaseModel):
    date_taken: bool = Field(
        ..., description="A record already exists on this date",
    )
    overlaps: bool = Field(
        ..., description="The proposed window collides with an existing one",
    )
    conflict: Optional[AttendanceOut] = None
    message: Optional[str] = None


class AttendanceTypeOut(BaseModel):
    type: AttendanceType
    default_start_time: Optional[str] = None
    default_end_time: Optional[str] = None
    day_weight: Decimal
    requires_explicit_time: bool
    leave_pool: Optional[LeavePool] = None


# ═════════════════════════════════════════════════════════════════════
# Calendar
# ═════════════════════════════════════════════════════════════════════


class CalendarRecordOut(AttendanceOut):
    start_slot: int
    end_slot: int


class CalendarDayOut(BaseModel):
    date: date
    is_weekend: bool
    is_holiday: bool
    holiday_name: Optional[str] = None
    records: list[CalendarRecordOut] = Field(default_factory=list)


class CalendarMonthOut(BaseModel):
    year: int
    month: int
    days: list[CalendarDayOut]
