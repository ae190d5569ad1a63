"""Attendance router — register, edit, delete, list and calendar view.

All endpoints require authentication. Acting on another user's records is
limited to admins and to managers within their department.
"""


from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.attendance.calendar_view import month_grid
from leavedesk.attendance.catalog import catalog_items
from leavedesk.attendance.schemas import (
    AttendanceCreate,
    AttendanceOut,
    AttendanceTypeOut,
    AttendanceUpdate,
    CalendarMonthOut,
    CreateResult,
    DeleteResult,
    OverlapCheckOut,
    OverlapCheckRequest,
)
from leavedesk.attendance.service import AttendanceService
from leavedesk.auth.dependencies import get_current_user
from leavedesk.database import get_db
from leavedesk.holidays.service import local_today
from leavedesk.users.models import User

router = APIRouter(prefix="", tags=["attendance"])


# ── POST / ──────────────────────────────────────────────────────────

@router.post("", response_model=CreateResult, status_code=201)
async def create_attendance(
    body: AttendanceCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Register a type over a date range. Weekends and holidays are skipped."""
    return await AttendanceService.create(db, user, body)


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=list[AttendanceOut])
async def list_attendance(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    user_id: Optional[int] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Records visible to the caller, optionally for one year/month or user."""
    return await AttendanceService.list_records(
        db, user, year=year, month=month, user_id=user_id,
    )


# ── GET /calendar ───────────────────────────────────────────────────

@router.get("/calendar", response_model=CalendarMonthOut)
async def calendar_month(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    user_id: Optional[int] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Day grid for one month with each record's slot range."""
    today = local_today()
    target_year = year or today.year
    target_month = month or today.month
    records = await AttendanceService.list_records(
        db, user, year=target_year, month=target_month, user_id=user_id,
    )
    return month_grid(records, target_year, target_month)


# ── GET /types ──────────────────────────────────────────────────────

@router.get("/types", response_model=list[AttendanceTypeOut])
async def attendance_types(user: User = Depends(get_current_user)):
    """Every attendance type with its default window and day weight."""
    return [
        AttendanceTypeOut(
            type=member,
            default_start_time=desc.default_start_time or None,
            default_end_time=desc.default_end_time or None,
            day_weight=desc.day_weight,
            requires_explicit_time=desc.requires_explicit_time,
            leave_pool=desc.pool,
        )
        for member, desc in catalog_items()
    ]


# ── POST /check-overlap ─────────────────────────────────────────────

@router.post("/check-overlap", response_model=OverlapCheckOut)
async def check_overlap(
    body: OverlapCheckRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Report whether the date is taken and whether the windows collide."""
    return await AttendanceService.check_overlap(db, user, body)


# ── PUT /{id} ───────────────────────────────────────────────────────

@router.put("/{record_id}", response_model=AttendanceOut)
async def update_attendance(
    record_id: int,
    body: AttendanceUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Edit a record. Date or type changes move the leave usage."""
    return await AttendanceService.update(db, user, record_id, body)


# ── DELETE /{id} ────────────────────────────────────────────────────

@router.delete("/{record_id}", response_model=DeleteResult)
async def delete_attendance(
    record_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a record and restore the leave it consumed."""
    return await AttendanceService.delete(db, user, record_id)
