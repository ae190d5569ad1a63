"""Enums and constants for LeaveDesk — values match what is stored in the DB."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    user = "user"
    manager = "manager"
    admin = "admin"


# ── Leave ───────────────────────────────────────────────────────────

class LeavePool(str, enum.Enum):
    """Balance pool a leave-bearing attendance type draws from."""

    annual = "annual"
    compensatory = "compensatory"


# ── Attendance ──────────────────────────────────────────────────────

class AttendanceType(str, enum.Enum):
    """Attendance categories. Values are the identifiers used on the wire."""

    # Annual leave family
    annual = "연차"
    morning_half = "오전반차"
    afternoon_half = "오후반차"
    quarter = "반반차"
    morning_quarter_a = "오전반반차A"
    morning_quarter_b = "오전반반차B"
    afternoon_quarter_a = "오후반반차A"
    afternoon_quarter_b = "오후반반차B"

    # Compensatory leave
    compensatory = "체휴"

    # Non-leave statuses
    work = "근무"
    absence = "결근"
    flextime = "시차"

    # Duty categories (time-bound, no deduction)
    acting_lead = "팀장대행"
    coaching = "동석(코칭)"
    training = "교육"
    rest = "휴식"
    business_trip = "출장"
    outage = "장애"
    other = "기타"
    overtime = "연장근무"


# ── Time grid ───────────────────────────────────────────────────────

WORKDAY_START = "09:00"
WORKDAY_END = "18:00"
SLOT_MINUTES = 30
SLOT_COUNT = 18

# ── Misc constants ──────────────────────────────────────────────────

DATE_FORMAT = "%Y-%m-%d"
# Company clock: "today" and "this year" defaults are taken here
TIMEZONE = "Asia/Seoul"
CSV_MANAGER_LABEL = "중간관리자"
