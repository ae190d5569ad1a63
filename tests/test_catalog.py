"""Attendance type catalog, slot grid and overlap check tests (no database)."""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

import pytest

from leavedesk.attendance.catalog import (
    EMPTY_DESCRIPTOR,
    catalog_items,
    describe,
    is_annual_pool,
    is_leave_bearing,
    is_partial_day,
    leave_pool,
    requires_explicit_time,
)
from leavedesk.attendance.overlap import find_conflict, windows_overlap
from leavedesk.attendance.slots import (
    effective_window,
    slot_mask,
    slots_for_record,
    slots_for_window,
    to_minutes,
)
from leavedesk.common.constants import AttendanceType, LeavePool


def _rec(type_="기타", start=None, end=None, label="r"):
    return SimpleNamespace(type=type_, start_time=start, end_time=end, label=label)


# ═════════════════════════════════════════════════════════════════════
# Catalog
# ═════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    "type_, start, end, weight",
    [
        ("연차", "09:00", "18:00", Decimal("1")),
        ("오전반차", "09:00", "14:00", Decimal("0.5")),
        ("오후반차", "14:00", "18:00", Decimal("0.5")),
        ("오전반반차A", "09:00", "11:00", Decimal("0.25")),
        ("오전반반차B", "11:00", "14:00", Decimal("0.25")),
        ("오후반반차A", "14:00", "16:00", Decimal("0.25")),
        ("오후반반차B", "16:00", "18:00", Decimal("0.25")),
        ("체휴", "09:00", "18:00", Decimal("1")),
        ("근무", "09:00", "18:00", Decimal("0")),
    ],
)
def test_describe_known_types(type_, start, end, weight):
    desc = describe(type_)
    assert (desc.default_start_time, desc.default_end_time, desc.day_weight) == (start, end, weight)


def test_describe_unknown_type_is_empty():
    assert describe("휴가") == EMPTY_DESCRIPTOR
    assert describe("휴가").day_weight == 0
    assert not is_leave_bearing("휴가")


def test_describe_accepts_enum_members():
    assert describe(AttendanceType.morning_half) == describe("오전반차")


def test_leave_bearing_and_pools():
    annual_types = ["연차", "오전반차", "오후반차", "반반차",
                    "오전반반차A", "오전반반차B", "오후반반차A", "오후반반차B"]
    for type_ in annual_types:
        assert is_leave_bearing(type_)
        assert is_annual_pool(type_)
        assert leave_pool(type_) is LeavePool.annual

    assert is_leave_bearing("체휴")
    assert not is_annual_pool("체휴")
    assert leave_pool("체휴") is LeavePool.compensatory

    for type_ in ["근무", "결근", "시차", "교육", "출장", "연장근무"]:
        assert not is_leave_bearing(type_)


def test_explicit_time_types():
    for type_ in ["팀장대행", "동석(코칭)", "교육", "휴식", "출장", "장애", "기타", "연장근무", "반반차", "시차"]:
        assert requires_explicit_time(type_), type_
    assert not requires_explicit_time("연차")
    assert not requires_explicit_time("결근")


def test_partial_day_types():
    assert is_partial_day("오전반차")
    assert is_partial_day("오후반반차B")
    assert not is_partial_day("연차")
    assert not is_partial_day("교육")


def test_catalog_covers_every_type():
    assert [member for member, _ in catalog_items()] == list(AttendanceType)


# ═════════════════════════════════════════════════════════════════════
# Slots
# ═════════════════════════════════════════════════════════════════════


def test_to_minutes():
    assert to_minutes("09:00") == 540
    assert to_minutes("17:45") == 1065


@pytest.mark.parametrize(
    "start, end, expected",
    [
        ("09:00", "18:00", (0, 17)),
        ("09:00", "14:00", (0, 9)),
        ("14:00", "18:00", (10, 17)),
        ("11:00", "14:00", (4, 9)),
        ("09:15", "09:45", (0, 1)),  # floor start, ceil end
        ("10:00", "10:30", (2, 2)),
        ("07:00", "20:00", (0, 17)),  # clamped
        ("18:30", "19:00", (17, 17)),
    ],
)
def test_slots_for_window(start, end, expected):
    assert slots_for_window(start, end) == expected


def test_slots_for_record_prefers_explicit_window():
    assert slots_for_record(_rec("반반차", "14:00", "16:00")) == (10, 13)
    assert slots_for_record(_rec("오후반차")) == (10, 17)
    # No explicit window and no default: whole day
    assert slots_for_record(_rec("기타")) == (0, 17)
    assert slots_for_record(_rec("알수없음")) == (0, 17)


def test_effective_window():
    assert effective_window("오전반차") == ("09:00", "14:00")
    assert effective_window("오전반차", "10:00", "12:00") == ("10:00", "12:00")
    assert effective_window("교육") == (None, None)


def test_slot_mask():
    mask = slot_mask("10:00", "11:00")
    assert len(mask) == 18
    assert [i for i, on in enumerate(mask) if on] == [2, 3]


# ═════════════════════════════════════════════════════════════════════
# Overlap
# ═════════════════════════════════════════════════════════════════════


def test_touching_windows_do_not_overlap():
    existing = [_rec(start="10:00", end="11:00")]
    assert find_conflict(existing, "11:00", "12:00") is None
    assert find_conflict(existing, "09:00", "10:00") is None


def test_overlapping_window_returns_first_conflict():
    first = _rec(start="10:00", end="11:00", label="first")
    second = _rec(start="10:30", end="12:00", label="second")
    assert find_conflict([first, second], "10:45", "11:30").label == "first"
    assert find_conflict([first, second], "11:00", "11:30").label == "second"


def test_records_without_times_are_skipped():
    existing = [_rec(start=None, end=None), _rec(start="13:00", end=None)]
    assert find_conflict(existing, "09:00", "18:00") is None


def test_proposal_without_times_never_conflicts():
    existing = [_rec(start="09:00", end="18:00")]
    assert find_conflict(existing, None, None) is None
    assert find_conflict(existing, "09:00", None) is None


def test_overlap_is_symmetric():
    pairs = [
        (("09:00", "14:00"), ("13:00", "15:00")),
        (("09:00", "14:00"), ("14:00", "16:00")),
        (("10:00", "10:30"), ("09:00", "18:00")),
    ]
    for a, b in pairs:
        assert windows_overlap(*a, *b) == windows_overlap(*b, *a)
