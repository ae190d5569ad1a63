"""Attendance type catalog — default window, day weight and pool per type.

Adding a type means adding an ``AttendanceType`` member and one row to
``_CATALOG``; nothing else switches on type strings.
"""

from __future__ import annotations

from decimal import Decimal
from typing import NamedTuple, Optional, Union

from leavedesk.common.constants import (
    WORKDAY_END,
    WORKDAY_START,
    AttendanceType,
    LeavePool,
)

_FULL = Decimal("1")
_HALF = Decimal("0.5")
_QUARTER = Decimal("0.25")
_NONE = Decimal("0")


class TypeDescriptor(NamedTuple):
    default_start_time: str
    default_end_time: str
    day_weight: Decimal
    requires_explicit_time: bool = False
    pool: Optional[LeavePool] = None

    @property
    def has_default_window(self) -> bool:
        return bool(self.default_start_time and self.default_end_time)


EMPTY_DESCRIPTOR = TypeDescriptor("", "", _NONE)

_A = LeavePool.annual
_C = LeavePool.compensatory
T = AttendanceType

_CATALOG: dict[AttendanceType, TypeDescriptor] = {
    T.annual: TypeDescriptor(WORKDAY_START, WORKDAY_END, _FULL, pool=_A),
    T.morning_half: TypeDescriptor("09:00", "14:00", _HALF, pool=_A),
    T.afternoon_half: TypeDescriptor("14:00", WORKDAY_END, _HALF, pool=_A),
    T.quarter: TypeDescriptor("09:00", "11:00", _QUARTER, True, pool=_A),
    T.morning_quarter_a: TypeDescriptor("09:00", "11:00", _QUARTER, pool=_A),
    T.morning_quarter_b: TypeDescriptor("11:00", "14:00", _QUARTER, pool=_A),
    T.afternoon_quarter_a: TypeDescriptor("14:00", "16:00", _QUARTER, pool=_A),
    T.afternoon_quarter_b: TypeDescriptor("16:00", WORKDAY_END, _QUARTER, pool=_A),
    T.compensatory: TypeDescriptor(WORKDAY_START, WORKDAY_END, _FULL, pool=_C),
    T.work: TypeDescriptor(WORKDAY_START, WORKDAY_END, _NONE),
    T.absence: TypeDescriptor(WORKDAY_START, WORKDAY_END, _NONE),
    T.flextime: TypeDescriptor("", "", _NONE, True),
    T.acting_lead: TypeDescriptor("", "", _NONE, True),
    T.coaching: TypeDescriptor("", "", _NONE, True),
    T.training: TypeDescriptor("", "", _NONE, True),
    T.rest: TypeDescriptor("", "", _NONE, True),
    T.business_trip: TypeDescriptor("", "", _NONE, True),
    T.outage: TypeDescriptor("", "", _NONE, True),
    T.other: TypeDescriptor("", "", _NONE, True),
    T.overtime: TypeDescriptor("", "", _NONE, True),
}

TypeLike = Union[AttendanceType, str]


def _coerce(type_: TypeLike) -> Optional[AttendanceType]:
    if isinstance(type_, AttendanceType):
        return type_
    try:
        return AttendanceType(type_)
    except ValueError:
        return None


def describe(type_: TypeLike) -> TypeDescriptor:
    """Descriptor for ``type_``; unknown strings get ``EMPTY_DESCRIPTOR``."""
    member = _coerce(type_)
    if member is None:
        return EMPTY_DESCRIPTOR
    return _CATALOG[member]


def leave_pool(type_: TypeLike) -> Optional[LeavePool]:
    return describe(type_).pool


def is_leave_bearing(type_: TypeLike) -> bool:
    return leave_pool(type_) is not None


def is_annual_pool(type_: TypeLike) -> bool:
    return leave_pool(type_) is LeavePool.annual


def requires_explicit_time(type_: TypeLike) -> bool:
    return describe(type_).requires_explicit_time


def is_partial_day(type_: TypeLike) -> bool:
    """Half and quarter days: a fraction of a day, limited to a single date."""
    weight = describe(type_).day_weight
    return _NONE < weight < _FULL


def catalog_items() -> list[tuple[AttendanceType, TypeDescriptor]]:
    """Every type with its descriptor, in declaration order."""
    return [(member, _CATALOG[member]) for member in AttendanceType]
