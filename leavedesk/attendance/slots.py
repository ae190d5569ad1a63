"""30-minute slot grid over the working day (09:00–18:00, slots 0–17)."""

from __future__ import annotations

from typing import Any, Optional

from leavedesk.attendance.catalog import describe
from leavedesk.common.constants import SLOT_COUNT, SLOT_MINUTES, WORKDAY_START

LAST_SLOT = SLOT_COUNT - 1
FULL_DAY = (0, LAST_SLOT)


def to_minutes(value: str) -> int:
    """``"HH:MM"`` → minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def _clamp(index: int) -> int:
    return max(0, min(LAST_SLOT, index))


def slots_for_window(start_time: str, end_time: str) -> tuple[int, int]:
    """Inclusive ``(start_slot, end_slot)`` covered by ``[start_time, end_time)``.

    The start is floored and the end ceiled to the grid, then both are
    clamped to the 18-slot day.
    """
    origin = to_minutes(WORKDAY_START)
    start_offset = to_minutes(start_time) - origin
    end_offset = to_minutes(end_time) - origin
    start_slot = start_offset // SLOT_MINUTES
    end_slot = -(-end_offset // SLOT_MINUTES) - 1
    return _clamp(start_slot), _clamp(end_slot)


def effective_window(
    type_: str,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
) -> tuple[Optional[str], Optional[str]]:
    """Explicit window when both ends are given, else the type's default."""
    if start_time and end_time:
        return start_time, end_time
    descriptor = describe(type_)
    if descriptor.has_default_window:
        return descriptor.default_start_time, descriptor.default_end_time
    return None, None


def slots_for_record(record: Any) -> tuple[int, int]:
    """Slot range for anything with ``type``, ``start_time`` and ``end_time``."""
    start, end = effective_window(
        record.type,
        getattr(record, "start_time", None),
        getattr(record, "end_time", None),
    )
    if start is None or end is None:
        return FULL_DAY
    return slots_for_window(start, end)


def slot_mask(start_time: str, end_time: str) -> list[bool]:
    """18-element occupancy list for a window."""
    first, last = slots_for_window(start_time, end_time)
    return [first <= i <= last for i in range(SLOT_COUNT)]
