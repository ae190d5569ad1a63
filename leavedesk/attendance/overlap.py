"""Half-open time-window conflict check between attendance records."""

from __future__ import annotations

from typing import Any, Iterable, Optional, TypeVar

from leavedesk.attendance.slots import to_minutes

R = TypeVar("R")


def windows_overlap(a_start: str, a_end: str, b_start: str, b_end: str) -> bool:
    """True iff ``[a_start, a_end)`` and ``[b_start, b_end)`` intersect."""
    return (
        to_minutes(a_start) < to_minutes(b_end)
        and to_minutes(a_end) > to_minutes(b_start)
    )


def find_conflict(
    existing: Iterable[R],
    proposed_start: Optional[str],
    proposed_end: Optional[str],
) -> Optional[R]:
    """First record in ``existing`` whose window collides with the proposal.

    Records lacking either time are skipped, and a proposal lacking either
    time never conflicts. Touching endpoints (10:00–11:00 vs 11:00–12:00)
    do not overlap.
    """
    if not proposed_start or not proposed_end:
        return None
    for record in existing:
        start: Any = getattr(record, "start_time", None)
        end: Any = getattr(record, "end_time", None)
        if not start or not end:
            continue
        if windows_overlap(proposed_start, proposed_end, start, end):
            return record
    return None
