"""Attendance service layer — record lifecycle and its ledger effects.

Business logic:
  - Date ranges are expanded into working days; weekends and holidays are
    dropped without error
  - One record per user per date; the whole request is rejected if any
    day is taken
  - Leave-bearing types are checked against and debited from their pool,
    grouped by the calendar year of each day
  - Moving, retyping or deleting a record restores what it had consumed
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.attendance.catalog import (
    describe,
    is_partial_day,
    leave_pool,
    requires_explicit_time,
)
from leavedesk.attendance.models import AttendanceRecord
from leavedesk.attendance.overlap import find_conflict
from leavedesk.attendance.schemas import (
    AttendanceCreate,
    AttendanceOut,
    AttendanceUpdate,
    CreateResult,
    DeleteResult,
    OverlapCheckOut,
    OverlapCheckRequest,
)
from leavedesk.attendance.slots import effective_window, to_minutes
from leavedesk.common.audit import create_audit_entry
from leavedesk.common.constants import LeavePool
from leavedesk.common.exceptions import (
    DateAlreadyRecordedException,
    NotFoundException,
    ValidationException,
)
from leavedesk.holidays.service import is_working_day, working_days
from leavedesk.leave.service import LeaveLedger
from leavedesk.users.models import User
from leavedesk.users.service import UserService, visible_users_clause

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


# ═════════════════════════════════════════════════════════════════════
# Helpers
# ═════════════════════════════════════════════════════════════════════


def validate_request(
    type_: str,
    start: date,
    end: date,
    start_time: Optional[str],
    end_time: Optional[str],
) -> None:
    """Shape rules that do not need the database."""
    errors: dict[str, list[str]] = {}
    if end < start:
        errors.setdefault("end_date", []).append("end_date must not be before start_date.")
    elif is_partial_day(type_) and start != end:
        errors.setdefault("end_date", []).append(
            f"'{type_}' covers part of a day; start and end date must match.",
        )

    if bool(start_time) != bool(end_time):
        errors.setdefault("start_time", []).append(
            "start_time and end_time must be given together.",
        )
    elif requires_explicit_time(type_) and not start_time:
        errors.setdefault("start_time", []).append(f"'{type_}' requires a start and end time.")
    elif start_time and end_time and to_minutes(start_time) >= to_minutes(end_time):
        errors.setdefault("end_time", []).append("end_time must be after start_time.")

    if errors:
        logger.info("Rejected attendance request: %s", errors)
        raise ValidationException(errors)


def _date_taken(
    existing: AttendanceRecord,
    start_time: Optional[str],
    end_time: Optional[str],
) -> DateAlreadyRecordedException:
    collides = find_conflict([existing], start_time, end_time) is not None
    return DateAlreadyRecordedException(
        existing.date.isoformat(),
        existing_type=existing.type,
        existing_window=existing.window_label,
        overlaps=collides,
    )


def _usage_by_year(type_: str, days: Sequence[date]) -> dict[int, Decimal]:
    weight = describe(type_).day_weight
    per_year = Counter(d.year for d in days)
    return {year: weight * count for year, count in sorted(per_year.items())}


def _record_usage(record_type: str, record_date: date) -> tuple[Optional[LeavePool], Decimal]:
    """Pool and amount a stored record consumed (zero off working days)."""
    pool = leave_pool(record_type)
    if pool is None or not is_working_day(record_date):
        return None, _ZERO
    return pool, describe(record_type).day_weight


def _snapshot(record: AttendanceRecord) -> dict[str, Optional[str]]:
    return {
        "date": record.date.isoformat(),
        "type": record.type,
        "start_time": record.start_time,
        "end_time": record.end_time,
        "reason": record.reason,
    }


def _to_out(record: AttendanceRecord, user_name: Optional[str] = None) -> AttendanceOut:
    out = AttendanceOut.model_validate(record)
    out.user_name = user_name
    return out


# ═════════════════════════════════════════════════════════════════════
# AttendanceService
# ═════════════════════════════════════════════════════════════════════


class AttendanceService:
    """Async attendance operations: create, update, delete, list."""

    @staticmethod
    async def _records_on(
        db: AsyncSession,
        user_id: int,
        days: Sequence[date],
        *,
        exclude_id: Optional[int] = None,
    ) -> list[AttendanceRecord]:
        query = (
            select(AttendanceRecord)
            .where(AttendanceRecord.user_id == user_id, AttendanceRecord.date.in_(days))
            .order_by(AttendanceRecord.date, AttendanceRecord.id)
        )
        if exclude_id is not None:
            query = query.where(AttendanceRecord.id != exclude_id)
        return list((await db.execute(query)).scalars().all())

    @staticmethod
    async def _get_record(db: AsyncSession, record_id: int) -> AttendanceRecord:
        record = await db.get(AttendanceRecord, record_id)
        if record is None:
            raise NotFoundException("AttendanceRecord", record_id)
        return record

    # ─────────────────────────────────────────────────────────────────
    # Create
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create(
        db: AsyncSession,
        actor: User,
        data: AttendanceCreate,
    ) -> CreateResult:
        """Validate, expand, check, persist and debit in one transaction."""
        type_ = data.type.value
        end_date = data.end_date or data.start_date

        target = await UserService.get_managed_user(db, actor, data.user_id or actor.id)
        validate_request(type_, data.start_date, end_date, data.start_time, data.end_time)

        days = working_days(data.start_date, end_date)
        if not days:
            raise ValidationException(
                {"start_date": ["The requested range contains no working days."]},
            )

        start_time, end_time = effective_window(type_, data.start_time, data.end_time)

        taken = await AttendanceService._records_on(db, target.id, days)
        if taken:
            logger.info(
                "Rejected %s for user=%s: %s already recorded",
                type_, target.id, taken[0].date,
            )
            raise _date_taken(taken[0], start_time, end_time)

        pool = leave_pool(type_)
        usage = _usage_by_year(type_, days) if pool is not None else {}
        for year, amount in usage.items():
            await LeaveLedger.check_available(db, target.id, year, pool, amount)

        records = [
            AttendanceRecord(
                user_id=target.id,
                date=day,
                type=type_,
                reason=data.reason,
                start_time=start_time,
                end_time=end_time,
            )
            for day in days
        ]
        try:
            async with db.begin_nested():
                db.add_all(records)
                await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent insert for one of the days
            raise DateAlreadyRecordedException(days[0].isoformat(), overlaps=True)

        for year, amount in usage.items():
            await LeaveLedger.debit(db, target.id, year, pool, amount)

        for record in records:
            await create_audit_entry(
                db,
                action="create",
                entity_type="attendance",
                entity_id=record.id,
                actor_id=actor.id,
                new_values=_snapshot(record),
            )

        total_usage = sum(usage.values(), _ZERO)
        logger.info(
            "Created %d %s record(s) for user=%s usage=%s",
            len(records), type_, target.id, total_usage,
        )
        return CreateResult(
            created_dates=days,
            leave_usage=total_usage,
            leave_type=pool,
            records=[_to_out(r, target.name) for r in records],
        )

    # ─────────────────────────────────────────────────────────────────
    # Update
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def update(
        db: AsyncSession,
        actor: User,
        record_id: int,
        data: AttendanceUpdate,
    ) -> AttendanceOut:
        """Edit a record; date or type changes move the ledger usage."""
        record = await AttendanceService._get_record(db, record_id)
        owner = await UserService.get_managed_user(db, actor, record.user_id)

        new_type = data.type.value
        validate_request(new_type, data.date, data.date, data.start_time, data.end_time)
        start_time, end_time = effective_window(new_type, data.start_time, data.end_time)

        if data.date != record.date:
            taken = await AttendanceService._records_on(
                db, owner.id, [data.date], exclude_id=record.id,
            )
            if taken:
                raise _date_taken(taken[0], start_time, end_time)

        old_values = _snapshot(record)
        old_pool, old_amount = _record_usage(record.type, record.date)
        changed = data.date != record.date or new_type != record.type

        if changed:
            new_pool, new_amount = _record_usage(new_type, data.date)
            if old_pool is not None:
                await LeaveLedger.credit(db, owner.id, record.date.year, old_pool, old_amount)
            if new_pool is not None:
                await LeaveLedger.debit(db, owner.id, data.date.year, new_pool, new_amount)

        record.date = data.date
        record.type = new_type
        record.reason = data.reason
        record.start_time = start_time
        record.end_time = end_time
        try:
            async with db.begin_nested():
                await db.flush()
        except IntegrityError:
            raise DateAlreadyRecordedException(data.date.isoformat(), overlaps=True)

        await create_audit_entry(
            db,
            action="update",
            entity_type="attendance",
            entity_id=record.id,
            actor_id=actor.id,
            old_values=old_values,
            new_values=_snapshot(record),
        )
        return _to_out(record, owner.name)

    # ─────────────────────────────────────────────────────────────────
    # Delete
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def delete(
        db: AsyncSession,
        actor: User,
        record_id: int,
    ) -> DeleteResult:
        """Remove a record and restore the leave it consumed."""
        record = await AttendanceService._get_record(db, record_id)
        owner = await UserService.get_managed_user(db, actor, record.user_id)

        pool, amount = _record_usage(record.type, record.date)
        year = record.date.year
        old_values = _snapshot(record)

        await db.delete(record)
        await db.flush()
        if pool is not None:
            await LeaveLedger.credit(db, owner.id, year, pool, amount)

        await create_audit_entry(
            db,
            action="delete",
            entity_type="attendance",
            entity_id=record_id,
            actor_id=actor.id,
            old_values=old_values,
        )
        return DeleteResult(success=True, restored=amount)

    # ─────────────────────────────────────────────────────────────────
    # Read
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_records(
        db: AsyncSession,
        actor: User,
        *,
        year: Optional[int] = None,
        month: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> list[AttendanceOut]:
        """Records visible to ``actor``, optionally narrowed by period or user."""
        query = (
            select(AttendanceRecord, User.name)
            .join(User, User.id == AttendanceRecord.user_id)
            .order_by(AttendanceRecord.date, User.name, AttendanceRecord.id)
        )

        if user_id is not None:
            await UserService.get_managed_user(db, actor, user_id)
            query = query.where(AttendanceRecord.user_id == user_id)
        else:
            clause = visible_users_clause(actor)
            if clause is not None:
                query = query.where(clause)

        if year is not None:
            if month is not None:
                first = date(year, month, 1)
                after = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
            else:
                first, after = date(year, 1, 1), date(year + 1, 1, 1)
            query = query.where(
                and_(AttendanceRecord.date >= first, AttendanceRecord.date < after),
            )

        rows = (await db.execute(query)).all()
        return [_to_out(record, name) for record, name in rows]

    @staticmethod
    async def check_overlap(
        db: AsyncSession,
        actor: User,
        data: OverlapCheckRequest,
    ) -> OverlapCheckOut:
        """Same checks ``create`` runs for one date, reported instead of raised."""
        target = await UserService.get_managed_user(db, actor, data.user_id or actor.id)
        if data.type is not None:
            start_time, end_time = effective_window(
                data.type.value, data.start_time, data.end_time,
            )
        else:
            start_time, end_time = data.start_time, data.end_time

        existing = await AttendanceService._records_on(db, target.id, [data.date])
        if not existing:
            return OverlapCheckOut(date_taken=False, overlaps=False)

        error = _date_taken(existing[0], start_time, end_time)
        return OverlapCheckOut(
            date_taken=True,
            overlaps=error.overlaps,
            conflict=_to_out(existing[0], target.name),
            message=error.detail,
        )
