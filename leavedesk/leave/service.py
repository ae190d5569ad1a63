"""Leave service layer — the per-user, per-year balance ledger.

Business logic:
  - Lazy creation of balance rows with the configured default grants
  - Guarded debits (a conditional UPDATE never lets remaining go negative)
  - Unguarded credits that floor ``used`` at zero
  - Admin overrides of the granted total, single user or every user at once
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.common.audit import create_audit_entry
from leavedesk.common.constants import LeavePool
from leavedesk.common.exceptions import InsufficientBalanceException, NotFoundException
from leavedesk.config import settings
from leavedesk.leave.models import LeaveBalance
from leavedesk.leave.schemas import (
    BulkInitializeOut,
    LeaveBalanceOut,
    PoolCounts,
    UserBalancesOut,
)
from leavedesk.users.models import User

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


def _default_total(pool: LeavePool) -> Decimal:
    if pool is LeavePool.annual:
        return settings.DEFAULT_ANNUAL_LEAVE
    return settings.DEFAULT_COMP_LEAVE


# ═════════════════════════════════════════════════════════════════════
# LeaveLedger
# ═════════════════════════════════════════════════════════════════════


class LeaveLedger:
    """Async balance operations keyed by (user, year, pool)."""

    # ─────────────────────────────────────────────────────────────────
    # Lookup
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _load(
        db: AsyncSession,
        user_id: int,
        year: int,
        pool: LeavePool,
    ) -> Optional[LeaveBalance]:
        # populate_existing: rows may have been changed by bulk UPDATEs
        result = await db.execute(
            select(LeaveBalance)
            .where(
                LeaveBalance.user_id == user_id,
                LeaveBalance.year == year,
                LeaveBalance.leave_type == pool,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def ensure_balance(
        db: AsyncSession,
        user_id: int,
        year: int,
        pool: LeavePool,
        total: Optional[Decimal] = None,
    ) -> LeaveBalance:
        """Return the row, creating it with the default grant when missing."""
        balance = await LeaveLedger._load(db, user_id, year, pool)
        if balance is not None:
            return balance

        grant = _default_total(pool) if total is None else total
        balance = LeaveBalance(
            user_id=user_id,
            year=year,
            leave_type=pool,
            total=grant,
            used=_ZERO,
            remaining=grant,
        )
        db.add(balance)
        await db.flush()
        logger.info(
            "Created %s balance for user=%s year=%s total=%s",
            pool.value, user_id, year, grant,
        )
        return balance

    # ─────────────────────────────────────────────────────────────────
    # Initialization
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def initialize(
        db: AsyncSession,
        user_id: int,
        year: int,
        annual_total: Optional[Decimal] = None,
        comp_total: Optional[Decimal] = None,
    ) -> list[LeaveBalance]:
        """Create both pools for ``year``; existing rows are left untouched.

        Returns only the rows that were created.
        """
        grants = {
            LeavePool.annual: settings.DEFAULT_ANNUAL_LEAVE if annual_total is None else annual_total,
            LeavePool.compensatory: settings.DEFAULT_COMP_LEAVE if comp_total is None else comp_total,
        }
        created: list[LeaveBalance] = []
        for pool, grant in grants.items():
            if await LeaveLedger._load(db, user_id, year, pool) is not None:
                continue
            created.append(
                await LeaveLedger.ensure_balance(db, user_id, year, pool, total=grant)
            )
        return created

    @staticmethod
    async def bulk_initialize(
        db: AsyncSession,
        year: int,
        annual_total: Decimal,
        comp_total: Decimal,
        *,
        actor_id: Optional[int] = None,
    ) -> BulkInitializeOut:
        """Grant ``year`` totals to every user.

        Missing rows are created; existing rows get the new total with their
        ``used`` preserved. Each user runs in its own SAVEPOINT so one failure
        is counted and the batch carries on.
        """
        out = BulkInitializeOut(year=year)
        grants = {
            LeavePool.annual: annual_total,
            LeavePool.compensatory: comp_total,
        }

        user_ids = (await db.execute(select(User.id).order_by(User.id))).scalars().all()
        for user_id in user_ids:
            # Counted only once the SAVEPOINT is released
            done: list[tuple[PoolCounts, LeavePool]] = []
            try:
                async with db.begin_nested():
                    for pool, grant in grants.items():
                        existing = await LeaveLedger._load(db, user_id, year, pool)
                        if existing is None:
                            await LeaveLedger.ensure_balance(
                                db, user_id, year, pool, total=grant,
                            )
                            done.append((out.created_count, pool))
                        else:
                            LeaveLedger._apply_total(existing, grant)
                            await db.flush()
                            done.append((out.updated_count, pool))
            except Exception:
                logger.exception(
                    "Balance initialization failed for user=%s year=%s", user_id, year,
                )
                out.failed_users.append(user_id)
                continue

            for counts, pool in done:
                setattr(counts, pool.value, getattr(counts, pool.value) + 1)

        await create_audit_entry(
            db,
            action="bulk_initialize",
            entity_type="leave_balance",
            actor_id=actor_id,
            new_values={
                "year": year,
                "annual_total": str(annual_total),
                "comp_total": str(comp_total),
                "created": out.created_count.model_dump(),
                "updated": out.updated_count.model_dump(),
                "failed_users": out.failed_users,
            },
        )
        logger.info(
            "Bulk initialized year=%s created=%s updated=%s failed=%d",
            year,
            out.created_count.model_dump(),
            out.updated_count.model_dump(),
            len(out.failed_users),
        )
        return out

    # ─────────────────────────────────────────────────────────────────
    # Movements
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def check_available(
        db: AsyncSession,
        user_id: int,
        year: int,
        pool: LeavePool,
        amount: Decimal,
    ) -> LeaveBalance:
        """Raise InsufficientBalance when ``remaining < amount``."""
        balance = await LeaveLedger.ensure_balance(db, user_id, year, pool)
        if balance.remaining < amount:
            raise InsufficientBalanceException(pool.value, balance.remaining, amount)
        return balance

    @staticmethod
    async def debit(
        db: AsyncSession,
        user_id: int,
        year: int,
        pool: LeavePool,
        amount: Decimal,
    ) -> None:
        """``used += amount; remaining -= amount`` only if enough remains."""
        if amount <= _ZERO:
            return
        await LeaveLedger.ensure_balance(db, user_id, year, pool)

        result = await db.execute(
            update(LeaveBalance)
            .where(
                LeaveBalance.user_id == user_id,
                LeaveBalance.year == year,
                LeaveBalance.leave_type == pool,
                LeaveBalance.remaining >= amount,
            )
            .values(
                used=LeaveBalance.used + amount,
                remaining=LeaveBalance.remaining - amount,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            current = await LeaveLedger._load(db, user_id, year, pool)
            remaining = current.remaining if current is not None else _ZERO
            logger.info(
                "Rejected %s debit for user=%s year=%s: remaining=%s required=%s",
                pool.value, user_id, year, remaining, amount,
            )
            raise InsufficientBalanceException(pool.value, remaining, amount)

        logger.info(
            "Debited %s %s for user=%s year=%s", amount, pool.value, user_id, year,
        )

    @staticmethod
    async def credit(
        db: AsyncSession,
        user_id: int,
        year: int,
        pool: LeavePool,
        amount: Decimal,
    ) -> None:
        """Reverse a debit: ``used = max(0, used - amount); remaining += amount``."""
        if amount <= _ZERO:
            return
        await LeaveLedger.ensure_balance(db, user_id, year, pool)

        await db.execute(
            update(LeaveBalance)
            .where(
                LeaveBalance.user_id == user_id,
                LeaveBalance.year == year,
                LeaveBalance.leave_type == pool,
            )
            .values(
                used=case(
                    (LeaveBalance.used - amount < 0, _ZERO),
                    else_=LeaveBalance.used - amount,
                ),
                remaining=LeaveBalance.remaining + amount,
            )
            .execution_options(synchronize_session=False)
        )
        logger.info(
            "Credited %s %s for user=%s year=%s", amount, pool.value, user_id, year,
        )

    # ─────────────────────────────────────────────────────────────────
    # Totals
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _apply_total(balance: LeaveBalance, total: Decimal) -> None:
        balance.total = total
        balance.remaining = total - balance.used

    @staticmethod
    async def set_total(
        db: AsyncSession,
        user_id: int,
        year: int,
        pool: LeavePool,
        total: Decimal,
        *,
        actor_id: Optional[int] = None,
    ) -> LeaveBalance:
        """Override the granted total; ``remaining = total - used``."""
        balance = await LeaveLedger.ensure_balance(db, user_id, year, pool)
        old_values = {"total": str(balance.total), "remaining": str(balance.remaining)}
        LeaveLedger._apply_total(balance, total)
        await db.flush()

        await create_audit_entry(
            db,
            action="set_total",
            entity_type="leave_balance",
            entity_id=balance.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values={"total": str(balance.total), "remaining": str(balance.remaining)},
        )
        return balance

    @staticmethod
    async def update_totals(
        db: AsyncSession,
        user_id: int,
        year: int,
        *,
        annual_total: Optional[Decimal] = None,
        comp_total: Optional[Decimal] = None,
        actor_id: Optional[int] = None,
    ) -> UserBalancesOut:
        """``set_total`` for each pool that was given."""
        if await db.get(User, user_id) is None:
            raise NotFoundException("User", user_id)
        if annual_total is not None:
            await LeaveLedger.set_total(
                db, user_id, year, LeavePool.annual, annual_total, actor_id=actor_id,
            )
        if comp_total is not None:
            await LeaveLedger.set_total(
                db, user_id, year, LeavePool.compensatory, comp_total, actor_id=actor_id,
            )
        return await LeaveLedger.get_balances(db, user_id, year)

    # ─────────────────────────────────────────────────────────────────
    # Read
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_balances(
        db: AsyncSession,
        user_id: int,
        year: int,
    ) -> UserBalancesOut:
        """Both pools for ``year``, creating any missing row."""
        annual = await LeaveLedger.ensure_balance(db, user_id, year, LeavePool.annual)
        comp = await LeaveLedger.ensure_balance(db, user_id, year, LeavePool.compensatory)
        return UserBalancesOut(
            user_id=user_id,
            year=year,
            annual=LeaveBalanceOut.model_validate(annual),
            compensatory=LeaveBalanceOut.model_validate(comp),
        )
