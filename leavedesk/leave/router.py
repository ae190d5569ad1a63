"""Leave router — balances, admin totals override, yearly bulk grant."""


from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.auth.dependencies import get_current_user, require_role
from leavedesk.common.constants import UserRole
from leavedesk.database import get_db
from leavedesk.holidays.service import local_today
from leavedesk.leave.schemas import (
    BulkInitializeOut,
    BulkInitializeRequest,
    LeaveTotalsUpdate,
    UserBalancesOut,
)
from leavedesk.leave.service import LeaveLedger
from leavedesk.users.models import User
from leavedesk.users.service import UserService

router = APIRouter(prefix="", tags=["leave"])


# ── GET /balances ───────────────────────────────────────────────────

@router.get("/balances", response_model=UserBalancesOut)
async def get_balances(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    user_id: Optional[int] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's balances, or a managed user's with ``user_id``."""
    target = await UserService.get_managed_user(db, user, user_id or user.id)
    return await LeaveLedger.get_balances(db, target.id, year or local_today().year)


# ── PUT /balances/{user_id} ─────────────────────────────────────────

@router.put("/balances/{user_id}", response_model=UserBalancesOut)
async def update_totals(
    user_id: int,
    body: LeaveTotalsUpdate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Override granted totals. ``used`` is kept; ``remaining`` follows."""
    return await LeaveLedger.update_totals(
        db,
        user_id,
        body.year,
        annual_total=body.annual_total,
        comp_total=body.comp_total,
        actor_id=admin.id,
    )


# ── POST /balances/bulk-initialize ──────────────────────────────────

@router.post("/balances/bulk-initialize", response_model=BulkInitializeOut)
async def bulk_initialize(
    body: BulkInitializeRequest,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Grant a year's totals to every user, continuing past failures."""
    return await LeaveLedger.bulk_initialize(
        db, body.year, body.annual_total, body.comp_total, actor_id=admin.id,
    )
