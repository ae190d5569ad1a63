"""Users router — directory, account creation, CSV import, password reset."""


from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.auth.dependencies import require_role
from leavedesk.common.constants import UserRole
from leavedesk.common.exceptions import ValidationException
from leavedesk.database import get_db
from leavedesk.holidays.service import local_today
from leavedesk.users.models import User
from leavedesk.users.schemas import (
    BulkCreateUsersOut,
    PasswordResetOut,
    UserCreate,
    UserOut,
    UserWithBalancesOut,
)
from leavedesk.users.service import UserService, parse_user_csv

router = APIRouter(prefix="", tags=["users"])


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=list[UserWithBalancesOut])
async def list_users(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    user: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    """Users the caller manages, with both balances for ``year``."""
    return await UserService.list_users(db, user, year or local_today().year)


# ── POST / ──────────────────────────────────────────────────────────

@router.post("", response_model=UserOut, status_code=201)
async def create_user(
    body: UserCreate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Create an account and its current-year balances."""
    return await UserService.create_user(db, body, actor_id=admin.id)


# ── POST /bulk-create ───────────────────────────────────────────────

@router.post("/bulk-create", response_model=BulkCreateUsersOut)
async def bulk_create_users(
    file: UploadFile = File(..., description="CSV: department,username,name,role"),
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Import users from a CSV upload; existing usernames are skipped."""
    raw = await file.read()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationException({"file": ["CSV must be UTF-8 encoded."]})
    return await UserService.bulk_create_users(db, parse_user_csv(text), actor_id=admin.id)


# ── DELETE /{id} ────────────────────────────────────────────────────

@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: int,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Delete a user together with its records and balances."""
    await UserService.delete_user(db, admin, user_id)


# ── POST /{id}/reset-password ───────────────────────────────────────

@router.post("/{user_id}/reset-password", response_model=PasswordResetOut)
async def reset_password(
    user_id: int,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Assign a random 4-digit temporary password."""
    return await UserService.reset_password(db, user_id, actor_id=admin.id)
