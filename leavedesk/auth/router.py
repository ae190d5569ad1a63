"""Auth router — password login, current user profile, password change."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.auth.dependencies import get_current_user
from leavedesk.auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    MeResponse,
    TokenResponse,
)
from leavedesk.auth.service import authenticate, create_access_token
from leavedesk.common.rate_limit import limiter
from leavedesk.config import settings
from leavedesk.database import get_db
from leavedesk.holidays.service import local_today
from leavedesk.leave.service import LeaveLedger
from leavedesk.users.models import User
from leavedesk.users.schemas import UserOut
from leavedesk.users.service import UserService

router = APIRouter(prefix="", tags=["auth"])


# ── POST /login ─────────────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Exchange username/password for a bearer token."""
    user = await authenticate(db, body.username, body.password)
    token, expires_in = create_access_token(user)
    return TokenResponse(
        access_token=token,
        expires_in=expires_in,
        is_temp_password=user.is_temp_password,
    )


# ── GET /me ─────────────────────────────────────────────────────────

@router.get("/me", response_model=MeResponse)
async def me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Current user with this year's balances."""
    balances = await LeaveLedger.get_balances(db, user.id, local_today().year)
    return MeResponse(user=UserOut.model_validate(user), balances=balances)


# ── POST /change-password ───────────────────────────────────────────

@router.post("/change-password", status_code=204)
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Set a new password and clear the temporary-password flag."""
    await UserService.change_password(db, user, body.new_password)
