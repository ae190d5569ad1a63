"""Auth Pydantic v2 schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from leavedesk.leave.schemas import UserBalancesOut
from leavedesk.users.schemas import UserOut


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=128)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    is_temp_password: bool = False


class MeResponse(BaseModel):
    user: UserOut
    balances: UserBalancesOut


class ChangePasswordRequest(BaseModel):
    # Length policy is applied by the service so it follows MIN_PASSWORD_LENGTH
    new_password: str = Field(..., max_length=128)
