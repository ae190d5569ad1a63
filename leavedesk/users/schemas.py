"""User directory Pydantic v2 schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from leavedesk.common.constants import UserRole
from leavedesk.leave.schemas import LeaveBalanceOut


# ═════════════════════════════════════════════════════════════════════
# User
# ═════════════════════════════════════════════════════════════════════


class UserCreate(BaseModel):
    """New user. Omitting ``password`` assigns the temporary default."""

    username: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    role: UserRole = UserRole.user
    password: Optional[str] = Field(None, min_length=1, max_length=128)

    @field_validator("username", "name", "department")
    @classmethod
    def _strip(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    name: str
    department: Optional[str] = None
    role: UserRole
    is_temp_password: bool = False
    created_at: Optional[datetime] = None


class UserWithBalancesOut(UserOut):
    """Directory row: profile plus both balance triples for one year."""

    year: int
    annual: LeaveBalanceOut
    compensatory: LeaveBalanceOut


# ═════════════════════════════════════════════════════════════════════
# Bulk import
# ═════════════════════════════════════════════════════════════════════


class UserCsvRow(BaseModel):
    """One ``department,username,name,role`` line."""

    department: Optional[str] = None
    username: str
    name: str
    role: UserRole = UserRole.user


class BulkCreateUsersOut(BaseModel):
    total: int = 0
    success: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)


class PasswordResetOut(BaseModel):
    user_id: int
    username: str
    temporary_password: str
