"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Update / *Request  → request bodies (write)
  - *Out                → response bodies (read)
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from leavedesk.common.constants import LeavePool
from leavedesk.holidays.service import local_today


# ═════════════════════════════════════════════════════════════════════
# Leave Balance
# ═════════════════════════════════════════════════════════════════════


class LeaveBalanceOut(BaseModel):
    """One total/used/remaining triple."""

    model_config = ConfigDict(from_attributes=True)

    leave_type: LeavePool
    year: int
    total: Decimal
    used: Decimal
    remaining: Decimal


class UserBalancesOut(BaseModel):
    """Both pools of one user for one year."""

    user_id: int
    year: int
    annual: LeaveBalanceOut
    compensatory: LeaveBalanceOut


class LeaveTotalsUpdate(BaseModel):
    """Admin override of granted totals; ``used`` is preserved."""

    year: int = Field(default_factory=lambda: local_today().year, ge=2000, le=2100)
    annual_total: Optional[Decimal] = Field(None, ge=0, le=999)
    comp_total: Optional[Decimal] = Field(None, ge=0, le=999)

    @model_validator(mode="after")
    def _at_least_one(self) -> LeaveTotalsUpdate:
        if self.annual_total is None and self.comp_total is None:
            raise ValueError("annual_total or comp_total is required")
        return self


# ═════════════════════════════════════════════════════════════════════
# Bulk initialization
# ═════════════════════════════════════════════════════════════════════


class BulkInitializeRequest(BaseModel):
    year: int = Field(..., ge=2000, le=2100)
    annual_total: Decimal = Field(Decimal("15"), ge=0, le=999)
    comp_total: Decimal = Field(Decimal("0"), ge=0, le=999)


class PoolCounts(BaseModel):
    annual: int = 0
    compensatory: int = 0


class BulkInitializeOut(BaseModel):
    year: int
    created_count: PoolCounts = Field(default_factory=PoolCounts)
    updated_count: PoolCounts = Field(default_factory=PoolCounts)
    failed_users: list[int] = Field(default_factory=list)
