"""Common module — shared utilities for LeaveDesk."""

from leavedesk.common.audit import AuditTrail, create_audit_entry
from leavedesk.common.constants import (
    DATE_FORMAT,
    SLOT_COUNT,
    SLOT_MINUTES,
    TIMEZONE,
    WORKDAY_END,
    WORKDAY_START,
    AttendanceType,
    LeavePool,
    UserRole,
)
from leavedesk.common.exceptions import (
    AppException,
    ConflictError,
    DateAlreadyRecordedException,
    ForbiddenException,
    InsufficientBalanceException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
    register_exception_handlers,
)
from leavedesk.common.log import configure_logging

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    # Constants / Enums
    "AttendanceType",
    "LeavePool",
    "UserRole",
    "DATE_FORMAT",
    "SLOT_COUNT",
    "SLOT_MINUTES",
    "TIMEZONE",
    "WORKDAY_END",
    "WORKDAY_START",
    # Exceptions
    "AppException",
    "ConflictError",
    "DateAlreadyRecordedException",
    "ForbiddenException",
    "InsufficientBalanceException",
    "NotFoundException",
    "UnauthorizedException",
    "ValidationException",
    "register_exception_handlers",
    # Logging
    "configure_logging",
]
