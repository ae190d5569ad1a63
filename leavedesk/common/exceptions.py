"""Custom exceptions and RFC 7807 Problem Detail error handlers."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)

BASE_ERROR_URI = "https://leavedesk.local/errors"


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → RFC 7807 JSON."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        super().__init__(detail)


class NotFoundException(AppException):
    """404 — entity not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
        )


class ConflictError(AppException):
    """409 — unique-constraint / duplicate."""

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(
            status_code=409,
            error_type="conflict",
            title="Conflict",
            detail=f"An entry with {field}='{value}' already exists.",
            errors={field: [f"'{value}' is already in use."]},
        )


class DateAlreadyRecordedException(AppException):
    """409 — the user already has an attendance record on this date."""

    def __init__(
        self,
        date_str: str,
        *,
        existing_type: Optional[str] = None,
        existing_window: Optional[str] = None,
        overlaps: bool = False,
    ) -> None:
        detail = f"{date_str} already has an attendance record."
        if existing_type:
            detail = f"{date_str} already has a '{existing_type}' record"
            if existing_window:
                detail += f" ({existing_window})"
            detail += ". Delete it before registering a new one."
        self.date = date_str
        self.overlaps = overlaps
        super().__init__(
            status_code=409,
            error_type="date-already-recorded",
            title="Date Already Recorded",
            detail=detail,
            errors={"date": [date_str], "overlaps": [str(overlaps).lower()]},
        )


class InsufficientBalanceException(AppException):
    """409 — not enough leave left in the pool."""

    def __init__(self, pool: str, remaining: Decimal, required: Decimal) -> None:
        self.remaining = remaining
        self.required = required
        super().__init__(
            status_code=409,
            error_type="insufficient-balance",
            title="Insufficient Leave Balance",
            detail=(
                f"Not enough {pool} leave. "
                f"Remaining: {remaining}, Required: {required}."
            ),
            errors={"balance": [f"remaining={remaining}", f"required={required}"]},
        )


class UnauthorizedException(AppException):
    """401 — missing or invalid credentials."""

    def __init__(self, detail: str = "Authentication required.") -> None:
        super().__init__(
            status_code=401,
            error_type="unauthorized",
            title="Unauthorized",
            detail=detail,
        )


class ForbiddenException(AppException):
    """403 — insufficient permissions."""

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(
            status_code=403,
            error_type="forbidden",
            title="Forbidden",
            detail=detail,
        )


class ValidationException(AppException):
    """422 — business-logic validation failures."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        super().__init__(
            status_code=422,
            error_type="validation-error",
            title="Validation Error",
            detail="One or more fields failed validation.",
            errors=errors,
        )


# ── Problem Detail responses ────────────────────────────────────────

def _problem(
    request: Request,
    *,
    status: int,
    error_type: str,
    title: str,
    detail: str,
    errors: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    body: dict[str, Any] = {
        "type": f"{BASE_ERROR_URI}/{error_type}",
        "title": title,
        "status": status,
        "detail": detail,
        "instance": request.url.path,
    }
    if errors:
        body["errors"] = errors
    return JSONResponse(
        status_code=status,
        content=body,
        media_type="application/problem+json",
    )


def _field_name(loc: tuple) -> str:
    # ("body", "start_time") → "start_time"; ("query", "year") → "year"
    if len(loc) > 1:
        return ".".join(str(p) for p in loc[1:])
    return str(loc[0]) if loc else "unknown"


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    logger.info(
        "%s %s → %d %s: %s",
        request.method, request.url.path, exc.status_code, exc.error_type, exc.detail,
    )
    return _problem(
        request,
        status=exc.status_code,
        error_type=exc.error_type,
        title=exc.title,
        detail=exc.detail,
        errors=exc.errors,
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        name = _field_name(tuple(err.get("loc", ())))
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    return _problem(
        request,
        status=422,
        error_type="validation-error",
        title="Validation Error",
        detail="Request validation failed.",
        errors=field_errors,
    )


async def _handle_integrity_error(
    request: Request,
    exc: IntegrityError,
) -> JSONResponse:
    # Unique violations that no service translated into a domain error
    logger.warning("Unhandled integrity error on %s: %s", request.url.path, exc.orig)
    return _problem(
        request,
        status=409,
        error_type="conflict",
        title="Conflict",
        detail="The request conflicts with existing data.",
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _handle_integrity_error)  # type: ignore[arg-type]
