"""User directory — accounts, manager scope, passwords, CSV import."""

from __future__ import annotations

import csv
import io
import logging
import secrets
from typing import Iterable, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from leavedesk.auth.service import hash_password
from leavedesk.common.audit import create_audit_entry
from leavedesk.common.constants import CSV_MANAGER_LABEL, UserRole
from leavedesk.common.exceptions import (
    ConflictError,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from leavedesk.config import settings
from leavedesk.holidays.service import local_today
from leavedesk.leave.service import LeaveLedger
from leavedesk.users.models import User
from leavedesk.users.schemas import (
    BulkCreateUsersOut,
    PasswordResetOut,
    UserCreate,
    UserCsvRow,
    UserWithBalancesOut,
)

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════
# Scope rules
# ═════════════════════════════════════════════════════════════════════


def can_manage(actor: User, target: User) -> bool:
    """Whether ``actor`` may act on ``target``'s records.

    Admins manage everyone. Managers manage themselves and plain users of
    their own department. Users manage only themselves.
    """
    if actor.id == target.id or actor.role == UserRole.admin:
        return True
    if actor.role == UserRole.manager:
        return (
            target.role == UserRole.user
            and actor.department is not None
            and target.department == actor.department
        )
    return False


def visible_users_clause(actor: User) -> Optional[ColumnElement[bool]]:
    """WHERE clause on ``User`` matching ``can_manage``; None means no filter."""
    if actor.role == UserRole.admin:
        return None
    if actor.role == UserRole.manager and actor.department is not None:
        return or_(
            User.id == actor.id,
            and_(User.department == actor.department, User.role == UserRole.user),
        )
    return User.id == actor.id


# ═════════════════════════════════════════════════════════════════════
# CSV parsing
# ═════════════════════════════════════════════════════════════════════


def parse_user_csv(text: str) -> list[UserCsvRow]:
    """Parse ``department,username,name,role`` lines (first line is a header).

    Rows without a username or name are dropped. The role column maps
    ``중간관리자`` to manager and anything else to user.
    """
    rows: list[UserCsvRow] = []
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    next(reader, None)
    for fields in reader:
        fields = [f.strip() for f in fields] + [""] * (4 - len(fields))
        department, username, name, role = fields[:4]
        if not username or not name:
            continue
        rows.append(
            UserCsvRow(
                department=department or None,
                username=username,
                name=name,
                role=UserRole.manager if role == CSV_MANAGER_LABEL else UserRole.user,
            )
        )
    return rows


# ═════════════════════════════════════════════════════════════════════
# UserService
# ═════════════════════════════════════════════════════════════════════


class UserService:
    """Async user directory operations."""

    @staticmethod
    async def get_user(db: AsyncSession, user_id: int) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundException("User", user_id)
        return user

    @staticmethod
    async def get_managed_user(db: AsyncSession, actor: User, user_id: int) -> User:
        """Load ``user_id`` and check ``actor`` may act on it."""
        target = await UserService.get_user(db, user_id)
        if not can_manage(actor, target):
            raise ForbiddenException(
                detail=f"You are not allowed to manage user '{target.username}'.",
            )
        return target

    # ─────────────────────────────────────────────────────────────────
    # Create / list / delete
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create_user(
        db: AsyncSession,
        data: UserCreate,
        *,
        actor_id: Optional[int] = None,
    ) -> User:
        """Create an account and its current-year balances."""
        existing = await db.execute(select(User.id).where(User.username == data.username))
        if existing.scalar() is not None:
            raise ConflictError("username", data.username)

        password = data.password or settings.DEFAULT_PASSWORD
        user = User(
            username=data.username,
            name=data.name,
            department=data.department,
            role=data.role,
            password_hash=hash_password(password),
            is_temp_password=data.password is None,
        )
        db.add(user)
        await db.flush()
        await db.refresh(user)

        await LeaveLedger.initialize(db, user.id, local_today().year)
        await create_audit_entry(
            db,
            action="create",
            entity_type="user",
            entity_id=user.id,
            actor_id=actor_id,
            new_values={
                "username": user.username,
                "department": user.department,
                "role": user.role.value,
            },
        )
        logger.info("Created user %s (%s)", user.username, user.role.value)
        return user

    @staticmethod
    async def list_users(
        db: AsyncSession,
        actor: User,
        year: int,
    ) -> list[UserWithBalancesOut]:
        """Users visible to ``actor`` with both balances for ``year``."""
        query = select(User).order_by(User.name, User.id)
        clause = visible_users_clause(actor)
        if clause is not None:
            query = query.where(clause)
        users = (await db.execute(query)).scalars().all()

        out: list[UserWithBalancesOut] = []
        for user in users:
            balances = await LeaveLedger.get_balances(db, user.id, year)
            out.append(
                UserWithBalancesOut(
                    id=user.id,
                    username=user.username,
                    name=user.name,
                    department=user.department,
                    role=user.role,
                    is_temp_password=user.is_temp_password,
                    created_at=user.created_at,
                    year=year,
                    annual=balances.annual,
                    compensatory=balances.compensatory,
                )
            )
        return out

    @staticmethod
    async def delete_user(db: AsyncSession, actor: User, user_id: int) -> None:
        """Delete a user with its attendance records and balances."""
        if actor.id == user_id:
            raise ValidationException({"user_id": ["You cannot delete your own account."]})
        user = await UserService.get_user(db, user_id)

        await create_audit_entry(
            db,
            action="delete",
            entity_type="user",
            entity_id=user.id,
            actor_id=actor.id,
            old_values={"username": user.username, "name": user.name},
        )
        await db.delete(user)
        await db.flush()
        logger.info("Deleted user %s", user.username)

    # ─────────────────────────────────────────────────────────────────
    # Bulk import
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def bulk_create_users(
        db: AsyncSession,
        rows: Iterable[UserCsvRow],
        *,
        actor_id: Optional[int] = None,
    ) -> BulkCreateUsersOut:
        """Create every row with the default password, continuing on error.

        Existing usernames are skipped. Each row runs in its own SAVEPOINT.
        """
        out = BulkCreateUsersOut()
        for row in rows:
            out.total += 1
            exists = await db.execute(select(User.id).where(User.username == row.username))
            if exists.scalar() is not None:
                out.skipped += 1
                continue
            try:
                async with db.begin_nested():
                    await UserService.create_user(
                        db,
                        UserCreate(
                            username=row.username,
                            name=row.name,
                            department=row.department,
                            role=row.role,
                        ),
                        actor_id=actor_id,
                    )
                out.success += 1
            except Exception as exc:
                logger.warning("Could not create user %s: %s", row.username, exc)
                out.failed += 1
                out.errors.append(f"{row.username}: {exc}")

        logger.info(
            "Bulk user import: total=%d success=%d skipped=%d failed=%d",
            out.total, out.success, out.skipped, out.failed,
        )
        return out

    # ─────────────────────────────────────────────────────────────────
    # Passwords
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def change_password(db: AsyncSession, user: User, new_password: str) -> None:
        if len(new_password) < settings.MIN_PASSWORD_LENGTH:
            raise ValidationException(
                {
                    "new_password": [
                        f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters.",
                    ],
                }
            )
        user.password_hash = hash_password(new_password)
        user.is_temp_password = False
        await db.flush()
        logger.info("Password changed for %s", user.username)

    @staticmethod
    async def reset_password(
        db: AsyncSession,
        user_id: int,
        *,
        actor_id: Optional[int] = None,
    ) -> PasswordResetOut:
        """Assign a random 4-digit temporary password and return it once."""
        user = await UserService.get_user(db, user_id)
        temporary = str(1000 + secrets.randbelow(9000))
        user.password_hash = hash_password(temporary)
        user.is_temp_password = True
        await db.flush()

        await create_audit_entry(
            db,
            action="reset_password",
            entity_type="user",
            entity_id=user.id,
            actor_id=actor_id,
        )
        logger.info("Password reset for %s", user.username)
        return PasswordResetOut(
            user_id=user.id,
            username=user.username,
            temporary_password=temporary,
        )
