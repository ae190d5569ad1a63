"""Auth service — password hashing, JWT issuing, credential check."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.common.exceptions import UnauthorizedException
from leavedesk.config import settings
from leavedesk.users.models import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ── Passwords ───────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


# ── JWT helpers ─────────────────────────────────────────────────────

def create_access_token(user: User) -> tuple[str, int]:
    """Return (encoded_jwt, expires_in_seconds)."""
    expires_in = settings.JWT_EXPIRY_HOURS * 3600
    payload = {
        "sub": str(user.id),
        "role": user.role.value,
        "type": "access",
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, expires_in


# ── Login ───────────────────────────────────────────────────────────

async def authenticate(db: AsyncSession, username: str, password: str) -> User:
    """Return the user for valid credentials, else raise 401.

    The same message is used for unknown usernames and wrong passwords.
    """
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalars().first()
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login for username=%s", username)
        raise UnauthorizedException("Invalid username or password.")
    return user
