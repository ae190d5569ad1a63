"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from functools import lru_cache
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from leavedesk.auth.service import hash_password
from leavedesk.common.constants import LeavePool, UserRole
from leavedesk.config import settings
from leavedesk.database import Base, get_db
from leavedesk.main import create_app

# Import ALL model modules so every table is on Base.metadata
import leavedesk.attendance.models  # noqa: F401
import leavedesk.common.audit  # noqa: F401
import leavedesk.leave.models  # noqa: F401
import leavedesk.users.models  # noqa: F401
from leavedesk.leave.models import LeaveBalance
from leavedesk.users.models import User

TEST_PASSWORD = "password123"
TEST_YEAR = 2025


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# SAVEPOINT support: take BEGIN away from the driver and emit it ourselves
@event.listens_for(engine.sync_engine, "connect")
def _sqlite_connect(dbapi_conn, connection_record):
    dbapi_conn.isolation_level = None


@event.listens_for(engine.sync_engine, "begin")
def _sqlite_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from leavedesk.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

@lru_cache(maxsize=1)
def _password_hash() -> str:
    # bcrypt is slow; hash once per run
    return hash_password(TEST_PASSWORD)


async def make_user(
    db: AsyncSession,
    *,
    username: str = "1001",
    name: str = "홍길동",
    department: Optional[str] = "상담1팀",
    role: UserRole = UserRole.user,
    year: Optional[int] = TEST_YEAR,
    annual_total: Decimal = Decimal("15"),
    comp_total: Decimal = Decimal("0"),
    is_temp_password: bool = False,
) -> User:
    """Insert a user and, unless ``year`` is None, its two balance rows."""
    user = User(
        username=username,
        name=name,
        department=department,
        role=role,
        password_hash=_password_hash(),
        is_temp_password=is_temp_password,
    )
    db.add(user)
    await db.flush()
    if year is not None:
        db.add_all([
            LeaveBalance(
                user_id=user.id, year=year, leave_type=LeavePool.annual,
                total=annual_total, used=Decimal("0"), remaining=annual_total,
            ),
            LeaveBalance(
                user_id=user.id, year=year, leave_type=LeavePool.compensatory,
                total=comp_total, used=Decimal("0"), remaining=comp_total,
            ),
        ])
        await db.flush()
    return user


@pytest.fixture
async def employee(db) -> User:
    user = await make_user(db)
    await db.commit()
    return user


@pytest.fixture
async def manager(db) -> User:
    user = await make_user(db, username="2001", name="김팀장", role=UserRole.manager)
    await db.commit()
    return user


@pytest.fixture
async def admin(db) -> User:
    user = await make_user(
        db, username="admin", name="관리자", department=None, role=UserRole.admin,
    )
    await db.commit()
    return user


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    user: User,
    *,
    expired: bool = False,
    token_type: str = "access",
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(user.id),
        "role": user.role.value,
        "type": token_type,
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}
