"""Auth test suite — password login, JWT validation, RBAC, password change."""

from __future__ import annotations

from jose import jwt

from leavedesk.common.constants import UserRole
from leavedesk.config import settings
from tests.conftest import TEST_PASSWORD, auth_headers, create_access_token, make_user


# ── Login ───────────────────────────────────────────────────────────


async def test_login_returns_bearer_token(client, employee):
    """Valid credentials → 200 with a token whose sub is the user id."""
    resp = await client.post(
        "/api/v1/auth/login",
        json={"username": "1001", "password": TEST_PASSWORD},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == settings.JWT_EXPIRY_HOURS * 3600
    assert data["is_temp_password"] is False

    claims = jwt.decode(
        data["access_token"], settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM],
    )
    assert claims["sub"] == str(employee.id)
    assert claims["type"] == "access"
    assert claims["role"] == "user"


async def test_login_reports_temporary_password(client, db):
    """Accounts on the default password are flagged at login."""
    await make_user(db, username="1009", is_temp_password=True)
    await db.commit()

    resp = await client.post(
        "/api/v1/auth/login",
        json={"username": "1009", "password": TEST_PASSWORD},
    )
    assert resp.status_code == 200
    assert resp.json()["is_temp_password"] is True


async def test_login_wrong_password(client, employee):
    """Wrong password → 401 problem+json."""
    resp = await client.post(
        "/api/v1/auth/login",
        json={"username": "1001", "password": "wrong"},
    )
    assert resp.status_code == 401
    assert resp.headers["content-type"].startswith("application/problem+json")
    assert resp.json()["type"].endswith("/unauthorized")


async def test_login_unknown_user_same_message(client, employee):
    """Unknown username and wrong password are indistinguishable."""
    unknown = await client.post(
        "/api/v1/auth/login", json={"username": "nobody", "password": "x"},
    )
    wrong = await client.post(
        "/api/v1/auth/login", json={"username": "1001", "password": "x"},
    )
    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json()["detail"] == wrong.json()["detail"]


async def test_login_rate_limited(client, employee):
    """More than LOGIN_RATE_LIMIT attempts per minute → 429."""
    limit = int(settings.LOGIN_RATE_LIMIT.split("/")[0])
    for _ in range(limit):
        await client.post("/api/v1/auth/login", json={"username": "1001", "password": "x"})

    resp = await client.post(
        "/api/v1/auth/login", json={"username": "1001", "password": TEST_PASSWORD},
    )
    assert resp.status_code == 429


# ── Token validation ────────────────────────────────────────────────


async def test_me_returns_profile_and_balances(client, employee):
    """GET /me → current user plus both balances."""
    resp = await client.get("/api/v1/auth/me", headers=auth_headers(employee))
    assert resp.status_code == 200
    data = resp.json()
    assert data["user"]["username"] == "1001"
    assert data["user"]["role"] == "user"
    assert "remaining" in data["balances"]["annual"]
    assert "remaining" in data["balances"]["compensatory"]


async def test_missing_token(client):
    """No Authorization header → 401."""
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401


async def test_expired_token(client, employee):
    """Expired JWT → 401 with an expiry message."""
    token = create_access_token(employee, expired=True)
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert "expired" in resp.json()["detail"].lower()


async def test_wrong_token_type(client, employee):
    """Only access tokens are accepted."""
    token = create_access_token(employee, token_type="refresh")
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_tampered_token(client, employee):
    """Signature mismatch → 401."""
    token = jwt.encode(
        {"sub": str(employee.id), "type": "access"}, "not-the-secret", algorithm="HS256",
    )
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_token_for_deleted_user(client, db, employee, admin):
    """A valid token whose user no longer exists → 401."""
    headers = auth_headers(employee)
    resp = await client.delete(f"/api/v1/users/{employee.id}", headers=auth_headers(admin))
    assert resp.status_code == 204

    resp = await client.get("/api/v1/auth/me", headers=headers)
    assert resp.status_code == 401


# ── RBAC ────────────────────────────────────────────────────────────


async def test_role_is_read_from_database(client, db):
    """A token minted while admin loses admin rights after demotion."""
    user = await make_user(db, username="9001", role=UserRole.admin)
    await db.commit()
    headers = auth_headers(user)

    user.role = UserRole.user
    await db.commit()

    resp = await client.get("/api/v1/users", headers=headers)
    assert resp.status_code == 403


async def test_manager_inherits_user_endpoints(client, manager):
    """Hierarchy: manager can call endpoints open to any user."""
    resp = await client.get("/api/v1/auth/me", headers=auth_headers(manager))
    assert resp.status_code == 200


# ── Password change ─────────────────────────────────────────────────


async def test_change_password_then_login(client, employee):
    """New password works at the next login and the old one does not."""
    resp = await client.post(
        "/api/v1/auth/change-password",
        json={"new_password": "brand-new"},
        headers=auth_headers(employee),
    )
    assert resp.status_code == 204

    old = await client.post(
        "/api/v1/auth/login", json={"username": "1001", "password": TEST_PASSWORD},
    )
    new = await client.post(
        "/api/v1/auth/login", json={"username": "1001", "password": "brand-new"},
    )
    assert old.status_code == 401
    assert new.status_code == 200


async def test_change_password_too_short(client, employee):
    """Below MIN_PASSWORD_LENGTH → 422 with the field named."""
    resp = await client.post(
        "/api/v1/auth/change-password",
        json={"new_password": "abc"},
        headers=auth_headers(employee),
    )
    assert resp.status_code == 422
    assert "new_password" in resp.json()["errors"]
