"""
Authentication flow tests.
"""

import pytest
from datetime import timedelta

from ledger_backend.app.core.jwt import create_access_token
from ledger_backend.app.models.enums import UserRole
from ledger_backend.app.services.audit import AuditAction, get_audit_trail

from conftest import _create_user, auth_headers


@pytest.mark.asyncio
async def test_login_success(client, db_session):
    user = await _create_user(db_session, "akuntan01", UserRole.AKUNTAN, password="rahasia123")

    response = await client.post("/v1/auth/login", json={"username": "akuntan01", "password": "rahasia123"})

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user_id"] == user.id
    assert data["role"] == "AKUNTAN"

    me = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["username"] == "akuntan01"

    trail = await get_audit_trail(db_session, action=AuditAction.LOGIN_SUCCESS)
    assert len(trail) == 1


@pytest.mark.asyncio
async def test_login_wrong_password_is_audited(client, db_session):
    await _create_user(db_session, "kasir01", UserRole.KASIR, password="rahasia123")

    response = await client.post("/v1/auth/login", json={"username": "kasir01", "password": "salah"})

    assert response.status_code == 401
    assert response.json()["error_code"] == "ERR_UNAUTHORIZED"
    trail = await get_audit_trail(db_session, action=AuditAction.LOGIN_FAILED)
    assert trail[0].meta_data == {"reason": "Invalid password"}


@pytest.mark.asyncio
async def test_login_unknown_user(client):
    response = await client.post("/v1/auth/login", json={"username": "ghost", "password": "x"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_inactive_user_cannot_login_or_use_token(client, db_session):
    user = await _create_user(db_session, "mantan", UserRole.AKUNTAN, password="rahasia123", is_active=False)

    response = await client.post("/v1/auth/login", json={"username": "mantan", "password": "rahasia123"})
    assert response.status_code == 403

    response = await client.get("/v1/auth/me", headers=auth_headers(user))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_expired_or_garbage_token_rejected(client, akuntan_user):
    expired = create_access_token(
        {"sub": akuntan_user.username, "user_id": akuntan_user.id, "role": "AKUNTAN"},
        expires_delta=timedelta(minutes=-1)
    )
    response = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401

    response = await client.get("/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Correlation-ID" in response.headers
