"""Login endpoint: credential checks and profile selection."""

import uuid

import pytest
from httpx import AsyncClient

from photohub.core.security import hash_password
from photohub.models.user import User, UserProfile, UserRole


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, signup):
    """Valid email + password returns identity and a fresh token pair."""
    await signup("login@example.com", password="password1234")

    resp = await client.post(
        "/v1/auth/login", json={"email": "login@example.com", "password": "password1234"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Login successful"
    assert body["data"]["user"]["email"] == "login@example.com"
    assert body["data"]["accessToken"]
    assert body["data"]["refreshToken"]


@pytest.mark.asyncio
async def test_login_email_is_case_insensitive(client: AsyncClient, signup):
    await signup("mixed@example.com")
    resp = await client.post(
        "/v1/auth/login", json={"email": "MIXED@Example.com", "password": "password1234"},
    )
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, signup):
    await signup("wrongpw@example.com")
    resp = await client.post(
        "/v1/auth/login", json={"email": "wrongpw@example.com", "password": "not-the-password"},
    )
    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_unknown_email(client: AsyncClient):
    resp = await client.post(
        "/v1/auth/login", json={"email": "ghost@example.com", "password": "password1234"},
    )
    assert resp.status_code == 404
    assert "does not exist" in resp.json()["error"]["message"]


@pytest.mark.asyncio
async def test_login_without_password(client: AsyncClient, signup):
    await signup("nopw@example.com")
    resp = await client.post("/v1/auth/login", json={"email": "nopw@example.com"})
    assert resp.status_code == 400
    assert resp.json()["error"]["context"]["field"] == "password"


@pytest.mark.asyncio
async def test_login_unverified_user(client: AsyncClient, session):
    session.add(
        User(
            email="pending@example.com",
            name="Pending",
            password_hash=hash_password("password1234"),
            is_verified=False,
        )
    )
    await session.commit()

    resp = await client.post(
        "/v1/auth/login", json={"email": "pending@example.com", "password": "password1234"},
    )
    assert resp.status_code == 400
    assert "not verified" in resp.json()["error"]["message"]


@pytest.mark.asyncio
async def test_login_passwordless_account_rejects_password(client: AsyncClient, signup):
    """Accounts created without a password (e.g. via Google) cannot log in with one."""
    await signup("oauth-only@example.com", password=None)
    resp = await client.post(
        "/v1/auth/login", json={"email": "oauth-only@example.com", "password": "guessing123"},
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_login_selects_requested_profile(client: AsyncClient, signup, session):
    """A user with several profiles can pick one; the default is the earliest."""
    data = await signup("multi@example.com", name="Multi")
    user_id = data["user"]["id"]

    second = UserProfile(user_id=uuid.UUID(user_id), role=UserRole.CLIENT, name="Multi as client")
    session.add(second)
    await session.commit()

    resp = await client.post(
        "/v1/auth/login", json={"email": "multi@example.com", "password": "password1234"},
    )
    assert resp.json()["data"]["userProfile"]["id"] == data["userProfile"]["id"]

    resp = await client.post(
        "/v1/auth/login",
        json={
            "email": "multi@example.com",
            "password": "password1234",
            "userProfileId": str(second.id),
        },
    )
    assert resp.status_code == 200
    payload = resp.json()["data"]
    assert payload["userProfile"]["id"] == str(second.id)
    assert payload["userProfile"]["role"] == "CLIENT"
    assert payload["tenant"] is None


@pytest.mark.asyncio
async def test_login_validation_error_shape(client: AsyncClient):
    resp = await client.post("/v1/auth/login", json={"email": "not-an-email"})
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["message"] == "Validation failed"
    assert error["context"]["field"] == "validation"
    assert any(item["field"] == "email" for item in error["context"]["value"])
