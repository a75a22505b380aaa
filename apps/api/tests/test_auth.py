"""
Tests for authentication endpoints and the authentication guard.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from permipulse.core.auth.roles import Role
from permipulse.core.auth.tokens import create_access_token
from permipulse.models.user import User


@pytest.mark.asyncio
async def test_signup_defaults_to_user(client: AsyncClient):
    """Test user registration."""
    response = await client.post(
        "/api/auth/signup",
        json={
            "email": "newuser@example.com",
            "password": "securepassword123",
            "name": "New User",
        },
    )

    assert response.status_code == 201
    data = response.json()
    assert data["user"]["email"] == "newuser@example.com"
    assert data["user"]["role"] == "USER"
    assert "password" not in data["user"]
    assert "password_hash" not in data["user"]


@pytest.mark.asyncio
async def test_first_admin_signup(client: AsyncClient):
    response = await client.post(
        "/api/auth/signup",
        json={"email": "boss@example.com", "password": "password123", "name": "Boss", "role": "ADMIN"},
    )

    assert response.status_code == 201
    assert response.json()["user"]["role"] == "ADMIN"


@pytest.mark.asyncio
async def test_second_admin_signup_conflicts(client: AsyncClient, admin_user: User):
    response = await client.post(
        "/api/auth/signup",
        json={"email": "boss2@example.com", "password": "password123", "name": "Boss 2", "role": "ADMIN"},
    )

    assert response.status_code == 409
    assert response.json() == {
        "error": "conflict",
        "detail": "An Admin already exists. Only one Admin is allowed.",
    }


@pytest.mark.asyncio
async def test_sub_admin_signup_forbidden(client: AsyncClient):
    response = await client.post(
        "/api/auth/signup",
        json={"email": "sneaky@example.com", "password": "password123", "name": "Sneaky", "role": "SUB_ADMIN"},
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_signup_duplicate_email(client: AsyncClient, test_user: User):
    """Test registration with existing email fails."""
    response = await client.post(
        "/api/auth/signup",
        json={"email": test_user.email, "password": "anotherpassword", "name": "Another User"},
    )

    assert response.status_code == 409
    assert "already registered" in response.json()["detail"].lower()


@pytest.mark.asyncio
async def test_signup_weak_password(client: AsyncClient):
    """Test registration with weak password fails."""
    response = await client.post(
        "/api/auth/signup",
        json={"email": "test@example.com", "password": "123", "name": "Test"},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, sub_admin: User):
    """Test successful login."""
    response = await client.post(
        "/api/auth/login",
        json={"email": sub_admin.email, "password": "testpassword123"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["role"] == "SUB_ADMIN"
    assert data["user"]["permissions"] == []

    me = await client.get(
        "/api/users/me",
        headers={"Authorization": f"Bearer {data['access_token']}"},
    )
    assert me.status_code == 200
    assert me.json()["id"] == sub_admin.id


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, test_user: User):
    """Test login with wrong password fails."""
    response = await client.post(
        "/api/auth/login",
        json={"email": test_user.email, "password": "wrongpassword"},
    )

    assert response.status_code == 401
    assert response.json()["error"] == "unauthenticated"


@pytest.mark.asyncio
async def test_login_unknown_email(client: AsyncClient):
    response = await client.post(
        "/api/auth/login",
        json={"email": "nobody@example.com", "password": "whatever123"},
    )

    assert response.status_code == 401


# ============ Authentication guard ============


@pytest.mark.asyncio
async def test_missing_token(client: AsyncClient):
    response = await client.get("/api/posts")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_expired_token(client: AsyncClient, test_user: User):
    token = create_access_token(test_user.id, test_user.role, expires_delta=timedelta(minutes=-1))

    response = await client.get("/api/posts", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Token has expired"


@pytest.mark.asyncio
async def test_malformed_token(client: AsyncClient):
    response = await client.get("/api/posts", headers={"Authorization": "Bearer nonsense"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_for_deleted_account(client: AsyncClient):
    token = create_access_token(9999, Role.USER)

    response = await client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
