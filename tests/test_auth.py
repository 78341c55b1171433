from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User


@pytest.mark.asyncio
async def test_register_success(client: AsyncClient, db_session: AsyncSession) -> None:
    payload = {
        "full_name": "Jane Doe",
        "email": "Jane@Example.com",
        "password": "StrongPass123",
        "confirm_password": "StrongPass123",
    }

    response = await client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 201
    data = response.json()

    UUID(data["id"])
    assert data["email"] == "jane@example.com"
    assert data["full_name"] == "Jane Doe"

    # Verify user created with a hashed password
    user_result = await db_session.execute(select(User).where(User.email == "jane@example.com"))
    user = user_result.scalar_one_or_none()
    assert user is not None
    assert user.status == "ACTIVE"
    assert user.password_hash != payload["password"]


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient) -> None:
    payload = {
        "full_name": "Jane Doe",
        "email": "jane@example.com",
        "password": "StrongPass123",
        "confirm_password": "StrongPass123",
    }
    assert (await client.post("/api/v1/auth/register", json=payload)).status_code == 201
    response = await client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_register_password_mismatch(client: AsyncClient) -> None:
    payload = {
        "full_name": "Jane Doe",
        "email": "jane@example.com",
        "password": "StrongPass123",
        "confirm_password": "OtherPass123",
    }
    response = await client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient) -> None:
    register_payload = {
        "full_name": "John Admin",
        "email": "john.admin@example.com",
        "password": "StrongPass123",
        "confirm_password": "StrongPass123",
    }
    register_resp = await client.post("/api/v1/auth/register", json=register_payload)
    assert register_resp.status_code == 201

    login_payload = {
        "email": register_payload["email"],
        "password": register_payload["password"],
    }
    response = await client.post("/api/v1/auth/login", json=login_payload)
    assert response.status_code == 200
    data = response.json()

    assert "access_token" in data
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == register_payload["email"]
    assert "id" in data["user"]


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient) -> None:
    payload = {
        "full_name": "John Admin",
        "email": "john.admin@example.com",
        "password": "StrongPass123",
        "confirm_password": "StrongPass123",
    }
    await client.post("/api/v1/auth/register", json=payload)
    response = await client.post(
        "/api/v1/auth/login", json={"email": payload["email"], "password": "WrongPass123"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_oauth_form_login(client: AsyncClient) -> None:
    payload = {
        "full_name": "John Admin",
        "email": "john.admin@example.com",
        "password": "StrongPass123",
        "confirm_password": "StrongPass123",
    }
    await client.post("/api/v1/auth/register", json=payload)
    response = await client.post(
        "/api/v1/auth/login-oauth",
        data={"username": payload["email"], "password": payload["password"]},
    )
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_protected_endpoint_requires_token(client: AsyncClient) -> None:
    assert (await client.get("/api/v1/clients")).status_code == 401
    response = await client.get("/api/v1/clients", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_returns_token_owner(client: AsyncClient, auth_headers) -> None:
    response = await client.get("/api/v1/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["email"] == "owner@example.com"
