"""Tests for authentication, staff accounts and veterinarian lookups."""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from vetflow.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)

PASSWORD = "correct-horse-battery"


def test_password_hashing():
    hashed = get_password_hash("s3cret-pass")
    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong-pass", hashed)


def test_access_token_round_trip():
    token = create_access_token({"sub": "7", "role": "assistant"}, expires_delta=timedelta(minutes=5))
    payload = decode_access_token(token)
    assert payload["sub"] == "7"
    assert payload["type"] == "access"


def test_expired_or_garbage_token_is_rejected():
    expired = create_access_token({"sub": "7"}, expires_delta=timedelta(minutes=-1))
    assert decode_access_token(expired) is None
    assert decode_access_token("not.a.token") is None


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, vet_user: dict) -> None:
    response = await client.post(
        "/api/v1/auth/token",
        json={"username": vet_user["username"], "password": PASSWORD},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["role"] == "veterinarian"
    assert data["user"]["last_login"] is not None
    assert "password_hash" not in data["user"]

    me = await client.get(
        "/api/v1/users/me",
        headers={"Authorization": f"Bearer {data['access_token']}"},
    )
    assert me.status_code == 200
    assert me.json()["username"] == vet_user["username"]


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, vet_user: dict) -> None:
    response = await client.post(
        "/api/v1/auth/token",
        json={"username": vet_user["username"], "password": "wrong-password"},
    )
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid username or password"


@pytest.mark.asyncio
async def test_login_unknown_user(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/auth/token",
        json={"username": "ghost", "password": PASSWORD},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_invalid_token_is_rejected(client: AsyncClient) -> None:
    response = await client.get("/api/v1/users/me", headers={"Authorization": "Bearer junk"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_admin_creates_and_deactivates_user(
    client: AsyncClient,
    admin_headers: dict,
) -> None:
    response = await client.post(
        "/api/v1/users",
        json={
            "username": "drwho",
            "email": "drwho@vetclinic.com",
            "password": "tardis-blue-box",
            "role": "veterinarian",
            "first_name": "John",
            "last_name": "Smith",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    user = response.json()
    assert user["role"] == "veterinarian"

    response = await client.post(
        "/api/v1/auth/token", json={"username": "drwho", "password": "tardis-blue-box"}
    )
    assert response.status_code == 200

    response = await client.patch(
        f"/api/v1/users/{user['id']}", json={"is_active": False}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    response = await client.post(
        "/api/v1/auth/token", json={"username": "drwho", "password": "tardis-blue-box"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_duplicate_username_conflicts(
    client: AsyncClient,
    admin_headers: dict,
    vet_user: dict,
) -> None:
    response = await client.post(
        "/api/v1/users",
        json={
            "username": vet_user["username"],
            "email": "other@vetclinic.com",
            "password": "long-enough-pass",
            "role": "assistant",
        },
        headers=admin_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_non_admin_cannot_manage_users(
    client: AsyncClient,
    vet_headers: dict,
    assistant_user: dict,
) -> None:
    response = await client.patch(
        f"/api/v1/users/{assistant_user['id']}",
        json={"role": "admin"},
        headers=vet_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_deactivated_user_token_is_refused(
    client: AsyncClient,
    admin_headers: dict,
    vet_user: dict,
    vet_headers: dict,
) -> None:
    await client.patch(
        f"/api/v1/users/{vet_user['id']}", json={"is_active": False}, headers=admin_headers
    )

    response = await client.get("/api/v1/appointments/", headers=vet_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_veterinarians(
    client: AsyncClient,
    assistant_headers: dict,
    vet_user: dict,
    other_vet_user: dict,
) -> None:
    response = await client.get("/api/v1/veterinarians", headers=assistant_headers)
    assert response.status_code == 200
    data = response.json()
    assert [v["id"] for v in data] == [other_vet_user["id"], vet_user["id"]]
    assert data[1]["display_name"] == "Anna Smith"

    response = await client.get(
        f"/api/v1/veterinarians/{vet_user['id']}", headers=assistant_headers
    )
    assert response.status_code == 200

    response = await client.get("/api/v1/veterinarians/9999", headers=assistant_headers)
    assert response.status_code == 404


@pytest.mark.parametrize(
    ("payload", "expected"),
    [({"sub": "12"}, 12), ({"sub": "abc"}, None), ({"sub": 12}, None), ({}, None)],
)
def test_token_user_id(payload, expected):
    from vetflow.core.security import token_user_id

    assert token_user_id(payload) == expected
