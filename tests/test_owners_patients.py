"""Tests for owner and patient endpoints."""

from datetime import date

import pytest
from httpx import AsyncClient

from vetflow.services.patient_service import age_in_years


@pytest.mark.asyncio
async def test_assistant_registers_owner(client: AsyncClient, assistant_headers: dict) -> None:
    response = await client.post(
        "/api/v1/owners/",
        json={"name": "  Tom Baker ", "phone": "+44 20 7946 0958", "email": "tom@example.com"},
        headers=assistant_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Tom Baker"
    assert data["email"] == "tom@example.com"


@pytest.mark.asyncio
async def test_veterinarian_cannot_manage_owners(client: AsyncClient, vet_headers: dict) -> None:
    response = await client.post(
        "/api/v1/owners/",
        json={"name": "Tom Baker", "phone": "5550001111"},
        headers=vet_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"name": "", "phone": "5550001111"},
        {"name": "Tom", "phone": "call me"},
        {"name": "Tom", "phone": "12345"},
        {"name": "Tom", "phone": "5550001111", "email": "not-an-email"},
    ],
)
async def test_owner_validation(client: AsyncClient, assistant_headers: dict, payload: dict) -> None:
    response = await client.post("/api/v1/owners/", json=payload, headers=assistant_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_search_and_update_owner(
    client: AsyncClient,
    assistant_headers: dict,
    vet_headers: dict,
    owner: dict,
) -> None:
    response = await client.get("/api/v1/owners/", params={"search": "garc"}, headers=vet_headers)
    assert response.status_code == 200
    assert [item["id"] for item in response.json()["items"]] == [owner["id"]]

    response = await client.get("/api/v1/owners/", params={"search": "nobody"}, headers=vet_headers)
    assert response.json()["total"] == 0

    response = await client.patch(
        f"/api/v1/owners/{owner['id']}",
        json={"address": "12 Elm Street"},
        headers=assistant_headers,
    )
    assert response.status_code == 200
    assert response.json()["address"] == "12 Elm Street"
    assert response.json()["phone"] == owner["phone"]

    response = await client.get("/api/v1/owners/9999", headers=vet_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_register_patient(
    client: AsyncClient,
    vet_headers: dict,
    owner: dict,
) -> None:
    response = await client.post(
        "/api/v1/patients/",
        json={
            "name": "Whiskers",
            "species": "cat",
            "birth_date": "2020-01-15",
            "weight": "4.25",
            "owner_id": owner["id"],
        },
        headers=vet_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["species"] == "cat"
    assert data["is_active"] is True
    assert data["age_years"] == age_in_years(date(2020, 1, 15))


@pytest.mark.asyncio
async def test_register_patient_unknown_owner(client: AsyncClient, vet_headers: dict) -> None:
    response = await client.post(
        "/api/v1/patients/",
        json={"name": "Ghost", "species": "dog", "owner_id": 9999},
        headers=vet_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"species": "dragon"},
        {"weight": "-1"},
        {"birth_date": "2999-01-01"},
    ],
)
async def test_patient_validation(
    client: AsyncClient,
    vet_headers: dict,
    owner: dict,
    overrides: dict,
) -> None:
    payload = {"name": "Rex", "species": "dog", "owner_id": owner["id"], **overrides}
    response = await client.post("/api/v1/patients/", json=payload, headers=vet_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_patients_filters(
    client: AsyncClient,
    assistant_headers: dict,
    patient: dict,
    owner: dict,
) -> None:
    await client.post(
        "/api/v1/patients/",
        json={"name": "Tweety", "species": "bird", "owner_id": owner["id"]},
        headers=assistant_headers,
    )

    response = await client.get(
        "/api/v1/patients/", params={"species": "dog"}, headers=assistant_headers
    )
    assert [item["id"] for item in response.json()["items"]] == [patient["id"]]

    response = await client.get(
        "/api/v1/patients/", params={"owner_id": owner["id"]}, headers=assistant_headers
    )
    assert response.json()["total"] == 2


@pytest.mark.asyncio
async def test_inactive_patient_cannot_be_booked(
    client: AsyncClient,
    assistant_headers: dict,
    patient: dict,
    appointment_payload: dict,
) -> None:
    response = await client.patch(
        f"/api/v1/patients/{patient['id']}/status",
        json={"is_active": False},
        headers=assistant_headers,
    )
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    response = await client.post(
        "/api/v1/appointments/", json=appointment_payload, headers=assistant_headers
    )
    assert response.status_code == 422

    response = await client.get(
        "/api/v1/patients/", params={"is_active": "false"}, headers=assistant_headers
    )
    assert [item["id"] for item in response.json()["items"]] == [patient["id"]]


@pytest.mark.asyncio
async def test_update_patient(client: AsyncClient, vet_headers: dict, patient: dict) -> None:
    response = await client.patch(
        f"/api/v1/patients/{patient['id']}",
        json={"breed": "Basset Hound", "weight": "12.5"},
        headers=vet_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["breed"] == "Basset Hound"
    assert data["name"] == patient["name"]


def test_age_in_years():
    assert age_in_years(None) is None
    assert age_in_years(date(2020, 6, 1), today=date(2024, 5, 31)) == 3
    assert age_in_years(date(2020, 6, 1), today=date(2024, 6, 1)) == 4
