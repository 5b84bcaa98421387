"""Tests for the audit trail."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_appointment_changes_are_audited(
    client: AsyncClient,
    assistant_headers: dict,
    vet_headers: dict,
    admin_headers: dict,
    appointment_payload: dict,
) -> None:
    created = (
        await client.post("/api/v1/appointments/", json=appointment_payload, headers=assistant_headers)
    ).json()
    await client.patch(
        f"/api/v1/appointments/{created['id']}/status",
        json={"status": "confirmed"},
        headers=vet_headers,
    )

    response = await client.get(
        "/api/v1/audit-logs/",
        params={"table_name": "appointments", "record_id": created["id"]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    items = response.json()["items"]
    assert [item["action"] for item in items] == ["UPDATE", "INSERT"]
    assert [item["actor"] for item in items] == ["drsmith", "frontdesk"]
    assert items[0]["old_value"]["status"] == "scheduled"
    assert items[0]["new_value"]["status"] == "confirmed"


@pytest.mark.asyncio
async def test_audit_logs_are_admin_only(client: AsyncClient, vet_headers: dict) -> None:
    response = await client.get("/api/v1/audit-logs/", headers=vet_headers)
    assert response.status_code == 403
