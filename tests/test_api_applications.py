import uuid

import pytest


async def _create(client, employee_id="emp-1", application_type="ONBOARDING", **extra):
    r = await client.post(
        "/api/v1/applications",
        json={"employee_id": employee_id, "application_type": application_type, **extra},
    )
    assert r.status_code == 201, r.text
    return r.json()


@pytest.mark.anyio
async def test_create_and_get_application(client):
    created = await _create(client, comment="Start date 2026-11-02")

    assert created["status"] == "Open"
    assert created["application_type"] == "ONBOARDING"

    r = await client.get(f"/api/v1/applications/{created['id']}")
    assert r.status_code == 200
    assert r.json()["comment"] == "Start date 2026-11-02"


@pytest.mark.anyio
async def test_create_without_employee_id_is_422(client):
    r = await client.post("/api/v1/applications", json={"application_type": "ONBOARDING"})
    assert r.status_code == 422
    assert r.json()["detail"] == "employee_id is required"
    assert r.headers["x-error-kind"] == "validation"


@pytest.mark.anyio
async def test_unknown_application_is_404(client):
    r = await client.get(f"/api/v1/applications/{uuid.uuid4()}")
    assert r.status_code == 404
    assert r.headers["x-error-kind"] == "not_found"


@pytest.mark.anyio
async def test_submit_approve_flow(client, dispatcher):
    created = await _create(client)
    app_id = created["id"]

    r = await client.post(f"/api/v1/applications/{app_id}/submit")
    assert r.status_code == 200
    assert r.json()["status"] == "Pending"

    r = await client.post(f"/api/v1/applications/{app_id}/submit")
    assert r.status_code == 422
    assert r.json()["detail"] == "Cannot submit application with status: Pending"
    assert r.headers["x-error-kind"] == "invalid_state"

    r = await client.post(f"/api/v1/applications/{app_id}/approve", json={"comment": "Welcome!"})
    assert r.status_code == 200
    assert r.json() == {"status": "Approved", "comment": "Welcome!"}

    assert dispatcher.sent[-1]["status"] == "Approved"


@pytest.mark.anyio
async def test_reject_without_body(client):
    created = await _create(client)
    await client.post(f"/api/v1/applications/{created['id']}/submit")

    r = await client.post(f"/api/v1/applications/{created['id']}/reject")
    assert r.status_code == 200
    assert r.json()["status"] == "Rejected"


@pytest.mark.anyio
async def test_patch_application(client):
    created = await _create(client)

    r = await client.patch(f"/api/v1/applications/{created['id']}", json={"comment": "Updated"})
    assert r.status_code == 200
    assert r.json()["comment"] == "Updated"

    r = await client.patch(f"/api/v1/applications/{created['id']}", json={"application_type": "OPT"})
    assert r.status_code == 422
    assert r.headers["x-error-kind"] == "invalid_state"


@pytest.mark.anyio
async def test_second_active_opt_application_is_refused(client):
    await _create(client, application_type="OPT")

    r = await client.post("/api/v1/applications", json={"employee_id": "emp-1", "application_type": "OPT"})
    assert r.status_code == 422
    assert r.json()["detail"] == "Employee already has an active OPT STEM application"


@pytest.mark.anyio
async def test_delete_application(client):
    created = await _create(client)

    r = await client.delete(f"/api/v1/applications/{created['id']}")
    assert r.status_code == 204

    r = await client.get(f"/api/v1/applications/{created['id']}")
    assert r.status_code == 404


@pytest.mark.anyio
async def test_employee_and_status_listings(client):
    a = await _create(client, "emp-1")
    await _create(client, "emp-2")
    await client.post(f"/api/v1/applications/{a['id']}/submit")

    r = await client.get("/api/v1/applications/employee/emp-1")
    assert [x["id"] for x in r.json()] == [a["id"]]

    r = await client.get("/api/v1/applications/employee/emp-1/active")
    assert r.status_code == 200
    assert r.json()[0]["status"] == "Pending"

    r = await client.get("/api/v1/applications/employee/emp-1/latest")
    assert r.json()["id"] == a["id"]

    r = await client.get("/api/v1/applications/employee/nobody/latest")
    assert r.status_code == 404

    r = await client.get("/api/v1/applications/ongoing")
    assert len(r.json()) == 2

    r = await client.get("/api/v1/applications/by-status/Pending")
    assert [x["id"] for x in r.json()] == [a["id"]]

    r = await client.get("/api/v1/applications/by-status/Archived")
    assert r.status_code == 422
