import pytest


async def _create(client, employee_id="emp-1"):
    r = await client.post("/api/v1/visa-applications", json={"employee_id": employee_id})
    assert r.status_code == 201, r.text
    return r.json()


@pytest.mark.anyio
async def test_full_opt_stem_workflow(client, dispatcher):
    app = await _create(client)
    app_id = app["id"]
    assert app["current_stage"] == "INITIAL"
    assert app["phase"] == {"kind": "Open", "stage": "INITIAL"}
    assert app["employee_name"] == "Jane Doe"

    r = await client.get(f"/api/v1/visa-applications/{app_id}/next-steps")
    assert r.json()["next_action"] == "DOWNLOAD_I983"
    assert r.json()["download_url"]

    r = await client.post(f"/api/v1/visa-applications/{app_id}/i20", json={"document_path": "s3://docs/i20.pdf"})
    assert r.status_code == 200
    assert r.json()["status"] == "Pending"

    r = await client.get("/api/v1/visa-applications/pending")
    assert [x["id"] for x in r.json()] == [app_id]

    r = await client.post(f"/api/v1/visa-applications/{app_id}/approve", json={"comment": "ok"})
    assert r.json()["status"] == "Open"
    assert r.json()["phase"] == {"kind": "AwaitingNextStage", "stage": "I20_UPLOADED"}

    r = await client.post(
        f"/api/v1/visa-applications/{app_id}/opt-stem-receipt", json={"document_path": "s3://docs/receipt.pdf"}
    )
    assert r.json()["current_stage"] == "RECEIPT_UPLOADED"
    await client.post(f"/api/v1/visa-applications/{app_id}/approve")

    r = await client.post(
        f"/api/v1/visa-applications/{app_id}/opt-stem-ead", json={"document_path": "s3://docs/ead.pdf"}
    )
    assert r.json()["current_stage"] == "EAD_UPLOADED"

    r = await client.post(f"/api/v1/visa-applications/{app_id}/approve", json={"comment": "Done"})
    assert r.json()["status"] == "Approved"

    r = await client.get(f"/api/v1/visa-applications/{app_id}/next-steps")
    assert r.json()["next_action"] == "COMPLETE"

    assert len(dispatcher.sent) == 6


@pytest.mark.anyio
async def test_out_of_order_upload_is_422_sequence(client):
    app = await _create(client)

    r = await client.post(
        f"/api/v1/visa-applications/{app['id']}/documents",
        json={"document_type": "OPT_STEM_RECEIPT", "document_path": "s3://docs/receipt.pdf"},
    )
    assert r.status_code == 422
    assert r.json()["detail"] == "Please upload I-20 first"
    assert r.headers["x-error-kind"] == "sequence"


@pytest.mark.anyio
async def test_reject_visa_application(client):
    app = await _create(client)
    await client.post(f"/api/v1/visa-applications/{app['id']}/i20", json={"document_path": "s3://docs/i20.pdf"})

    r = await client.post(f"/api/v1/visa-applications/{app['id']}/reject", json={"comment": "Expired"})
    assert r.status_code == 200
    assert r.json()["comment"] == "Rejected: Expired"


@pytest.mark.anyio
async def test_duplicate_active_opt_application_is_422(client):
    await _create(client)

    r = await client.post("/api/v1/visa-applications", json={"employee_id": "emp-1"})
    assert r.status_code == 422
    assert r.headers["x-error-kind"] == "invalid_state"


@pytest.mark.anyio
async def test_current_application_and_template(client):
    app = await _create(client, "emp-2")

    r = await client.get("/api/v1/visa-applications/employee/emp-2/current")
    assert r.json()["id"] == app["id"]

    r = await client.get("/api/v1/visa-applications")
    assert len(r.json()) == 1

    r = await client.get("/api/v1/visa-applications/i983-template")
    assert r.status_code == 200
    assert r.json()["url"].endswith(".pdf")
