from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from my_desk.api import create_app
from my_desk.auth import Role
from my_desk.config import ServerSettings

PDF = "data:application/pdf;base64,SGVsbG8="

STAFF = {"Authorization": "Bearer staff-token"}
INCHARGE = {"Authorization": "Bearer incharge-token"}


@pytest.fixture
def client(tmp_path):
    settings = ServerSettings(
        data_dir=tmp_path,
        inward_dir=tmp_path / "inward",
        outward_dir=tmp_path / "outward",
        api_tokens={"staff-token": Role.STAFF, "incharge-token": Role.INCHARGE},
    )
    return TestClient(create_app(settings))


def _entry(file_no="101/GA/2025"):
    return {
        "fileNo": file_no,
        "fromOffice": "HR Department",
        "subject": "Leave",
        "document": {"data": PDF, "name": "scan.pdf", "type": "application/pdf"},
    }


def test_healthcheck_needs_no_token(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_requests_without_valid_token_are_rejected(client):
    response = client.get("/api/inward")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}

    response = client.get("/api/inward", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


def test_me_reports_role(client):
    assert client.get("/api/me", headers=INCHARGE).json() == {"role": "incharge"}


def test_register_crud_and_duplicate_conflict(client):
    created = client.post("/api/inward", json=_entry(), headers=STAFF)
    assert created.status_code == 200
    item = created.json()
    assert item["fileUrl"] == "/files/inward/scan.pdf"

    duplicate = client.post("/api/inward", json=_entry("101/ga/2025"), headers=STAFF)
    assert duplicate.status_code == 409
    assert duplicate.json() == {"error": "Duplicate file number"}

    updated = client.put(f"/api/inward/{item['id']}", json={"note": "filed"}, headers=STAFF)
    assert updated.json()["note"] == "filed"

    assert client.get("/api/inward", headers=STAFF).json()[0]["id"] == item["id"]
    assert client.get("/api/outward", headers=STAFF).json() == []


def test_missing_fields_return_400(client):
    response = client.post("/api/outward", json={"fileNo": "9"}, headers=STAFF)
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}


def test_delete_requires_incharge(client):
    item = client.post("/api/inward", json=_entry(), headers=STAFF).json()

    forbidden = client.delete(f"/api/inward/{item['id']}", headers=STAFF)
    assert forbidden.status_code == 403
    assert forbidden.json() == {"error": "Forbidden"}

    assert client.delete(f"/api/inward/{item['id']}", headers=INCHARGE).json() == {"ok": True}
    missing = client.delete(f"/api/inward/{item['id']}", headers=INCHARGE)
    assert missing.status_code == 404
    assert client.get("/files/inward/scan.pdf").status_code == 404


def test_attachment_is_served(client):
    client.post("/api/inward", json=_entry(), headers=STAFF)

    response = client.get("/files/inward/scan.pdf")

    assert response.status_code == 200
    assert response.content == b"Hello"
    assert client.get("/files/inward/inward.json").status_code == 404
    assert client.get("/files/elsewhere/scan.pdf").status_code == 400


def test_attendance_endpoints(client):
    body = {"date": "2025-01-05", "record": {"type": "present"}}
    assert client.post("/api/attendance", json=body, headers=STAFF).json() == {
        "2025-01-05": {"type": "present"}
    }

    bad = client.post("/api/attendance", json={"date": "yesterday", "record": {}}, headers=STAFF)
    assert bad.status_code == 400


def test_task_endpoints(client):
    task = client.post(
        "/api/tasks", json={"title": "Audit", "dueDate": "2025-02-01"}, headers=STAFF
    ).json()
    assert task["status"] == "Pending"

    patched = client.put(
        f"/api/tasks/{task['id']}", json={"status": "In-Progress"}, headers=STAFF
    ).json()
    assert patched["status"] == "In-Progress"

    assert client.delete(f"/api/tasks/{task['id']}", headers=STAFF).status_code == 403
    assert client.delete(f"/api/tasks/{task['id']}", headers=INCHARGE).status_code == 200
    assert client.get("/api/tasks", headers=STAFF).json() == []


def test_profile_and_offices(client):
    profile = {"name": "A. Clerk", "updatedAt": "2025-01-01T00:00:00Z"}
    assert client.put("/api/profile", json=profile, headers=STAFF).json() == profile
    assert client.get("/api/profile", headers=STAFF).json() == profile

    assert client.put("/api/offices", json=["Registry"], headers=STAFF).status_code == 403

    bad = client.put("/api/offices", json={"name": "Registry"}, headers=INCHARGE)
    assert bad.status_code == 400
    assert bad.json() == {"error": "Expected array"}

    saved = client.put("/api/offices", json=["registry", "Registry", " Audit "], headers=INCHARGE)
    assert saved.json() == ["Audit", "registry"]
    assert client.get("/api/offices", headers=STAFF).json() == ["Audit", "registry"]
