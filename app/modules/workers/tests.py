"""
Tests para el módulo de trabajadores
"""

import io

import pytest

from app.modules.workers.models import Worker
from app.modules.workers import service as workers_service


@pytest.fixture
def worker_payload():
    return {
        "full_name": "Alice Worker",
        "email": "alice@localfishing.test",
        "phone_number": "+250788000111",
        "monthly_salary": "150000",
    }


class TestWorkers:
    """CRUD de /api/workers (manager o admin)"""

    def test_create_and_get(self, client, manager_headers, worker_payload):
        response = client.post("/api/workers/", json=worker_payload, headers=manager_headers)
        assert response.status_code == 201
        worker_id = response.json()["data"]["worker_id"]

        fetched = client.get(f"/api/workers/{worker_id}", headers=manager_headers)
        assert fetched.json()["data"]["full_name"] == "Alice Worker"

    def test_duplicate_email(self, client, manager_headers, worker_payload):
        client.post("/api/workers/", json=worker_payload, headers=manager_headers)
        response = client.post("/api/workers/", json=worker_payload, headers=manager_headers)
        assert response.status_code == 409

    def test_invalid_phone(self, client, manager_headers, worker_payload):
        worker_payload["phone_number"] = "abc"
        assert client.post("/api/workers/", json=worker_payload, headers=manager_headers).status_code == 400

    def test_employee_forbidden(self, client, employee_headers):
        assert client.get("/api/workers/", headers=employee_headers).status_code == 403

    def test_search(self, client, db_session, manager_headers):
        db_session.add_all([
            Worker(full_name="Alice Worker", email="a@localfishing.test"),
            Worker(full_name="Bob Porter", email="b@localfishing.test"),
        ])
        db_session.commit()
        body = client.get("/api/workers/?search=bob", headers=manager_headers).json()
        assert [w["full_name"] for w in body["data"]] == ["Bob Porter"]

    def test_delete_requires_admin(self, client, db_session, manager_headers, admin_headers):
        worker = Worker(full_name="Alice Worker", email="a@localfishing.test")
        db_session.add(worker)
        db_session.commit()
        assert client.delete(f"/api/workers/{worker.worker_id}", headers=manager_headers).status_code == 403
        assert client.delete(f"/api/workers/{worker.worker_id}", headers=admin_headers).status_code == 200

    def test_upload_identification(self, client, db_session, manager_headers, monkeypatch):
        worker = Worker(full_name="Alice Worker", email="a@localfishing.test")
        db_session.add(worker)
        db_session.commit()

        calls = []

        def fake_upload(upload, subfolder, allowed_types=None):
            calls.append(subfolder)
            return {"secure_url": "https://res.cloudinary.com/demo/id.png"}

        monkeypatch.setattr(workers_service, "upload_to_cloudinary", fake_upload)
        response = client.post(
            f"/api/workers/{worker.worker_id}/identification",
            files={"file": ("id.png", io.BytesIO(b"png-bytes"), "image/png")},
            headers=manager_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["identification_image_url"] == "https://res.cloudinary.com/demo/id.png"
        assert calls == ["workers"]
