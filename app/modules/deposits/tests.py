"""
Tests para depósitos

- Visibilidad: un empleado solo ve sus propios depósitos
- Aprobación reservada a managers
- Edición y borrado por el creador
"""

from decimal import Decimal

import pytest

from app.modules.deposits import service as deposits_service
from app.modules.deposits.models import Deposit


# ===== FIXTURES =====

@pytest.fixture
def deposits(db_session, employee_user, manager_user):
    rows = [
        Deposit(deposit_type="momo", account_name="MTN Wallet", amount=100,
                created_by=employee_user.user_id, to_recipient="Boss"),
        Deposit(deposit_type="bank", account_name="Bank of Kigali", amount=50,
                created_by=employee_user.user_id, approval="approved"),
        Deposit(deposit_type="boss", account_name="Owner", amount=75, created_by=manager_user.user_id),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


# ===== TESTS =====

class TestDepositVisibility:
    """Listado y lectura según el rol"""

    def test_employee_sees_own_deposits(self, client, deposits, employee_headers):
        body = client.get("/api/deposits/", headers=employee_headers).json()
        assert body["pagination"]["total"] == 2

    def test_manager_sees_all(self, client, deposits, manager_headers):
        body = client.get("/api/deposits/", headers=manager_headers).json()
        assert body["pagination"]["total"] == 3

    def test_filters(self, client, deposits, manager_headers):
        body = client.get("/api/deposits/?deposit_type=bank", headers=manager_headers).json()
        assert [d["account_name"] for d in body["data"]] == ["Bank of Kigali"]
        body = client.get("/api/deposits/?approval=pending", headers=manager_headers).json()
        assert body["pagination"]["total"] == 2
        body = client.get("/api/deposits/?search=boss", headers=manager_headers).json()
        assert body["pagination"]["total"] == 1

    def test_employee_cannot_read_others(self, client, deposits, employee_headers):
        response = client.get(f"/api/deposits/{deposits[2].deposit_id}", headers=employee_headers)
        assert response.status_code == 404


class TestDepositWrites:
    """Creación, edición, aprobación y borrado"""

    def test_create_deposit(self, client, employee_user, employee_headers):
        response = client.post(
            "/api/deposits/",
            json={"amount": "120.50", "deposit_type": "momo", "account_name": "Airtel Money"},
            headers=employee_headers,
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["approval"] == "pending"
        assert data["created_by"] == str(employee_user.user_id)
        assert data["date_time"] is not None

    def test_invalid_type(self, client, employee_headers):
        response = client.post(
            "/api/deposits/",
            json={"amount": "10", "deposit_type": "cheque", "account_name": "X"},
            headers=employee_headers,
        )
        assert response.status_code == 400

    def test_employee_cannot_approve(self, client, deposits, employee_headers):
        response = client.put(
            f"/api/deposits/{deposits[0].deposit_id}", json={"approval": "approved"}, headers=employee_headers
        )
        assert response.status_code == 403
        assert response.json()["error"] == "Only managers can change deposit approval"

    def test_manager_approves(self, client, db_session, deposits, manager_user, manager_headers):
        response = client.put(
            f"/api/deposits/{deposits[0].deposit_id}", json={"approval": "approved"}, headers=manager_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["approval"] == "approved"
        assert response.json()["data"]["updated_by"] == str(manager_user.user_id)

    def test_only_creator_edits_details(self, client, deposits, manager_headers, employee_headers):
        response = client.put(
            f"/api/deposits/{deposits[0].deposit_id}", json={"amount": "90"}, headers=manager_headers
        )
        assert response.status_code == 403
        assert response.json()["error"] == "You can only update your own deposits"

        response = client.put(
            f"/api/deposits/{deposits[0].deposit_id}", json={"amount": "90"}, headers=employee_headers
        )
        assert response.status_code == 200
        assert Decimal(str(response.json()["data"]["amount"])) == Decimal("90")

    def test_delete_own_and_by_manager(self, client, deposits, employee_headers, manager_headers):
        assert client.delete(f"/api/deposits/{deposits[0].deposit_id}", headers=employee_headers).status_code == 200
        assert client.delete(f"/api/deposits/{deposits[1].deposit_id}", headers=manager_headers).status_code == 200
        # no visible para el empleado
        assert client.delete(f"/api/deposits/{deposits[2].deposit_id}", headers=employee_headers).status_code == 404

    def test_stats_for_current_user(self, client, deposits, employee_headers):
        data = client.get("/api/deposits/stats", headers=employee_headers).json()["data"]
        assert data["totalDeposits"] == 2
        assert data["totalAmount"] == 150
        assert data["depositsByType"] == {"momo": 1, "bank": 1}
        assert data["amountByType"] == {"momo": 100, "bank": 50}
        assert data["depositsByApproval"] == {"pending": 1, "approved": 1}

    def test_upload_with_image(self, client, monkeypatch, employee_headers):
        calls = []

        def fake_upload(upload, subfolder, allowed_types=None):
            calls.append((subfolder, tuple(allowed_types or ())))
            return {"secure_url": "https://res.cloudinary.com/demo/deposits/slip.jpg"}

        monkeypatch.setattr(deposits_service, "upload_to_cloudinary", fake_upload)

        response = client.post(
            "/api/deposits/upload",
            data={"amount": "200", "deposit_type": "bank", "account_name": "Equity Bank"},
            files={"image": ("slip.jpg", b"\xff\xd8\xff", "image/jpeg")},
            headers=employee_headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["deposit_image_url"] == "https://res.cloudinary.com/demo/deposits/slip.jpg"
        assert calls[0][0] == "deposits"
        assert "image/jpeg" in calls[0][1]
