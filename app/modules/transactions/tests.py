"""
Tests para transacciones de cobro y sus estadísticas
"""

from types import SimpleNamespace

import pytest

from app.modules.sales.models import Sale
from app.modules.transactions import service as transactions_service
from app.modules.transactions.models import Transaction
from app.modules.transactions.service import summarize_sales


# ===== FIXTURES =====

@pytest.fixture
def stored_sales(db_session, sample_product):
    sales = [
        Sale(product_id=sample_product.product_id, boxes_quantity=1, total_amount=100, amount_paid=100,
             payment_status="paid", payment_method="cash"),
        Sale(product_id=sample_product.product_id, boxes_quantity=2, total_amount=200, amount_paid=50,
             remaining_amount=150, payment_status="partial", payment_method="momo_pay", client_name="Jean"),
        Sale(product_id=sample_product.product_id, kg_quantity=4, total_amount=24,
             remaining_amount=24, payment_status="pending", client_name="Alice"),
    ]
    db_session.add_all(sales)
    db_session.commit()
    return sales


@pytest.fixture
def transaction_payload(stored_sales):
    return {
        "sale_id": str(stored_sales[1].id),
        "product_name": "Tilapia Grande",
        "client_name": "Jean",
        "boxes_quantity": 2,
        "total_amount": "200",
        "payment_status": "partial",
        "payment_method": "momo_pay",
        "deposit_type": "momo",
        "reference": "MP-7781",
    }


# ===== AGREGACIONES =====

class TestSummarizeSales:
    """Conteos por estado y método de pago"""

    def test_counts_and_amounts(self):
        sales = [
            SimpleNamespace(total_amount="100", payment_status="paid", payment_method="cash"),
            SimpleNamespace(total_amount="40.50", payment_status="paid", payment_method="cash"),
            SimpleNamespace(total_amount="20", payment_status="pending", payment_method=None),
        ]
        stats = summarize_sales(sales)
        assert stats.total_transactions == 3
        assert stats.total_amount == 160.5
        assert stats.paid_transactions == 2
        assert stats.paid_amount == 140.5
        assert stats.pending_amount == 20
        assert stats.partial_transactions == 0
        assert stats.payment_methods == {"momo_pay": 0, "cash": 2, "bank_transfer": 0}

    def test_empty(self):
        stats = summarize_sales([])
        assert stats.total_amount == 0
        assert stats.payment_method_amounts["cash"] == 0


# ===== ENDPOINTS =====

class TestTransactions:
    """/api/transactions"""

    def test_create_transaction(self, client, employee_user, employee_headers, transaction_payload):
        response = client.post("/api/transactions/", json=transaction_payload, headers=employee_headers)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["created_by"] == str(employee_user.user_id)
        assert data["deposit_type"] == "momo"
        assert data["date_time"] is not None

    def test_create_for_unknown_sale(self, client, employee_headers, transaction_payload):
        transaction_payload["sale_id"] = "00000000-0000-0000-0000-000000000000"
        response = client.post("/api/transactions/", json=transaction_payload, headers=employee_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "Sale not found"

    def test_list_and_search(self, client, employee_headers, transaction_payload):
        client.post("/api/transactions/", json=transaction_payload, headers=employee_headers)
        body = client.get("/api/transactions/?search=MP-77", headers=employee_headers).json()
        assert body["pagination"]["total"] == 1
        body = client.get("/api/transactions/?payment_status=paid", headers=employee_headers).json()
        assert body["pagination"]["total"] == 0

    def test_by_sale(self, client, stored_sales, employee_headers, transaction_payload):
        client.post("/api/transactions/", json=transaction_payload, headers=employee_headers)
        body = client.get(f"/api/transactions/sale/{stored_sales[1].id}", headers=employee_headers).json()
        assert len(body["data"]) == 1
        body = client.get(f"/api/transactions/sale/{stored_sales[0].id}", headers=employee_headers).json()
        assert body["data"] == []

    def test_stats_from_sales(self, client, stored_sales, employee_headers):
        data = client.get("/api/transactions/stats", headers=employee_headers).json()["data"]
        assert data["total_transactions"] == 3
        assert data["total_amount"] == 324
        assert data["partial_amount"] == 200
        assert data["payment_methods"]["momo_pay"] == 1

    def test_update_and_delete_require_manager(
        self, client, db_session, employee_headers, manager_headers, transaction_payload
    ):
        created = client.post("/api/transactions/", json=transaction_payload, headers=employee_headers).json()["data"]
        url = f"/api/transactions/{created['transaction_id']}"

        assert client.put(url, json={"payment_status": "paid"}, headers=employee_headers).status_code == 403
        response = client.put(url, json={"payment_status": "paid"}, headers=manager_headers)
        assert response.status_code == 200
        assert response.json()["data"]["payment_status"] == "paid"

        assert client.delete(url, headers=employee_headers).status_code == 403
        assert client.delete(url, headers=manager_headers).status_code == 200
        assert db_session.query(Transaction).count() == 0

    def test_upload_with_image(self, client, monkeypatch, employee_headers, transaction_payload):
        monkeypatch.setattr(
            transactions_service, "upload_to_cloudinary",
            lambda upload, subfolder, allowed_types=None: {"secure_url": f"https://cdn.test/{subfolder}/{upload.filename}"},
        )
        response = client.post(
            "/api/transactions/upload",
            data={k: v for k, v in transaction_payload.items()},
            files={"image": ("proof.png", b"\x89PNG", "image/png")},
            headers=employee_headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["image_url"] == "https://cdn.test/transactions/proof.png"
