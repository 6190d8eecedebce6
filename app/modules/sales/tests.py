"""
Tests para ventas y auditoría de ventas

- Descuento de inventario por caja y por kg (apertura de cajas)
- Registro de ventas y estados de pago
- Flujo de aprobación: las ediciones y borrados quedan pendientes hasta que
  un manager los aprueba
"""

from decimal import Decimal

import pytest
from fastapi import HTTPException

from app.modules.sales.models import Sale, SaleAudit, AuditType, ApprovalStatus
from app.modules.sales.stock import calculate_stock_deduction


# ===== FIXTURES =====

@pytest.fixture
def sale_payload(sample_product):
    return {
        "product_id": str(sample_product.product_id),
        "boxes_quantity": 2,
        "kg_quantity": "3",
        "box_price": "100",
        "kg_price": "6",
        "payment_method": "cash",
        "payment_status": "paid",
    }


@pytest.fixture
def existing_sale(client, sale_payload, employee_headers):
    response = client.post("/api/sales/", json=sale_payload, headers=employee_headers)
    assert response.status_code == 201
    return response.json()["data"]


# ===== STOCK DEDUCTION =====

class TestStockDeduction:
    """Cálculo del stock resultante de una venta"""

    def test_kg_from_loose_stock(self):
        result = calculate_stock_deduction(10, Decimal("5"), Decimal("20"), 0, Decimal("3"))
        assert result.new_boxes == 10
        assert result.new_kg == Decimal("2")
        assert result.boxes_opened == 0
        assert result.unboxing_info is None
        assert result.details == ["Used 3kg from loose stock"]

    def test_opens_boxes_when_loose_is_short(self):
        result = calculate_stock_deduction(10, Decimal("5"), Decimal("20.000"), 0, Decimal("12"))
        assert result.boxes_opened == 1
        assert result.new_boxes == 9
        assert result.new_kg == Decimal("13")
        assert result.details == [
            "Used 5kg from loose stock",
            "Unboxed 1 box(es) to get 20kg",
            "Used 7kg from unboxed stock",
            "13kg remaining from unboxing added to loose stock",
        ]
        assert result.unboxing_info == {
            "boxesUnboxed": 1,
            "kgFromUnboxing": Decimal("20.000"),
            "remainingKgFromUnboxing": Decimal("13.000"),
        }

    def test_boxes_and_kg_together(self):
        result = calculate_stock_deduction(10, Decimal("5"), 20, 9, Decimal("10"))
        assert result.new_boxes == 0
        assert result.new_kg == Decimal("15")

    def test_insufficient_total_stock(self):
        with pytest.raises(HTTPException) as exc:
            calculate_stock_deduction(10, Decimal("5"), 20, 11, 0)
        assert exc.value.status_code == 400
        assert exc.value.detail == "Insufficient stock: need 220kg, have 205kg available"

    def test_insufficient_whole_boxes(self):
        with pytest.raises(HTTPException) as exc:
            calculate_stock_deduction(1, Decimal("30"), 20, 2, 0)
        assert exc.value.detail == "Insufficient boxes: need 2 box(es), have 1 remaining"


# ===== SALES =====

class TestSales:
    """/api/sales"""

    def test_create_paid_sale(self, client, db_session, sample_product, sale_payload, employee_headers):
        response = client.post("/api/sales/", json=sale_payload, headers=employee_headers)
        assert response.status_code == 201
        body = response.json()
        assert Decimal(str(body["data"]["total_amount"])) == Decimal("218")
        assert Decimal(str(body["data"]["amount_paid"])) == Decimal("218")
        assert Decimal(str(body["data"]["remaining_amount"])) == Decimal("0")
        assert body["stockInfo"]["finalStock"]["boxes"] == 8
        assert body["finalStockMessage"].startswith("After sale: 8 boxes, 2")
        assert "Stock deduction: Used 3kg from loose stock" in body["message"]

        db_session.refresh(sample_product)
        assert sample_product.quantity_box == 8
        assert Decimal(sample_product.quantity_kg) == Decimal("2")

    def test_partial_sale_tracks_remaining(self, client, sale_payload, employee_headers):
        sale_payload.update(payment_status="partial", amount_paid="100", client_name="  Jean Client ")
        data = client.post("/api/sales/", json=sale_payload, headers=employee_headers).json()["data"]
        assert Decimal(str(data["remaining_amount"])) == Decimal("118")
        assert data["client_name"] == "Jean Client"

    def test_pending_sale_requires_client(self, client, sale_payload, employee_headers):
        sale_payload["payment_status"] = "pending"
        response = client.post("/api/sales/", json=sale_payload, headers=employee_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"

    def test_insufficient_stock(self, client, db_session, sample_product, sale_payload, employee_headers):
        sale_payload["boxes_quantity"] = 50
        response = client.post("/api/sales/", json=sale_payload, headers=employee_headers)
        assert response.status_code == 400
        assert response.json()["error"].startswith("Insufficient stock")
        assert db_session.query(Sale).count() == 0

    def test_list_and_filter(self, client, existing_sale, employee_headers):
        body = client.get("/api/sales/?paymentStatus=paid", headers=employee_headers).json()
        assert body["pagination"]["total"] == 1
        assert body["data"][0]["product_name"] == "Tilapia Grande"
        body = client.get("/api/sales/?paymentStatus=pending", headers=employee_headers).json()
        assert body["pagination"]["total"] == 0

    def test_update_creates_pending_audit(self, client, db_session, existing_sale, employee_headers):
        response = client.put(
            f"/api/sales/{existing_sale['id']}",
            json={"boxes_quantity": 3, "reason": "Customer took one more box"},
            headers=employee_headers,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "pending_approval"
        assert data["audit_type"] == AuditType.QUANTITY_CHANGE.value

        audit = db_session.query(SaleAudit).one()
        assert audit.boxes_change == 1
        assert audit.old_values["boxes_quantity"] == 2
        assert audit.new_values == {"boxes_quantity": 3}

        sale = db_session.query(Sale).one()
        assert sale.boxes_quantity == 2

    def test_update_payment_only(self, client, db_session, existing_sale, employee_headers):
        client.put(
            f"/api/sales/{existing_sale['id']}",
            json={"payment_method": "momo_pay", "reason": "Paid by phone"},
            headers=employee_headers,
        )
        assert db_session.query(SaleAudit).one().audit_type == AuditType.PAYMENT_UPDATE.value

    def test_update_without_changes(self, client, existing_sale, employee_headers):
        response = client.put(f"/api/sales/{existing_sale['id']}", json={"reason": "Nothing"}, headers=employee_headers)
        assert response.status_code == 400

    def test_delete_creates_pending_audit(self, client, db_session, existing_sale, employee_headers):
        response = client.request(
            "DELETE", f"/api/sales/{existing_sale['id']}", json={"reason": "Duplicate entry"}, headers=employee_headers
        )
        assert response.status_code == 200
        assert db_session.query(SaleAudit).one().audit_type == AuditType.DELETION.value
        assert db_session.query(Sale).count() == 1


# ===== SALES AUDIT =====

class TestSalesAudit:
    """/api/sales-audit"""

    def _request_change(self, client, sale_id, headers, **changes):
        response = client.put(f"/api/sales/{sale_id}", json={"reason": "Correction", **changes}, headers=headers)
        return response.json()["data"]["audit_id"]

    def test_approve_quantity_change(self, client, db_session, sample_product, existing_sale, employee_headers, manager_headers):
        audit_id = self._request_change(client, existing_sale["id"], employee_headers, boxes_quantity=3)
        response = client.put(
            f"/api/sales-audit/{audit_id}/approve", json={"approval_reason": "Checked"}, headers=manager_headers
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["audit"]["approval_status"] == ApprovalStatus.APPROVED.value
        assert data["audit"]["approved_by_user"] is not None
        assert data["execution"]["updated"] is True

        sale = db_session.query(Sale).one()
        db_session.refresh(sale)
        db_session.refresh(sample_product)
        assert sale.boxes_quantity == 3
        assert Decimal(sale.total_amount) == Decimal("318")
        assert sample_product.quantity_box == 7

    def test_approve_kg_change_opens_boxes(self, client, db_session, sample_product, sale_payload, employee_headers, manager_headers):
        """Un aumento de kg mayor al peso suelto abre cajas al aprobarse"""
        sale_payload.update(boxes_quantity=0, kg_quantity="10")
        sale = client.post("/api/sales/", json=sale_payload, headers=employee_headers).json()["data"]
        db_session.refresh(sample_product)
        assert (sample_product.quantity_box, Decimal(sample_product.quantity_kg)) == (9, Decimal("15"))

        audit_id = self._request_change(client, sale["id"], employee_headers, kg_quantity="40")
        response = client.put(
            f"/api/sales-audit/{audit_id}/approve", json={"approval_reason": "Weighed again"}, headers=manager_headers
        )
        assert response.status_code == 200

        db_session.expire_all()
        updated = db_session.query(Sale).one()
        assert Decimal(updated.kg_quantity) == Decimal("40")
        assert Decimal(updated.total_amount) == Decimal("240")
        assert sample_product.quantity_box == 9
        assert Decimal(sample_product.quantity_kg) == Decimal("5")

    def test_approve_deletion_restores_stock(self, client, db_session, sample_product, existing_sale, employee_headers, manager_headers):
        response = client.request(
            "DELETE", f"/api/sales/{existing_sale['id']}", json={"reason": "Wrong product"}, headers=employee_headers
        )
        audit_id = response.json()["data"]["audit_id"]

        response = client.put(
            f"/api/sales-audit/{audit_id}/approve", json={"approval_reason": "OK"}, headers=manager_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["execution"]["deleted"] is True

        db_session.expire_all()
        assert db_session.query(Sale).count() == 0
        assert sample_product.quantity_box == 10
        assert Decimal(sample_product.quantity_kg) == Decimal("5")

    def test_employee_cannot_approve(self, client, existing_sale, employee_headers):
        audit_id = self._request_change(client, existing_sale["id"], employee_headers, phone="0788000000")
        response = client.put(
            f"/api/sales-audit/{audit_id}/approve", json={"approval_reason": "Self"}, headers=employee_headers
        )
        assert response.status_code == 403

    def test_reject_then_approve_fails(self, client, db_session, existing_sale, employee_headers, manager_headers):
        audit_id = self._request_change(client, existing_sale["id"], employee_headers, client_name="New Name")
        rejected = client.put(
            f"/api/sales-audit/{audit_id}/reject", json={"approval_reason": "No"}, headers=manager_headers
        )
        assert rejected.json()["data"]["approval_status"] == ApprovalStatus.REJECTED.value

        again = client.put(
            f"/api/sales-audit/{audit_id}/approve", json={"approval_reason": "Yes"}, headers=manager_headers
        )
        assert again.status_code == 400
        assert again.json()["error"] == "Audit record is not pending"
        assert db_session.query(Sale).one().client_name is None

    def test_list_with_product_info(self, client, existing_sale, employee_headers):
        self._request_change(client, existing_sale["id"], employee_headers, phone="0788000000")
        body = client.get("/api/sales-audit/?approval_status=pending", headers=employee_headers).json()
        assert body["pagination"]["total"] == 1
        assert body["data"][0]["product_info"] == {"name": "Tilapia Grande"}
        assert body["data"][0]["performed_by_user"]["name"] == "Employee User"

    def test_manual_audit_for_unknown_sale(self, client, employee_headers):
        response = client.post(
            "/api/sales-audit/",
            json={
                "sale_id": "00000000-0000-0000-0000-000000000000",
                "audit_type": "payment_update",
                "reason": "Manual",
            },
            headers=employee_headers,
        )
        assert response.status_code == 404
