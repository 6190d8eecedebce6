"""
Tests para movimientos, entradas y correcciones de stock
"""

from decimal import Decimal

from app.modules.inventory.models import StockMovement, StockAddition, StockCorrection, MovementType


class TestStockMovements:
    """/api/stock-movements"""

    def test_manual_movement_updates_stock(self, client, db_session, sample_product, manager_headers):
        response = client.post(
            "/api/stock-movements/",
            json={
                "product_id": str(sample_product.product_id),
                "movement_type": "new_stock",
                "box_change": 3,
                "kg_change": "1.5",
                "reason": "Late delivery",
            },
            headers=manager_headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["product_name"] == "Tilapia Grande"

        db_session.refresh(sample_product)
        assert sample_product.quantity_box == 13
        assert Decimal(sample_product.quantity_kg) == Decimal("6.5")

    def test_movement_cannot_make_stock_negative(self, client, db_session, sample_product, manager_headers):
        response = client.post(
            "/api/stock-movements/",
            json={"product_id": str(sample_product.product_id), "movement_type": "damaged", "box_change": -11},
            headers=manager_headers,
        )
        assert response.status_code == 400
        db_session.refresh(sample_product)
        assert sample_product.quantity_box == 10
        assert db_session.query(StockMovement).count() == 0

    def test_zero_change_rejected(self, client, sample_product, manager_headers):
        response = client.post(
            "/api/stock-movements/",
            json={"product_id": str(sample_product.product_id), "movement_type": "damaged"},
            headers=manager_headers,
        )
        assert response.status_code == 400

    def test_list_filtered_by_type(self, client, db_session, sample_product, employee_headers):
        db_session.add_all([
            StockMovement(product_id=sample_product.product_id, movement_type="new_stock", box_change=2),
            StockMovement(product_id=sample_product.product_id, movement_type="damaged", box_change=-1),
        ])
        db_session.commit()
        body = client.get("/api/stock-movements/?movement_type=damaged", headers=employee_headers).json()
        assert body["pagination"]["total"] == 1
        assert body["data"][0]["box_change"] == -1

    def test_summary(self, client, db_session, sample_product, employee_headers):
        db_session.add_all([
            StockMovement(product_id=sample_product.product_id, movement_type="new_stock", box_change=4),
            StockMovement(product_id=sample_product.product_id, movement_type="new_stock", box_change=1),
            StockMovement(product_id=sample_product.product_id, movement_type="damaged", box_change=-2),
            StockMovement(product_id=sample_product.product_id, movement_type="stock_correction", box_change=-1),
        ])
        db_session.commit()
        data = client.get(f"/api/stock-movements/summary/{sample_product.product_id}", headers=employee_headers).json()["data"]
        assert data["currentStock"]["boxes"] == 10
        assert data["movements"] == {"totalIn": 5, "totalOut": 0, "totalDamaged": 2, "totalCorrections": -1}
        assert data["isLowStock"] is False


class TestStockCorrections:
    """/api/stock-corrections"""

    def test_correction_creates_movement(self, client, db_session, sample_product, manager_headers):
        response = client.post(
            "/api/stock-corrections/",
            json={
                "product_id": str(sample_product.product_id),
                "box_adjustment": -2,
                "kg_adjustment": "0.5",
                "correction_reason": "Physical count",
            },
            headers=manager_headers,
        )
        assert response.status_code == 201

        correction = db_session.query(StockCorrection).one()
        movement = db_session.query(StockMovement).one()
        assert movement.movement_type == MovementType.STOCK_CORRECTION.value
        assert movement.correction_id == correction.correction_id
        assert movement.reason == "Stock correction: Physical count"

        db_session.refresh(sample_product)
        assert sample_product.quantity_box == 8

        listing = client.get("/api/stock-corrections/", headers=manager_headers).json()
        assert listing["pagination"]["total"] == 1

    def test_correction_below_zero(self, client, sample_product, manager_headers):
        response = client.post(
            "/api/stock-corrections/",
            json={"product_id": str(sample_product.product_id), "kg_adjustment": "-6", "correction_reason": "Recount"},
            headers=manager_headers,
        )
        assert response.status_code == 400


class TestStockAdditions:
    """/api/stock-additions"""

    def test_list_by_status(self, client, db_session, sample_product, employee_headers):
        db_session.add_all([
            StockAddition(product_id=sample_product.product_id, boxes_added=2, status="completed"),
            StockAddition(product_id=sample_product.product_id, boxes_added=1, status="pending"),
        ])
        db_session.commit()
        body = client.get("/api/stock-additions/?status=pending", headers=employee_headers).json()
        assert body["pagination"]["total"] == 1
        assert body["data"][0]["product_name"] == "Tilapia Grande"
