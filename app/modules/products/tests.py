"""
Tests para el módulo de productos

- CRUD y filtros del catálogo
- Registro de daños y entradas de stock (con su movimiento de inventario)
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from app.modules.inventory.models import StockMovement, StockAddition, MovementType
from app.modules.products.models import Product, DamagedProduct
from app.modules.sales.models import Sale


# ===== FIXTURES =====

@pytest.fixture
def product_payload(sample_category):
    return {
        "name": "Nile Perch",
        "category_id": str(sample_category.category_id),
        "quantity_box": 4,
        "quantity_kg": "2.5",
        "cost_per_box": "90",
        "cost_per_kg": "5",
        "price_per_box": "120",
        "price_per_kg": "7",
        "boxed_low_stock_threshold": 5,
    }


# ===== CATALOG =====

class TestProductCatalog:
    """CRUD y listados"""

    def test_create_product(self, client, manager_headers, product_payload):
        response = client.post("/api/products/", json=product_payload, headers=manager_headers)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["category_name"] == "Tilapia"
        assert Decimal(str(data["profit_per_box"])) == Decimal("30")
        assert Decimal(str(data["box_to_kg_ratio"])) == Decimal("20")

    def test_create_with_unknown_category(self, client, manager_headers, product_payload):
        product_payload["category_id"] = "00000000-0000-0000-0000-000000000000"
        response = client.post("/api/products/", json=product_payload, headers=manager_headers)
        assert response.status_code == 404

    def test_negative_quantity_rejected(self, client, manager_headers, product_payload):
        product_payload["quantity_box"] = -1
        assert client.post("/api/products/", json=product_payload, headers=manager_headers).status_code == 400

    def test_low_stock_listing(self, client, db_session, sample_product, employee_headers):
        sample_product.quantity_box = 2
        db_session.commit()
        body = client.get("/api/products/low-stock", headers=employee_headers).json()
        assert [p["name"] for p in body["data"]] == ["Tilapia Grande"]

        body = client.get("/api/products/?low_stock=true", headers=employee_headers).json()
        assert body["pagination"]["total"] == 1

    def test_expired_filter(self, client, db_session, sample_product, employee_headers):
        sample_product.expiry_date = date.today() - timedelta(days=1)
        db_session.commit()
        body = client.get("/api/products/?expired=true", headers=employee_headers).json()
        assert body["data"][0]["days_left"] == -1

    def test_update_product(self, client, sample_product, manager_headers):
        response = client.put(
            f"/api/products/{sample_product.product_id}", json={"price_per_kg": "6.5"}, headers=manager_headers
        )
        assert response.status_code == 200
        assert Decimal(str(response.json()["data"]["price_per_kg"])) == Decimal("6.5")

    def test_delete_product_with_history(self, client, db_session, sample_product, manager_user, manager_headers):
        db_session.add(StockMovement(
            product_id=sample_product.product_id, movement_type=MovementType.NEW_STOCK.value,
            box_change=1, performed_by=manager_user.user_id,
        ))
        db_session.commit()
        product_id = sample_product.product_id

        assert client.delete(f"/api/products/{product_id}", headers=manager_headers).status_code == 200
        db_session.expire_all()
        assert db_session.query(Product).filter(Product.product_id == product_id).first() is None
        assert db_session.query(StockMovement).count() == 0

    def test_delete_product_with_sales(self, client, db_session, sample_product, manager_headers):
        db_session.add(Sale(product_id=sample_product.product_id, boxes_quantity=1, total_amount=100))
        db_session.commit()
        response = client.delete(f"/api/products/{sample_product.product_id}", headers=manager_headers)
        assert response.status_code == 409
        assert response.json()["error"] == "Product has related sales and cannot be deleted"


# ===== DAMAGE & STOCK =====

class TestDamageAndStock:
    """Daños y entradas de mercancía"""

    def test_record_damage(self, client, db_session, sample_product, employee_headers):
        response = client.post(
            f"/api/products/{sample_product.product_id}/damage",
            json={"damaged_boxes": 2, "damaged_kg": "1.5", "damaged_reason": "Broken cooler"},
            headers=employee_headers,
        )
        assert response.status_code == 201
        data = response.json()["data"]
        # 2 * 100 + 1.5 * 6
        assert Decimal(str(data["damage"]["loss_value"])) == Decimal("209")
        assert data["damage"]["damaged_approval"] is True
        assert data["product"]["quantity_box"] == 8

        movement = db_session.query(StockMovement).one()
        assert movement.movement_type == MovementType.DAMAGED.value
        assert movement.box_change == -2
        assert movement.damaged_id == db_session.query(DamagedProduct).one().damage_id

    def test_damage_more_than_stock(self, client, sample_product, employee_headers):
        response = client.post(
            f"/api/products/{sample_product.product_id}/damage",
            json={"damaged_boxes": 11, "damaged_reason": "Spoiled"},
            headers=employee_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Cannot damage 11 boxes, only 10 available"

    def test_damage_requires_quantity(self, client, sample_product, employee_headers):
        response = client.post(
            f"/api/products/{sample_product.product_id}/damage",
            json={"damaged_reason": "Nothing"},
            headers=employee_headers,
        )
        assert response.status_code == 400

    def test_add_stock(self, client, db_session, sample_product, manager_headers):
        response = client.post(
            f"/api/products/{sample_product.product_id}/stock",
            json={"boxes_added": 5, "kg_added": "3", "total_cost": "400", "delivery_date": "2024-05-01"},
            headers=manager_headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["product"]["quantity_box"] == 15

        movement = db_session.query(StockMovement).one()
        assert movement.movement_type == MovementType.NEW_STOCK.value
        assert movement.reason == "Stock addition - Delivery: 2024-05-01"
        assert movement.stock_addition_id == db_session.query(StockAddition).one().addition_id

        listing = client.get(f"/api/products/{sample_product.product_id}/stock-additions", headers=manager_headers)
        assert len(listing.json()["data"]) == 1

    def test_add_stock_requires_manager(self, client, sample_product, employee_headers):
        response = client.post(
            f"/api/products/{sample_product.product_id}/stock",
            json={"boxes_added": 1},
            headers=employee_headers,
        )
        assert response.status_code == 403
