"""
Tests para categorías de productos
"""

from app.modules.categories.models import ProductCategory


class TestCategories:
    """CRUD de /api/categories"""

    def test_create_requires_manager(self, client, employee_headers, manager_headers):
        payload = {"name": "Catfish", "description": "Smoked and fresh"}
        assert client.post("/api/categories/", json=payload, headers=employee_headers).status_code == 403
        response = client.post("/api/categories/", json=payload, headers=manager_headers)
        assert response.status_code == 201
        assert response.json()["data"]["name"] == "Catfish"

    def test_duplicate_name(self, client, sample_category, manager_headers):
        response = client.post("/api/categories/", json={"name": sample_category.name}, headers=manager_headers)
        assert response.status_code == 409

    def test_list_sorted_by_name(self, client, db_session, employee_headers):
        db_session.add_all([ProductCategory(name="Tuna"), ProductCategory(name="Catfish")])
        db_session.commit()
        body = client.get("/api/categories/", headers=employee_headers).json()
        assert [c["name"] for c in body["data"]] == ["Catfish", "Tuna"]

    def test_update(self, client, sample_category, manager_headers):
        response = client.put(
            f"/api/categories/{sample_category.category_id}",
            json={"description": "Lake Kivu tilapia"},
            headers=manager_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["description"] == "Lake Kivu tilapia"

    def test_delete_in_use(self, client, sample_product, manager_headers):
        response = client.delete(f"/api/categories/{sample_product.category_id}", headers=manager_headers)
        assert response.status_code == 409
        assert response.json()["error"] == "Category is in use by products"

    def test_get_missing(self, client, employee_headers):
        response = client.get("/api/categories/00000000-0000-0000-0000-000000000000", headers=employee_headers)
        assert response.status_code == 404
