"""
Tests para gastos y categorías de gastos
"""

from datetime import date
from decimal import Decimal

import pytest

from app.modules.expenses import service as expenses_service
from app.modules.expenses.models import Expense, ExpenseCategory


# ===== FIXTURES =====

@pytest.fixture
def expense_category(db_session):
    category = ExpenseCategory(category_name="Transport", description="Fuel and delivery", budget=500)
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def stored_expenses(db_session, expense_category, employee_user):
    expenses = [
        Expense(title="Fuel", category_id=expense_category.category_id, amount=40,
                date=date(2024, 3, 1), status="paid", added_by=employee_user.user_id),
        Expense(title="Ice blocks", category_id=expense_category.category_id, amount=15,
                date=date(2024, 3, 10), status="pending"),
        Expense(title="Truck repair", category_id=expense_category.category_id, amount=300,
                date=date(2024, 4, 2), status="pending"),
    ]
    db_session.add_all(expenses)
    db_session.commit()
    return expenses


# ===== CATEGORÍAS =====

class TestExpenseCategories:
    """/api/expenses/categories"""

    def test_create_category(self, client, manager_headers):
        response = client.post(
            "/api/expenses/categories",
            json={"category_name": "Utilities", "budget": "250.50"},
            headers=manager_headers,
        )
        assert response.status_code == 201
        assert Decimal(str(response.json()["data"]["budget"])) == Decimal("250.50")

    def test_employee_cannot_create(self, client, employee_headers):
        response = client.post("/api/expenses/categories", json={"category_name": "Rent"}, headers=employee_headers)
        assert response.status_code == 403

    def test_duplicate_category(self, client, expense_category, manager_headers):
        response = client.post(
            "/api/expenses/categories", json={"category_name": "Transport"}, headers=manager_headers
        )
        assert response.status_code == 409
        assert response.json()["error"] == "Expense category 'Transport' already exists"

    def test_list_and_search(self, client, db_session, expense_category, employee_headers):
        db_session.add(ExpenseCategory(category_name="Rent", description="Shop rent"))
        db_session.commit()
        body = client.get("/api/expenses/categories", headers=employee_headers).json()
        assert [c["category_name"] for c in body["data"]] == ["Rent", "Transport"]

        body = client.get("/api/expenses/categories?search=fuel", headers=employee_headers).json()
        assert [c["category_name"] for c in body["data"]] == ["Transport"]

    def test_update_category(self, client, expense_category, manager_headers):
        response = client.put(
            f"/api/expenses/categories/{expense_category.category_id}",
            json={"budget": "800"},
            headers=manager_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["category_name"] == "Transport"

    def test_delete_category_in_use(self, client, stored_expenses, expense_category, manager_headers):
        response = client.delete(f"/api/expenses/categories/{expense_category.category_id}", headers=manager_headers)
        assert response.status_code == 409
        assert response.json()["error"] == "Expense category is in use by expenses"

    def test_delete_unused_category(self, client, expense_category, manager_headers, employee_headers):
        response = client.delete(f"/api/expenses/categories/{expense_category.category_id}", headers=manager_headers)
        assert response.status_code == 200
        missing = client.get(f"/api/expenses/categories/{expense_category.category_id}", headers=employee_headers)
        assert missing.status_code == 404


# ===== GASTOS =====

class TestExpenses:
    """/api/expenses"""

    def test_create_expense(self, client, expense_category, employee_user, employee_headers):
        response = client.post(
            "/api/expenses/",
            json={
                "title": "Packaging bags",
                "category_id": str(expense_category.category_id),
                "amount": "12.75",
                "date": "2024-05-02",
            },
            headers=employee_headers,
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "pending"
        assert data["category_name"] == "Transport"
        assert data["added_by"] == str(employee_user.user_id)

    def test_create_with_unknown_category(self, client, employee_headers):
        response = client.post(
            "/api/expenses/",
            json={
                "title": "Lost",
                "category_id": "00000000-0000-0000-0000-000000000000",
                "amount": "5",
                "date": "2024-05-02",
            },
            headers=employee_headers,
        )
        assert response.status_code == 404
        assert response.json()["error"] == "Expense category not found"

    def test_amount_must_be_positive(self, client, expense_category, employee_headers):
        response = client.post(
            "/api/expenses/",
            json={"title": "Zero", "category_id": str(expense_category.category_id), "amount": "0", "date": "2024-05-02"},
            headers=employee_headers,
        )
        assert response.status_code == 400

    def test_filters(self, client, stored_expenses, employee_headers):
        body = client.get("/api/expenses/?status=pending", headers=employee_headers).json()
        assert body["pagination"]["total"] == 2

        body = client.get("/api/expenses/?start_date=2024-03-05&end_date=2024-03-31", headers=employee_headers).json()
        assert [e["title"] for e in body["data"]] == ["Ice blocks"]

        body = client.get("/api/expenses/?min_amount=20&sortBy=amount&sortOrder=asc", headers=employee_headers).json()
        assert [e["title"] for e in body["data"]] == ["Fuel", "Truck repair"]

        body = client.get("/api/expenses/?search=truck", headers=employee_headers).json()
        assert body["pagination"]["total"] == 1

    def test_update_expense(self, client, stored_expenses, employee_headers):
        expense_id = stored_expenses[1].expense_id
        response = client.put(f"/api/expenses/{expense_id}", json={"status": "paid"}, headers=employee_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "paid"

    def test_delete_requires_manager(self, client, stored_expenses, employee_headers, manager_headers):
        expense_id = stored_expenses[0].expense_id
        assert client.delete(f"/api/expenses/{expense_id}", headers=employee_headers).status_code == 403
        assert client.delete(f"/api/expenses/{expense_id}", headers=manager_headers).status_code == 200
        assert client.get(f"/api/expenses/{expense_id}", headers=manager_headers).status_code == 404

    def test_upload_with_receipt(self, client, monkeypatch, expense_category, employee_headers):
        calls = []

        def fake_upload(upload, subfolder, allowed_types=None):
            calls.append((upload.filename, subfolder))
            return {"secure_url": "https://res.cloudinary.com/demo/receipts/fuel.png", "bytes": 4}

        monkeypatch.setattr(expenses_service, "upload_to_cloudinary", fake_upload)

        response = client.post(
            "/api/expenses/upload",
            data={
                "title": "Fuel",
                "category_id": str(expense_category.category_id),
                "amount": "42",
                "date": "2024-05-03",
                "status": "paid",
            },
            files={"receipt": ("fuel.png", b"\x89PNG", "image/png")},
            headers=employee_headers,
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["receipt_url"] == "https://res.cloudinary.com/demo/receipts/fuel.png"
        assert data["status"] == "paid"
        assert calls == [("fuel.png", "receipts")]

    def test_upload_without_receipt(self, client, expense_category, employee_headers):
        response = client.post(
            "/api/expenses/upload",
            data={
                "title": "Cash expense",
                "category_id": str(expense_category.category_id),
                "amount": "8",
                "date": "2024-05-03",
            },
            headers=employee_headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["receipt_url"] is None
