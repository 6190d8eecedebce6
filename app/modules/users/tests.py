"""
Tests para la gestión de usuarios (solo administradores, salvo lectura/edición propia)
"""

from conftest import make_user, auth_headers
from app.modules.auth.models import User, UserRole


class TestUsers:
    """CRUD de /api/users"""

    def test_admin_creates_employee(self, client, db_session, admin_headers):
        payload = {
            "email_address": "staff@localfishing.test",
            "business_name": "Staff Account",
            "owner_name": "Staff Member",
            "password": "Password123",
        }
        response = client.post("/api/users/", json=payload, headers=admin_headers)
        assert response.status_code == 201
        assert response.json()["data"]["role"] == UserRole.EMPLOYEE.value
        assert db_session.query(User).filter(User.email_address == "staff@localfishing.test").count() == 1

    def test_list_users_paginated(self, client, db_session, admin_user, admin_headers):
        make_user(db_session, UserRole.EMPLOYEE.value)
        response = client.get("/api/users/?limit=1", headers=admin_headers)
        body = response.json()
        assert response.status_code == 200
        assert len(body["data"]) == 1
        assert body["pagination"]["total"] == 2
        assert body["pagination"]["hasNext"] is True

    def test_user_can_read_own_account(self, client, employee_user, employee_headers, admin_user):
        assert client.get(f"/api/users/{employee_user.user_id}", headers=employee_headers).status_code == 200
        assert client.get(f"/api/users/{admin_user.user_id}", headers=employee_headers).status_code == 403

    def test_non_admin_cannot_change_role(self, client, employee_user, employee_headers):
        response = client.put(
            f"/api/users/{employee_user.user_id}", json={"role": "admin"}, headers=employee_headers
        )
        assert response.status_code == 403
        assert response.json()["error"] == "Only administrators can change roles"

    def test_empty_update(self, client, admin_user, admin_headers):
        response = client.put(f"/api/users/{admin_user.user_id}", json={}, headers=admin_headers)
        assert response.status_code == 400

    def test_admin_cannot_delete_self(self, client, admin_user, admin_headers):
        response = client.delete(f"/api/users/{admin_user.user_id}", headers=admin_headers)
        assert response.status_code == 400

    def test_admin_deletes_user(self, client, db_session, admin_headers):
        user = make_user(db_session, UserRole.EMPLOYEE.value)
        user_id = user.user_id
        assert client.delete(f"/api/users/{user_id}", headers=admin_headers).status_code == 200
        db_session.expire_all()
        assert db_session.query(User).filter(User.user_id == user_id).first() is None
        assert client.get(f"/api/users/{user_id}", headers=admin_headers).status_code == 404
