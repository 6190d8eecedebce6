"""
Tests para el módulo de autenticación

- Registro de dueños de negocio (rol admin)
- Login, refresh y perfil
- Tokens inválidos y control de roles
"""

from datetime import timedelta

import pytest

from conftest import make_user, auth_headers
from app.modules.auth.models import User, UserRole
from app.modules.auth.utils import (
    hash_password, verify_password, create_access_token, create_refresh_token,
    verify_access_token, verify_refresh_token
)
from fastapi import HTTPException


# ===== FIXTURES =====

@pytest.fixture
def register_payload():
    return {
        "email_address": "Owner@LocalFishing.test",
        "business_name": "Kigali Fish Market",
        "owner_name": "Jean Owner",
        "password": "Password123",
        "confirm_password": "Password123",
        "phone_number": "+250788123456",
    }


# ===== UTILS =====

class TestAuthUtils:
    """Hash de contraseñas y tokens JWT"""

    def test_hash_and_verify(self):
        hashed = hash_password("Password123")
        assert hashed != "Password123"
        assert verify_password("Password123", hashed)
        assert not verify_password("wrong", hashed)
        assert not verify_password("Password123", None)
        assert not verify_password("Password123", "not-a-bcrypt-hash")

    def test_access_token_roundtrip(self):
        payload = verify_access_token(create_access_token({"sub": "abc", "role": "admin"}))
        assert payload["sub"] == "abc"
        assert payload["type"] == "access"

    def test_expired_access_token(self):
        token = create_access_token({"sub": "abc"}, expires_delta=timedelta(seconds=-1))
        with pytest.raises(HTTPException) as exc:
            verify_access_token(token)
        assert exc.value.status_code == 401

    def test_refresh_token_is_not_access_token(self):
        refresh = create_refresh_token("abc")
        assert verify_refresh_token(refresh)["tokenVersion"] == 1
        with pytest.raises(HTTPException):
            verify_access_token(refresh)


# ===== ENDPOINTS =====

class TestRegister:
    """POST /api/auth/register"""

    def test_register_returns_tokens(self, client, db_session, register_payload):
        response = client.post("/api/auth/register", json=register_payload)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["user"]["email"] == "owner@localfishing.test"
        assert data["user"]["role"] == UserRole.ADMIN.value
        assert data["tokens"]["accessToken"]
        assert data["tokens"]["expiresIn"] == 7 * 24 * 60 * 60

        user = db_session.query(User).one()
        assert user.password != register_payload["password"]

    def test_duplicate_email(self, client, register_payload):
        client.post("/api/auth/register", json=register_payload)
        register_payload["business_name"] = "Other Business"
        response = client.post("/api/auth/register", json=register_payload)
        assert response.status_code == 409
        assert response.json()["error"] == "Email already registered"

    def test_password_mismatch_is_validation_error(self, client, register_payload):
        register_payload["confirm_password"] = "Different123"
        response = client.post("/api/auth/register", json=register_payload)
        body = response.json()
        assert response.status_code == 400
        assert body["error"] == "Validation failed"
        assert body["details"]["validationErrors"]

    def test_weak_password(self, client, register_payload):
        register_payload["password"] = register_payload["confirm_password"] = "short"
        response = client.post("/api/auth/register", json=register_payload)
        assert response.status_code == 400
        fields = [e["field"] for e in response.json()["details"]["validationErrors"]]
        assert "password" in fields


class TestLogin:
    """POST /api/auth/login, /refresh y GET /profile"""

    def test_login_and_profile(self, client, db_session):
        user = make_user(db_session, email="login@localfishing.test")
        response = client.post("/api/auth/login", json={"email": "LOGIN@localfishing.test", "password": "Password123"})
        assert response.status_code == 200
        token = response.json()["data"]["tokens"]["accessToken"]

        profile = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
        assert profile.status_code == 200
        assert profile.json()["data"]["id"] == str(user.user_id)

        db_session.refresh(user)
        assert user.last_login is not None

    def test_wrong_password(self, client, db_session):
        make_user(db_session, email="login@localfishing.test")
        response = client.post("/api/auth/login", json={"email": "login@localfishing.test", "password": "nope"})
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid email or password"

    def test_refresh(self, client, db_session):
        user = make_user(db_session)
        refresh = create_refresh_token(str(user.user_id))
        response = client.post("/api/auth/refresh", json={"refreshToken": refresh})
        assert response.status_code == 200
        assert verify_access_token(response.json()["data"]["accessToken"])["sub"] == str(user.user_id)

    def test_refresh_with_access_token_fails(self, client, admin_user):
        token = create_access_token({"sub": str(admin_user.user_id)})
        response = client.post("/api/auth/refresh", json={"refreshToken": token})
        assert response.status_code == 401

    def test_logout(self, client, admin_headers):
        response = client.post("/api/auth/logout", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Logout successful"


class TestAuthGuards:
    """Autenticación y roles en rutas protegidas"""

    def test_missing_token(self, client):
        response = client.get("/api/products/")
        assert response.status_code == 401
        assert response.json()["success"] is False
        assert response.json()["error"] == "Authentication required"

    def test_invalid_token(self, client):
        response = client.get("/api/products/", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid or expired token"

    def test_deleted_user_token(self, client, db_session):
        user = make_user(db_session)
        headers = auth_headers(user)
        db_session.delete(user)
        db_session.commit()
        assert client.get("/api/auth/profile", headers=headers).status_code == 401

    def test_employee_cannot_use_admin_routes(self, client, employee_headers):
        response = client.get("/api/users/", headers=employee_headers)
        assert response.status_code == 403
        assert "Access denied" in response.json()["error"]
