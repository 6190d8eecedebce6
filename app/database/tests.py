"""
Tests para el cache del engine de base de datos
"""

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.database import database
from app.database.database import Base, EngineCache
from app.main import app
from app.modules.auth.models import UserRole
from conftest import auth_headers, make_user


@pytest.fixture(autouse=True)
def sqlite_url(monkeypatch):
    monkeypatch.setattr(settings, "DATABASE_URL", "sqlite://")


class TestEngineCache:
    """Engine cacheado con TTL"""

    def test_engine_is_reused_within_ttl(self):
        cache = EngineCache(ttl_seconds=300)
        assert cache.get_engine() is cache.get_engine()
        assert cache.status()["cached"] is True
        assert cache.status()["ttlSeconds"] == 300

    def test_engine_is_recreated_after_ttl(self):
        cache = EngineCache(ttl_seconds=0)
        first = cache.get_engine()
        assert cache.get_engine() is not first

    def test_invalidate_drops_engine(self):
        cache = EngineCache(ttl_seconds=300)
        first = cache.get_engine()
        cache.invalidate("connection refused")
        assert cache.status() == {"cached": False, "ageSeconds": None, "ttlSeconds": 300}
        assert cache.last_check["healthy"] is False
        assert cache.last_check["error"] == "connection refused"
        assert cache.get_engine() is not first

    def test_session_factory_is_bound(self):
        cache = EngineCache(ttl_seconds=300)
        session = cache.get_session_factory()()
        try:
            assert session.get_bind() is cache.get_engine()
        finally:
            session.close()


class TestHealthCheck:
    """SELECT 1 contra la base configurada"""

    def test_healthy_database(self, monkeypatch):
        monkeypatch.setattr(database, "engine_cache", EngineCache(ttl_seconds=300))
        result = database.check_database_connection()
        assert result["healthy"] is True
        assert "error" not in result

    def test_unreachable_database(self, monkeypatch):
        monkeypatch.setattr(settings, "DATABASE_URL", "sqlite:////nonexistent-dir/nope/db.sqlite")
        cache = EngineCache(ttl_seconds=300)
        monkeypatch.setattr(database, "engine_cache", cache)
        result = database.check_database_connection()
        assert result["healthy"] is False
        assert result["error"]
        assert cache.status()["cached"] is False

    def test_health_endpoint(self, client, monkeypatch):
        monkeypatch.setattr(database, "engine_cache", EngineCache(ttl_seconds=300))
        body = client.get("/health").json()
        assert body["success"] is True
        assert body["message"] == "LocalFishing Backend is running"
        assert body["database"]["healthy"] is True
        assert body["environment"] == settings.ENVIRONMENT


# ===== FALLAS DE CONEXIÓN =====

def _raised_inside(error: Exception, wrapper: Exception) -> Exception:
    """Devuelve `wrapper` lanzado mientras se manejaba `error`, como hacen los servicios"""
    try:
        raise error
    except Exception:
        try:
            raise wrapper
        except Exception as wrapped:
            return wrapped


@pytest.fixture
def file_cache(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite:///{tmp_path / 'cache.db'}")
    cache = EngineCache(ttl_seconds=300)
    monkeypatch.setattr(database, "engine_cache", cache)
    yield cache
    cache.invalidate()


class TestGetDbConnectionFailures:
    """get_db descarta el engine cacheado ante errores de conexión"""

    def _fail_request(self, error: Exception):
        generator = database.get_db()
        next(generator)
        with pytest.raises(type(error)):
            generator.throw(error)

    def test_operational_error_invalidates(self, file_cache):
        self._fail_request(OperationalError("SELECT 1", {}, Exception("server closed the connection unexpectedly")))
        assert file_cache.status()["cached"] is False
        assert "server closed the connection" in file_cache.last_check["error"]

    def test_invalidated_dbapi_error_invalidates(self, file_cache):
        self._fail_request(DBAPIError("SELECT 1", {}, Exception("connection reset"), connection_invalidated=True))
        assert file_cache.status()["cached"] is False

    def test_plain_dbapi_error_keeps_engine(self, file_cache):
        self._fail_request(DBAPIError("SELECT 1", {}, Exception("syntax error")))
        assert file_cache.status()["cached"] is True

    def test_wrapped_connection_error_invalidates(self, file_cache):
        error = _raised_inside(
            OperationalError("COMMIT", {}, Exception("server closed the connection unexpectedly")),
            HTTPException(status_code=500, detail="Failed to create category"),
        )
        self._fail_request(error)
        assert file_cache.status()["cached"] is False

    def test_business_error_keeps_engine(self, file_cache):
        self._fail_request(HTTPException(status_code=404, detail="Category not found"))
        assert file_cache.status()["cached"] is True

    def test_failed_commit_on_request_recreates_engine(self, file_cache, monkeypatch):
        engine = file_cache.get_engine()
        Base.metadata.create_all(bind=engine)
        session = file_cache.get_session_factory()()
        try:
            manager = make_user(session, UserRole.MANAGER.value)
            headers = auth_headers(manager)
        finally:
            session.close()

        def broken_commit(self):
            raise OperationalError("COMMIT", {}, Exception("server closed the connection unexpectedly"))

        monkeypatch.setattr(Session, "commit", broken_commit)
        response = TestClient(app).post("/api/categories/", json={"name": "Perch"}, headers=headers)

        assert response.status_code == 500
        assert file_cache.status()["cached"] is False
        assert file_cache.get_engine() is not engine
