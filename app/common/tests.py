"""
Tests para utilidades compartidas: validadores, envelopes de respuesta y middleware
"""

import json
from datetime import date, datetime
from decimal import Decimal

import jwt
import pytest
from starlette.requests import Request

from app.core.config import settings
from app.common.middleware import RateLimiter, rate_limit_key
from app.common.responses import (
    generate_request_id, success_response, paginated_response, error_response, build_pagination
)
from app.common.validators import (
    validate_password_strength, validate_phone, parse_duration, parse_bool_param,
    parse_date_param, start_of_day, end_of_day, as_decimal, round_money, DEFAULT_TOKEN_LIFETIME
)


def _request(headers: dict = None, client=("10.0.0.1", 1234)) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/api/products", "headers": raw, "client": client})


# ===== VALIDATORS =====

class TestValidators:
    """Validadores de entrada"""

    def test_password_strength(self):
        assert validate_password_strength("Password123") is None
        assert "at least 8" in validate_password_strength("Ab1")
        assert "letter" in validate_password_strength("12345678")
        assert "number" in validate_password_strength("abcdefgh")

    def test_phone(self):
        assert validate_phone("+250 788 123 456")
        assert validate_phone("(078) 812-3456")
        assert not validate_phone("12ab")

    def test_parse_duration(self):
        assert parse_duration("7d") == 7 * 86400
        assert parse_duration("24h") == 86400
        assert parse_duration("15m") == 900
        assert parse_duration("3600") == 3600
        assert parse_duration("soon") == DEFAULT_TOKEN_LIFETIME
        assert parse_duration(None) == DEFAULT_TOKEN_LIFETIME

    def test_parse_bool_param(self):
        assert parse_bool_param("TRUE") is True
        assert parse_bool_param("false") is False
        assert parse_bool_param(None) is None
        with pytest.raises(ValueError):
            parse_bool_param("yes")

    def test_parse_date_param(self):
        assert parse_date_param("2024-03-01") == date(2024, 3, 1)
        assert parse_date_param("2024-03-01T10:00:00Z") == date(2024, 3, 1)
        assert parse_date_param("") is None
        with pytest.raises(ValueError):
            parse_date_param("01/03/2024")

    def test_day_bounds_are_inclusive(self):
        day = date(2024, 3, 1)
        assert start_of_day(day) == datetime(2024, 3, 1, 0, 0)
        assert end_of_day(day) == datetime(2024, 3, 1, 23, 59, 59, 999999)

    def test_money_helpers(self):
        assert as_decimal(None) == Decimal("0")
        assert as_decimal(0.1) == Decimal("0.1")
        assert round_money(Decimal("2.675")) == 2.68
        assert round_money("10") == 10.0


# ===== RESPONSES =====

class TestResponses:
    """Envelopes JSON"""

    def test_request_id_format(self):
        request_id = generate_request_id()
        prefix, millis, suffix = request_id.split("_")
        assert prefix == "req"
        assert millis.isdigit()
        assert len(suffix) == 9

    def test_success_envelope(self):
        response = success_response({"a": 1}, "Done", 201)
        body = json.loads(response.body)
        assert response.status_code == 201
        assert body["success"] is True
        assert body["data"] == {"a": 1}
        assert body["message"] == "Done"
        assert body["requestId"] == response.headers["X-Request-ID"]
        assert body["timestamp"].endswith("Z")

    def test_paginated_envelope(self):
        response = paginated_response([1, 2], page=2, limit=2, total=5)
        body = json.loads(response.body)
        assert body["pagination"] == {
            "page": 2, "limit": 2, "total": 5, "totalPages": 3, "hasNext": True, "hasPrev": True
        }
        assert response.headers["X-Total-Count"] == "5"
        assert response.headers["X-Page"] == "2"
        assert response.headers["X-Per-Page"] == "2"

    def test_pagination_without_rows(self):
        assert build_pagination(1, 10, 0)["totalPages"] == 0
        assert build_pagination(1, 10, 0)["hasNext"] is False

    def test_error_envelope(self):
        response = error_response("Nope", 404, details={"id": "x"})
        body = json.loads(response.body)
        assert response.status_code == 404
        assert body["success"] is False
        assert body["error"] == "Nope"
        assert body["details"] == {"id": "x"}

    def test_unknown_route_envelope(self, client):
        response = client.get("/api/does-not-exist")
        body = response.json()
        assert response.status_code == 404
        assert body["error"] == "Route not found"
        assert body["path"] == "/api/does-not-exist"
        assert body["method"] == "GET"

    def test_request_id_is_echoed(self, client):
        response = client.get("/", headers={"X-Request-ID": "req_custom"})
        assert response.headers["X-Request-ID"] == "req_custom"

    def test_security_headers(self, client):
        response = client.get("/")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"


# ===== RATE LIMIT =====

class TestRateLimiter:
    """Ventana fija en memoria"""

    def test_blocks_after_limit(self):
        limiter = RateLimiter()
        results = [limiter.hit("ip:1", 3, 60, now=1000.0) for _ in range(4)]
        assert [allowed for allowed, _, _ in results] == [True, True, True, False]
        assert results[2][1] == 0
        assert results[0][2] == 1060.0

    def test_window_resets(self):
        limiter = RateLimiter()
        limiter.hit("ip:1", 1, 60, now=1000.0)
        assert limiter.hit("ip:1", 1, 60, now=1001.0)[0] is False
        assert limiter.hit("ip:1", 1, 60, now=1061.0)[0] is True

    def test_keys_are_independent(self):
        limiter = RateLimiter()
        limiter.hit("ip:1", 1, 60, now=1000.0)
        assert limiter.hit("ip:2", 1, 60, now=1000.0)[0] is True

    def test_key_from_token(self):
        token = jwt.encode({"sub": "user-1"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
        assert rate_limit_key(_request({"Authorization": f"Bearer {token}"})) == "user:user-1"

    def test_key_from_forwarded_ip(self):
        assert rate_limit_key(_request({"X-Forwarded-For": "1.2.3.4, 5.6.7.8"})) == "ip:1.2.3.4"
        assert rate_limit_key(_request({"Authorization": "Bearer garbage"})) == "ip:10.0.0.1"
