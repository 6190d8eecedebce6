"""
Middleware de la API: request id, logging de peticiones, cabeceras de seguridad y rate limiting
"""
from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Dict, Optional, Tuple
import threading
import logging
import math
import time
import jwt

from app.core.config import settings
from app.common.responses import error_response, generate_request_id, request_id_var

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that reuses the incoming X-Request-ID header (or generates one),
    exposes it on request.state and echoes it in the response headers
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that logs method, path, status code and duration of each request
    """

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000
        request_id = getattr(request.state, "request_id", "-")
        log = logger.warning if response.status_code >= 400 else logger.info
        log(f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.1f}ms) [{request_id}]")
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class RateLimiter:
    """
    Contador de ventana fija en memoria, por clave.

    Es estado local al proceso: con varios workers cada uno lleva su propio conteo.
    """

    def __init__(self):
        self._store: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, max_requests: int, window_seconds: int, now: Optional[float] = None) -> Tuple[bool, int, float]:
        """
        Registra una petición para la clave.

        Returns:
            (permitida, restantes, instante de reinicio en epoch segundos)
        """
        now = time.time() if now is None else now
        with self._lock:
            count, reset_at = self._store.get(key, (0, 0.0))
            if now > reset_at:
                count, reset_at = 0, now + window_seconds
            count += 1
            self._store[key] = (count, reset_at)
            if len(self._store) > 10000:
                self._cleanup(now)
        return count <= max_requests, max(0, max_requests - count), reset_at

    def _cleanup(self, now: float):
        expired = [key for key, (_, reset_at) in self._store.items() if now > reset_at]
        for key in expired:
            del self._store[key]

    def reset(self):
        with self._lock:
            self._store.clear()


rate_limiter = RateLimiter()


def rate_limit_key(request: Request) -> str:
    """Usa el id del usuario si el bearer token es válido, si no la IP del cliente."""
    authorization = request.headers.get("Authorization", "")
    if authorization.lower().startswith("bearer "):
        try:
            payload = jwt.decode(authorization[7:], settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
            if payload.get("sub"):
                return f"user:{payload['sub']}"
        except jwt.PyJWTError:
            pass
    forwarded = request.headers.get("X-Forwarded-For")
    ip = (
        request.headers.get("CF-Connecting-IP")
        or (forwarded.split(",")[0].strip() if forwarded else None)
        or request.headers.get("X-Real-IP")
        or (request.client.host if request.client else None)
        or "unknown"
    )
    return f"ip:{ip}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware that limits /api requests per user or IP.
    Authentication endpoints use a stricter limit.
    """

    def __init__(self, app, limiter: RateLimiter = rate_limiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if not settings.RATE_LIMIT_ENABLED or request.method == "OPTIONS" or not path.startswith("/api"):
            return await call_next(request)

        if path.startswith("/api/auth"):
            scope, max_requests, window = "auth", settings.AUTH_RATE_LIMIT_REQUESTS, settings.AUTH_RATE_LIMIT_WINDOW
        else:
            scope, max_requests, window = "api", settings.RATE_LIMIT_REQUESTS, settings.RATE_LIMIT_WINDOW

        key = f"{scope}:{rate_limit_key(request)}"
        allowed, remaining, reset_at = self.limiter.hit(key, max_requests, window)
        headers = {
            "X-RateLimit-Limit": str(max_requests),
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Reset": str(math.ceil(reset_at)),
        }

        if not allowed:
            retry_after = max(1, math.ceil(reset_at - time.time()))
            logger.warning(f"Rate limit exceeded for {key} on {path}")
            headers["Retry-After"] = str(retry_after)
            return error_response("Too many requests", status.HTTP_429_TOO_MANY_REQUESTS, headers=headers)

        response = await call_next(request)
        for name, value in headers.items():
            response.headers[name] = value
        return response
