"""
Envelopes JSON de respuesta y manejadores globales de errores.

Todas las respuestas de la API comparten la forma:

    éxito:   {success: true, data, message?, timestamp, requestId}
    listas:  {success: true, data, pagination {...}, message?, timestamp, requestId}
    error:   {success: false, error, details?, timestamp, requestId}
"""
import logging
import math
import secrets
import string
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings

logger = logging.getLogger(__name__)

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

_ALPHABET = string.ascii_lowercase + string.digits


def generate_request_id() -> str:
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
    return f"req_{int(time.time() * 1000)}_{suffix}"


def current_request_id() -> str:
    request_id = request_id_var.get()
    if not request_id:
        request_id = generate_request_id()
        request_id_var.set(request_id)
    return request_id


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def success_response(data: Any = None, message: Optional[str] = None, status_code: int = status.HTTP_200_OK, **extra) -> JSONResponse:
    request_id = current_request_id()
    body = {"success": True, "data": jsonable_encoder(data)}
    if message:
        body["message"] = message
    body.update(jsonable_encoder(extra))
    body["timestamp"] = utc_timestamp()
    body["requestId"] = request_id
    return JSONResponse(status_code=status_code, content=body, headers={"X-Request-ID": request_id})


def build_pagination(page: int, limit: int, total: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
    }


def paginated_response(data: Any, page: int, limit: int, total: int, message: Optional[str] = None) -> JSONResponse:
    request_id = current_request_id()
    pagination = build_pagination(page, limit, total)
    body = {"success": True, "data": jsonable_encoder(data), "pagination": pagination}
    if message:
        body["message"] = message
    body["timestamp"] = utc_timestamp()
    body["requestId"] = request_id
    headers = {
        "X-Request-ID": request_id,
        "X-Total-Count": str(total),
        "X-Page": str(page),
        "X-Per-Page": str(limit),
    }
    return JSONResponse(status_code=status.HTTP_200_OK, content=body, headers=headers)


def error_response(error: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR, details: Optional[dict] = None, headers: Optional[dict] = None, **extra) -> JSONResponse:
    request_id = current_request_id()
    body = {"success": False, "error": error}
    if details:
        body["details"] = jsonable_encoder(details)
    body.update(extra)
    body["timestamp"] = utc_timestamp()
    body["requestId"] = request_id
    response_headers = {"X-Request-ID": request_id}
    if headers:
        response_headers.update(headers)
    return JSONResponse(status_code=status_code, content=body, headers=response_headers)


def paginate(query, page: int, limit: int) -> Tuple[list, int]:
    """Aplica offset/limit a una query SQLAlchemy y devuelve (items, total)."""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total


def _validation_errors(exc: RequestValidationError) -> list:
    errors = []
    for err in exc.errors():
        location = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "form")]
        errors.append({
            "field": ".".join(location) or "request",
            "message": err.get("msg", "Invalid value"),
        })
    return errors


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    headers = getattr(exc, "headers", None)
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return error_response(
            "Route not found",
            status.HTTP_404_NOT_FOUND,
            path=request.url.path,
            method=request.method,
        )
    if isinstance(exc.detail, dict):
        detail = dict(exc.detail)
        message = detail.pop("error", None) or detail.pop("message", None) or "Request failed"
        return error_response(message, exc.status_code, details=detail or None, headers=headers)
    return error_response(str(exc.detail), exc.status_code, headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(
        "Validation failed",
        status.HTTP_400_BAD_REQUEST,
        details={"validationErrors": _validation_errors(exc)},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    extra = {}
    if settings.DEBUG and not settings.is_production:
        extra["message"] = str(exc)
    return error_response("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR, **extra)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


def apply_sorting(query, columns: dict, sort_by: Optional[str], sort_order: Optional[str], default: str):
    """
    Ordena por una columna de la lista blanca `columns`; valores desconocidos
    usan `default`. sort_order distinto de "asc" se trata como "desc".
    """
    column = columns.get(sort_by) if sort_by else None
    if column is None:
        column = columns[default]
    if (sort_order or "desc").lower() == "asc":
        return query.order_by(column.asc())
    return query.order_by(column.desc())
