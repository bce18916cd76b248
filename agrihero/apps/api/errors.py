from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from agrihero.apps.api.deps import check_route_guard
from agrihero.apps.api.response import error_response
from agrihero.core.errors import DatabaseError, DuplicateKeyError


logger = logging.getLogger(__name__)

_DEFAULT_ERROR_CODES: dict[int, str] = {
    400: "BAD_REQUEST",
    401: "AUTH_UNAUTHORIZED",
    403: "AUTH_FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    500: "INTERNAL_ERROR",
}


def _default_code(status_code: int) -> str:
    # Map status codes to fallback error codes when none are provided.
    return _DEFAULT_ERROR_CODES.get(status_code, "UNKNOWN_ERROR")


def _split_detail(detail: Any, status_code: int) -> tuple[str, str, dict[str, Any] | None]:
    # Extract code/message/details from HTTPException detail payloads.
    if isinstance(detail, dict):
        code = str(detail.get("code") or _default_code(status_code))
        message = str(detail.get("message") or "Request failed")
        details = {k: v for k, v in detail.items() if k not in {"code", "message"}}
        return code, message, details or None
    if isinstance(detail, str):
        return _default_code(status_code), detail, None
    return _default_code(status_code), "Request failed", None


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Covers both FastAPI and Starlette HTTPExceptions (FastAPI's subclasses Starlette's).
    code, message, details = _split_detail(exc.detail, exc.status_code)
    payload = error_response(request=request, code=code, message=message, details=details)
    return JSONResponse(content=payload, status_code=exc.status_code, headers=getattr(exc, "headers", None))


def _field_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    # Keep only the parts clients need to attach messages to form fields.
    errors = []
    for error in exc.errors():
        errors.append(
            {
                "loc": [str(part) for part in error.get("loc", ())],
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "value_error"),
            }
        )
    return errors


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Authentication and role checks outrank any validation failure, including an undecodable body.
    try:
        await check_route_guard(request)
    except StarletteHTTPException as guard_exc:
        return await http_exception_handler(request, guard_exc)
    # Body, query and path validation failures are client errors (400) with per-field details.
    payload = error_response(
        request=request,
        code="VALIDATION_ERROR",
        message="Invalid request data",
        details={"errors": jsonable_encoder(_field_errors(exc))},
    )
    return JSONResponse(content=payload, status_code=400)


async def duplicate_key_exception_handler(request: Request, exc: DuplicateKeyError) -> JSONResponse:
    payload = error_response(
        request=request,
        code="CONFLICT",
        message=f"{exc.entity} {exc.field} already exists",
        details={"field": exc.field},
    )
    return JSONResponse(content=payload, status_code=409)


async def database_exception_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    logger.error("database_error path=%s method=%s", request.url.path, request.method, exc_info=exc)
    payload = error_response(request=request, code="INTERNAL_ERROR", message="Database error")
    return JSONResponse(content=payload, status_code=500)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Avoid leaking stack traces; log them server-side and return a stable envelope.
    logger.error("unhandled_exception path=%s method=%s", request.url.path, request.method, exc_info=exc)
    payload = error_response(request=request, code="INTERNAL_ERROR", message="Internal server error")
    return JSONResponse(content=payload, status_code=500)

