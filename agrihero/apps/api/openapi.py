from __future__ import annotations

from typing import Any

from agrihero.apps.api.response import ErrorEnvelope


def _error_example(*, code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    # Build a consistent error envelope example for OpenAPI docs.
    payload: dict[str, Any] = {
        "error": {"code": code, "message": message},
        "meta": {"request_id": "req_example"},
    }
    if details:
        payload["error"]["details"] = details
    return payload


def _response(description: str, example: dict[str, Any]) -> dict[str, Any]:
    return {
        "model": ErrorEnvelope,
        "description": description,
        "content": {"application/json": {"example": example}},
    }


DEFAULT_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: _response(
        "Invalid request data",
        _error_example(
            code="VALIDATION_ERROR",
            message="Invalid request data",
            details={"errors": [{"loc": ["body", "email"], "message": "Field required", "type": "missing"}]},
        ),
    ),
    401: _response("Unauthorized", _error_example(code="AUTH_UNAUTHORIZED", message="Not authenticated")),
    403: _response(
        "Forbidden",
        _error_example(code="AUTH_FORBIDDEN", message="Forbidden: Admin role required"),
    ),
    500: _response("Internal error", _error_example(code="INTERNAL_ERROR", message="Internal server error")),
}

NOT_FOUND_RESPONSE: dict[int | str, dict[str, Any]] = {
    404: _response("Not found", _error_example(code="NOT_FOUND", message="User not found")),
}

CONFLICT_RESPONSE: dict[int | str, dict[str, Any]] = {
    409: _response(
        "Unique field already in use",
        _error_example(code="CONFLICT", message="User username already exists", details={"field": "username"}),
    ),
}
