from __future__ import annotations

from typing import Any

from docmaster.apps.api.response import ErrorResponse


def _error_example(message: str, errors: list[dict[str, str]] | None = None) -> dict[str, Any]:
    # Build a consistent error body example for OpenAPI docs.
    payload: dict[str, Any] = {"message": message}
    if errors:
        payload["errors"] = errors
    return payload


def _response(description: str, example: dict[str, Any]) -> dict[str, Any]:
    return {
        "model": ErrorResponse,
        "description": description,
        "content": {"application/json": {"example": example}},
    }


DEFAULT_ERROR_RESPONSES: dict[int, dict[str, Any]] = {
    400: _response(
        "Bad request",
        _error_example(
            "Invalid input data",
            [{"field": "name", "message": "Field required", "type": "missing"}],
        ),
    ),
    401: _response("Unauthorized", _error_example("Unauthorized")),
    403: _response("Forbidden", _error_example("Forbidden: Admin role required")),
    404: _response("Not found", _error_example("Document not found")),
    500: _response("Internal server error", _error_example("Internal server error")),
}
