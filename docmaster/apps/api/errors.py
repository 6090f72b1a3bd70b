from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from docmaster.apps.api.response import error_payload
from docmaster.core.errors import InvalidTransitionError


logger = logging.getLogger(__name__)

INVALID_INPUT_MESSAGE = "Invalid input data"


def _field_path(loc: tuple[Any, ...] | list[Any]) -> str:
    # Drop the "body"/"query" source marker so clients see the field they sent.
    parts = [str(part) for part in loc]
    if parts and parts[0] in {"body", "query", "path", "cookie", "header"}:
        parts = parts[1:]
    return ".".join(parts) or "body"


def validation_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    return [
        {
            "field": _field_path(error.get("loc", ())),
            "message": str(error.get("msg", "Invalid value")),
            "type": str(error.get("type", "value_error")),
        }
        for error in exc.errors()
    ]


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Routes raise HTTPException with either a plain message or {"message", "errors"}.
    detail = exc.detail
    if isinstance(detail, dict):
        payload = error_payload(str(detail.get("message") or "Request failed"), detail.get("errors"))
    else:
        payload = error_payload(str(detail))
    return JSONResponse(content=payload, status_code=exc.status_code, headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Schema violations are rejected before any store mutation and reported per field.
    return JSONResponse(
        content=error_payload(INVALID_INPUT_MESSAGE, validation_errors(exc)),
        status_code=400,
    )


async def invalid_transition_handler(request: Request, exc: InvalidTransitionError) -> JSONResponse:
    return JSONResponse(content=error_payload(str(exc)), status_code=409)


def unhandled_exception_response(request: Request, exc: Exception) -> JSONResponse:
    # Avoid leaking internals; the traceback goes to the log only.
    logger.error(
        "unhandled_exception method=%s path=%s request_id=%s",
        request.method,
        request.url.path,
        getattr(request.state, "request_id", None),
        exc_info=exc,
    )
    return JSONResponse(content=error_payload("Internal server error"), status_code=500)
