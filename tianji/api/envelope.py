from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tianji.core.dates import ensure_utc
from tianji.core.errors import TianjiError

logger = structlog.get_logger(__name__)

_HTTP_ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: "E_VALIDATION",
    status.HTTP_401_UNAUTHORIZED: "E_UNAUTHENTICATED",
    status.HTTP_403_FORBIDDEN: "E_FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "E_NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "E_METHOD_NOT_ALLOWED",
}


def _camel(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.title() for part in tail)


def to_wire(value: Any, *, camel: bool = True) -> Any:
    """Converts service results into JSON-ready payloads.

    Dataclass field names are camelCased when ``camel`` is set; keys of plain
    dicts (client-supplied JSON, capability tables) pass through unchanged.
    """
    if is_dataclass(value) and not isinstance(value, type):
        return {
            (_camel(item.name) if camel else item.name): to_wire(getattr(value, item.name), camel=camel)
            for item in fields(value)
        }
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return ensure_utc(value).isoformat().replace("+00:00", "Z")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: to_wire(item, camel=camel) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_wire(item, camel=camel) for item in value]
    return value


def ok(data: Any = None, *, message: str | None = None, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    content: dict[str, Any] = {"success": True, "data": data}
    if message is not None:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)


def error_response(*, status_code: int, code: str, message: str | None = None) -> JSONResponse:
    content: dict[str, Any] = {"success": False, "error": code}
    if message is not None:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)


async def _handle_domain_error(request: Request, exc: TianjiError) -> JSONResponse:
    logger.info(
        "request_rejected",
        path=request.url.path,
        method=request.method,
        error=exc.code,
        status_code=exc.status_code,
    )
    return error_response(status_code=exc.status_code, code=exc.code, message=exc.message)


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg', 'invalid value')}" if location else "Invalid request"
    return error_response(status_code=status.HTTP_400_BAD_REQUEST, code="E_VALIDATION", message=message)


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict) and "code" in exc.detail:
        code = str(exc.detail["code"])
        message = exc.detail.get("message")
    else:
        code = _HTTP_ERROR_CODES.get(exc.status_code, "E_HTTP")
        message = exc.detail if isinstance(exc.detail, str) else None
    return error_response(status_code=exc.status_code, code=code, message=message)


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request_failed", path=request.url.path, method=request.method)
    return error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="E_INTERNAL",
        message="Internal server error",
    )


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TianjiError, _handle_domain_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(Exception, _handle_unexpected)
