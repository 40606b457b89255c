"""Uniform response envelope and exception handlers.

Every endpoint answers with ``{success, data?, message?, error?,
pagination?}``. Successful responses are built with success_response();
failures are raised as CrmError subclasses (or come from FastAPI request
validation) and converted here, so the error shape is the same everywhere.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.crm.core.errors import CrmError
from src.crm.records.coercion import PageParams
from src.crm.records.schemas import CrmSchema

logger = structlog.get_logger(__name__)


class Pagination(CrmSchema):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def from_page(cls, page: PageParams, total: int) -> "Pagination":
        return cls(
            page=page.page,
            limit=page.limit,
            total=total,
            total_pages=page.total_pages(total),
        )


def _dump(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, (list, tuple)):
        return [_dump(item) for item in data]
    return data


def success_response(
    data: Any = None,
    *,
    message: str | None = None,
    pagination: Pagination | None = None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """Build a ``success: true`` envelope. Absent parts are omitted."""
    content: dict[str, Any] = {"success": True}
    if data is not None:
        content["data"] = _dump(data)
    if pagination is not None:
        content["pagination"] = _dump(pagination)
    if message is not None:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)


def error_response(error: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
    )


def format_validation_errors(errors: Sequence[dict[str, Any]]) -> str:
    """Flatten pydantic error dicts into one human-readable message."""
    messages = []
    for err in errors:
        msg = str(err.get("msg", "Invalid value")).removeprefix("Value error, ")
        loc = [
            str(part)
            for part in err.get("loc", ())
            if part not in ("body", "query", "path")
        ]
        messages.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return "; ".join(messages) or "Invalid request"


# ── Exception Handlers ──────────────────────────────────────────────────────


async def crm_error_handler(request: Request, exc: CrmError) -> JSONResponse:
    log_method = logger.error if exc.status_code >= 500 else logger.info
    log_method(
        "crm.request_failed",
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.message,
        error_type=type(exc).__name__,
    )
    return error_response(exc.message, exc.status_code)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    message = format_validation_errors(exc.errors())
    logger.info("crm.validation_failed", path=request.url.path, error=message)
    return error_response(message, status.HTTP_400_BAD_REQUEST)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return error_response(str(exc.detail), exc.status_code)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "crm.unhandled_error",
        path=request.url.path,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return error_response("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    """Install envelope-producing handlers for every error path."""
    app.add_exception_handler(CrmError, crm_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
