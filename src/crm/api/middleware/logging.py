"""Structured request logging middleware.

Every request gets a request id (the caller's X-Request-ID when it sends one,
otherwise a fresh UUID) that is echoed on the response and bound into
structlog's context variables, so repository events such as
``crm.account_created`` carry the same request_id and actor_id as the
``request_completed`` line.

Uses structlog for structured JSON logging in production and
human-readable console output in development.
"""

from __future__ import annotations

import logging
import time
import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.crm.config import Environment, get_settings

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def configure_structlog() -> None:
    """Configure structlog processors based on environment."""
    settings = get_settings()
    logging.basicConfig(format="%(message)s", level=settings.LOG_LEVEL.upper())

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.ENVIRONMENT == Environment.production:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _request_id(request: Request) -> str:
    incoming = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    return incoming[:128] if incoming else str(uuid.uuid4())


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request with status, timing and the acting identity.

    Failures that escape the handlers are logged as ``request_error`` and
    re-raised for the server error middleware.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _request_id(request)
        started = time.monotonic()

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            try:
                response = await call_next(request)
            except Exception:
                logger.error(
                    "request_error",
                    method=request.method,
                    path=request.url.path,
                    status_code=500,
                    duration_ms=round((time.monotonic() - started) * 1000, 2),
                    actor_id=getattr(request.state, "actor_id", None),
                    exc_info=True,
                )
                raise

            response.headers[REQUEST_ID_HEADER] = request_id

            if response.status_code >= 500:
                log_method = logger.error
            elif response.status_code >= 400:
                log_method = logger.warning
            else:
                log_method = logger.info
            log_method(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.monotonic() - started) * 1000, 2),
                actor_id=getattr(request.state, "actor_id", None),
            )
            return response
