"""FastAPI application factory.

Creates the app with actor middleware, logging middleware, metrics middleware,
CORS, Sentry, envelope exception handlers, lifespan events for database
initialization, and the CRM API router.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import Response

from src.crm.config import get_settings
from src.crm.core.database import close_db, get_session, init_db
from src.crm.core.monitoring import MetricsMiddleware, get_metrics_response, init_sentry
from src.crm.api.envelope import register_exception_handlers
from src.crm.api.middleware.actor import ActorMiddleware
from src.crm.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.crm.api.router import router as api_router
from src.crm.records.repository import CrmRepository


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: init DB and Sentry on startup, close on shutdown."""
    log = structlog.get_logger(__name__)
    settings = get_settings()
    configure_structlog()
    await init_db()

    if settings.SENTRY_DSN:
        init_sentry(dsn=settings.SENTRY_DSN, environment=settings.ENVIRONMENT.value)

    app.state.crm_repository = CrmRepository(session_factory=get_session)
    log.info("crm.startup_complete", environment=settings.ENVIRONMENT.value)

    yield

    app.state.crm_repository = None
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="CRM API",
        version="0.1.0",
        description="Accounts, contacts, deals, leads, activity logs and user profiles",
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    # Middleware is added in reverse order (last added = outermost)

    # Actor middleware (inner -- resolves acting identity from JWT/header)
    app.add_middleware(ActorMiddleware)

    # CORS middleware
    if settings.CORS_ALLOWED_ORIGINS == "*":
        origins = ["*"]
    else:
        origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Logging middleware (logs every request with timing)
    app.add_middleware(LoggingMiddleware)

    # Metrics middleware (outermost -- records Prometheus metrics for all requests)
    app.add_middleware(MetricsMiddleware)

    app.include_router(api_router)

    # Prometheus metrics endpoint (infrastructure route, outside /api)
    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app


# Module-level app for uvicorn
app = create_app()
