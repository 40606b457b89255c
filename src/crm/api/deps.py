"""FastAPI dependency injection for the CRM endpoints.

These dependencies are used in endpoint function signatures to inject the
acting identity, the repository held on app.state, the report aggregator and
coerced pagination parameters.
"""

from __future__ import annotations

from fastapi import HTTPException, Query, Request, status

from src.crm.config import get_settings
from src.crm.core.actor import ActorContext, get_current_actor
from src.crm.records.coercion import PageParams, parse_page_params
from src.crm.records.reports import ReportAggregator
from src.crm.records.repository import CrmRepository


async def get_actor() -> ActorContext:
    """Get the acting identity (set by ActorMiddleware)."""
    return get_current_actor()


def get_repository(request: Request) -> CrmRepository:
    """Retrieve CrmRepository from app.state, 503 if not available."""
    repo = getattr(request.app.state, "crm_repository", None)
    if repo is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="CRM repository not initialized",
        )
    return repo


def get_report_aggregator(request: Request) -> ReportAggregator:
    return ReportAggregator(get_repository(request))


def get_page_params(
    page: str | None = Query(default=None, description="1-based page number"),
    limit: str | None = Query(default=None, description="Page size"),
) -> PageParams:
    """Coerce raw page/limit strings; bad values fall back to defaults."""
    settings = get_settings()
    return parse_page_params(
        page,
        limit,
        default_limit=settings.DEFAULT_PAGE_SIZE,
        max_limit=settings.MAX_PAGE_SIZE,
    )
