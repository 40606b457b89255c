"""Report generation over CRM record counts.

ReportAggregator resolves a ReportRequest into storage-level filters, asks the
repository for per-entity counts, and stamps the result with an id, the
generation time and the acting identity.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol

import structlog

from src.crm.records.enums import ReportPeriod
from src.crm.records.schemas import Report, ReportFilters, ReportMetrics, ReportRequest

logger = structlog.get_logger(__name__)

_PERIOD_DAYS = {
    ReportPeriod.LAST_7_DAYS: 7,
    ReportPeriod.LAST_30_DAYS: 30,
    ReportPeriod.LAST_90_DAYS: 90,
}


class RecordCounter(Protocol):
    async def count_records(self, filters: ReportFilters) -> ReportMetrics: ...


def period_start(period: ReportPeriod | None, now: datetime) -> datetime | None:
    """Earliest created_at included by a report period (None = unbounded)."""
    if period is None or period is ReportPeriod.ALL_TIME:
        return None
    if period is ReportPeriod.THIS_YEAR:
        return datetime(now.year, 1, 1, tzinfo=timezone.utc)
    return now - timedelta(days=_PERIOD_DAYS[period])


class ReportAggregator:
    """Builds summary reports from repository counts.

    Args:
        repository: Anything exposing ``count_records(filters)``.
        clock: Returns the current UTC time; injectable for tests.
    """

    def __init__(self, repository: RecordCounter, clock=None) -> None:
        self._repository = repository
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def resolve_filters(self, request: ReportRequest) -> ReportFilters:
        now = self._clock()
        return ReportFilters(
            created_after=period_start(request.period, now),
            sales_rep=(request.sales_rep or "").strip() or None,
            geo=request.geo.value if request.geo else None,
            business_line=request.business_line.value if request.business_line else None,
        )

    async def generate_report(self, request: ReportRequest, actor_id: str) -> Report:
        """Count records under the request's filters.

        Args:
            request: Report type and optional filters.
            actor_id: Identity the report is generated for.

        Returns:
            Report with metrics for contacts, accounts, deals, activities, leads.
        """
        filters = self.resolve_filters(request)
        metrics = await self._repository.count_records(filters)
        generated_at = self._clock()

        report = Report(
            id=f"report_{int(generated_at.timestamp() * 1000)}",
            report_type=request.report_type,
            period=request.period,
            sales_rep=request.sales_rep,
            geo=request.geo,
            business_line=request.business_line,
            metrics=metrics,
            generated_at=generated_at,
            generated_by=actor_id,
        )
        logger.info(
            "crm.report_generated",
            report_id=report.id,
            report_type=request.report_type,
            actor_id=actor_id,
        )
        return report
