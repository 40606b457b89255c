"""Unit tests for ReportAggregator and report period resolution."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from src.crm.records.enums import BusinessLine, Geo, ReportPeriod
from src.crm.records.reports import ReportAggregator, period_start
from src.crm.records.schemas import ReportFilters, ReportMetrics, ReportRequest

NOW = datetime(2025, 5, 20, 15, 30, tzinfo=timezone.utc)


class FakeCounter:
    """Records the filters it was asked for and returns fixed metrics."""

    def __init__(self) -> None:
        self.calls: list[ReportFilters] = []

    async def count_records(self, filters: ReportFilters) -> ReportMetrics:
        self.calls.append(filters)
        return ReportMetrics(total_contacts=4, total_accounts=2, total_deals=1)


# ── Periods ──────────────────────────────────────────────────────────────────


class TestPeriodStart:
    @pytest.mark.parametrize(
        "period, days",
        [
            (ReportPeriod.LAST_7_DAYS, 7),
            (ReportPeriod.LAST_30_DAYS, 30),
            (ReportPeriod.LAST_90_DAYS, 90),
        ],
    )
    def test_rolling_windows(self, period, days):
        assert period_start(period, NOW) == NOW - timedelta(days=days)

    def test_this_year(self):
        assert period_start(ReportPeriod.THIS_YEAR, NOW) == datetime(2025, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("period", [None, ReportPeriod.ALL_TIME])
    def test_unbounded(self, period):
        assert period_start(period, NOW) is None


# ── Aggregator ───────────────────────────────────────────────────────────────


class TestReportAggregator:
    def test_resolve_filters_uses_storage_form(self):
        aggregator = ReportAggregator(FakeCounter(), clock=lambda: NOW)
        request = ReportRequest.model_validate(
            {
                "period": "Last 7 days",
                "salesRep": "  Sam Lee ",
                "geo": "EMEA",
                "businessLine": "Managed Services",
            }
        )

        filters = aggregator.resolve_filters(request)

        assert filters.created_after == NOW - timedelta(days=7)
        assert filters.sales_rep == "Sam Lee"
        assert filters.geo == Geo.EMEA.value
        assert filters.business_line == BusinessLine.MANAGED_SERVICES.value

    def test_empty_request_has_no_filters(self):
        aggregator = ReportAggregator(FakeCounter(), clock=lambda: NOW)
        assert aggregator.resolve_filters(ReportRequest()) == ReportFilters()

    def test_blank_sales_rep_is_ignored(self):
        aggregator = ReportAggregator(FakeCounter(), clock=lambda: NOW)
        filters = aggregator.resolve_filters(ReportRequest(sales_rep="   "))
        assert filters.sales_rep is None

    @pytest.mark.asyncio
    async def test_generate_report(self):
        counter = FakeCounter()
        aggregator = ReportAggregator(counter, clock=lambda: NOW)

        report = await aggregator.generate_report(
            ReportRequest(report_type="pipeline", period=ReportPeriod.THIS_YEAR),
            actor_id="jane.smith@example.com",
        )

        assert report.id == f"report_{int(NOW.timestamp() * 1000)}"
        assert report.report_type == "pipeline"
        assert report.period == "THIS YEAR"
        assert report.generated_at == NOW
        assert report.generated_by == "jane.smith@example.com"
        assert report.metrics.total_contacts == 4
        assert report.metrics.total_leads == 0
        assert len(counter.calls) == 1
        assert counter.calls[0].created_after == datetime(2025, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_report_serializes_camel_case(self):
        aggregator = ReportAggregator(FakeCounter(), clock=lambda: NOW)
        report = await aggregator.generate_report(ReportRequest(), actor_id="a@example.com")

        dumped = report.model_dump(mode="json", by_alias=True)

        assert dumped["metrics"]["totalAccounts"] == 2
        assert dumped["generatedBy"] == "a@example.com"
        assert dumped["period"] is None
