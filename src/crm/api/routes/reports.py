"""Report endpoints: summary counts and the (not yet available) download."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from src.crm.api.deps import get_actor, get_report_aggregator
from src.crm.api.envelope import success_response
from src.crm.core.actor import ActorContext
from src.crm.records.reports import ReportAggregator
from src.crm.records.schemas import ReportRequest

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("")
async def generate_report(
    body: ReportRequest,
    actor: ActorContext = Depends(get_actor),
    aggregator: ReportAggregator = Depends(get_report_aggregator),
) -> JSONResponse:
    """Count contacts, accounts, deals, activities and leads under the filters."""
    report = await aggregator.generate_report(body, actor.actor_id)
    return success_response(report, message="Report generated successfully")


@router.get("/download")
async def download_report() -> JSONResponse:
    # TODO: stream the generated report as CSV once report ids are persisted
    return success_response(message="Report download feature coming soon")
