"""REST endpoints for leads."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from src.crm.api.deps import get_actor, get_page_params, get_repository
from src.crm.api.envelope import Pagination, success_response
from src.crm.core.actor import ActorContext
from src.crm.core.errors import NotFoundError
from src.crm.records.coercion import PageParams
from src.crm.records.repository import CrmRepository
from src.crm.records.schemas import LeadCreate, LeadUpdate

router = APIRouter(prefix="/leads", tags=["leads"])


@router.get("")
async def list_leads(
    page: PageParams = Depends(get_page_params),
    search: str | None = Query(default=None),
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    leads, total = await repo.list_leads(page, search)
    return success_response(leads, pagination=Pagination.from_page(page, total))


@router.get("/{lead_id}")
async def get_lead(
    lead_id: str,
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    lead = await repo.get_lead(lead_id)
    if lead is None:
        raise NotFoundError("Lead", lead_id)
    return success_response(lead)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_lead(
    body: LeadCreate,
    actor: ActorContext = Depends(get_actor),
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    lead = await repo.create_lead(body, actor.actor_id)
    return success_response(
        lead,
        message="Lead created successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.put("/{lead_id}")
async def update_lead(
    lead_id: str,
    body: LeadUpdate,
    actor: ActorContext = Depends(get_actor),
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    lead = await repo.update_lead(lead_id, body, actor.actor_id)
    if lead is None:
        raise NotFoundError("Lead", lead_id)
    return success_response(lead, message="Lead updated successfully")


@router.delete("/{lead_id}")
async def delete_lead(
    lead_id: str,
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    if not await repo.delete_lead(lead_id):
        raise NotFoundError("Lead", lead_id)
    return success_response(message="Lead deleted successfully")
