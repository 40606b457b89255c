"""REST endpoints for active deals.

closingDate accepts "YYYY-MM-DD" or a full ISO timestamp; an unparseable
value is dropped rather than rejected. probability and dealValue are stored
as text. ``owner`` is accepted for dealOwner.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from src.crm.api.deps import get_actor, get_page_params, get_repository
from src.crm.api.envelope import Pagination, success_response
from src.crm.core.actor import ActorContext
from src.crm.core.errors import NotFoundError
from src.crm.records.coercion import PageParams
from src.crm.records.repository import CrmRepository
from src.crm.records.schemas import DealCreate, DealUpdate

router = APIRouter(prefix="/deals", tags=["deals"])


@router.get("")
async def list_deals(
    page: PageParams = Depends(get_page_params),
    search: str | None = Query(default=None),
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    """List deals with their account and contact."""
    deals, total = await repo.list_deals(page, search)
    return success_response(deals, pagination=Pagination.from_page(page, total))


@router.get("/{deal_id}")
async def get_deal(
    deal_id: str,
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    deal = await repo.get_deal(deal_id)
    if deal is None:
        raise NotFoundError("Deal", deal_id)
    return success_response(deal)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_deal(
    body: DealCreate,
    actor: ActorContext = Depends(get_actor),
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    deal = await repo.create_deal(body, actor.actor_id)
    return success_response(
        deal,
        message="Deal created successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.put("/{deal_id}")
async def update_deal(
    deal_id: str,
    body: DealUpdate,
    actor: ActorContext = Depends(get_actor),
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    deal = await repo.update_deal(deal_id, body, actor.actor_id)
    if deal is None:
        raise NotFoundError("Deal", deal_id)
    return success_response(deal, message="Deal updated successfully")


@router.delete("/{deal_id}")
async def delete_deal(
    deal_id: str,
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    if not await repo.delete_deal(deal_id):
        raise NotFoundError("Deal", deal_id)
    return success_response(message="Deal deleted successfully")
