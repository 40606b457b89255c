"""REST endpoints for activity logs.

Listing orders by activity time (undated activities last); search matches
the summary text. activityType is required on create.
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
from src.crm.records.schemas import ActivityCreate, ActivityUpdate

router = APIRouter(prefix="/activities", tags=["activities"])


@router.get("")
async def list_activities(
    page: PageParams = Depends(get_page_params),
    search: str | None = Query(default=None),
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    activities, total = await repo.list_activities(page, search)
    return success_response(activities, pagination=Pagination.from_page(page, total))


@router.get("/{activity_id}")
async def get_activity(
    activity_id: str,
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    activity = await repo.get_activity(activity_id)
    if activity is None:
        raise NotFoundError("Activity", activity_id)
    return success_response(activity)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_activity(
    body: ActivityCreate,
    actor: ActorContext = Depends(get_actor),
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    activity = await repo.create_activity(body, actor.actor_id)
    return success_response(
        activity,
        message="Activity created successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.put("/{activity_id}")
async def update_activity(
    activity_id: str,
    body: ActivityUpdate,
    actor: ActorContext = Depends(get_actor),
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    activity = await repo.update_activity(activity_id, body, actor.actor_id)
    if activity is None:
        raise NotFoundError("Activity", activity_id)
    return success_response(activity, message="Activity updated successfully")


@router.delete("/{activity_id}")
async def delete_activity(
    activity_id: str,
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    if not await repo.delete_activity(activity_id):
        raise NotFoundError("Activity", activity_id)
    return success_response(message="Activity deleted successfully")
