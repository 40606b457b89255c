"""REST endpoints for accounts.

GET list (paginated, searchable on name and industry), GET one with its
contacts/deals/activities, POST (accountName and industry required), PUT
partial update and DELETE. Dependent records survive account deletion with
the association cleared.
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
from src.crm.records.schemas import AccountCreate, AccountUpdate

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("")
async def list_accounts(
    page: PageParams = Depends(get_page_params),
    search: str | None = Query(default=None),
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    """List accounts, newest first."""
    accounts, total = await repo.list_accounts(page, search)
    return success_response(accounts, pagination=Pagination.from_page(page, total))


@router.get("/{account_id}")
async def get_account(
    account_id: str,
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    """Get a single account with related records."""
    account = await repo.get_account(account_id)
    if account is None:
        raise NotFoundError("Account", account_id)
    return success_response(account)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_account(
    body: AccountCreate,
    actor: ActorContext = Depends(get_actor),
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    account = await repo.create_account(body, actor.actor_id)
    return success_response(
        account,
        message="Account created successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.put("/{account_id}")
async def update_account(
    account_id: str,
    body: AccountUpdate,
    actor: ActorContext = Depends(get_actor),
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    account = await repo.update_account(account_id, body, actor.actor_id)
    if account is None:
        raise NotFoundError("Account", account_id)
    return success_response(account, message="Account updated successfully")


@router.delete("/{account_id}")
async def delete_account(
    account_id: str,
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    if not await repo.delete_account(account_id):
        raise NotFoundError("Account", account_id)
    return success_response(message="Account deleted successfully")
