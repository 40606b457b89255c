"""REST endpoints for contacts.

Create and update accept a combined ``name`` (split into first/last when
those are absent), ``email`` for emailAddress and ``phone`` for mobilePhone.
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
from src.crm.records.schemas import ContactCreate, ContactUpdate

router = APIRouter(prefix="/contacts", tags=["contacts"])


@router.get("")
async def list_contacts(
    page: PageParams = Depends(get_page_params),
    search: str | None = Query(default=None),
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    contacts, total = await repo.list_contacts(page, search)
    return success_response(contacts, pagination=Pagination.from_page(page, total))


@router.get("/{contact_id}")
async def get_contact(
    contact_id: str,
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    contact = await repo.get_contact(contact_id)
    if contact is None:
        raise NotFoundError("Contact", contact_id)
    return success_response(contact)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_contact(
    body: ContactCreate,
    actor: ActorContext = Depends(get_actor),
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    contact = await repo.create_contact(body, actor.actor_id)
    return success_response(
        contact,
        message="Contact created successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.put("/{contact_id}")
async def update_contact(
    contact_id: str,
    body: ContactUpdate,
    actor: ActorContext = Depends(get_actor),
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    contact = await repo.update_contact(contact_id, body, actor.actor_id)
    if contact is None:
        raise NotFoundError("Contact", contact_id)
    return success_response(contact, message="Contact updated successfully")


@router.delete("/{contact_id}")
async def delete_contact(
    contact_id: str,
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    if not await repo.delete_contact(contact_id):
        raise NotFoundError("Contact", contact_id)
    return success_response(message="Contact deleted successfully")
