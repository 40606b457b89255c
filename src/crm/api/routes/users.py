"""User profile endpoints.

/users/me resolves the profile whose email matches the acting identity and
creates a default one on first access, so every actor has exactly one
profile. The /me routes are declared before /{profile_id} so "me" is never
taken for an id.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from src.crm.api.deps import get_actor, get_repository
from src.crm.api.envelope import success_response
from src.crm.core.actor import ActorContext
from src.crm.core.errors import NotFoundError, ValidationError
from src.crm.records.enums import UserRole
from src.crm.records.repository import CrmRepository
from src.crm.records.schemas import UserProfileCreate, UserProfileRead, UserProfileUpdate

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def default_profile_for(actor: ActorContext) -> UserProfileCreate:
    """Starting profile for an actor seen for the first time."""
    return UserProfileCreate(
        first_name=actor.first_name or "John",
        last_name=actor.last_name or "Doe",
        email=actor.email,
        title="Sales Manager",
        department="Sales",
        role=UserRole.SALES_MANAGER,
        phone="+1-555-0100",
        timezone="EST",
        language="en",
    )


async def resolve_current_profile(
    repo: CrmRepository, actor: ActorContext
) -> UserProfileRead:
    """Get the actor's profile, creating the default one if missing."""
    profile = await repo.get_user_profile_by_email(actor.email)
    if profile is not None:
        return profile
    try:
        profile = await repo.create_user_profile(default_profile_for(actor))
    except ValidationError:
        # Lost a first-access race; the other request created it
        profile = await repo.get_user_profile_by_email(actor.email)
        if profile is None:
            raise
    logger.info("crm.default_profile_created", email=actor.email, actor_id=actor.actor_id)
    return profile


@router.get("/me")
async def get_current_user_profile(
    actor: ActorContext = Depends(get_actor),
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    profile = await resolve_current_profile(repo, actor)
    return success_response(profile)


@router.put("/me")
async def update_current_user_profile(
    body: UserProfileUpdate,
    actor: ActorContext = Depends(get_actor),
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    profile = await resolve_current_profile(repo, actor)
    updated = await repo.update_user_profile(profile.id, body)
    if updated is None:
        raise NotFoundError("User profile", profile.id)
    return success_response(updated, message="Profile updated successfully")


@router.get("/{profile_id}")
async def get_user_profile(
    profile_id: str,
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    profile = await repo.get_user_profile(profile_id)
    if profile is None:
        raise NotFoundError("User profile", profile_id)
    return success_response(profile)


@router.put("/{profile_id}")
async def update_user_profile(
    profile_id: str,
    body: UserProfileUpdate,
    repo: CrmRepository = Depends(get_repository),
) -> JSONResponse:
    profile = await repo.update_user_profile(profile_id, body)
    if profile is None:
        raise NotFoundError("User profile", profile_id)
    return success_response(profile, message="Profile updated successfully")
