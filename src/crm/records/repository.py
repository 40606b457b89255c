"""CRM repository -- async CRUD for accounts, contacts, deals, leads, activities
and user profiles.

Provides CrmRepository with the session_factory callable pattern. Each entity
gets list (paginated + search), get (with relations), create, update
(partial) and delete. Serialization between SQLAlchemy models and the
Pydantic read schemas happens here, so callers only ever see schemas.

Store failures are logged and re-raised as PersistenceError; dangling
references and unique-key conflicts become ValidationError. Not-found is
signalled with None/False and mapped to 404 by the API layer.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, AsyncIterator, Callable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import structlog
from sqlalchemy import ColumnElement, Select, func, or_, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.interfaces import ORMOption

from src.crm.core.errors import PersistenceError, ValidationError
from src.crm.core.monitoring import record_crm_write
from src.crm.records.coercion import PageParams
from src.crm.records.models import (
    AccountModel,
    ActivityLogModel,
    ContactModel,
    DealModel,
    LeadModel,
    UserProfileModel,
)
from src.crm.records.schemas import (
    AccountCreate,
    AccountDetail,
    AccountRead,
    AccountUpdate,
    ActivityCreate,
    ActivityRead,
    ActivityUpdate,
    ContactCreate,
    ContactDetail,
    ContactRead,
    ContactUpdate,
    CrmSchema,
    DealCreate,
    DealRead,
    DealUpdate,
    LeadCreate,
    LeadRead,
    LeadUpdate,
    NotificationPreferences,
    ReportFilters,
    ReportMetrics,
    UserProfileCreate,
    UserProfileRead,
    UserProfileUpdate,
    WriteSchema,
)

logger = structlog.get_logger(__name__)

SessionFactory = Callable[..., AsyncGenerator[AsyncSession, None]]


# ── Query Helpers ───────────────────────────────────────────────────────────


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_search_clause(
    columns: Sequence[Any], term: str | None
) -> ColumnElement[bool] | None:
    """Case-insensitive substring match of term across columns.

    Returns None for an absent or blank term (no filtering).
    """
    if term is None or not term.strip():
        return None
    pattern = f"%{escape_like(term.strip())}%"
    return or_(*(column.ilike(pattern, escape="\\") for column in columns))


def parse_record_id(record_id: str) -> uuid.UUID | None:
    """Parse a path id; malformed ids behave like unknown ids."""
    try:
        return uuid.UUID(str(record_id))
    except ValueError:
        return None


# ── Serialization Helpers ───────────────────────────────────────────────────


def _model_to_profile(model: UserProfileModel) -> UserProfileRead:
    """Convert UserProfileModel to UserProfileRead, nesting notification flags."""
    return UserProfileRead(
        id=str(model.id),
        first_name=model.first_name,
        last_name=model.last_name,
        email=model.email,
        title=model.title,
        department=model.department,
        role=model.role,
        phone=model.phone,
        timezone=model.timezone,
        language=model.language,
        notifications=NotificationPreferences(
            email_notifications=bool(model.email_notifications),
            sms_notifications=bool(model.sms_notifications),
            push_notifications=bool(model.push_notifications),
        ),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


# ── Entity Table ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class _Entity:
    """How one CRM entity is queried and serialized."""

    name: str
    plural: str
    model: type
    read: type[CrmSchema]
    detail: type[CrmSchema]
    search_columns: tuple[Any, ...]
    order_by: tuple[Any, ...]
    read_options: tuple[ORMOption, ...] = field(default_factory=tuple)
    detail_options: tuple[ORMOption, ...] = field(default_factory=tuple)


_ACCOUNTS = _Entity(
    name="account",
    plural="accounts",
    model=AccountModel,
    read=AccountRead,
    detail=AccountDetail,
    search_columns=(AccountModel.account_name, AccountModel.industry),
    order_by=(AccountModel.created_at.desc(),),
    detail_options=(
        selectinload(AccountModel.contacts),
        selectinload(AccountModel.deals),
        selectinload(AccountModel.activities),
    ),
)

_CONTACTS = _Entity(
    name="contact",
    plural="contacts",
    model=ContactModel,
    read=ContactRead,
    detail=ContactDetail,
    search_columns=(
        ContactModel.first_name,
        ContactModel.last_name,
        ContactModel.email_address,
    ),
    order_by=(ContactModel.created_at.desc(),),
    detail_options=(
        selectinload(ContactModel.account),
        selectinload(ContactModel.deals),
        selectinload(ContactModel.activities),
    ),
)

_DEALS = _Entity(
    name="deal",
    plural="deals",
    model=DealModel,
    read=DealRead,
    detail=DealRead,
    search_columns=(DealModel.deal_name, DealModel.deal_owner),
    order_by=(DealModel.created_at.desc(),),
    read_options=(selectinload(DealModel.account), selectinload(DealModel.contact)),
    detail_options=(selectinload(DealModel.account), selectinload(DealModel.contact)),
)

_LEADS = _Entity(
    name="lead",
    plural="leads",
    model=LeadModel,
    read=LeadRead,
    detail=LeadRead,
    search_columns=(
        LeadModel.first_name,
        LeadModel.last_name,
        LeadModel.company,
        LeadModel.email,
    ),
    order_by=(LeadModel.created_at.desc(),),
)

_ACTIVITIES = _Entity(
    name="activity",
    plural="activities",
    model=ActivityLogModel,
    read=ActivityRead,
    detail=ActivityRead,
    search_columns=(ActivityLogModel.summary,),
    order_by=(
        ActivityLogModel.date_time.desc().nulls_last(),
        ActivityLogModel.created_at.desc(),
    ),
    read_options=(
        selectinload(ActivityLogModel.account),
        selectinload(ActivityLogModel.contact),
    ),
    detail_options=(
        selectinload(ActivityLogModel.account),
        selectinload(ActivityLogModel.contact),
    ),
)


# ── Repository ──────────────────────────────────────────────────────────────


class CrmRepository:
    """Async CRUD operations for all CRM entities.

    Uses the session_factory callable pattern: every public method opens its
    own session, so calls are independent and no transaction spans entities.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a session and translate store errors for ``operation``."""
        async for session in self._session_factory():
            try:
                yield session
            except IntegrityError as exc:
                await session.rollback()
                logger.warning(
                    "crm.integrity_error",
                    operation=operation,
                    error=str(exc.orig),
                )
                raise ValidationError(
                    "Referenced record does not exist or a unique value is already in use"
                ) from exc
            except (SQLAlchemyError, OSError) as exc:
                await session.rollback()
                logger.error(
                    "crm.persistence_error",
                    operation=operation,
                    error=str(exc),
                    exc_info=True,
                )
                raise PersistenceError(operation) from exc

    # ── Generic operations ──────────────────────────────────────────────────

    async def _list(
        self, entity: _Entity, page: PageParams, search: str | None
    ) -> tuple[list[Any], int]:
        clause = build_search_clause(entity.search_columns, search)
        async with self._session(f"fetch {entity.plural}") as session:
            count_stmt = select(func.count()).select_from(entity.model)
            stmt: Select = select(entity.model).options(*entity.read_options)
            if clause is not None:
                count_stmt = count_stmt.where(clause)
                stmt = stmt.where(clause)
            stmt = stmt.order_by(*entity.order_by).offset(page.offset).limit(page.limit)

            total = (await session.execute(count_stmt)).scalar_one()
            models = (await session.execute(stmt)).scalars().all()
            return [entity.read.model_validate(m) for m in models], total

    async def _load(
        self,
        session: AsyncSession,
        entity: _Entity,
        pk: uuid.UUID,
        options: Sequence[ORMOption],
    ) -> Any:
        stmt = (
            select(entity.model)
            .options(*options)
            .where(entity.model.id == pk)
            .execution_options(populate_existing=True)
        )
        return (await session.execute(stmt)).scalar_one_or_none()

    async def _get(self, entity: _Entity, record_id: str) -> Any:
        pk = parse_record_id(record_id)
        if pk is None:
            return None
        async with self._session(f"fetch {entity.name}") as session:
            model = await self._load(session, entity, pk, entity.detail_options)
            if model is None:
                return None
            return entity.detail.model_validate(model)

    async def _create(self, entity: _Entity, data: WriteSchema, actor_id: str) -> Any:
        columns = data.to_columns()
        async with self._session(f"create {entity.name}") as session:
            model = entity.model(**columns, created_by=actor_id, updated_by=actor_id)
            session.add(model)
            await session.commit()
            model = await self._load(session, entity, model.id, entity.read_options)
            logger.info(f"crm.{entity.name}_created", record_id=str(model.id), actor_id=actor_id)
            record_crm_write(entity.name, "create")
            return entity.read.model_validate(model)

    async def _update(
        self, entity: _Entity, record_id: str, data: WriteSchema, actor_id: str
    ) -> Any:
        pk = parse_record_id(record_id)
        if pk is None:
            return None
        columns = data.to_columns()
        async with self._session(f"update {entity.name}") as session:
            model = await self._load(session, entity, pk, ())
            if model is None:
                return None
            for key, value in columns.items():
                setattr(model, key, value)
            model.updated_by = actor_id
            await session.commit()
            model = await self._load(session, entity, pk, entity.read_options)
            logger.info(
                f"crm.{entity.name}_updated",
                record_id=record_id,
                fields=sorted(columns),
                actor_id=actor_id,
            )
            record_crm_write(entity.name, "update")
            return entity.read.model_validate(model)

    async def _delete(self, entity: _Entity, record_id: str) -> bool:
        pk = parse_record_id(record_id)
        if pk is None:
            return False
        async with self._session(f"delete {entity.name}") as session:
            model = await self._load(session, entity, pk, ())
            if model is None:
                return False
            await session.delete(model)
            await session.commit()
            logger.info(f"crm.{entity.name}_deleted", record_id=record_id)
            record_crm_write(entity.name, "delete")
            return True

    # ── Accounts ────────────────────────────────────────────────────────────

    async def list_accounts(
        self, page: PageParams, search: str | None = None
    ) -> tuple[list[AccountRead], int]:
        """List accounts newest first, matching search on name or industry.

        Args:
            page: Resolved pagination parameters.
            search: Optional case-insensitive substring.

        Returns:
            Tuple of (page of AccountRead, total matching count).
        """
        return await self._list(_ACCOUNTS, page, search)

    async def get_account(self, account_id: str) -> AccountDetail | None:
        """Get an account with its contacts, deals and activities.

        Returns:
            AccountDetail if found, None otherwise.
        """
        return await self._get(_ACCOUNTS, account_id)

    async def create_account(self, data: AccountCreate, actor_id: str) -> AccountRead:
        """Create an account stamped with the acting identity."""
        return await self._create(_ACCOUNTS, data, actor_id)

    async def update_account(
        self, account_id: str, data: AccountUpdate, actor_id: str
    ) -> AccountRead | None:
        """Apply a partial update. Returns None if the account does not exist."""
        return await self._update(_ACCOUNTS, account_id, data, actor_id)

    async def delete_account(self, account_id: str) -> bool:
        """Delete an account; dependent records keep existing, unlinked."""
        return await self._delete(_ACCOUNTS, account_id)

    # ── Contacts ────────────────────────────────────────────────────────────

    async def list_contacts(
        self, page: PageParams, search: str | None = None
    ) -> tuple[list[ContactRead], int]:
        """List contacts newest first, matching search on name or email."""
        return await self._list(_CONTACTS, page, search)

    async def get_contact(self, contact_id: str) -> ContactDetail | None:
        """Get a contact with its account, deals and activities."""
        return await self._get(_CONTACTS, contact_id)

    async def create_contact(self, data: ContactCreate, actor_id: str) -> ContactRead:
        return await self._create(_CONTACTS, data, actor_id)

    async def update_contact(
        self, contact_id: str, data: ContactUpdate, actor_id: str
    ) -> ContactRead | None:
        return await self._update(_CONTACTS, contact_id, data, actor_id)

    async def delete_contact(self, contact_id: str) -> bool:
        return await self._delete(_CONTACTS, contact_id)

    # ── Deals ───────────────────────────────────────────────────────────────

    async def list_deals(
        self, page: PageParams, search: str | None = None
    ) -> tuple[list[DealRead], int]:
        """List deals newest first with account and contact loaded."""
        return await self._list(_DEALS, page, search)

    async def get_deal(self, deal_id: str) -> DealRead | None:
        return await self._get(_DEALS, deal_id)

    async def create_deal(self, data: DealCreate, actor_id: str) -> DealRead:
        return await self._create(_DEALS, data, actor_id)

    async def update_deal(
        self, deal_id: str, data: DealUpdate, actor_id: str
    ) -> DealRead | None:
        return await self._update(_DEALS, deal_id, data, actor_id)

    async def delete_deal(self, deal_id: str) -> bool:
        return await self._delete(_DEALS, deal_id)

    # ── Leads ───────────────────────────────────────────────────────────────

    async def list_leads(
        self, page: PageParams, search: str | None = None
    ) -> tuple[list[LeadRead], int]:
        """List leads newest first, matching search on name, company or email."""
        return await self._list(_LEADS, page, search)

    async def get_lead(self, lead_id: str) -> LeadRead | None:
        return await self._get(_LEADS, lead_id)

    async def create_lead(self, data: LeadCreate, actor_id: str) -> LeadRead:
        return await self._create(_LEADS, data, actor_id)

    async def update_lead(
        self, lead_id: str, data: LeadUpdate, actor_id: str
    ) -> LeadRead | None:
        return await self._update(_LEADS, lead_id, data, actor_id)

    async def delete_lead(self, lead_id: str) -> bool:
        return await self._delete(_LEADS, lead_id)

    # ── Activities ──────────────────────────────────────────────────────────

    async def list_activities(
        self, page: PageParams, search: str | None = None
    ) -> tuple[list[ActivityRead], int]:
        """List activities by activity time (undated last), matching summary."""
        return await self._list(_ACTIVITIES, page, search)

    async def get_activity(self, activity_id: str) -> ActivityRead | None:
        return await self._get(_ACTIVITIES, activity_id)

    async def create_activity(self, data: ActivityCreate, actor_id: str) -> ActivityRead:
        return await self._create(_ACTIVITIES, data, actor_id)

    async def update_activity(
        self, activity_id: str, data: ActivityUpdate, actor_id: str
    ) -> ActivityRead | None:
        return await self._update(_ACTIVITIES, activity_id, data, actor_id)

    async def delete_activity(self, activity_id: str) -> bool:
        return await self._delete(_ACTIVITIES, activity_id)

    # ── User Profiles ───────────────────────────────────────────────────────

    async def get_user_profile(self, profile_id: str) -> UserProfileRead | None:
        """Get a user profile by ID.

        Args:
            profile_id: Profile UUID string.

        Returns:
            UserProfileRead if found, None otherwise.
        """
        pk = parse_record_id(profile_id)
        if pk is None:
            return None
        async with self._session("fetch user profile") as session:
            model = await session.get(UserProfileModel, pk)
            if model is None:
                return None
            return _model_to_profile(model)

    async def get_user_profile_by_email(self, email: str) -> UserProfileRead | None:
        """Get the profile bound to an actor email (case-insensitive)."""
        async with self._session("fetch user profile") as session:
            stmt = select(UserProfileModel).where(
                func.lower(UserProfileModel.email) == email.lower()
            )
            model = (await session.execute(stmt)).scalar_one_or_none()
            if model is None:
                return None
            return _model_to_profile(model)

    async def create_user_profile(self, data: UserProfileCreate) -> UserProfileRead:
        """Create a profile. Duplicate emails raise ValidationError."""
        async with self._session("create user profile") as session:
            model = UserProfileModel(**data.to_columns())
            session.add(model)
            await session.commit()
            await session.refresh(model)
            logger.info("crm.user_profile_created", record_id=str(model.id), email=model.email)
            record_crm_write("user_profile", "create")
            return _model_to_profile(model)

    async def update_user_profile(
        self, profile_id: str, data: UserProfileUpdate
    ) -> UserProfileRead | None:
        """Apply a partial profile update. Returns None if not found."""
        pk = parse_record_id(profile_id)
        if pk is None:
            return None
        columns = data.to_columns()
        async with self._session("update user profile") as session:
            model = await session.get(UserProfileModel, pk)
            if model is None:
                return None
            for key, value in columns.items():
                setattr(model, key, value)
            await session.commit()
            await session.refresh(model)
            logger.info("crm.user_profile_updated", record_id=profile_id, fields=sorted(columns))
            record_crm_write("user_profile", "update")
            return _model_to_profile(model)

    # ── Reports ─────────────────────────────────────────────────────────────

    async def count_records(self, filters: ReportFilters) -> ReportMetrics:
        """Count records per entity, honoring each filter where it applies.

        period -> every entity's created_at; sales_rep -> owner columns
        (activities by creator); geo -> accounts and deals; business_line ->
        deals only.
        """
        owner_columns = {
            AccountModel: AccountModel.account_owner,
            ContactModel: ContactModel.owner,
            DealModel: DealModel.deal_owner,
            LeadModel: LeadModel.owner,
            ActivityLogModel: ActivityLogModel.created_by,
        }
        geo_columns = {AccountModel: AccountModel.geo, DealModel: DealModel.geo}

        def count_stmt(model: type) -> Select:
            stmt = select(func.count()).select_from(model)
            if filters.created_after is not None:
                stmt = stmt.where(model.created_at >= filters.created_after)
            if filters.sales_rep:
                stmt = stmt.where(
                    func.lower(owner_columns[model]) == filters.sales_rep.lower()
                )
            if filters.geo and model in geo_columns:
                stmt = stmt.where(geo_columns[model] == filters.geo)
            if filters.business_line and model is DealModel:
                stmt = stmt.where(DealModel.business_line == filters.business_line)
            return stmt

        async with self._session("generate report") as session:
            counts = {}
            for key, model in (
                ("total_contacts", ContactModel),
                ("total_accounts", AccountModel),
                ("total_deals", DealModel),
                ("total_activities", ActivityLogModel),
                ("total_leads", LeadModel),
            ):
                counts[key] = (await session.execute(count_stmt(model))).scalar_one()
            return ReportMetrics(**counts)

    # ── Health ──────────────────────────────────────────────────────────────

    async def ping(self) -> bool:
        """Round-trip a trivial query. Raises PersistenceError when unreachable."""
        async with self._session("reach database") as session:
            await session.execute(text("SELECT 1"))
            return True
