"""Shared fixtures for CRM API tests.

Provides:
- InMemoryCrmRepository: dict-backed CrmRepository double with the same
  method signatures, SET NULL delete semantics and reference checks
- actor: the fixed acting identity
- repo: a fresh double per test
- api_app: FastAPI app with the CRM routers, the double on app.state and a
  fixed acting identity
- client_and_repo: AsyncClient against api_app
- unready_client: AsyncClient against an app with no repository installed
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.crm.core.actor import ActorContext
from src.crm.core.errors import PersistenceError, ValidationError
from src.crm.records.coercion import PageParams
from src.crm.records.schemas import (
    AccountDetail,
    AccountRead,
    ActivityRead,
    ContactDetail,
    ContactRead,
    DealRead,
    LeadRead,
    ReportFilters,
    ReportMetrics,
    UserProfileCreate,
    UserProfileRead,
    UserProfileUpdate,
    WriteSchema,
)

TEST_ACTOR = ActorContext(
    actor_id="jane.smith@example.com",
    email="jane.smith@example.com",
    name="Jane Smith",
    source="header",
)

_SEARCH_FIELDS: dict[str, tuple[str, ...]] = {
    "accounts": ("account_name", "industry"),
    "contacts": ("first_name", "last_name", "email_address"),
    "deals": ("deal_name", "deal_owner"),
    "leads": ("first_name", "last_name", "company", "email"),
    "activities": ("summary",),
}

_OWNER_FIELDS = {
    "accounts": "account_owner",
    "contacts": "owner",
    "deals": "deal_owner",
    "leads": "owner",
    "activities": "created_by",
}

_NOTIFICATION_FLAGS = ("email_notifications", "sms_notifications", "push_notifications")

_REFERENCE_ERROR = "Referenced record does not exist or a unique value is already in use"


# ── In-Memory Test Double ────────────────────────────────────────────────────


class InMemoryCrmRepository:
    """In-memory CrmRepository for testing without a database."""

    def __init__(self) -> None:
        self._rows: dict[str, dict[str, dict[str, Any]]] = {
            entity: {} for entity in _SEARCH_FIELDS
        }
        self._profiles: dict[str, dict[str, Any]] = {}
        self._tick = 0
        self.broken = False
        self.report_filters: list[ReportFilters] = []

    # ── Helpers ──────────────────────────────────────────────────────────

    def _now(self) -> datetime:
        # strictly increasing so newest-first ordering is deterministic
        self._tick += 1
        return datetime.now(timezone.utc) + timedelta(milliseconds=self._tick)

    def _guard(self, operation: str) -> None:
        if self.broken:
            raise PersistenceError(operation)

    @staticmethod
    def _columns(data: WriteSchema) -> dict[str, Any]:
        return {
            key: str(value) if isinstance(value, uuid.UUID) else value
            for key, value in data.to_columns().items()
        }

    def _check_references(self, columns: dict[str, Any]) -> None:
        for key, entity in (
            ("associated_account", "accounts"),
            ("associated_contact", "contacts"),
        ):
            ref = columns.get(key)
            if ref is not None and ref not in self._rows[entity]:
                raise ValidationError(_REFERENCE_ERROR)

    def _with_relations(self, row: dict[str, Any]) -> dict[str, Any]:
        return {
            **row,
            "account": self._rows["accounts"].get(row.get("associated_account")),
            "contact": self._rows["contacts"].get(row.get("associated_contact")),
        }

    def _read(self, entity: str, row: dict[str, Any]) -> Any:
        if entity == "accounts":
            return AccountRead.model_validate(row)
        if entity == "contacts":
            return ContactRead.model_validate(row)
        if entity == "deals":
            return DealRead.model_validate(self._with_relations(row))
        if entity == "leads":
            return LeadRead.model_validate(row)
        return ActivityRead.model_validate(self._with_relations(row))

    def _related(self, entity: str, key: str, record_id: str) -> list[dict[str, Any]]:
        return [r for r in self._rows[entity].values() if r.get(key) == record_id]

    # ── Generic operations ───────────────────────────────────────────────

    def _list(
        self, entity: str, page: PageParams, search: str | None
    ) -> tuple[list[Any], int]:
        self._guard(f"fetch {entity}")
        rows = sorted(self._rows[entity].values(), key=lambda r: r["created_at"], reverse=True)
        if entity == "activities":
            rows.sort(
                key=lambda r: (
                    r.get("date_time") is None,
                    -r["date_time"].timestamp() if r.get("date_time") else 0,
                )
            )
        term = (search or "").strip().lower()
        if term:
            rows = [
                r
                for r in rows
                if any(term in (r.get(f) or "").lower() for f in _SEARCH_FIELDS[entity])
            ]
        window = rows[page.offset : page.offset + page.limit]
        return [self._read(entity, r) for r in window], len(rows)

    def _create(self, entity: str, data: WriteSchema, actor_id: str) -> Any:
        self._guard(f"create {entity}")
        columns = self._columns(data)
        self._check_references(columns)
        now = self._now()
        row = {
            **columns,
            "id": str(uuid.uuid4()),
            "created_at": now,
            "updated_at": now,
            "created_by": actor_id,
            "updated_by": actor_id,
        }
        self._rows[entity][row["id"]] = row
        return self._read(entity, row)

    def _update(self, entity: str, record_id: str, data: WriteSchema, actor_id: str) -> Any:
        row = self._rows[entity].get(record_id)
        if row is None:
            return None
        columns = self._columns(data)
        self._check_references(columns)
        row.update(columns)
        row["updated_by"] = actor_id
        row["updated_at"] = self._now()
        return self._read(entity, row)

    def _delete(self, entity: str, record_id: str) -> bool:
        if self._rows[entity].pop(record_id, None) is None:
            return False
        if entity == "accounts":
            for dependent in ("contacts", "deals", "activities"):
                for row in self._related(dependent, "associated_account", record_id):
                    row["associated_account"] = None
        if entity == "contacts":
            for dependent in ("deals", "activities"):
                for row in self._related(dependent, "associated_contact", record_id):
                    row["associated_contact"] = None
        return True

    # ── Accounts ─────────────────────────────────────────────────────────

    async def list_accounts(self, page: PageParams, search: str | None = None):
        return self._list("accounts", page, search)

    async def get_account(self, account_id: str) -> AccountDetail | None:
        row = self._rows["accounts"].get(account_id)
        if row is None:
            return None
        return AccountDetail.model_validate({
            **row,
            "contacts": self._related("contacts", "associated_account", account_id),
            "deals": self._related("deals", "associated_account", account_id),
            "activities": self._related("activities", "associated_account", account_id),
        })

    async def create_account(self, data, actor_id: str):
        return self._create("accounts", data, actor_id)

    async def update_account(self, account_id: str, data, actor_id: str):
        return self._update("accounts", account_id, data, actor_id)

    async def delete_account(self, account_id: str) -> bool:
        return self._delete("accounts", account_id)

    # ── Contacts ─────────────────────────────────────────────────────────

    async def list_contacts(self, page: PageParams, search: str | None = None):
        return self._list("contacts", page, search)

    async def get_contact(self, contact_id: str) -> ContactDetail | None:
        row = self._rows["contacts"].get(contact_id)
        if row is None:
            return None
        return ContactDetail.model_validate({
            **row,
            "account": self._rows["accounts"].get(row.get("associated_account")),
            "deals": self._related("deals", "associated_contact", contact_id),
            "activities": self._related("activities", "associated_contact", contact_id),
        })

    async def create_contact(self, data, actor_id: str):
        return self._create("contacts", data, actor_id)

    async def update_contact(self, contact_id: str, data, actor_id: str):
        return self._update("contacts", contact_id, data, actor_id)

    async def delete_contact(self, contact_id: str) -> bool:
        return self._delete("contacts", contact_id)

    # ── Deals ────────────────────────────────────────────────────────────

    async def list_deals(self, page: PageParams, search: str | None = None):
        return self._list("deals", page, search)

    async def get_deal(self, deal_id: str):
        row = self._rows["deals"].get(deal_id)
        return self._read("deals", row) if row else None

    async def create_deal(self, data, actor_id: str):
        return self._create("deals", data, actor_id)

    async def update_deal(self, deal_id: str, data, actor_id: str):
        return self._update("deals", deal_id, data, actor_id)

    async def delete_deal(self, deal_id: str) -> bool:
        return self._delete("deals", deal_id)

    # ── Leads ────────────────────────────────────────────────────────────

    async def list_leads(self, page: PageParams, search: str | None = None):
        return self._list("leads", page, search)

    async def get_lead(self, lead_id: str):
        row = self._rows["leads"].get(lead_id)
        return self._read("leads", row) if row else None

    async def create_lead(self, data, actor_id: str):
        return self._create("leads", data, actor_id)

    async def update_lead(self, lead_id: str, data, actor_id: str):
        return self._update("leads", lead_id, data, actor_id)

    async def delete_lead(self, lead_id: str) -> bool:
        return self._delete("leads", lead_id)

    # ── Activities ───────────────────────────────────────────────────────

    async def list_activities(self, page: PageParams, search: str | None = None):
        return self._list("activities", page, search)

    async def get_activity(self, activity_id: str):
        row = self._rows["activities"].get(activity_id)
        return self._read("activities", row) if row else None

    async def create_activity(self, data, actor_id: str):
        return self._create("activities", data, actor_id)

    async def update_activity(self, activity_id: str, data, actor_id: str):
        return self._update("activities", activity_id, data, actor_id)

    async def delete_activity(self, activity_id: str) -> bool:
        return self._delete("activities", activity_id)

    # ── User Profiles ────────────────────────────────────────────────────

    @staticmethod
    def _profile(row: dict[str, Any]) -> UserProfileRead:
        data = {k: v for k, v in row.items() if k not in _NOTIFICATION_FLAGS}
        data["notifications"] = {flag: row[flag] for flag in _NOTIFICATION_FLAGS}
        return UserProfileRead.model_validate(data)

    async def get_user_profile(self, profile_id: str) -> UserProfileRead | None:
        row = self._profiles.get(profile_id)
        return self._profile(row) if row else None

    async def get_user_profile_by_email(self, email: str) -> UserProfileRead | None:
        for row in self._profiles.values():
            if row["email"].lower() == email.lower():
                return self._profile(row)
        return None

    async def create_user_profile(self, data: UserProfileCreate) -> UserProfileRead:
        if await self.get_user_profile_by_email(data.email) is not None:
            raise ValidationError(_REFERENCE_ERROR)
        now = self._now()
        row = {**data.to_columns(), "id": str(uuid.uuid4()), "created_at": now, "updated_at": now}
        self._profiles[row["id"]] = row
        return self._profile(row)

    async def update_user_profile(
        self, profile_id: str, data: UserProfileUpdate
    ) -> UserProfileRead | None:
        row = self._profiles.get(profile_id)
        if row is None:
            return None
        row.update(data.to_columns())
        row["updated_at"] = self._now()
        return self._profile(row)

    # ── Reports / Health ─────────────────────────────────────────────────

    async def count_records(self, filters: ReportFilters) -> ReportMetrics:
        self._guard("generate report")
        self.report_filters.append(filters)

        def matches(entity: str, row: dict[str, Any]) -> bool:
            if filters.created_after and row["created_at"] < filters.created_after:
                return False
            if filters.sales_rep:
                owner = row.get(_OWNER_FIELDS[entity]) or ""
                if owner.lower() != filters.sales_rep.lower():
                    return False
            if filters.geo and entity in ("accounts", "deals") and row.get("geo") != filters.geo:
                return False
            if (
                filters.business_line
                and entity == "deals"
                and row.get("business_line") != filters.business_line
            ):
                return False
            return True

        def total(entity: str) -> int:
            return sum(1 for row in self._rows[entity].values() if matches(entity, row))

        return ReportMetrics(
            total_contacts=total("contacts"),
            total_accounts=total("accounts"),
            total_deals=total("deals"),
            total_activities=total("activities"),
            total_leads=total("leads"),
        )

    async def ping(self) -> bool:
        self._guard("reach database")
        return True


# ── Test App ─────────────────────────────────────────────────────────────────


async def _mock_get_actor() -> ActorContext:
    return TEST_ACTOR


def _make_mock_app(repo: InMemoryCrmRepository | None):
    """Create a FastAPI app with the CRM routers and the given repository."""
    from fastapi import FastAPI

    from src.crm.api.deps import get_actor
    from src.crm.api.envelope import register_exception_handlers
    from src.crm.api.router import router

    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(router)
    app.dependency_overrides[get_actor] = _mock_get_actor
    app.state.crm_repository = repo
    return app


@pytest.fixture
def actor() -> ActorContext:
    """The identity every request in client_and_repo acts as."""
    return TEST_ACTOR


@pytest.fixture
def repo() -> InMemoryCrmRepository:
    return InMemoryCrmRepository()


@pytest.fixture
def api_app(repo: InMemoryCrmRepository):
    """CRM app holding the per-test in-memory repository."""
    return _make_mock_app(repo)


@pytest_asyncio.fixture
async def client_and_repo(
    api_app, repo: InMemoryCrmRepository
) -> AsyncGenerator[tuple[AsyncClient, InMemoryCrmRepository], None]:
    """AsyncClient wired to an app holding the in-memory repository."""
    transport = ASGITransport(app=api_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client, repo


@pytest_asyncio.fixture
async def unready_client() -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient wired to an app whose repository was never initialized."""
    transport = ASGITransport(app=_make_mock_app(None))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
