"""Pydantic schemas for CRM records.

Defines the wire types for every entity:
- Shared: CrmSchema base (camelCase aliases), DisplayText, RecordId
- Accounts: AccountCreate/Update/Read/Detail
- Contacts: ContactCreate/Update/Read/Detail
- Deals: DealCreate/Update/Summary/Read
- Leads: LeadCreate/Update/Read
- Activities: ActivityCreate/Update/Summary/Read
- User profiles: NotificationPreferences, UserProfileCreate/Update/Read
- Reports: ReportRequest, ReportFilters, ReportMetrics, Report

Write schemas accept categorical values in display or storage form and
validate them against the field's closed enum. Read schemas always emit
display form. JSON keys are camelCase on both sides; snake_case field names
are also accepted on input.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, ClassVar

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    model_validator,
)
from pydantic.alias_generators import to_camel

from src.crm.records.coercion import parse_closing_date, split_full_name, stringify_figure
from src.crm.records.enums import (
    AccountRating,
    AccountStatus,
    ActivityType,
    BusinessLine,
    ContactSource,
    ContactStatus,
    DealEntity,
    DealStage,
    EmployeeCount,
    Geo,
    LeadRating,
    LeadSource,
    LeadStatus,
    OutcomeDisposition,
    ReportPeriod,
    UserRole,
)
from src.crm.records.normalizer import CrmEnum, categorical, to_display


def _as_display(value: Any) -> str | None:
    if isinstance(value, CrmEnum):
        return value.display
    return to_display(value)


def _as_id(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


DisplayText = Annotated[str | None, BeforeValidator(_as_display)]
RecordId = Annotated[str, BeforeValidator(_as_id)]
OptionalRecordId = Annotated[str | None, BeforeValidator(_as_id)]
ReferenceId = Annotated[uuid.UUID | None, BeforeValidator(_blank_to_none)]
Figure = Annotated[str | None, BeforeValidator(stringify_figure)]


class CrmSchema(BaseModel):
    """Base for all CRM wire types: camelCase JSON, snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class WriteSchema(CrmSchema):
    """Base for create/update payloads.

    to_columns() returns only the fields the caller actually sent, in
    storage form, keyed by column name.
    """

    _derived_fields: ClassVar[frozenset[str]] = frozenset({"name"})

    def to_columns(self) -> dict[str, Any]:
        columns: dict[str, Any] = {}
        for field_name in self.model_fields_set:
            if field_name in self._derived_fields:
                continue
            value = getattr(self, field_name)
            if isinstance(value, Enum):
                value = value.value
            columns[field_name] = value
        return columns


class _SplitsName(WriteSchema):
    """Mixin for people records that accept a combined ``name``."""

    name: str | None = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def _apply_full_name(self) -> "_SplitsName":
        if self.name:
            first, last = split_full_name(self.name, self.first_name, self.last_name)
            self.first_name = first
            self.last_name = last
        # first_name / last_name columns are NOT NULL; a cleared field means "".
        for field_name in ("first_name", "last_name"):
            if field_name in self.model_fields_set and getattr(self, field_name) is None:
                setattr(self, field_name, "")
        return self


class _AuditRead(CrmSchema):
    id: RecordId
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None
    updated_by: str | None = None


# ── Accounts ────────────────────────────────────────────────────────────────


class _AccountFields(WriteSchema):
    account_rating: categorical(AccountRating) = None
    revenue: str | None = None
    number_of_employees: categorical(EmployeeCount) = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    website: str | None = None
    account_owner: str | None = None
    status: categorical(AccountStatus) = None
    geo: categorical(Geo) = None


class AccountCreate(_AccountFields):
    """Payload for creating an account. Name and industry are required."""

    account_name: str | None = None
    industry: str | None = None

    @model_validator(mode="after")
    def _require_name_and_industry(self) -> "AccountCreate":
        if not (self.account_name or "").strip() or not (self.industry or "").strip():
            raise ValueError("Account name and industry are required")
        return self


class AccountUpdate(_AccountFields):
    """Partial account update; absent fields are left untouched."""

    account_name: str | None = None
    industry: str | None = None

    @model_validator(mode="after")
    def _keep_required_fields(self) -> "AccountUpdate":
        for field_name in ("account_name", "industry"):
            if field_name in self.model_fields_set and not (getattr(self, field_name) or "").strip():
                raise ValueError("Account name and industry cannot be empty")
        return self


class AccountRead(_AuditRead):
    account_name: str
    industry: str
    account_rating: DisplayText = None
    revenue: str | None = None
    number_of_employees: DisplayText = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    website: str | None = None
    account_owner: str | None = None
    status: DisplayText = None
    geo: DisplayText = None


# ── Contacts ────────────────────────────────────────────────────────────────


class _ContactFields(_SplitsName):
    first_name: str | None = None
    last_name: str | None = None
    title: str | None = None
    associated_account: ReferenceId = None
    email_address: str | None = Field(
        default=None,
        validation_alias=AliasChoices("emailAddress", "email_address", "email"),
    )
    desk_phone: str | None = None
    mobile_phone: str | None = Field(
        default=None,
        validation_alias=AliasChoices("mobilePhone", "mobile_phone", "phone"),
    )
    city: str | None = None
    state: str | None = None
    country: str | None = None
    time_zone: str | None = None
    source: categorical(ContactSource) = None
    owner: str | None = None
    status: categorical(ContactStatus) = None


class ContactCreate(_ContactFields):
    """Payload for creating a contact."""

    @model_validator(mode="after")
    def _default_names(self) -> "ContactCreate":
        self.first_name = self.first_name or ""
        self.last_name = self.last_name or ""
        return self


class ContactUpdate(_ContactFields):
    """Partial contact update."""


class ContactRead(_AuditRead):
    first_name: str = ""
    last_name: str = ""
    title: str | None = None
    associated_account: OptionalRecordId = None
    email_address: str | None = None
    desk_phone: str | None = None
    mobile_phone: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    time_zone: str | None = None
    source: DisplayText = None
    owner: str | None = None
    status: DisplayText = None


# ── Deals ───────────────────────────────────────────────────────────────────


class _DealFields(WriteSchema):
    deal_name: str | None = None
    deal_owner: str | None = Field(
        default=None,
        validation_alias=AliasChoices("dealOwner", "deal_owner", "owner"),
    )
    business_line: categorical(BusinessLine) = None
    associated_account: ReferenceId = None
    associated_contact: ReferenceId = None
    closing_date: datetime | None = None
    probability: Figure = None
    deal_value: Figure = None
    approved_by: str | None = None
    description: str | None = None
    next_step: str | None = None
    geo: categorical(Geo) = None
    entity: categorical(DealEntity) = None
    stage: categorical(DealStage) = None

    @model_validator(mode="before")
    @classmethod
    def _parse_closing_date(cls, data: Any) -> Any:
        """Parse closingDate leniently; an unparseable value is dropped."""
        if not isinstance(data, dict):
            return data
        for key in ("closingDate", "closing_date"):
            if key not in data:
                continue
            raw = data[key]
            parsed = parse_closing_date(raw)
            data = dict(data)
            if parsed is None and raw not in (None, ""):
                data.pop(key)
            else:
                data[key] = parsed
        return data


class DealCreate(_DealFields):
    """Payload for creating a deal."""


class DealUpdate(_DealFields):
    """Partial deal update."""


class DealSummary(_AuditRead):
    deal_name: str | None = None
    deal_owner: str | None = None
    business_line: DisplayText = None
    associated_account: OptionalRecordId = None
    associated_contact: OptionalRecordId = None
    closing_date: datetime | None = None
    probability: str | None = None
    deal_value: str | None = None
    approved_by: str | None = None
    description: str | None = None
    next_step: str | None = None
    geo: DisplayText = None
    entity: DisplayText = None
    stage: DisplayText = None


class DealRead(DealSummary):
    """Deal with its associated account and contact."""

    account: AccountRead | None = None
    contact: ContactRead | None = None


# ── Leads ───────────────────────────────────────────────────────────────────


class _LeadFields(_SplitsName):
    first_name: str | None = None
    last_name: str | None = None
    company: str | None = None
    title: str | None = None
    phone: str | None = None
    email: str | None = Field(
        default=None,
        validation_alias=AliasChoices("email", "emailAddress", "email_address"),
    )
    lead_source: categorical(LeadSource) = Field(
        default=None,
        validation_alias=AliasChoices("leadSource", "lead_source", "source"),
    )
    status: categorical(LeadStatus) = None
    rating: categorical(LeadRating) = None
    owner: str | None = None


class LeadCreate(_LeadFields):
    """Payload for creating a lead."""

    @model_validator(mode="after")
    def _default_names(self) -> "LeadCreate":
        self.first_name = self.first_name or ""
        self.last_name = self.last_name or ""
        return self


class LeadUpdate(_LeadFields):
    """Partial lead update."""


class LeadRead(_AuditRead):
    first_name: str = ""
    last_name: str = ""
    company: str | None = None
    title: str | None = None
    phone: str | None = None
    email: str | None = None
    lead_source: DisplayText = None
    status: DisplayText = None
    rating: DisplayText = None
    owner: str | None = None


# ── Activities ──────────────────────────────────────────────────────────────


class _ActivityFields(WriteSchema):
    activity_type: categorical(ActivityType) = None
    associated_contact: ReferenceId = None
    associated_account: ReferenceId = None
    date_time: datetime | None = None
    duration: str | None = None
    summary: str | None = None
    outcome_disposition: categorical(OutcomeDisposition) = None
    follow_up_schedule: str | None = None


class ActivityCreate(_ActivityFields):
    """Payload for logging an activity. activityType is required."""

    @model_validator(mode="after")
    def _require_type(self) -> "ActivityCreate":
        if self.activity_type is None:
            raise ValueError("Activity type is required")
        return self


class ActivityUpdate(_ActivityFields):
    """Partial activity update."""

    @model_validator(mode="after")
    def _keep_type(self) -> "ActivityUpdate":
        if "activity_type" in self.model_fields_set and self.activity_type is None:
            raise ValueError("Activity type cannot be empty")
        return self


class ActivitySummary(_AuditRead):
    activity_type: DisplayText = None
    associated_contact: OptionalRecordId = None
    associated_account: OptionalRecordId = None
    date_time: datetime | None = None
    duration: str | None = None
    summary: str | None = None
    outcome_disposition: DisplayText = None
    follow_up_schedule: str | None = None


class ActivityRead(ActivitySummary):
    """Activity with its associated account and contact."""

    account: AccountRead | None = None
    contact: ContactRead | None = None


# ── Detail views ────────────────────────────────────────────────────────────


class AccountDetail(AccountRead):
    """Account with its contacts, deals and activities."""

    contacts: list[ContactRead] = Field(default_factory=list)
    deals: list[DealSummary] = Field(default_factory=list)
    activities: list[ActivitySummary] = Field(default_factory=list)


class ContactDetail(ContactRead):
    """Contact with its account, deals and activities."""

    account: AccountRead | None = None
    deals: list[DealSummary] = Field(default_factory=list)
    activities: list[ActivitySummary] = Field(default_factory=list)


# ── User Profiles ───────────────────────────────────────────────────────────


class NotificationPreferences(CrmSchema):
    email_notifications: bool = True
    sms_notifications: bool = False
    push_notifications: bool = True


class NotificationPreferencesUpdate(CrmSchema):
    email_notifications: bool | None = None
    sms_notifications: bool | None = None
    push_notifications: bool | None = None


class UserProfileCreate(WriteSchema):
    """Profile fields for a new actor identity."""

    first_name: str = ""
    last_name: str = ""
    email: str
    title: str | None = None
    department: str | None = None
    role: categorical(UserRole) = None
    phone: str | None = None
    timezone: str | None = None
    language: str | None = None
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)

    _derived_fields: ClassVar[frozenset[str]] = frozenset({"notifications"})

    def to_columns(self) -> dict[str, Any]:
        columns = super().to_columns()
        columns.update(self.notifications.model_dump())
        return columns


class UserProfileUpdate(WriteSchema):
    """Partial profile update; notification flags nest under ``notifications``."""

    first_name: str | None = None
    last_name: str | None = None
    title: str | None = None
    department: str | None = None
    role: categorical(UserRole) = None
    phone: str | None = None
    timezone: str | None = None
    language: str | None = None
    notifications: NotificationPreferencesUpdate | None = None

    _derived_fields: ClassVar[frozenset[str]] = frozenset({"notifications"})

    def to_columns(self) -> dict[str, Any]:
        columns = super().to_columns()
        if self.notifications is not None:
            columns.update(self.notifications.model_dump(exclude_unset=True, exclude_none=True))
        return columns


class UserProfileRead(CrmSchema):
    id: RecordId
    first_name: str = ""
    last_name: str = ""
    email: str
    title: str | None = None
    department: str | None = None
    role: DisplayText = None
    phone: str | None = None
    timezone: str | None = None
    language: str | None = None
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ── Reports ─────────────────────────────────────────────────────────────────


class ReportRequest(CrmSchema):
    """Report generation request; every filter is optional."""

    report_type: str | None = None
    period: categorical(ReportPeriod) = None
    sales_rep: str | None = None
    geo: categorical(Geo) = None
    business_line: categorical(BusinessLine) = None


class ReportFilters(CrmSchema):
    """Filters resolved into storage terms for the count queries."""

    created_after: datetime | None = None
    sales_rep: str | None = None
    geo: str | None = None
    business_line: str | None = None


class ReportMetrics(CrmSchema):
    total_contacts: int = 0
    total_accounts: int = 0
    total_deals: int = 0
    total_activities: int = 0
    total_leads: int = 0


class Report(CrmSchema):
    id: str
    report_type: str | None = None
    period: DisplayText = None
    sales_rep: str | None = None
    geo: DisplayText = None
    business_line: DisplayText = None
    metrics: ReportMetrics
    generated_at: datetime
    generated_by: str
