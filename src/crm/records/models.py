"""CRM persistence models.

Six SQLAlchemy models:
- AccountModel: Customer/prospect organizations
- ContactModel: People, optionally attached to an account
- DealModel: Active deals tied to an account and/or contact
- LeadModel: Unqualified prospects (no relationships)
- ActivityLogModel: Calls, emails and meetings against a contact/account
- UserProfileModel: Profile and notification preferences per actor email

Categorical columns hold the storage form of the matching CrmEnum (plain
strings, so adding a value does not need a database enum migration).
Foreign keys use ON DELETE SET NULL: removing an account or contact keeps
dependent records and clears the association.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.crm.core.database import Base


class _AuditMixin:
    """Timestamp and actor columns shared by every CRM entity."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=True,
    )
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    updated_by: Mapped[str | None] = mapped_column(String(255), nullable=True)


def _uuid_pk() -> Mapped[uuid.UUID]:
    return mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )


class AccountModel(_AuditMixin, Base):
    """Customer or prospect organization."""

    __tablename__ = "accounts"
    __table_args__ = (
        Index("ix_accounts_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    account_name: Mapped[str] = mapped_column(String(300), nullable=False)
    industry: Mapped[str] = mapped_column(String(100), nullable=False)
    account_rating: Mapped[str | None] = mapped_column(String(50), nullable=True)
    revenue: Mapped[str | None] = mapped_column(String(100), nullable=True)
    number_of_employees: Mapped[str | None] = mapped_column(String(20), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)
    account_owner: Mapped[str | None] = mapped_column(String(200), nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    geo: Mapped[str | None] = mapped_column(String(50), nullable=True)

    contacts: Mapped[list[ContactModel]] = relationship(
        back_populates="account", passive_deletes=True
    )
    deals: Mapped[list[DealModel]] = relationship(
        back_populates="account", passive_deletes=True
    )
    activities: Mapped[list[ActivityLogModel]] = relationship(
        back_populates="account", passive_deletes=True
    )


class ContactModel(_AuditMixin, Base):
    """Person the sales team interacts with."""

    __tablename__ = "contacts"
    __table_args__ = (
        Index("ix_contacts_created_at", "created_at"),
        Index("ix_contacts_associated_account", "associated_account"),
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    first_name: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    associated_account: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    email_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    desk_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    mobile_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    time_zone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    source: Mapped[str | None] = mapped_column(String(50), nullable=True)
    owner: Mapped[str | None] = mapped_column(String(200), nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)

    account: Mapped[AccountModel | None] = relationship(back_populates="contacts")
    deals: Mapped[list[DealModel]] = relationship(
        back_populates="contact", passive_deletes=True
    )
    activities: Mapped[list[ActivityLogModel]] = relationship(
        back_populates="contact", passive_deletes=True
    )


class DealModel(_AuditMixin, Base):
    """Active sales opportunity."""

    __tablename__ = "active_deals"
    __table_args__ = (
        Index("ix_active_deals_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    deal_name: Mapped[str | None] = mapped_column(String(300), nullable=True)
    deal_owner: Mapped[str | None] = mapped_column(String(200), nullable=True)
    business_line: Mapped[str | None] = mapped_column(String(50), nullable=True)
    associated_account: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    associated_contact: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("contacts.id", ondelete="SET NULL"),
        nullable=True,
    )
    closing_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    probability: Mapped[str | None] = mapped_column(String(20), nullable=True)
    deal_value: Mapped[str | None] = mapped_column(String(50), nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    next_step: Mapped[str | None] = mapped_column(Text, nullable=True)
    geo: Mapped[str | None] = mapped_column(String(50), nullable=True)
    entity: Mapped[str | None] = mapped_column(String(50), nullable=True)
    stage: Mapped[str | None] = mapped_column(String(50), nullable=True)

    account: Mapped[AccountModel | None] = relationship(back_populates="deals")
    contact: Mapped[ContactModel | None] = relationship(back_populates="deals")


class LeadModel(_AuditMixin, Base):
    """Prospect not yet qualified into a contact."""

    __tablename__ = "leads"
    __table_args__ = (
        Index("ix_leads_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    first_name: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    company: Mapped[str | None] = mapped_column(String(300), nullable=True)
    title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    lead_source: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    rating: Mapped[str | None] = mapped_column(String(20), nullable=True)
    owner: Mapped[str | None] = mapped_column(String(200), nullable=True)


class ActivityLogModel(_AuditMixin, Base):
    """Logged interaction (call, email, meeting) with a contact or account."""

    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_logs_date_time", "date_time"),
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    activity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    associated_contact: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("contacts.id", ondelete="SET NULL"),
        nullable=True,
    )
    associated_account: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    date_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    duration: Mapped[str | None] = mapped_column(String(50), nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    outcome_disposition: Mapped[str | None] = mapped_column(String(50), nullable=True)
    follow_up_schedule: Mapped[str | None] = mapped_column(String(200), nullable=True)

    contact: Mapped[ContactModel | None] = relationship(back_populates="activities")
    account: Mapped[AccountModel | None] = relationship(back_populates="activities")


class UserProfileModel(Base):
    """Profile for one actor identity, keyed by email."""

    __tablename__ = "user_profiles"

    id: Mapped[uuid.UUID] = _uuid_pk()
    first_name: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    role: Mapped[str | None] = mapped_column(String(50), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    timezone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    language: Mapped[str | None] = mapped_column(String(20), nullable=True)
    email_notifications: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true")
    )
    sms_notifications: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false")
    )
    push_notifications: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=True,
    )
