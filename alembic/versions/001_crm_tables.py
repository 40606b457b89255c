"""Create CRM tables.

Revision ID: 001_crm_tables
Revises:
Create Date: 2026-10-18

Creates the six CRM tables:
- accounts, contacts, active_deals, leads, activity_logs: audit columns
  (created_by/updated_by, created_at/updated_at) on every row
- user_profiles: one row per actor email, notification flags inline

Foreign keys from contacts, active_deals and activity_logs use
ON DELETE SET NULL so deleting an account or contact keeps dependents.
Categorical columns are plain strings holding upper-snake-case values.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers, used by Alembic.
revision: str = "001_crm_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
    )


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.Column("created_by", sa.String(255), nullable=True),
        sa.Column("updated_by", sa.String(255), nullable=True),
    ]


def upgrade() -> None:
    # ── accounts ────────────────────────────────────────────────────────

    op.create_table(
        "accounts",
        _id_column(),
        sa.Column("account_name", sa.String(300), nullable=False),
        sa.Column("industry", sa.String(100), nullable=False),
        sa.Column("account_rating", sa.String(50), nullable=True),
        sa.Column("revenue", sa.String(100), nullable=True),
        sa.Column("number_of_employees", sa.String(20), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("website", sa.String(500), nullable=True),
        sa.Column("account_owner", sa.String(200), nullable=True),
        sa.Column("status", sa.String(50), nullable=True),
        sa.Column("geo", sa.String(50), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id", name="pk_accounts"),
    )
    op.create_index("ix_accounts_created_at", "accounts", ["created_at"])

    # ── contacts ────────────────────────────────────────────────────────

    op.create_table(
        "contacts",
        _id_column(),
        sa.Column("first_name", sa.String(120), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(120), nullable=False, server_default=""),
        sa.Column("title", sa.String(200), nullable=True),
        sa.Column(
            "associated_account",
            UUID(as_uuid=True),
            sa.ForeignKey(
                "accounts.id",
                ondelete="SET NULL",
                name="fk_contacts_associated_account_accounts",
            ),
            nullable=True,
        ),
        sa.Column("email_address", sa.String(255), nullable=True),
        sa.Column("desk_phone", sa.String(50), nullable=True),
        sa.Column("mobile_phone", sa.String(50), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("time_zone", sa.String(50), nullable=True),
        sa.Column("source", sa.String(50), nullable=True),
        sa.Column("owner", sa.String(200), nullable=True),
        sa.Column("status", sa.String(50), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id", name="pk_contacts"),
    )
    op.create_index("ix_contacts_created_at", "contacts", ["created_at"])
    op.create_index(
        "ix_contacts_associated_account", "contacts", ["associated_account"]
    )

    # ── active_deals ────────────────────────────────────────────────────

    op.create_table(
        "active_deals",
        _id_column(),
        sa.Column("deal_name", sa.String(300), nullable=True),
        sa.Column("deal_owner", sa.String(200), nullable=True),
        sa.Column("business_line", sa.String(50), nullable=True),
        sa.Column(
            "associated_account",
            UUID(as_uuid=True),
            sa.ForeignKey(
                "accounts.id",
                ondelete="SET NULL",
                name="fk_active_deals_associated_account_accounts",
            ),
            nullable=True,
        ),
        sa.Column(
            "associated_contact",
            UUID(as_uuid=True),
            sa.ForeignKey(
                "contacts.id",
                ondelete="SET NULL",
                name="fk_active_deals_associated_contact_contacts",
            ),
            nullable=True,
        ),
        sa.Column("closing_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("probability", sa.String(20), nullable=True),
        sa.Column("deal_value", sa.String(50), nullable=True),
        sa.Column("approved_by", sa.String(200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("next_step", sa.Text(), nullable=True),
        sa.Column("geo", sa.String(50), nullable=True),
        sa.Column("entity", sa.String(50), nullable=True),
        sa.Column("stage", sa.String(50), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id", name="pk_active_deals"),
    )
    op.create_index("ix_active_deals_created_at", "active_deals", ["created_at"])

    # ── leads ───────────────────────────────────────────────────────────

    op.create_table(
        "leads",
        _id_column(),
        sa.Column("first_name", sa.String(120), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(120), nullable=False, server_default=""),
        sa.Column("company", sa.String(300), nullable=True),
        sa.Column("title", sa.String(200), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("lead_source", sa.String(50), nullable=True),
        sa.Column("status", sa.String(50), nullable=True),
        sa.Column("rating", sa.String(20), nullable=True),
        sa.Column("owner", sa.String(200), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id", name="pk_leads"),
    )
    op.create_index("ix_leads_created_at", "leads", ["created_at"])

    # ── activity_logs ───────────────────────────────────────────────────

    op.create_table(
        "activity_logs",
        _id_column(),
        sa.Column("activity_type", sa.String(50), nullable=False),
        sa.Column(
            "associated_contact",
            UUID(as_uuid=True),
            sa.ForeignKey(
                "contacts.id",
                ondelete="SET NULL",
                name="fk_activity_logs_associated_contact_contacts",
            ),
            nullable=True,
        ),
        sa.Column(
            "associated_account",
            UUID(as_uuid=True),
            sa.ForeignKey(
                "accounts.id",
                ondelete="SET NULL",
                name="fk_activity_logs_associated_account_accounts",
            ),
            nullable=True,
        ),
        sa.Column("date_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration", sa.String(50), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("outcome_disposition", sa.String(50), nullable=True),
        sa.Column("follow_up_schedule", sa.String(200), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id", name="pk_activity_logs"),
    )
    op.create_index("ix_activity_logs_date_time", "activity_logs", ["date_time"])

    # ── user_profiles ───────────────────────────────────────────────────

    op.create_table(
        "user_profiles",
        _id_column(),
        sa.Column("first_name", sa.String(120), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(120), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("title", sa.String(200), nullable=True),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column("role", sa.String(50), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("timezone", sa.String(50), nullable=True),
        sa.Column("language", sa.String(20), nullable=True),
        sa.Column(
            "email_notifications",
            sa.Boolean(),
            server_default=sa.text("true"),
            nullable=False,
        ),
        sa.Column(
            "sms_notifications",
            sa.Boolean(),
            server_default=sa.text("false"),
            nullable=False,
        ),
        sa.Column(
            "push_notifications",
            sa.Boolean(),
            server_default=sa.text("true"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_user_profiles"),
        sa.UniqueConstraint("email", name="uq_user_profiles_email"),
    )


def downgrade() -> None:
    op.drop_table("user_profiles")
    op.drop_index("ix_activity_logs_date_time", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("ix_leads_created_at", table_name="leads")
    op.drop_table("leads")
    op.drop_index("ix_active_deals_created_at", table_name="active_deals")
    op.drop_table("active_deals")
    op.drop_index("ix_contacts_associated_account", table_name="contacts")
    op.drop_index("ix_contacts_created_at", table_name="contacts")
    op.drop_table("contacts")
    op.drop_index("ix_accounts_created_at", table_name="accounts")
    op.drop_table("accounts")
