"""initial schema

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261017_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=100), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "platform_admins",
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("email"),
    )

    op.create_table(
        "businesses",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("owner_user_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=True),
        sa.Column("widget_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("context", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["owner_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_businesses_owner_user_id", "businesses", ["owner_user_id"], unique=False)

    op.create_table(
        "business_members",
        sa.Column("business_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=100), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="staff"),
        sa.Column("department", sa.String(length=60), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("preferred_language", sa.String(length=10), nullable=True),
        sa.Column("invite_code", sa.String(length=64), nullable=True),
        sa.Column("password_reset_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("business_id", "user_id"),
    )
    op.create_index("ix_business_members_user_id", "business_members", ["user_id"], unique=False)

    op.create_table(
        "tickets",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("business_id", sa.String(length=36), nullable=False),
        sa.Column("guest_room", sa.String(length=40), nullable=False),
        sa.Column("request_text", sa.Text(), nullable=False),
        sa.Column("department", sa.String(length=60), nullable=False),
        sa.Column("priority", sa.String(length=20), nullable=False, server_default="normal"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="created"),
        sa.Column("assigned_to", sa.String(length=36), nullable=True),
        sa.Column("assigned_by", sa.String(length=36), nullable=True),
        sa.Column("assigned_by_name", sa.String(length=255), nullable=True),
        sa.Column("created_by", sa.String(length=36), nullable=False),
        sa.Column("notes", sa.JSON(), nullable=False),
        sa.Column("translations", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tickets_business_id", "tickets", ["business_id"], unique=False)
    op.create_index("ix_tickets_business_assigned_to", "tickets", ["business_id", "assigned_to"], unique=False)
    op.create_index(
        "ix_tickets_business_status_created_at",
        "tickets",
        ["business_id", "status", "created_at"],
        unique=False,
    )

    op.create_table(
        "invites",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("business_id", sa.String(length=36), nullable=False),
        sa.Column("invited_by_user_id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("department", sa.String(length=60), nullable=True),
        sa.Column("preferred_language", sa.String(length=10), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("used_by", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"]),
        sa.ForeignKeyConstraint(["invited_by_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_invites_code", "invites", ["code"], unique=True)
    op.create_index("ix_invites_business_id", "invites", ["business_id"], unique=False)
    op.create_index("ix_invites_business_code", "invites", ["business_id", "code"], unique=False)

    op.create_table(
        "appointments",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("appointment_date", sa.String(length=100), nullable=True),
        sa.Column("appointment_time", sa.String(length=100), nullable=True),
        sa.Column("confirmation_method", sa.String(length=50), nullable=True),
        sa.Column("user_email", sa.String(length=255), nullable=True),
        sa.Column("user_industry", sa.String(length=100), nullable=True),
        sa.Column("user_name", sa.String(length=255), nullable=True),
        sa.Column("user_phone", sa.String(length=40), nullable=True),
        sa.Column("user_service", sa.String(length=255), nullable=True),
        sa.Column("calendar_synced", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("calendar_event_id", sa.String(length=255), nullable=True),
        sa.Column("calendar_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "onboarding_submissions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("business_id", sa.String(length=36), nullable=True),
        sa.Column("owner_name", sa.String(length=255), nullable=False),
        sa.Column("owner_email", sa.String(length=255), nullable=False),
        sa.Column("owner_phone", sa.String(length=40), nullable=True),
        sa.Column("business_name", sa.String(length=255), nullable=False),
        sa.Column("industry_type", sa.String(length=50), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=True),
        sa.Column("website", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("assigned_number", sa.String(length=40), nullable=True),
        sa.Column("customers_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_messages", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("business_context_filename", sa.String(length=255), nullable=True),
        sa.Column("business_context_text", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_onboarding_submissions_user_id", "onboarding_submissions", ["user_id"], unique=False)

    op.create_table(
        "chat_experiences",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("customer", sa.String(length=60), nullable=False),
        sa.Column("customer_name", sa.String(length=255), nullable=True),
        sa.Column("conversation_date", sa.String(length=10), nullable=False),
        sa.Column("conversation_id", sa.String(length=100), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("customer_mood", sa.String(length=100), nullable=True),
        sa.Column("sentiment", sa.String(length=20), nullable=True),
        sa.Column("key_topics", sa.JSON(), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_chat_experiences_customer_date",
        "chat_experiences",
        ["customer", "conversation_date"],
        unique=False,
    )
    op.create_index("ix_chat_experiences_created_at", "chat_experiences", ["created_at"], unique=False)

    op.create_table(
        "widget_settings",
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("settings", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("user_id"),
    )


def downgrade() -> None:
    op.drop_table("widget_settings")
    op.drop_index("ix_chat_experiences_created_at", table_name="chat_experiences")
    op.drop_index("ix_chat_experiences_customer_date", table_name="chat_experiences")
    op.drop_table("chat_experiences")
    op.drop_index("ix_onboarding_submissions_user_id", table_name="onboarding_submissions")
    op.drop_table("onboarding_submissions")
    op.drop_table("appointments")
    op.drop_index("ix_invites_business_code", table_name="invites")
    op.drop_index("ix_invites_business_id", table_name="invites")
    op.drop_index("ix_invites_code", table_name="invites")
    op.drop_table("invites")
    op.drop_index("ix_tickets_business_status_created_at", table_name="tickets")
    op.drop_index("ix_tickets_business_assigned_to", table_name="tickets")
    op.drop_index("ix_tickets_business_id", table_name="tickets")
    op.drop_table("tickets")
    op.drop_index("ix_business_members_user_id", table_name="business_members")
    op.drop_table("business_members")
    op.drop_index("ix_businesses_owner_user_id", table_name="businesses")
    op.drop_table("businesses")
    op.drop_table("platform_admins")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
