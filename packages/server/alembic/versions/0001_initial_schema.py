"""Initial schema: users, documents, clubs, messaging, notifications, pricing.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-03-02 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid() -> postgresql.UUID:
    return postgresql.UUID(as_uuid=True)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")
    )


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # -----------------------------------------------------------------------
    # 1. Pricing (users reference their tier)
    # -----------------------------------------------------------------------
    op.create_table(
        "pricings",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("role_target", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("free", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("highlighted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("monthly", sa.Float(), nullable=False, server_default="0"),
        sa.Column("yearly", sa.Float(), nullable=False, server_default="0"),
        sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deletion_date", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("idx_pricings_role_target", "pricings", ["role_target", "deleted", "monthly"])

    op.create_table(
        "pricing_options",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("pricing_id", _uuid(), sa.ForeignKey("pricings.id"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("weight", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("idx_pricing_options_pricing", "pricing_options", ["pricing_id", "weight"])
    op.create_index("idx_pricing_options_name", "pricing_options", ["name"])

    op.create_table(
        "pricing_features",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("pricing_id", _uuid(), sa.ForeignKey("pricings.id"), nullable=False),
        sa.Column("feature", sa.Text(), nullable=False),
    )
    op.create_index("idx_pricing_features_pricing", "pricing_features", ["pricing_id"])

    # -----------------------------------------------------------------------
    # 2. Users and their documents
    # -----------------------------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True, unique=True),
        sa.Column("password_hash", sa.Text(), nullable=True),
        sa.Column("role", sa.Text(), nullable=False, server_default="MEMBER"),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("profile_image_id", _uuid(), nullable=True),
        sa.Column("pricing_id", _uuid(), sa.ForeignKey("pricings.id"), nullable=True),
        _created_at(),
    )
    op.create_index("idx_users_email", "users", ["email"], unique=True)
    op.create_index("idx_users_name", "users", ["name"])

    op.create_table(
        "user_documents",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("user_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("document_type", sa.Text(), nullable=False, server_default="IMAGE"),
        _created_at(),
    )
    op.create_index("idx_user_documents_user", "user_documents", ["user_id"])

    # -----------------------------------------------------------------------
    # 3. Clubs and coaches
    # -----------------------------------------------------------------------
    op.create_table(
        "clubs",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("manager_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("logo_id", _uuid(), sa.ForeignKey("user_documents.id"), nullable=True),
        _created_at(),
    )
    op.create_index("idx_clubs_manager", "clubs", ["manager_id"])

    op.create_table(
        "coaches",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("user_id", _uuid(), sa.ForeignKey("users.id"), nullable=False, unique=True),
        _created_at(),
    )

    # -----------------------------------------------------------------------
    # 4. Messaging
    # -----------------------------------------------------------------------
    op.create_table(
        "message_channels",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("owner_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("club_id", _uuid(), sa.ForeignKey("clubs.id"), nullable=True),
        sa.Column("coach_id", _uuid(), sa.ForeignKey("coaches.id"), nullable=True),
        sa.Column("group_image_id", _uuid(), sa.ForeignKey("user_documents.id"), nullable=True),
        _created_at(),
    )
    op.create_index("idx_message_channels_owner", "message_channels", ["owner_id"])
    op.create_index("idx_message_channels_type", "message_channels", ["type"])

    op.create_table(
        "channel_members",
        sa.Column("channel_id", _uuid(), sa.ForeignKey("message_channels.id"), primary_key=True),
        sa.Column("user_id", _uuid(), sa.ForeignKey("users.id"), primary_key=True),
    )
    op.create_index("idx_channel_members_user", "channel_members", ["user_id"])

    op.create_table(
        "messages",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("channel_id", _uuid(), sa.ForeignKey("message_channels.id"), nullable=False),
        sa.Column("sender_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("message_ref_id", _uuid(), sa.ForeignKey("messages.id"), nullable=True),
        _created_at(),
    )
    op.create_index("idx_messages_channel_created", "messages", ["channel_id", "created_at"])

    op.create_table(
        "message_reactions",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("message_id", _uuid(), sa.ForeignKey("messages.id"), nullable=False),
        sa.Column("sender_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reaction", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index("idx_message_reactions_message", "message_reactions", ["message_id"])

    op.create_table(
        "message_views",
        sa.Column("channel_id", _uuid(), sa.ForeignKey("message_channels.id"), primary_key=True),
        sa.Column("user_id", _uuid(), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("last_view", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )

    # -----------------------------------------------------------------------
    # 5. Notifications
    # -----------------------------------------------------------------------
    op.create_table(
        "notifications",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("user_from_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("user_to_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False, server_default=""),
        sa.Column("data", sa.Text(), nullable=True),
        sa.Column("view_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("answered", sa.DateTime(timezone=True), nullable=True),
        sa.Column("answer", sa.Text(), nullable=True),
        sa.Column("linked_notification_id", _uuid(), sa.ForeignKey("notifications.id"), nullable=True),
        _created_at(),
    )
    op.create_index("idx_notifications_to", "notifications", ["user_to_id", "created_at"])
    op.create_index("idx_notifications_from", "notifications", ["user_from_id", "created_at"])


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    for table in (
        "notifications",
        "message_views",
        "message_reactions",
        "messages",
        "channel_members",
        "message_channels",
        "coaches",
        "clubs",
        "user_documents",
        "users",
        "pricing_features",
        "pricing_options",
        "pricings",
    ):
        op.drop_table(table)
