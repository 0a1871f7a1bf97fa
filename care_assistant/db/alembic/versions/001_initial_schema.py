"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates users, conversations, messages, escalations and documents.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all tables."""
    # users table
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("role IN ('USER', 'ADMIN', 'CARE')", name="ck_users_role"),
    )

    # conversations table
    op.create_table(
        "conversations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("status", sa.Text(), server_default=sa.text("'OPEN'"), nullable=False),
        sa.Column("assigned_admin_id", sa.Uuid(), nullable=True),
        sa.Column("last_message_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["assigned_admin_id"], ["users.id"]),
        sa.CheckConstraint("status IN ('OPEN', 'ESCALATED', 'CLOSED')", name="ck_conversations_status"),
    )
    op.create_index("idx_conversations_user_activity", "conversations", ["user_id", "last_message_at"])
    op.create_index("idx_conversations_status_activity", "conversations", ["status", "last_message_at"])

    # messages table
    op.create_table(
        "messages",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("conversation_id", sa.Uuid(), nullable=False),
        sa.Column("sender_role", sa.Text(), nullable=False),
        sa.Column("sender_user_id", sa.Uuid(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversations.id"]),
        sa.ForeignKeyConstraint(["sender_user_id"], ["users.id"]),
        sa.CheckConstraint("sender_role IN ('USER', 'CARE', 'BOT')", name="ck_messages_sender_role"),
        sa.CheckConstraint("sender_role <> 'BOT' OR sender_user_id IS NULL", name="ck_messages_bot_unattributed"),
    )
    op.create_index("idx_messages_conversation_created", "messages", ["conversation_id", "created_at"])

    # escalations table
    op.create_table(
        "escalations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("conversation_id", sa.Uuid(), nullable=False),
        sa.Column("requested_by_user_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversations.id"]),
        sa.ForeignKeyConstraint(["requested_by_user_id"], ["users.id"]),
        sa.UniqueConstraint("conversation_id", name="uq_escalations_conversation"),
    )

    # documents table
    op.create_table(
        "documents",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("filename", sa.Text(), nullable=False),
        sa.Column("mime_type", sa.Text(), nullable=False),
        sa.Column("storage_path", sa.Text(), nullable=False),
        sa.Column("visibility", sa.Text(), nullable=False),
        sa.Column("owner_user_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["owner_user_id"], ["users.id"]),
        sa.CheckConstraint(
            "visibility IN ('ADMIN_ONLY', 'USER_SPECIFIC', 'PUBLIC')", name="ck_documents_visibility"
        ),
        sa.CheckConstraint(
            "(visibility = 'USER_SPECIFIC') = (owner_user_id IS NOT NULL)",
            name="ck_documents_owner_matches_visibility",
        ),
    )
    op.create_index("idx_documents_visibility_owner", "documents", ["visibility", "owner_user_id"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("idx_documents_visibility_owner", table_name="documents")
    op.drop_table("documents")
    op.drop_table("escalations")
    op.drop_index("idx_messages_conversation_created", table_name="messages")
    op.drop_table("messages")
    op.drop_index("idx_conversations_status_activity", table_name="conversations")
    op.drop_index("idx_conversations_user_activity", table_name="conversations")
    op.drop_table("conversations")
    op.drop_table("users")
