"""SQLAlchemy ORM models for users, conversations, messages, escalations and documents."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


def utcnow() -> datetime:
    """Timezone-aware current time used for every row timestamp."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class User(Base):
    """User table - end users and care/admin staff."""

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        CheckConstraint("role IN ('USER', 'ADMIN', 'CARE')", name="ck_users_role"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    # Relationships
    conversations: Mapped[list["Conversation"]] = relationship(
        "Conversation", back_populates="user", foreign_keys="Conversation.user_id"
    )
    documents: Mapped[list["Document"]] = relationship("Document", back_populates="owner")


class Conversation(Base):
    """Conversation table - one support thread owned by a single user."""

    __tablename__ = "conversations"
    __table_args__ = (
        CheckConstraint(
            "status IN ('OPEN', 'ESCALATED', 'CLOSED')", name="ck_conversations_status"
        ),
        Index("idx_conversations_user_activity", "user_id", "last_message_at"),
        Index("idx_conversations_status_activity", "status", "last_message_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(Text, nullable=False, default="OPEN")
    assigned_admin_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    last_message_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User", back_populates="conversations", foreign_keys=[user_id]
    )
    messages: Mapped[list["Message"]] = relationship("Message", back_populates="conversation")
    escalation: Mapped["Escalation | None"] = relationship(
        "Escalation", back_populates="conversation", uselist=False
    )


class Message(Base):
    """Message table - append-only transcript entries."""

    __tablename__ = "messages"
    __table_args__ = (
        CheckConstraint("sender_role IN ('USER', 'CARE', 'BOT')", name="ck_messages_sender_role"),
        CheckConstraint(
            "sender_role <> 'BOT' OR sender_user_id IS NULL", name="ck_messages_bot_unattributed"
        ),
        Index("idx_messages_conversation_created", "conversation_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("conversations.id"), nullable=False
    )
    sender_role: Mapped[str] = mapped_column(Text, nullable=False)
    sender_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    # Relationships
    conversation: Mapped["Conversation"] = relationship("Conversation", back_populates="messages")


class Escalation(Base):
    """Escalation table - at most one request for human attention per conversation."""

    __tablename__ = "escalations"
    __table_args__ = (UniqueConstraint("conversation_id", name="uq_escalations_conversation"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("conversations.id"), nullable=False
    )
    requested_by_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    # Relationships
    conversation: Mapped["Conversation"] = relationship("Conversation", back_populates="escalation")


class Document(Base):
    """Document table - uploaded file metadata with a visibility tier."""

    __tablename__ = "documents"
    __table_args__ = (
        CheckConstraint(
            "visibility IN ('ADMIN_ONLY', 'USER_SPECIFIC', 'PUBLIC')",
            name="ck_documents_visibility",
        ),
        CheckConstraint(
            "(visibility = 'USER_SPECIFIC') = (owner_user_id IS NOT NULL)",
            name="ck_documents_owner_matches_visibility",
        ),
        Index("idx_documents_visibility_owner", "visibility", "owner_user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    filename: Mapped[str] = mapped_column(Text, nullable=False)
    mime_type: Mapped[str] = mapped_column(Text, nullable=False)
    storage_path: Mapped[str] = mapped_column(Text, nullable=False)
    visibility: Mapped[str] = mapped_column(Text, nullable=False)
    owner_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    # Relationships
    owner: Mapped["User | None"] = relationship("User", back_populates="documents")
