"""Conversation, message and escalation records."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, model_validator

from care_assistant.models.common import ConversationStatus, SenderRole


class ConversationRecord(BaseModel):
    """Conversation row as seen by its owner."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    user_id: UUID
    status: ConversationStatus
    assigned_admin_id: UUID | None = None
    last_message_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class CareConversationRecord(ConversationRecord):
    """Conversation row joined with the owner's email for the care dashboard."""

    user_email: str


class MessageRecord(BaseModel):
    """Single transcript entry."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    conversation_id: UUID
    sender_role: SenderRole
    sender_user_id: UUID | None = None
    content: str
    created_at: datetime


class NewMessage(BaseModel):
    """Validated input for appending a message."""

    conversation_id: UUID
    sender_role: SenderRole
    sender_user_id: UUID | None = None
    content: str

    @model_validator(mode="after")
    def bot_messages_are_unattributed(self) -> "NewMessage":
        if self.sender_role == SenderRole.BOT and self.sender_user_id is not None:
            raise ValueError("BOT messages cannot carry a sender_user_id")
        return self


class EscalationRecord(BaseModel):
    """Stored escalation request."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    conversation_id: UUID
    requested_by_user_id: UUID
    created_at: datetime


class EscalationResult(BaseModel):
    """Outcome of an escalation request.

    ``escalation`` is None when a prior escalation already existed and the
    insert was skipped.
    """

    escalation: EscalationRecord | None
    conversation: ConversationRecord
