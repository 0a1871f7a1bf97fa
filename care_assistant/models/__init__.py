"""Models package - re-exports for convenience."""

from care_assistant.models.common import (
    STAFF_ROLES,
    ConversationStatus,
    PriorityFilter,
    Role,
    SenderRole,
    StatusFilter,
    Visibility,
    parse_enum,
)
from care_assistant.models.conversation import (
    CareConversationRecord,
    ConversationRecord,
    EscalationRecord,
    EscalationResult,
    MessageRecord,
    NewMessage,
)
from care_assistant.models.document import DocumentRecord, NewDocument, UserDocument
from care_assistant.models.user import UserRecord, UserWithPasswordRecord

__all__ = [
    # Common
    "Role",
    "ConversationStatus",
    "SenderRole",
    "Visibility",
    "PriorityFilter",
    "StatusFilter",
    "STAFF_ROLES",
    "parse_enum",
    # Conversations
    "ConversationRecord",
    "CareConversationRecord",
    "MessageRecord",
    "NewMessage",
    "EscalationRecord",
    "EscalationResult",
    # Documents
    "DocumentRecord",
    "UserDocument",
    "NewDocument",
    # Users
    "UserRecord",
    "UserWithPasswordRecord",
]
