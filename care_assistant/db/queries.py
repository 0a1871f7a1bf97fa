"""Visibility-scoped query builders.

Every read of conversations, messages and documents goes through one of these
builders so that a USER caller can never select a row it is not entitled to.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ColumnElement, DateTime, Select, and_, case, literal, or_, select, true

from care_assistant.db.context import CallerIdentity
from care_assistant.db.models import Conversation, Document, Message, User
from care_assistant.models.common import (
    ConversationStatus,
    PriorityFilter,
    StatusFilter,
    Visibility,
)
from care_assistant.visibility import STATUS_RANK, UNKNOWN_STATUS_RANK

STATUS_RANK_EXPR = case(
    *((Conversation.status == status.value, rank) for status, rank in STATUS_RANK.items()),
    else_=UNKNOWN_STATUS_RANK,
)

# Most recent activity first; conversations without messages sink to the bottom.
ACTIVITY_ORDER = (
    Conversation.last_message_at.desc().nulls_last(),
    Conversation.created_at.desc(),
)


def conversation_owner_clause(caller: CallerIdentity) -> ColumnElement[bool]:
    """Restrict conversations to the caller's own unless the caller is staff."""
    if caller.is_staff:
        return true()
    return Conversation.user_id == caller.id


def document_visibility_clause(caller: CallerIdentity) -> ColumnElement[bool]:
    """SQL form of ``visibility.can_view_document``."""
    if caller.is_staff:
        return true()
    return or_(
        Document.visibility == Visibility.PUBLIC.value,
        and_(
            Document.visibility == Visibility.USER_SPECIFIC.value,
            Document.owner_user_id == caller.id,
        ),
    )


def dashboard_filter_clause(
    priority: PriorityFilter, status_filter: StatusFilter
) -> ColumnElement[bool]:
    """Combine the independent priority and status filters."""
    if priority == PriorityFilter.ALL:
        priority_clause: ColumnElement[bool] = true()
    elif priority == PriorityFilter.ESCALATED:
        priority_clause = Conversation.status == ConversationStatus.ESCALATED.value
    else:
        priority_clause = Conversation.status.in_(
            [ConversationStatus.OPEN.value, ConversationStatus.CLOSED.value]
        )

    if status_filter == StatusFilter.ALL:
        status_clause: ColumnElement[bool] = true()
    else:
        status_clause = Conversation.status == status_filter.value

    return and_(priority_clause, status_clause)


def select_user_conversations(caller: CallerIdentity) -> Select:
    """The caller's own conversations, most recently active first."""
    return (
        select(Conversation)
        .where(Conversation.user_id == caller.id)
        .order_by(*ACTIVITY_ORDER)
    )


def select_care_conversations(
    priority: PriorityFilter = PriorityFilter.ALL,
    status_filter: StatusFilter = StatusFilter.ALL,
) -> Select:
    """Dashboard listing joined with the owner's email.

    Ordered by status rank, then activity, so escalated conversations always
    surface first.
    """
    return (
        select(Conversation, User.email)
        .join(User, User.id == Conversation.user_id)
        .where(dashboard_filter_clause(priority, status_filter))
        .order_by(STATUS_RANK_EXPR, *ACTIVITY_ORDER)
    )


def select_conversation_for(conversation_id: UUID, caller: CallerIdentity) -> Select:
    """Single conversation scoped to the caller, joined with the owner's email."""
    return (
        select(Conversation, User.email)
        .join(User, User.id == Conversation.user_id)
        .where(Conversation.id == conversation_id, conversation_owner_clause(caller))
    )


def select_messages_for(conversation_id: UUID, caller: CallerIdentity) -> Select:
    """Transcript of a conversation in chronological order.

    The join against conversations proves ownership for USER callers; a
    conversation the caller does not own yields no rows.
    """
    return (
        select(Message)
        .join(Conversation, Conversation.id == Message.conversation_id)
        .where(Message.conversation_id == conversation_id, conversation_owner_clause(caller))
        .order_by(Message.created_at.asc())
    )


def select_documents_for(caller: CallerIdentity) -> Select:
    """Documents the caller may list, newest first."""
    return (
        select(Document)
        .where(document_visibility_clause(caller))
        .order_by(Document.created_at.desc())
    )


def select_document_for(document_id: UUID, caller: CallerIdentity) -> Select:
    """Single document scoped to the caller's visibility."""
    return select(Document).where(Document.id == document_id, document_visibility_clause(caller))


def later_of(column: ColumnElement[datetime | None], ts: datetime) -> ColumnElement[datetime]:
    """Keep the later of the stored timestamp and ``ts``."""
    new_ts = literal(ts, DateTime(timezone=True))
    return case((or_(column.is_(None), column < new_ts), new_ts), else_=column)
