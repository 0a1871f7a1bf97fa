"""Conversation lifecycle - creation, status changes and role-scoped reads.

Statuses are OPEN, ESCALATED and CLOSED. New conversations start OPEN.
``set_status`` may move any status to any other; the only forced transition is
the escalation transaction in ``care_assistant.services.escalations``.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from care_assistant.db.context import CallerIdentity
from care_assistant.db.sql_repositories import SqlConversationRepository
from care_assistant.db.transactions import read_scope, write_scope
from care_assistant.errors import NotFoundError
from care_assistant.models.common import (
    ConversationStatus,
    PriorityFilter,
    StatusFilter,
    parse_enum,
)
from care_assistant.models.conversation import CareConversationRecord, ConversationRecord
from care_assistant.utils.logging import StructuredAuditLogger
from care_assistant.utils.metrics import CoreMetrics, PrometheusCoreMetrics

logger = logging.getLogger(__name__)


class ConversationService:
    """Owns the conversation state machine."""

    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession],
        audit: StructuredAuditLogger | None = None,
        metrics: CoreMetrics | None = None,
    ) -> None:
        self._sessions = sessions
        self._audit = audit or StructuredAuditLogger()
        self._metrics = metrics or PrometheusCoreMetrics()

    async def create_conversation(self, user_id: UUID) -> ConversationRecord:
        """Open a new conversation for ``user_id``.

        Returns:
            The created row with status OPEN and no activity
        """
        async with write_scope(self._sessions, "create_conversation", self._metrics) as session:
            conversation = await SqlConversationRepository(session).create(user_id)

        self._audit.log_write("create_conversation", conversation.id, "created", actor_id=user_id)
        return conversation

    async def get_conversation(
        self, conversation_id: UUID, caller: CallerIdentity
    ) -> ConversationRecord | CareConversationRecord | None:
        """Get a conversation if the caller may see it.

        USER callers only see their own conversations; anything else comes back
        as None, exactly like a missing row. CARE/ADMIN callers see every
        conversation, joined with the owner's email.
        """
        async with read_scope(self._sessions, "get_conversation") as session:
            return await SqlConversationRepository(session).get_for(conversation_id, caller)

    async def list_conversations(
        self,
        caller: CallerIdentity,
        priority: PriorityFilter | str = PriorityFilter.ALL,
        status: StatusFilter | str = StatusFilter.ALL,
    ) -> list[ConversationRecord] | list[CareConversationRecord]:
        """List conversations visible to the caller.

        USER callers get their own conversations, most recently active first;
        the dashboard filters do not apply to them. CARE/ADMIN callers get the
        dashboard listing: escalated first, then open, then closed, each group
        by activity.

        Raises:
            InvalidInputError: If a filter value is not recognized
        """
        priority = parse_enum(PriorityFilter, priority, "priority")
        status = parse_enum(StatusFilter, status, "status filter")

        async with read_scope(self._sessions, "list_conversations") as session:
            repo = SqlConversationRepository(session)
            if caller.is_staff:
                return await repo.list_for_care(priority, status)
            return await repo.list_for_user(caller)

    async def set_status(
        self, conversation_id: UUID, new_status: ConversationStatus | str
    ) -> ConversationRecord:
        """Unconditionally set the conversation status.

        Restricting this to CARE/ADMIN callers is the shell's responsibility.

        Raises:
            InvalidInputError: If ``new_status`` is not a conversation status
            NotFoundError: If the conversation does not exist
        """
        new_status = parse_enum(ConversationStatus, new_status, "status")

        async with write_scope(self._sessions, "set_status", self._metrics) as session:
            conversation = await SqlConversationRepository(session).set_status(
                conversation_id, new_status
            )
            if conversation is None:
                logger.warning(f"[set_status] conversation_id={conversation_id} not found")
                raise NotFoundError(f"Conversation {conversation_id} not found")

        self._audit.log_write(
            "set_status", conversation_id, "updated", status=new_status.value
        )
        return conversation
