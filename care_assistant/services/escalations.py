"""Escalation transaction."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from care_assistant.db.sql_repositories import SqlConversationRepository, SqlEscalationRepository
from care_assistant.db.transactions import read_scope, write_scope
from care_assistant.errors import NotFoundError
from care_assistant.models.common import ConversationStatus
from care_assistant.models.conversation import EscalationResult
from care_assistant.utils.logging import StructuredAuditLogger
from care_assistant.utils.metrics import CoreMetrics, PrometheusCoreMetrics

logger = logging.getLogger(__name__)


class EscalationService:
    """Records requests for human attention."""

    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession],
        audit: StructuredAuditLogger | None = None,
        metrics: CoreMetrics | None = None,
    ) -> None:
        self._sessions = sessions
        self._audit = audit or StructuredAuditLogger()
        self._metrics = metrics or PrometheusCoreMetrics()

    async def request_escalation(
        self, conversation_id: UUID, requesting_user_id: UUID
    ) -> EscalationResult:
        """Escalate a conversation.

        In one transaction:
        - Set the conversation to ESCALATED whatever its prior status,
          including CLOSED, and whether or not the insert below is skipped.
        - Insert the escalation, silently skipping it if the conversation
          already has one. The unique constraint on conversation_id is the
          only guard, so concurrent requests store exactly one row.

        Returns:
            EscalationResult whose ``escalation`` is None when the insert was skipped

        Raises:
            NotFoundError: If the conversation does not exist (nothing is written)
            StorageError: If either step fails (nothing is written)
        """
        async with write_scope(self._sessions, "request_escalation", self._metrics) as session:
            # Status flip first; a missing conversation aborts before the insert.
            conversation = await SqlConversationRepository(session).set_status(
                conversation_id, ConversationStatus.ESCALATED
            )
            if conversation is None:
                logger.warning(f"[request_escalation] conversation_id={conversation_id} not found")
                raise NotFoundError(f"Conversation {conversation_id} not found")
            escalation = await SqlEscalationRepository(session).insert_if_absent(
                conversation_id, requesting_user_id
            )

        outcome = "created" if escalation else "skipped"
        self._metrics.inc_escalation(outcome)
        if escalation is None:
            logger.info(
                f"[request_escalation] conversation_id={conversation_id} already escalated, "
                "insert skipped"
            )
        self._audit.log_write(
            "request_escalation",
            conversation_id,
            outcome,
            actor_id=requesting_user_id,
        )
        return EscalationResult(escalation=escalation, conversation=conversation)

    async def count_escalations(self, conversation_id: UUID) -> int:
        """Number of stored escalation rows for a conversation (0 or 1)."""
        async with read_scope(self._sessions, "count_escalations") as session:
            return await SqlEscalationRepository(session).count_for(conversation_id)
