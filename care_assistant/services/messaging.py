"""Message append protocol and transcript reads."""

import logging
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from care_assistant.db.context import CallerIdentity
from care_assistant.db.models import utcnow
from care_assistant.db.sql_repositories import SqlConversationRepository, SqlMessageRepository
from care_assistant.db.transactions import read_scope, write_scope
from care_assistant.errors import InvalidInputError, NotFoundError
from care_assistant.models.common import SenderRole, parse_enum
from care_assistant.models.conversation import MessageRecord, NewMessage
from care_assistant.utils.logging import StructuredAuditLogger
from care_assistant.utils.metrics import CoreMetrics, PrometheusCoreMetrics

logger = logging.getLogger(__name__)


class MessagingService:
    """Appends messages and keeps conversation activity in step."""

    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession],
        audit: StructuredAuditLogger | None = None,
        metrics: CoreMetrics | None = None,
    ) -> None:
        self._sessions = sessions
        self._audit = audit or StructuredAuditLogger()
        self._metrics = metrics or PrometheusCoreMetrics()

    async def add_message(
        self,
        conversation_id: UUID,
        sender_role: SenderRole | str,
        sender_user_id: UUID | None,
        content: str,
    ) -> None:
        """Append a message and record it as the conversation's latest activity.

        The insert and the conversation update share one transaction, and the
        conversation's last_message_at is set to the message's own created_at.

        Raises:
            InvalidInputError: If the sender role is unknown or a BOT message is attributed
            NotFoundError: If the conversation does not exist (nothing is written)
            StorageError: If the transaction fails (nothing is written)
        """
        role = parse_enum(SenderRole, sender_role, "sender role")
        try:
            message = NewMessage(
                conversation_id=conversation_id,
                sender_role=role,
                sender_user_id=sender_user_id,
                content=content,
            )
        except ValidationError as e:
            raise InvalidInputError(str(e)) from e

        now = utcnow()
        async with write_scope(self._sessions, "add_message", self._metrics) as session:
            if not await SqlConversationRepository(session).touch(conversation_id, now):
                logger.warning(f"[add_message] conversation_id={conversation_id} not found")
                raise NotFoundError(f"Conversation {conversation_id} not found")
            record = await SqlMessageRepository(session).insert(message, now)

        self._audit.log_write(
            "add_message",
            record.id,
            "created",
            actor_id=sender_user_id,
            conversation_id=str(conversation_id),
            sender_role=role.value,
        )

    async def list_messages(
        self, conversation_id: UUID, caller: CallerIdentity
    ) -> list[MessageRecord]:
        """Transcript in chronological order.

        USER callers get an empty list for conversations they do not own or
        that do not exist.
        """
        async with read_scope(self._sessions, "list_messages") as session:
            return await SqlMessageRepository(session).list_for(conversation_id, caller)
