"""SQL repositories.

Repositories work on a session owned by the caller and never commit; the
service layer decides the transaction boundary. Every row leaving a
repository is validated into an enum-typed record.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from care_assistant.db.context import CallerIdentity
from care_assistant.db.models import Conversation, Document, Escalation, Message, User, utcnow
from care_assistant.db.queries import (
    later_of,
    select_care_conversations,
    select_conversation_for,
    select_document_for,
    select_documents_for,
    select_messages_for,
    select_user_conversations,
)
from care_assistant.errors import StorageError
from care_assistant.models.common import (
    ConversationStatus,
    PriorityFilter,
    Role,
    StatusFilter,
)
from care_assistant.models.conversation import (
    CareConversationRecord,
    ConversationRecord,
    EscalationRecord,
    MessageRecord,
    NewMessage,
)
from care_assistant.models.document import DocumentRecord, NewDocument, UserDocument
from care_assistant.models.user import UserRecord, UserWithPasswordRecord

CONVERSATION_COLUMNS = tuple(Conversation.__table__.c)
ESCALATION_COLUMNS = tuple(Escalation.__table__.c)


def to_care_conversation(conversation: Conversation, user_email: str) -> CareConversationRecord:
    """Map a conversation row plus joined owner email."""
    data = ConversationRecord.model_validate(conversation).model_dump()
    return CareConversationRecord(**data, user_email=user_email)


class SqlConversationRepository:
    """SQL access to the conversations table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, user_id: uuid.UUID) -> ConversationRecord:
        """Insert an OPEN conversation with no activity yet."""
        now = utcnow()
        conversation = Conversation(
            id=uuid.uuid4(),
            user_id=user_id,
            status=ConversationStatus.OPEN.value,
            assigned_admin_id=None,
            last_message_at=None,
            created_at=now,
            updated_at=now,
        )
        self._session.add(conversation)
        await self._session.flush()
        return ConversationRecord.model_validate(conversation)

    async def get_for(
        self, conversation_id: uuid.UUID, caller: CallerIdentity
    ) -> ConversationRecord | CareConversationRecord | None:
        """Get a conversation the caller may see.

        Staff receive the care projection with the owner's email.
        """
        result = await self._session.execute(select_conversation_for(conversation_id, caller))
        row = result.first()
        if row is None:
            return None

        conversation, user_email = row
        if caller.is_staff:
            return to_care_conversation(conversation, user_email)
        return ConversationRecord.model_validate(conversation)

    async def list_for_user(self, caller: CallerIdentity) -> list[ConversationRecord]:
        result = await self._session.execute(select_user_conversations(caller))
        return [ConversationRecord.model_validate(c) for c in result.scalars().all()]

    async def list_for_care(
        self, priority: PriorityFilter, status_filter: StatusFilter
    ) -> list[CareConversationRecord]:
        result = await self._session.execute(select_care_conversations(priority, status_filter))
        return [to_care_conversation(conversation, email) for conversation, email in result.all()]

    async def set_status(
        self, conversation_id: uuid.UUID, status: ConversationStatus
    ) -> ConversationRecord | None:
        """Unconditionally set the status and bump updated_at.

        Returns:
            Updated conversation, or None if it does not exist
        """
        result = await self._session.execute(
            update(Conversation)
            .where(Conversation.id == conversation_id)
            .values(status=status.value, updated_at=utcnow())
            .returning(*CONVERSATION_COLUMNS)
            .execution_options(synchronize_session=False)
        )
        row = result.mappings().first()
        if row is None:
            return None
        return ConversationRecord.model_validate(dict(row))

    async def touch(self, conversation_id: uuid.UUID, at: datetime) -> bool:
        """Record activity at ``at``; last_message_at never moves backwards.

        Returns:
            False if the conversation does not exist
        """
        result = await self._session.execute(
            update(Conversation)
            .where(Conversation.id == conversation_id)
            .values(
                last_message_at=later_of(Conversation.last_message_at, at),
                updated_at=at,
            )
            .returning(Conversation.id)
            .execution_options(synchronize_session=False)
        )
        return result.first() is not None


class SqlMessageRepository:
    """SQL access to the messages table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def insert(self, message: NewMessage, at: datetime) -> MessageRecord:
        row = Message(
            id=uuid.uuid4(),
            conversation_id=message.conversation_id,
            sender_role=message.sender_role.value,
            sender_user_id=message.sender_user_id,
            content=message.content,
            created_at=at,
        )
        self._session.add(row)
        await self._session.flush()
        return MessageRecord.model_validate(row)

    async def list_for(
        self, conversation_id: uuid.UUID, caller: CallerIdentity
    ) -> list[MessageRecord]:
        result = await self._session.execute(select_messages_for(conversation_id, caller))
        return [MessageRecord.model_validate(m) for m in result.scalars().all()]


class SqlEscalationRepository:
    """SQL access to the escalations table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _insert_ignoring_duplicates(self, values: dict[str, Any]) -> Any:
        """INSERT ... ON CONFLICT (conversation_id) DO NOTHING for the bound dialect."""
        dialect = self._session.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = postgresql.insert(Escalation).values(**values)
        elif dialect == "sqlite":
            stmt = sqlite.insert(Escalation).values(**values)
        else:
            raise StorageError(f"Escalation insert not supported on dialect {dialect!r}")
        return stmt.on_conflict_do_nothing(index_elements=[Escalation.conversation_id])

    async def insert_if_absent(
        self, conversation_id: uuid.UUID, requested_by_user_id: uuid.UUID
    ) -> EscalationRecord | None:
        """Insert the escalation unless one already exists for the conversation.

        The unique constraint on conversation_id decides the race; no row is
        read beforehand.

        Returns:
            The new escalation, or None if the insert was skipped
        """
        stmt = self._insert_ignoring_duplicates(
            {
                "id": uuid.uuid4(),
                "conversation_id": conversation_id,
                "requested_by_user_id": requested_by_user_id,
                "created_at": utcnow(),
            }
        ).returning(*ESCALATION_COLUMNS)
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        if row is None:
            return None
        return EscalationRecord.model_validate(dict(row))

    async def count_for(self, conversation_id: uuid.UUID) -> int:
        result = await self._session.execute(
            select(func.count())
            .select_from(Escalation)
            .where(Escalation.conversation_id == conversation_id)
        )
        return result.scalar_one()


class SqlDocumentRepository:
    """SQL access to the documents table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def insert(self, document: NewDocument) -> DocumentRecord:
        now = utcnow()
        row = Document(
            id=uuid.uuid4(),
            filename=document.filename,
            mime_type=document.mime_type,
            storage_path=document.storage_path,
            visibility=document.visibility.value,
            owner_user_id=document.owner_user_id,
            created_at=now,
            updated_at=now,
        )
        self._session.add(row)
        await self._session.flush()
        return DocumentRecord.model_validate(row)

    async def get_for(
        self, document_id: uuid.UUID, caller: CallerIdentity
    ) -> DocumentRecord | UserDocument | None:
        result = await self._session.execute(select_document_for(document_id, caller))
        row = result.scalar_one_or_none()
        if row is None:
            return None
        if caller.is_staff:
            return DocumentRecord.model_validate(row)
        return UserDocument.model_validate(row)

    async def list_for(self, caller: CallerIdentity) -> list[DocumentRecord] | list[UserDocument]:
        result = await self._session.execute(select_documents_for(caller))
        rows = result.scalars().all()
        if caller.is_staff:
            return [DocumentRecord.model_validate(d) for d in rows]
        return [UserDocument.model_validate(d) for d in rows]

    async def delete(self, document_id: uuid.UUID) -> bool:
        """Delete a document.

        Returns:
            False if no such document existed
        """
        result = await self._session.execute(
            delete(Document)
            .where(Document.id == document_id)
            .returning(Document.id)
            .execution_options(synchronize_session=False)
        )
        return result.first() is not None


class SqlUserRepository:
    """SQL access to the users table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def insert(self, email: str, password_hash: str, role: Role) -> UserRecord:
        result = await self._session.execute(
            insert(User)
            .values(
                id=uuid.uuid4(),
                email=email,
                password_hash=password_hash,
                role=role.value,
                created_at=utcnow(),
            )
            .returning(User.id, User.email, User.role, User.created_at)
        )
        return UserRecord.model_validate(dict(result.mappings().one()))

    async def get(self, user_id: uuid.UUID) -> UserRecord | None:
        user = await self._session.get(User, user_id)
        if user is None:
            return None
        return UserRecord.model_validate(user)

    async def find_by_email(self, email: str) -> UserWithPasswordRecord | None:
        result = await self._session.execute(User.__table__.select().where(User.email == email))
        row = result.mappings().first()
        if row is None:
            return None
        return UserWithPasswordRecord.model_validate(dict(row))
