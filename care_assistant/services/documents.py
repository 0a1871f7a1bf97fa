"""Document metadata with tiered visibility."""

import logging
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from care_assistant.db.context import CallerIdentity
from care_assistant.db.sql_repositories import SqlDocumentRepository
from care_assistant.db.transactions import read_scope, write_scope
from care_assistant.errors import InvalidInputError, NotFoundError
from care_assistant.models.common import Visibility, parse_enum
from care_assistant.models.document import DocumentRecord, NewDocument, UserDocument
from care_assistant.utils.logging import StructuredAuditLogger
from care_assistant.utils.metrics import CoreMetrics, PrometheusCoreMetrics

logger = logging.getLogger(__name__)


class DocumentService:
    """Create, read, list and delete documents under the visibility tiers.

    USER callers see PUBLIC documents and USER_SPECIFIC documents they own,
    through the ``UserDocument`` projection. CARE/ADMIN callers see everything,
    ADMIN_ONLY included, through ``DocumentRecord``. Restricting create and
    delete to CARE/ADMIN is the shell's responsibility.
    """

    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession],
        audit: StructuredAuditLogger | None = None,
        metrics: CoreMetrics | None = None,
    ) -> None:
        self._sessions = sessions
        self._audit = audit or StructuredAuditLogger()
        self._metrics = metrics or PrometheusCoreMetrics()

    async def create_document(
        self,
        filename: str,
        mime_type: str,
        storage_path: str,
        visibility: Visibility | str,
        owner_user_id: UUID | None = None,
    ) -> DocumentRecord:
        """Record document metadata.

        Raises:
            InvalidInputError: If visibility is unknown, or the owner does not
                match the tier (required for USER_SPECIFIC, forbidden otherwise)
        """
        tier = parse_enum(Visibility, visibility, "visibility")
        try:
            document = NewDocument(
                filename=filename,
                mime_type=mime_type,
                storage_path=storage_path,
                visibility=tier,
                owner_user_id=owner_user_id,
            )
        except ValidationError as e:
            raise InvalidInputError(str(e)) from e

        async with write_scope(self._sessions, "create_document", self._metrics) as session:
            record = await SqlDocumentRepository(session).insert(document)

        self._audit.log_write(
            "create_document", record.id, "created", visibility=record.visibility.value
        )
        return record

    async def get_document(
        self, document_id: UUID, caller: CallerIdentity
    ) -> DocumentRecord | UserDocument | None:
        """Fetch a document; None when absent or hidden from the caller."""
        async with read_scope(self._sessions, "get_document") as session:
            return await SqlDocumentRepository(session).get_for(document_id, caller)

    async def list_documents(
        self, caller: CallerIdentity
    ) -> list[DocumentRecord] | list[UserDocument]:
        """Documents visible to the caller, newest first."""
        async with read_scope(self._sessions, "list_documents") as session:
            return await SqlDocumentRepository(session).list_for(caller)

    async def delete_document(self, document_id: UUID) -> None:
        """Delete a document permanently.

        Raises:
            NotFoundError: If the document does not exist
        """
        async with write_scope(self._sessions, "delete_document", self._metrics) as session:
            if not await SqlDocumentRepository(session).delete(document_id):
                logger.warning(f"[delete_document] document_id={document_id} not found")
                raise NotFoundError(f"Document {document_id} not found")

        self._audit.log_write("delete_document", document_id, "deleted")
