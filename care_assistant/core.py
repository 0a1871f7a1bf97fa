"""Wiring of the services around one injected session factory."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from care_assistant.config import Settings
from care_assistant.db.engine import create_async_engine_from_settings, create_session_factory
from care_assistant.services.conversations import ConversationService
from care_assistant.services.documents import DocumentService
from care_assistant.services.escalations import EscalationService
from care_assistant.services.messaging import MessagingService
from care_assistant.services.users import UserService
from care_assistant.utils.logging import StructuredAuditLogger
from care_assistant.utils.metrics import CoreMetrics, PrometheusCoreMetrics


@dataclass(frozen=True)
class CareCore:
    """Operations exposed to the surrounding shell, grouped by resource."""

    conversations: ConversationService
    messages: MessagingService
    escalations: EscalationService
    documents: DocumentService
    users: UserService

    @classmethod
    def from_session_factory(
        cls,
        sessions: async_sessionmaker[AsyncSession],
        metrics: CoreMetrics | None = None,
    ) -> "CareCore":
        audit = StructuredAuditLogger()
        metrics = metrics or PrometheusCoreMetrics()
        return cls(
            conversations=ConversationService(sessions, audit, metrics),
            messages=MessagingService(sessions, audit, metrics),
            escalations=EscalationService(sessions, audit, metrics),
            documents=DocumentService(sessions, audit, metrics),
            users=UserService(sessions, audit, metrics),
        )

    @classmethod
    def from_engine(cls, engine: AsyncEngine) -> "CareCore":
        return cls.from_session_factory(create_session_factory(engine))


def build_core(settings: Settings) -> tuple[CareCore, AsyncEngine]:
    """Create the engine and services from settings.

    The caller owns the returned engine and must dispose of it on shutdown.
    """
    engine = create_async_engine_from_settings(settings)
    return CareCore.from_engine(engine), engine
