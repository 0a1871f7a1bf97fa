"""User accounts.

Password hashing belongs to the shell; this service only stores the hash it
is given.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from care_assistant.db.sql_repositories import SqlUserRepository
from care_assistant.db.transactions import read_scope, write_scope
from care_assistant.errors import InvalidInputError
from care_assistant.models.common import Role, parse_enum
from care_assistant.models.user import UserRecord, UserWithPasswordRecord
from care_assistant.utils.logging import StructuredAuditLogger
from care_assistant.utils.metrics import CoreMetrics, PrometheusCoreMetrics


class UserService:
    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession],
        audit: StructuredAuditLogger | None = None,
        metrics: CoreMetrics | None = None,
    ) -> None:
        self._sessions = sessions
        self._audit = audit or StructuredAuditLogger()
        self._metrics = metrics or PrometheusCoreMetrics()

    async def create_user(self, email: str, password_hash: str, role: Role | str) -> UserRecord:
        """Create a user with an already-hashed password.

        Raises:
            InvalidInputError: If the role is unknown or email/hash are empty
            ConstraintViolationError: If the email is already registered
        """
        role = parse_enum(Role, role, "role")
        if not email or not password_hash:
            raise InvalidInputError("email and password_hash are required")

        async with write_scope(self._sessions, "create_user", self._metrics) as session:
            user = await SqlUserRepository(session).insert(email, password_hash, role)

        self._audit.log_write("create_user", user.id, "created", role=role.value)
        return user

    async def get_user(self, user_id: UUID) -> UserRecord | None:
        async with read_scope(self._sessions, "get_user") as session:
            return await SqlUserRepository(session).get(user_id)

    async def find_user_by_email(self, email: str) -> UserWithPasswordRecord | None:
        """Login lookup; the only read that returns the password hash."""
        async with read_scope(self._sessions, "find_user_by_email") as session:
            return await SqlUserRepository(session).find_by_email(email)
