"""User records."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from care_assistant.models.common import Role


class UserRecord(BaseModel):
    """Public view of a user (no password hash)."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    email: str
    role: Role
    created_at: datetime


class UserWithPasswordRecord(UserRecord):
    """User including the stored hash; only for login lookups."""

    password_hash: str
