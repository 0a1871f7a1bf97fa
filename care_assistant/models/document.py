"""Document domain models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from care_assistant.models.common import Visibility


class DocumentRecord(BaseModel):
    """Full document metadata, returned to care/admin callers."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    filename: str
    mime_type: str
    storage_path: str
    visibility: Visibility
    owner_user_id: UUID | None = None
    created_at: datetime
    updated_at: datetime


class UserDocument(BaseModel):
    """Document metadata as exposed to end users (no storage path or owner)."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    filename: str
    mime_type: str
    visibility: Visibility
    created_at: datetime
    updated_at: datetime


class NewDocument(BaseModel):
    """Validated input for creating a document."""

    filename: str = Field(..., min_length=1)
    mime_type: str = Field(..., min_length=1)
    storage_path: str = Field(..., min_length=1)
    visibility: Visibility
    owner_user_id: UUID | None = None

    @model_validator(mode="after")
    def owner_matches_visibility(self) -> "NewDocument":
        """Owner is required for USER_SPECIFIC and forbidden otherwise."""
        if self.visibility == Visibility.USER_SPECIFIC and self.owner_user_id is None:
            raise ValueError("USER_SPECIFIC documents require an owner_user_id")
        if self.visibility != Visibility.USER_SPECIFIC and self.owner_user_id is not None:
            raise ValueError(f"{self.visibility.value} documents cannot have an owner_user_id")
        return self
