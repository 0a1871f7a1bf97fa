"""Caller identity for visibility enforcement."""

from dataclasses import dataclass
from uuid import UUID

from care_assistant.models.common import STAFF_ROLES, Role, parse_enum


@dataclass(frozen=True)
class CallerIdentity:
    """Authenticated caller, produced by the surrounding shell.

    Used to scope every read to the rows the caller may see. The core trusts
    this value and performs no credential checks.
    """

    id: UUID
    role: Role

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", parse_enum(Role, self.role, "role"))

    @property
    def is_staff(self) -> bool:
        """True for CARE and ADMIN callers."""
        return self.role in STAFF_ROLES
