"""Common enums shared across all models."""

from enum import Enum
from typing import TypeVar

from care_assistant.errors import InvalidInputError

E = TypeVar("E", bound=Enum)


class Role(str, Enum):
    """Role of an authenticated user."""

    USER = "USER"
    ADMIN = "ADMIN"
    CARE = "CARE"


class ConversationStatus(str, Enum):
    """Conversation state."""

    OPEN = "OPEN"
    ESCALATED = "ESCALATED"
    CLOSED = "CLOSED"


class SenderRole(str, Enum):
    """Author kind of a message."""

    USER = "USER"
    CARE = "CARE"
    BOT = "BOT"


class Visibility(str, Enum):
    """Document visibility tier."""

    ADMIN_ONLY = "ADMIN_ONLY"
    USER_SPECIFIC = "USER_SPECIFIC"
    PUBLIC = "PUBLIC"


class PriorityFilter(str, Enum):
    """Dashboard priority dimension."""

    ALL = "ALL"
    ESCALATED = "ESCALATED"
    NORMAL = "NORMAL"


class StatusFilter(str, Enum):
    """Dashboard status dimension.

    ESCALATED is deliberately absent; escalated rows are selected through
    PriorityFilter.ESCALATED.
    """

    ALL = "ALL"
    OPEN = "OPEN"
    CLOSED = "CLOSED"


STAFF_ROLES = frozenset({Role.CARE, Role.ADMIN})


def parse_enum(enum_cls: type[E], value: E | str, field: str) -> E:
    """Coerce a raw value into ``enum_cls``.

    Raises:
        InvalidInputError: If ``value`` is not one of the enum's values.
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidInputError(f"Invalid {field} {value!r} (expected one of: {allowed})") from e
