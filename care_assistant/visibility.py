"""Visibility rules - which rows a caller may see.

Pure functions with no storage access. ``care_assistant.db.queries`` builds the
equivalent SQL criteria; both must agree.
"""

from uuid import UUID

from care_assistant.db.context import CallerIdentity
from care_assistant.models.common import (
    ConversationStatus,
    PriorityFilter,
    StatusFilter,
    Visibility,
)

# Dashboard ordering: escalated first, then open, then closed.
STATUS_RANK: dict[ConversationStatus, int] = {
    ConversationStatus.ESCALATED: 0,
    ConversationStatus.OPEN: 1,
    ConversationStatus.CLOSED: 2,
}
UNKNOWN_STATUS_RANK = 3

USER_VISIBLE_TIERS = frozenset({Visibility.PUBLIC, Visibility.USER_SPECIFIC})


def can_view_conversation(caller: CallerIdentity, owner_user_id: UUID) -> bool:
    """Staff see every conversation; users only their own."""
    return caller.is_staff or owner_user_id == caller.id


def can_view_document(
    caller: CallerIdentity, visibility: Visibility, owner_user_id: UUID | None
) -> bool:
    """Apply the document visibility tiers.

    PUBLIC is visible to everyone, USER_SPECIFIC to staff and its owner,
    ADMIN_ONLY to staff only.
    """
    if caller.is_staff:
        return True
    if visibility == Visibility.PUBLIC:
        return True
    if visibility == Visibility.USER_SPECIFIC:
        return owner_user_id is not None and owner_user_id == caller.id
    return False


def priority_passes(status: ConversationStatus, priority: PriorityFilter) -> bool:
    if priority == PriorityFilter.ALL:
        return True
    if priority == PriorityFilter.ESCALATED:
        return status == ConversationStatus.ESCALATED
    return status in (ConversationStatus.OPEN, ConversationStatus.CLOSED)


def status_passes(status: ConversationStatus, status_filter: StatusFilter) -> bool:
    return status_filter == StatusFilter.ALL or status.value == status_filter.value


def matches_dashboard_filters(
    status: ConversationStatus, priority: PriorityFilter, status_filter: StatusFilter
) -> bool:
    """A row is listed when both filters independently pass."""
    return priority_passes(status, priority) and status_passes(status, status_filter)


def status_rank(status: ConversationStatus | str) -> int:
    """Primary dashboard sort key."""
    try:
        return STATUS_RANK[ConversationStatus(status)]
    except ValueError:
        return UNKNOWN_STATUS_RANK
