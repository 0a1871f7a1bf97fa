"""Unit tests for the visibility-scoped query builders (compiled SQL only)."""

import uuid

from sqlalchemy import Select
from sqlalchemy.dialects import postgresql

from care_assistant.db.context import CallerIdentity
from care_assistant.db.queries import (
    select_care_conversations,
    select_conversation_for,
    select_documents_for,
    select_messages_for,
    select_user_conversations,
)
from care_assistant.models.common import PriorityFilter, Role, StatusFilter

USER = CallerIdentity(id=uuid.uuid4(), role=Role.USER)
CARE = CallerIdentity(id=uuid.uuid4(), role=Role.CARE)


def compile_sql(stmt: Select, literal: bool = False) -> str:
    kwargs = {"literal_binds": True} if literal else {}
    return str(stmt.compile(dialect=postgresql.dialect(), compile_kwargs=kwargs))


def where_clause(sql: str) -> str:
    """Text between WHERE and ORDER BY (empty if there is no WHERE)."""
    if "WHERE" not in sql:
        return ""
    return sql.split("WHERE", 1)[1].split("ORDER BY", 1)[0]


def test_user_listing_is_scoped_and_ordered_by_activity() -> None:
    sql = compile_sql(select_user_conversations(USER))

    assert "conversations.user_id =" in where_clause(sql)
    assert (
        "ORDER BY conversations.last_message_at DESC NULLS LAST, conversations.created_at DESC"
        in sql
    )


def test_care_listing_ranks_status_before_activity() -> None:
    sql = compile_sql(select_care_conversations(), literal=True)

    assert "JOIN users ON users.id = conversations.user_id" in sql
    order_by = sql.split("ORDER BY", 1)[1]
    assert order_by.strip().startswith("CASE")
    assert "'ESCALATED'" in order_by
    assert order_by.index("'ESCALATED'") < order_by.index("'OPEN'") < order_by.index("'CLOSED'")
    assert "ELSE 3 END, conversations.last_message_at DESC NULLS LAST" in order_by


def test_care_listing_combines_priority_and_status_filters() -> None:
    where = where_clause(
        compile_sql(select_care_conversations(PriorityFilter.NORMAL, StatusFilter.CLOSED), literal=True)
    )

    assert "conversations.status IN ('OPEN', 'CLOSED')" in where
    assert "conversations.status = 'CLOSED'" in where


def test_care_escalated_priority_selects_escalated_status() -> None:
    where = where_clause(
        compile_sql(select_care_conversations(PriorityFilter.ESCALATED, StatusFilter.ALL), literal=True)
    )

    assert "conversations.status = 'ESCALATED'" in where


def test_care_listing_without_filters_has_no_status_predicate() -> None:
    where = where_clause(compile_sql(select_care_conversations(), literal=True))

    assert "conversations.status" not in where


def test_single_conversation_checks_ownership_only_for_users() -> None:
    conversation_id = uuid.uuid4()

    user_where = where_clause(compile_sql(select_conversation_for(conversation_id, USER)))
    care_where = where_clause(compile_sql(select_conversation_for(conversation_id, CARE)))

    assert "conversations.user_id =" in user_where
    assert "conversations.id =" in care_where
    assert "conversations.user_id" not in care_where


def test_messages_join_conversation_for_ownership() -> None:
    sql = compile_sql(select_messages_for(uuid.uuid4(), USER))

    assert "JOIN conversations ON conversations.id = messages.conversation_id" in sql
    assert "conversations.user_id =" in where_clause(sql)
    assert sql.rstrip().endswith("ORDER BY messages.created_at ASC")


def test_user_document_listing_filters_by_tier_and_owner() -> None:
    where = where_clause(compile_sql(select_documents_for(USER)))

    assert "documents.visibility =" in where
    assert "documents.owner_user_id =" in where


def test_staff_document_listing_is_unfiltered() -> None:
    where = where_clause(compile_sql(select_documents_for(CARE)))

    assert "documents.visibility" not in where
    assert "documents.owner_user_id" not in where
