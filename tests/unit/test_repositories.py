"""Unit tests for repository behaviour that does not need a database."""

import uuid
from types import SimpleNamespace
from typing import Any

import pytest

from care_assistant.db.sql_repositories import SqlEscalationRepository
from care_assistant.errors import StorageError


class UnsupportedDialectSession:
    """Session stand-in bound to a dialect without ON CONFLICT support."""

    def __init__(self) -> None:
        self.executed: list[Any] = []

    def get_bind(self) -> Any:
        return SimpleNamespace(dialect=SimpleNamespace(name="mssql"))

    async def execute(self, stmt: Any) -> Any:
        self.executed.append(stmt)
        raise AssertionError("nothing should be executed")


@pytest.mark.asyncio
async def test_escalation_insert_rejects_unsupported_dialect() -> None:
    session = UnsupportedDialectSession()
    repo = SqlEscalationRepository(session)  # type: ignore[arg-type]

    with pytest.raises(StorageError, match="mssql"):
        await repo.insert_if_absent(uuid.uuid4(), uuid.uuid4())

    assert session.executed == []
