"""Shared pytest fixtures for all test suites."""

import os
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from care_assistant.config import Settings
from care_assistant.core import CareCore
from care_assistant.db.context import CallerIdentity
from care_assistant.db.engine import create_async_engine_from_settings, create_session_factory
from care_assistant.db.models import Base, Conversation
from care_assistant.models.common import Role


@dataclass(frozen=True)
class Callers:
    """One identity per role, plus a second end user."""

    alice: CallerIdentity
    bob: CallerIdentity
    care: CallerIdentity
    admin: CallerIdentity


@pytest_asyncio.fixture
async def test_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a file-backed SQLite engine so concurrent sessions share one database."""
    settings = Settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'care.db'}")
    engine = create_async_engine_from_settings(settings)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def sessions(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(test_engine)


@pytest.fixture
def core(sessions: async_sessionmaker[AsyncSession]) -> CareCore:
    return CareCore.from_session_factory(sessions)


@pytest_asyncio.fixture
async def callers(core: CareCore) -> Callers:
    """Create one account per role and return their identities."""
    alice = await core.users.create_user("alice@example.com", "hash-a", Role.USER)
    bob = await core.users.create_user("bob@example.com", "hash-b", Role.USER)
    care = await core.users.create_user("care@example.com", "hash-c", Role.CARE)
    admin = await core.users.create_user("admin@example.com", "hash-d", Role.ADMIN)
    return Callers(
        alice=CallerIdentity(id=alice.id, role=alice.role),
        bob=CallerIdentity(id=bob.id, role=bob.role),
        care=CallerIdentity(id=care.id, role=care.role),
        admin=CallerIdentity(id=admin.id, role=admin.role),
    )


@pytest.fixture
def set_timestamps(
    sessions: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[None]]:
    """Overwrite a conversation's activity timestamps for ordering tests."""

    async def _set(
        conversation_id: uuid.UUID,
        *,
        created_at: datetime,
        last_message_at: datetime | None = None,
    ) -> None:
        async with sessions.begin() as session:
            await session.execute(
                update(Conversation)
                .where(Conversation.id == conversation_id)
                .values(created_at=created_at, last_message_at=last_message_at)
            )

    return _set


@pytest_asyncio.fixture
async def postgres_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine for PostgreSQL integration tests.

    Requires DATABASE_URL to be set to a real PostgreSQL connection string.
    Tests using this fixture should be marked with @pytest.mark.postgres.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        pytest.skip("DATABASE_URL not set - skipping postgres test")

    if not database_url.startswith(("postgresql://", "postgresql+asyncpg://")):
        pytest.skip(f"DATABASE_URL is not PostgreSQL: {database_url}")

    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    engine = create_async_engine(database_url, poolclass=NullPool, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()
