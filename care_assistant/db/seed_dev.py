"""Dev seeding helper - one admin and one end user with fixed ids."""

import asyncio
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from care_assistant.config import get_settings
from care_assistant.db.engine import create_async_engine_from_settings, create_session_factory
from care_assistant.db.models import User
from care_assistant.models.common import Role
from care_assistant.utils.logging import configure_logging

logger = logging.getLogger(__name__)

DEV_ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
DEV_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")

# Hashes are placeholders; credential checks live in the shell.
DEV_ACCOUNTS = (
    (DEV_ADMIN_ID, "admin@test.com", Role.ADMIN),
    (DEV_USER_ID, "user@test.com", Role.USER),
)


async def seed_dev_users(sessions: async_sessionmaker[AsyncSession]) -> list[uuid.UUID]:
    """Seed the dev accounts.

    This function is idempotent - safe to run multiple times.

    Returns:
        Ids of the accounts created by this call
    """
    created: list[uuid.UUID] = []
    async with sessions.begin() as session:
        for user_id, email, role in DEV_ACCOUNTS:
            result = await session.execute(select(User).where(User.id == user_id))
            if result.scalar_one_or_none() is not None:
                logger.info(f"Dev user already exists: {email}")
                continue

            logger.info(f"Creating dev user {email} ({role.value}) with id {user_id}")
            session.add(User(id=user_id, email=email, password_hash="stub", role=role.value))
            created.append(user_id)

    return created


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    engine = create_async_engine_from_settings(settings)
    try:
        await seed_dev_users(create_session_factory(engine))
    finally:
        await engine.dispose()
    logger.info("Dev seeding complete")


if __name__ == "__main__":
    asyncio.run(main())
