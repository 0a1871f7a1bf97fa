"""Integration tests for the message append protocol."""

import uuid
from typing import Any

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from care_assistant.core import CareCore
from care_assistant.db.models import Message
from care_assistant.errors import InvalidInputError, NotFoundError, StorageError
from care_assistant.models.common import SenderRole


async def count_messages(sessions: async_sessionmaker[AsyncSession], conversation_id: uuid.UUID) -> int:
    async with sessions() as session:
        result = await session.execute(
            select(func.count()).select_from(Message).where(Message.conversation_id == conversation_id)
        )
        return result.scalar_one()


@pytest.mark.asyncio
async def test_add_message_sets_last_message_at_to_message_time(core: CareCore, callers: Any) -> None:
    conversation = await core.conversations.create_conversation(callers.alice.id)

    await core.messages.add_message(conversation.id, SenderRole.USER, callers.alice.id, "hello")

    messages = await core.messages.list_messages(conversation.id, callers.alice)
    stored = await core.conversations.get_conversation(conversation.id, callers.alice)

    assert len(messages) == 1
    assert messages[0].content == "hello"
    assert messages[0].sender_role == SenderRole.USER
    assert messages[0].sender_user_id == callers.alice.id
    assert stored is not None
    assert stored.last_message_at == messages[0].created_at
    assert stored.updated_at == messages[0].created_at


@pytest.mark.asyncio
async def test_last_message_at_tracks_latest_message(core: CareCore, callers: Any) -> None:
    conversation = await core.conversations.create_conversation(callers.alice.id)

    await core.messages.add_message(conversation.id, "USER", callers.alice.id, "my order is late")
    await core.messages.add_message(conversation.id, "BOT", None, "Let me check that for you.")
    await core.messages.add_message(conversation.id, SenderRole.CARE, callers.care.id, "Refund issued.")

    messages = await core.messages.list_messages(conversation.id, callers.care)
    stored = await core.conversations.get_conversation(conversation.id, callers.care)

    assert [m.content for m in messages] == [
        "my order is late",
        "Let me check that for you.",
        "Refund issued.",
    ]
    assert [m.sender_role for m in messages] == [SenderRole.USER, SenderRole.BOT, SenderRole.CARE]
    assert messages[1].sender_user_id is None
    assert stored is not None
    assert stored.last_message_at == messages[-1].created_at


@pytest.mark.asyncio
async def test_new_message_moves_conversation_to_top_of_user_list(core: CareCore, callers: Any) -> None:
    first = await core.conversations.create_conversation(callers.alice.id)
    second = await core.conversations.create_conversation(callers.alice.id)
    await core.messages.add_message(second.id, SenderRole.USER, callers.alice.id, "second")
    await core.messages.add_message(first.id, SenderRole.USER, callers.alice.id, "first")

    listed = await core.conversations.list_conversations(callers.alice)

    assert [c.id for c in listed] == [first.id, second.id]


@pytest.mark.asyncio
async def test_list_messages_hides_foreign_transcripts(core: CareCore, callers: Any) -> None:
    conversation = await core.conversations.create_conversation(callers.alice.id)
    await core.messages.add_message(conversation.id, SenderRole.USER, callers.alice.id, "private")

    assert await core.messages.list_messages(conversation.id, callers.bob) == []
    assert await core.messages.list_messages(uuid.uuid4(), callers.alice) == []
    assert len(await core.messages.list_messages(conversation.id, callers.admin)) == 1


@pytest.mark.asyncio
async def test_add_message_rejects_unknown_sender_role(
    core: CareCore, callers: Any, sessions: async_sessionmaker[AsyncSession]
) -> None:
    conversation = await core.conversations.create_conversation(callers.alice.id)

    with pytest.raises(InvalidInputError):
        await core.messages.add_message(conversation.id, "ADMIN", callers.admin.id, "hi")

    assert await count_messages(sessions, conversation.id) == 0


@pytest.mark.asyncio
async def test_add_message_rejects_attributed_bot(core: CareCore, callers: Any) -> None:
    conversation = await core.conversations.create_conversation(callers.alice.id)

    with pytest.raises(InvalidInputError):
        await core.messages.add_message(conversation.id, SenderRole.BOT, callers.care.id, "beep")


@pytest.mark.asyncio
async def test_add_message_to_missing_conversation_writes_nothing(
    core: CareCore, callers: Any, sessions: async_sessionmaker[AsyncSession]
) -> None:
    missing = uuid.uuid4()

    with pytest.raises(NotFoundError):
        await core.messages.add_message(missing, SenderRole.USER, callers.alice.id, "anyone?")

    assert await count_messages(sessions, missing) == 0


@pytest.mark.asyncio
async def test_failed_insert_rolls_back_activity_update(
    core: CareCore, callers: Any, sessions: async_sessionmaker[AsyncSession]
) -> None:
    conversation = await core.conversations.create_conversation(callers.alice.id)
    before = await core.conversations.get_conversation(conversation.id, callers.alice)

    # Unknown sender user violates the foreign key after the conversation was touched
    with pytest.raises(StorageError):
        await core.messages.add_message(conversation.id, SenderRole.USER, uuid.uuid4(), "ghost")

    stored = await core.conversations.get_conversation(conversation.id, callers.alice)
    assert before is not None
    assert stored is not None
    assert stored.last_message_at is None
    assert stored.updated_at == before.updated_at
    assert await count_messages(sessions, conversation.id) == 0
