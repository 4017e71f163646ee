from __future__ import annotations

import pytest

from sapph.db.collections import CONVERSATIONS_COLLECTION, MESSAGES_COLLECTION
from sapph.repositories.exceptions import NotFoundRepositoryError, ParticipantRepositoryError
from sapph.services.chat_service import (
    get_or_create_conversation,
    list_conversations,
    list_messages,
    mark_conversation_as_read,
    send_message,
    stream_messages,
)
from sapph.services.presence_service import get_presence, update_presence


@pytest.mark.asyncio
async def test_conversation_lookup_ignores_participant_order(store) -> None:
    first = await get_or_create_conversation(store, "zoe", "amy", "heart")
    second = await get_or_create_conversation(store, "amy", "zoe", "heart")
    friends = await get_or_create_conversation(store, "amy", "zoe", "friendship")

    assert first == second == "conv:amy|zoe|heart"
    assert friends != first
    assert len(await store.query(CONVERSATIONS_COLLECTION)) == 2


@pytest.mark.asyncio
async def test_legacy_conversation_is_found(store) -> None:
    await store.set(
        CONVERSATIONS_COLLECTION,
        "randomLegacy",
        {"participants": ["zoe", "amy"], "likeType": "heart", "unreadCount": {}},
    )
    assert await get_or_create_conversation(store, "amy", "zoe", "heart") == "randomLegacy"


@pytest.mark.asyncio
async def test_send_message_updates_summary_and_unread(store) -> None:
    conv_id = await get_or_create_conversation(store, "amy", "zoe", "heart")

    await send_message(store, conv_id, "amy", "hi zoe")
    await send_message(store, conv_id, "amy", "  you there?  ")
    conversation = await store.get(CONVERSATIONS_COLLECTION, conv_id)
    assert conversation["lastMessage"] == "you there?"
    assert conversation["lastMessageSenderId"] == "amy"
    assert conversation["unreadCount"] == {"amy": 0, "zoe": 2}

    reply = await send_message(store, conv_id, "zoe", "yes!")
    conversation = await store.get(CONVERSATIONS_COLLECTION, conv_id)
    assert conversation["unreadCount"] == {"amy": 1, "zoe": 0}
    assert conversation["lastMessageTime"] == reply.timestamp


@pytest.mark.asyncio
async def test_send_message_rejects_outsiders_and_blank_text(store) -> None:
    conv_id = await get_or_create_conversation(store, "amy", "zoe", "heart")
    with pytest.raises(ParticipantRepositoryError):
        await send_message(store, conv_id, "mallory", "hello")
    with pytest.raises(ValueError):
        await send_message(store, conv_id, "amy", "   ")
    with pytest.raises(NotFoundRepositoryError):
        await send_message(store, "conv:nobody|none|heart", "amy", "hello")
    assert await store.query(MESSAGES_COLLECTION) == []


@pytest.mark.asyncio
async def test_mark_read_only_touches_the_reader(store) -> None:
    conv_id = await get_or_create_conversation(store, "amy", "zoe", "heart")
    await send_message(store, conv_id, "amy", "one")
    await send_message(store, conv_id, "zoe", "two")

    await mark_conversation_as_read(store, conv_id, "zoe")

    conversation = await store.get(CONVERSATIONS_COLLECTION, conv_id)
    assert conversation["unreadCount"] == {"amy": 1, "zoe": 0}
    messages = await list_messages(store, conv_id, "zoe")
    assert [(m.sender_id, m.read) for m in messages] == [("amy", True), ("zoe", False)]


@pytest.mark.asyncio
async def test_list_conversations_for_viewer(store, make_profile) -> None:
    await make_profile("zoe", full_name="Zoe")
    await update_presence(store, "zoe", True)
    await update_presence(store, "bea", False)
    with_zoe = await get_or_create_conversation(store, "amy", "zoe", "heart")
    with_bea = await get_or_create_conversation(store, "amy", "bea", "heart")
    await get_or_create_conversation(store, "amy", "zoe", "friendship")
    await send_message(store, with_zoe, "zoe", "morning")

    rows = await list_conversations(store, "amy", "heart")
    assert [row.conversation_id for row in rows] == [with_zoe, with_bea]
    zoe_row, bea_row = rows
    assert (zoe_row.user_id, zoe_row.user_name, zoe_row.unread_count) == ("zoe", "Zoe", 1)
    assert zoe_row.user_photo == "https://img.example/zoe.jpg"
    assert zoe_row.is_online is True
    assert zoe_row.last_message == "morning"
    assert (bea_row.user_name, bea_row.is_online, bea_row.user_photo) == ("Unknown", False, None)


@pytest.mark.asyncio
async def test_list_messages_requires_participant(store) -> None:
    conv_id = await get_or_create_conversation(store, "amy", "zoe", "heart")
    with pytest.raises(ParticipantRepositoryError):
        await list_messages(store, conv_id, "mallory")


@pytest.mark.asyncio
async def test_stream_messages_emits_new_snapshots(store) -> None:
    conv_id = await get_or_create_conversation(store, "amy", "zoe", "heart")
    stream = stream_messages(store, conv_id, "amy", interval=0.01)
    try:
        assert await stream.__anext__() == []
        await send_message(store, conv_id, "zoe", "ping")
        latest = await stream.__anext__()
        assert [m.text for m in latest] == ["ping"]
    finally:
        await stream.aclose()


@pytest.mark.asyncio
async def test_presence_upsert(store) -> None:
    assert await get_presence(store, "amy") is None
    online = await update_presence(store, "amy", True)
    offline = await update_presence(store, "amy", False)
    stored = await get_presence(store, "amy")
    assert online.is_online is True
    assert stored is not None
    assert stored.is_online is False
    assert stored.last_seen == offline.last_seen


@pytest.mark.asyncio
async def test_message_page_holds_the_newest_messages(store) -> None:
    conv_id = await get_or_create_conversation(store, "amy", "zoe", "heart")
    for index in range(5):
        await store.set(
            MESSAGES_COLLECTION,
            f"m{index}",
            {
                "conversationId": conv_id,
                "senderId": "amy",
                "text": f"message {index}",
                "timestamp": 1_000 + index,
                "read": False,
            },
        )

    page = await list_messages(store, conv_id, "zoe", limit=2)
    assert [m.text for m in page] == ["message 3", "message 4"]
    everything = await list_messages(store, conv_id, "zoe")
    assert [m.text for m in everything] == [f"message {index}" for index in range(5)]
