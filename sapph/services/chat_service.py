"""Conversation and message flows for matched pairs."""

from __future__ import annotations

import logging
from typing import AsyncIterator, List, Optional

from ..db.store import DocumentStore
from ..models.conversation import ConversationDocument, ConversationSummary, MessageDocument
from ..models.likes import LikeType
from ..repositories.conversation import ConversationRepository, MessageRepository
from ..repositories.exceptions import ParticipantRepositoryError
from ..repositories.presence import PresenceRepository
from ..repositories.profile import ProfileRepository
from ..utils.dates import now_ms

LOGGER = logging.getLogger("uvicorn.error")


def _require_participant(conversation: ConversationDocument, user_id: str) -> None:
    if user_id not in conversation.participants:
        raise ParticipantRepositoryError("not a participant in this conversation")


async def get_or_create_conversation(
    store: DocumentStore, user_a: str, user_b: str, like_type: LikeType
) -> str:
    """Return the pair's conversation id for ``like_type``, creating it on first use.

    Participant order does not matter; both orders resolve to the same id.
    """

    if user_a == user_b:
        raise ValueError("A conversation needs two different users")
    conversations = ConversationRepository(store)
    existing = await conversations.find_between(user_a, user_b, like_type)
    if existing:
        return existing
    return await conversations.create(user_a, user_b, like_type, created_at=now_ms())


async def send_message(
    store: DocumentStore, conversation_id: str, sender_id: str, text: str
) -> MessageDocument:
    body = (text or "").strip()
    if not body:
        raise ValueError("Message text is required")

    conversations = ConversationRepository(store)
    conversation = await conversations.require(conversation_id)
    _require_participant(conversation, sender_id)

    timestamp = now_ms()
    message = await MessageRepository(store).append(conversation_id, sender_id, body, timestamp=timestamp)
    await conversations.record_message(
        conversation_id,
        sender_id=sender_id,
        recipient_id=conversation.counterpart(sender_id),
        text=body,
        timestamp=timestamp,
    )
    return message


async def mark_conversation_as_read(store: DocumentStore, conversation_id: str, user_id: str) -> None:
    """Zero ``user_id``'s unread counter and flag the messages they received as read."""

    conversations = ConversationRepository(store)
    conversation = await conversations.require(conversation_id)
    _require_participant(conversation, user_id)
    await conversations.reset_unread(conversation_id, user_id)
    counterpart = conversation.counterpart(user_id)
    if counterpart:
        await MessageRepository(store).mark_read(conversation_id, counterpart)


async def list_conversations(
    store: DocumentStore, user_id: str, like_type: LikeType = "heart"
) -> List[ConversationSummary]:
    conversations = await ConversationRepository(store).for_participant(user_id, like_type)
    counterpart_ids = [c.counterpart(user_id) for c in conversations]
    known_ids = [uid for uid in counterpart_ids if uid]
    profiles = await ProfileRepository(store).get_many(known_ids)
    presence = await PresenceRepository(store).get_many(known_ids)

    summaries: List[ConversationSummary] = []
    for conversation, other_id in zip(conversations, counterpart_ids):
        if not other_id:
            LOGGER.warning("Conversation %s has no counterpart for %s", conversation.id, user_id)
            continue
        profile = profiles.get(other_id)
        status = presence.get(other_id)
        summaries.append(
            ConversationSummary(
                conversation_id=conversation.id,
                user_id=other_id,
                user_name=(profile.full_name if profile and profile.full_name else "Unknown"),
                user_photo=(profile.photos[0] if profile and profile.photos else None),
                last_message=conversation.last_message,
                timestamp=conversation.last_message_time,
                unread_count=conversation.unread_count.get(user_id, 0),
                like_type=conversation.like_type,
                is_online=bool(status and status.is_online),
            )
        )
    return summaries


async def list_messages(
    store: DocumentStore, conversation_id: str, user_id: str, *, limit: Optional[int] = None
) -> List[MessageDocument]:
    conversation = await ConversationRepository(store).require(conversation_id)
    _require_participant(conversation, user_id)
    return await MessageRepository(store).list_for(conversation_id, limit=limit)


async def stream_messages(
    store: DocumentStore, conversation_id: str, user_id: str, *, interval: float = 1.0
) -> AsyncIterator[List[MessageDocument]]:
    """Yield the conversation's full message list each time it changes."""

    conversation = await ConversationRepository(store).require(conversation_id)
    _require_participant(conversation, user_id)
    async for messages in MessageRepository(store).snapshots(conversation_id, interval=interval):
        yield messages


__all__ = [
    "get_or_create_conversation",
    "list_conversations",
    "list_messages",
    "mark_conversation_as_read",
    "send_message",
    "stream_messages",
]
