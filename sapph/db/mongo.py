import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from .collections import (
    CONVERSATIONS_COLLECTION,
    LIKES_COLLECTION,
    MESSAGES_COLLECTION,
    PASSES_COLLECTION,
    PROFILES_COLLECTION,
)

LOGGER = logging.getLogger("uvicorn.error")


async def ensure_likes_indexes(db: AsyncIOMotorDatabase) -> None:
    collection = db[LIKES_COLLECTION]
    await collection.create_index(
        [("fromUserId", ASCENDING), ("toUserId", ASCENDING), ("likeType", ASCENDING)],
        name="likes_from_to_type_unique",
        unique=True,
    )
    await collection.create_index(
        [("toUserId", ASCENDING), ("likeType", ASCENDING)],
        name="likes_to_type_idx",
    )
    await collection.create_index(
        [("fromUserId", ASCENDING), ("matched", ASCENDING), ("likeType", ASCENDING)],
        name="likes_from_matched_idx",
    )


async def ensure_passes_indexes(db: AsyncIOMotorDatabase) -> None:
    await db[PASSES_COLLECTION].create_index(
        [("fromUserId", ASCENDING), ("createdAt", DESCENDING)],
        name="passes_from_idx",
    )


async def ensure_chat_indexes(db: AsyncIOMotorDatabase) -> None:
    await db[CONVERSATIONS_COLLECTION].create_index(
        [("participants", ASCENDING), ("likeType", ASCENDING), ("lastMessageTime", DESCENDING)],
        name="conversations_participant_type_idx",
    )
    await db[MESSAGES_COLLECTION].create_index(
        [("conversationId", ASCENDING), ("timestamp", ASCENDING)],
        name="messages_conversation_ts_idx",
    )


async def ensure_profile_indexes(db: AsyncIOMotorDatabase) -> None:
    await db[PROFILES_COLLECTION].create_index(
        [("onboarding_completed", ASCENDING)],
        name="profiles_onboarding_idx",
    )


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create every index the service relies on. Failures are logged, not raised."""

    for label, ensure in (
        ("likes", ensure_likes_indexes),
        ("passes", ensure_passes_indexes),
        ("chat", ensure_chat_indexes),
        ("profiles", ensure_profile_indexes),
    ):
        try:
            await ensure(db)
        except Exception as exc:  # pragma: no cover - best-effort logging
            LOGGER.error("Failed to ensure %s indexes: %s", label, exc)


__all__ = [
    "ensure_chat_indexes",
    "ensure_indexes",
    "ensure_likes_indexes",
    "ensure_passes_indexes",
    "ensure_profile_indexes",
]
