import logging
from typing import List, NamedTuple, Optional, Set

from ..db.store import DocumentStore
from ..models.likes import LikedProfile, LikeType
from ..repositories.conversation import ConversationRepository
from ..repositories.likes import LikeRepository, PassRepository
from ..repositories.profile import ProfileRepository
from ..utils.dates import now_ms
from .chat_service import get_or_create_conversation

LOGGER = logging.getLogger("uvicorn.error")


class LikeResult(NamedTuple):
    like_id: str
    is_match: bool
    conversation_id: Optional[str] = None


async def check_match(store: DocumentStore, user_a: str, user_b: str, like_type: LikeType) -> bool:
    if user_a == user_b:
        return False
    likes = LikeRepository(store)
    forward = await likes.find(user_a, user_b, like_type)
    if forward is None:
        return False
    return await likes.find(user_b, user_a, like_type) is not None


async def record_like(
    store: DocumentStore, from_user_id: str, to_user_id: str, like_type: LikeType
) -> LikeResult:
    """Record ``from_user_id`` liking ``to_user_id`` and resolve a mutual match.

    The like is written under a deterministic id with a conditional create,
    so repeated or concurrent calls converge on a single edge. Match handling
    runs on every call and is idempotent: both edges get ``matched`` and the
    pair's conversation is created once.
    """

    if from_user_id == to_user_id:
        raise ValueError("Users cannot like themselves")

    likes = LikeRepository(store)
    existing = await likes.find(from_user_id, to_user_id, like_type)
    if existing is not None:
        like_id = existing.id
    else:
        await likes.create(from_user_id, to_user_id, like_type, created_at=now_ms())
        like = await likes.find(from_user_id, to_user_id, like_type)
        if like is None:  # pragma: no cover - write not visible yet
            raise RuntimeError("like was not persisted")
        like_id = like.id

    reverse = await likes.find(to_user_id, from_user_id, like_type)
    if reverse is None:
        return LikeResult(like_id=like_id, is_match=False)

    await likes.mark_matched(like_id)
    await likes.mark_matched(reverse.id)
    conversation_id = await get_or_create_conversation(store, from_user_id, to_user_id, like_type)
    LOGGER.info("Match %s <-> %s (%s) conversation=%s", from_user_id, to_user_id, like_type, conversation_id)
    return LikeResult(like_id=like_id, is_match=True, conversation_id=conversation_id)


async def get_likes_received(
    store: DocumentStore, user_id: str, like_type: Optional[LikeType] = None
) -> List[LikedProfile]:
    """Profiles of everyone who liked ``user_id``, newest first."""

    likes = await LikeRepository(store).received(user_id, like_type)
    profiles = await ProfileRepository(store).get_many(like.from_user_id for like in likes)
    results: List[LikedProfile] = []
    for like in likes:
        profile = profiles.get(like.from_user_id)
        if profile is None:
            continue
        results.append(
            LikedProfile.model_validate(
                {
                    **profile.model_dump(),
                    "like_type": like.like_type,
                    "matched": like.matched,
                    "liked_at": like.created_at,
                }
            )
        )
    return results


async def get_matches(
    store: DocumentStore, user_id: str, like_type: Optional[LikeType] = None
) -> List[LikedProfile]:
    """Mutual matches of ``user_id`` with the conversation each one opened."""

    likes = await LikeRepository(store).matched_from(user_id, like_type)
    profiles = await ProfileRepository(store).get_many(like.to_user_id for like in likes)
    conversations = ConversationRepository(store)
    results: List[LikedProfile] = []
    for like in likes:
        profile = profiles.get(like.to_user_id)
        if profile is None:
            continue
        conversation_id = await conversations.find_between(user_id, like.to_user_id, like.like_type)
        results.append(
            LikedProfile.model_validate(
                {
                    **profile.model_dump(),
                    "like_type": like.like_type,
                    "matched": True,
                    "liked_at": like.created_at,
                    "conversation_id": conversation_id,
                }
            )
        )
    return results


async def record_pass(store: DocumentStore, from_user_id: str, to_user_id: str) -> str:
    if from_user_id == to_user_id:
        raise ValueError("Users cannot pass on themselves")
    return await PassRepository(store).record(from_user_id, to_user_id, created_at=now_ms())


async def remove_pass(store: DocumentStore, from_user_id: str, to_user_id: str) -> int:
    return await PassRepository(store).remove(from_user_id, to_user_id)


async def get_passed_ids(store: DocumentStore, user_id: str) -> Set[str]:
    return await PassRepository(store).passed_user_ids(user_id)


async def clear_passes(store: DocumentStore, user_id: str) -> int:
    cleared = await PassRepository(store).clear(user_id)
    LOGGER.info("Cleared %d passes for %s", cleared, user_id)
    return cleared


__all__ = [
    "LikeResult",
    "check_match",
    "clear_passes",
    "get_likes_received",
    "get_matches",
    "get_passed_ids",
    "record_like",
    "record_pass",
    "remove_pass",
]
