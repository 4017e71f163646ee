from __future__ import annotations

import pytest

from sapph.db.collections import CONVERSATIONS_COLLECTION, LIKES_COLLECTION
from sapph.repositories.likes import like_document_id
from sapph.services.likes_service import (
    check_match,
    clear_passes,
    get_likes_received,
    get_matches,
    get_passed_ids,
    record_like,
    record_pass,
)


@pytest.mark.asyncio
async def test_record_like_is_idempotent(store) -> None:
    first = await record_like(store, "alex", "blair", "heart")
    second = await record_like(store, "alex", "blair", "heart")

    assert first.like_id == second.like_id == like_document_id("alex", "blair", "heart")
    assert first.is_match is False
    assert len(await store.query(LIKES_COLLECTION)) == 1


@pytest.mark.asyncio
async def test_like_types_are_independent(store) -> None:
    await record_like(store, "alex", "blair", "heart")
    result = await record_like(store, "blair", "alex", "friendship")
    assert result.is_match is False
    assert len(await store.query(LIKES_COLLECTION)) == 2


@pytest.mark.asyncio
async def test_cannot_like_yourself(store) -> None:
    with pytest.raises(ValueError):
        await record_like(store, "alex", "alex", "heart")


@pytest.mark.asyncio
async def test_mutual_like_creates_match_and_one_conversation(store) -> None:
    await record_like(store, "alex", "blair", "heart")
    result = await record_like(store, "blair", "alex", "heart")

    assert result.is_match is True
    assert result.conversation_id == "conv:alex|blair|heart"
    for doc_id, like in await store.query(LIKES_COLLECTION):
        assert like["matched"] is True, doc_id

    conversations = await store.query(CONVERSATIONS_COLLECTION)
    assert len(conversations) == 1
    conv_id, conversation = conversations[0]
    assert conv_id == result.conversation_id
    assert conversation["participants"] == ["alex", "blair"]
    assert conversation["likeType"] == "heart"
    assert conversation["unreadCount"] == {"alex": 0, "blair": 0}
    assert conversation["lastMessage"] == ""

    again = await record_like(store, "blair", "alex", "heart")
    assert again == result
    assert len(await store.query(CONVERSATIONS_COLLECTION)) == 1
    assert await check_match(store, "alex", "blair", "heart")
    assert not await check_match(store, "alex", "blair", "friendship")


@pytest.mark.asyncio
async def test_legacy_random_id_like_is_reused(store) -> None:
    await store.set(
        LIKES_COLLECTION,
        "Xk2legacyId",
        {"fromUserId": "alex", "toUserId": "blair", "likeType": "heart", "matched": False, "createdAt": 1},
    )
    result = await record_like(store, "alex", "blair", "heart")
    assert result.like_id == "Xk2legacyId"
    assert len(await store.query(LIKES_COLLECTION)) == 1

    match = await record_like(store, "blair", "alex", "heart")
    assert match.is_match is True
    assert (await store.get(LIKES_COLLECTION, "Xk2legacyId"))["matched"] is True


@pytest.mark.asyncio
async def test_likes_received_and_matches(store, make_profile) -> None:
    for user in ("alex", "blair", "casey"):
        await make_profile(user)
    await record_like(store, "blair", "alex", "heart")
    await record_like(store, "casey", "alex", "friendship")
    await record_like(store, "alex", "blair", "heart")
    await record_like(store, "ghost", "alex", "heart")

    received = await get_likes_received(store, "alex")
    assert {p.id for p in received} == {"blair", "casey"}
    hearts = await get_likes_received(store, "alex", "heart")
    assert [(p.id, p.like_type, p.matched) for p in hearts] == [("blair", "heart", True)]

    matches = await get_matches(store, "alex")
    assert len(matches) == 1
    assert matches[0].id == "blair"
    assert matches[0].full_name == "Blair"
    assert matches[0].conversation_id == "conv:alex|blair|heart"
    assert await get_matches(store, "alex", "friendship") == []


@pytest.mark.asyncio
async def test_passes_record_and_clear(store) -> None:
    first = await record_pass(store, "alex", "blair")
    again = await record_pass(store, "alex", "blair")
    await record_pass(store, "alex", "casey")
    await record_pass(store, "drew", "alex")

    assert first == again == "pass:alex|blair"
    assert await get_passed_ids(store, "alex") == {"blair", "casey"}
    assert await clear_passes(store, "alex") == 2
    assert await get_passed_ids(store, "alex") == set()
    assert await get_passed_ids(store, "drew") == {"alex"}

    with pytest.raises(ValueError):
        await record_pass(store, "alex", "alex")


@pytest.mark.asyncio
async def test_like_fields_override_stray_profile_keys(store, make_profile) -> None:
    await make_profile("alex")
    await make_profile(
        "blair", matched="yes", like_type="wink", liked_at="yesterday", conversation_id="stale"
    )
    await record_like(store, "blair", "alex", "heart")
    await record_like(store, "alex", "blair", "heart")

    [received] = await get_likes_received(store, "alex")
    assert (received.like_type, received.matched) == ("heart", True)
    assert isinstance(received.liked_at, int)

    [match] = await get_matches(store, "alex")
    assert match.conversation_id == "conv:alex|blair|heart"
