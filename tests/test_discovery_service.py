from __future__ import annotations

import asyncio
import random

import pytest
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from sapph.db.store import MongoDocumentStore
from sapph.models.profile import Coordinates, MatchingPreferences, Profile
from sapph.services.discovery_service import (
    DiscoverySession,
    classify_retrieval_error,
    fetch_discovery_profiles,
    get_discovery_profiles,
)
from sapph.services.likes_service import get_passed_ids, record_like, record_pass


class FailingStore(MongoDocumentStore):
    def __init__(self, database, exc: Exception) -> None:
        super().__init__(database)
        self._exc = exc

    async def query(self, *args, **kwargs):
        raise self._exc


class SlowStore(MongoDocumentStore):
    async def query(self, *args, **kwargs):
        await asyncio.sleep(1)
        return await super().query(*args, **kwargs)


async def _ids(store, viewer="viewer", **kwargs):
    profiles = await get_discovery_profiles(store, viewer, **kwargs)
    return sorted(p.id for p in profiles)


@pytest.mark.asyncio
async def test_excludes_viewer_seen_liked_and_passed(store, make_profile) -> None:
    for user in ("viewer", "p-liked", "p-passed", "p-session", "p-open"):
        await make_profile(user)
    await make_profile("p-onboarding", onboarding_completed=False)
    await make_profile("p-nameless", full_name="")
    await record_like(store, "viewer", "p-liked", "friendship")
    await record_pass(store, "viewer", "p-passed")

    assert await _ids(store, session_excluded_ids=["p-session"]) == ["p-open"]
    assert await _ids(store, session_excluded_ids=["p-session"], include_passed=True) == [
        "p-open",
        "p-passed",
    ]


@pytest.mark.asyncio
async def test_applies_viewer_preferences(store, make_profile) -> None:
    await make_profile("p-near", gender_identity="Woman", latitude=0, longitude=0.1)
    await make_profile("p-far", gender_identity="Woman", latitude=0, longitude=3)
    await make_profile("p-man", gender_identity="Man", latitude=0, longitude=0.1)
    await make_profile("p-private", gender_identity="Prefer not to say")

    prefs = MatchingPreferences(gender=["Woman"], distance=25)
    ids = await _ids(
        store,
        matching_preferences=prefs,
        viewer_coords=Coordinates(latitude=0, longitude=0),
    )
    assert ids == ["p-near", "p-private"]


@pytest.mark.asyncio
async def test_result_order_comes_from_injected_rng(store, make_profile) -> None:
    for index in range(8):
        await make_profile(f"p{index}")

    first = await get_discovery_profiles(store, "viewer", rng=random.Random(3))
    second = await get_discovery_profiles(store, "viewer", rng=random.Random(3))
    assert [p.id for p in first] == [p.id for p in second]
    assert sorted(p.id for p in first) == [f"p{index}" for index in range(8)]


@pytest.mark.asyncio
async def test_paginates_past_excluded_profiles(store, make_profile) -> None:
    for user in ("a1", "a2", "b1", "b2", "b3"):
        await make_profile(user)
    await record_like(store, "viewer", "a1", "heart")
    await record_like(store, "viewer", "a2", "heart")

    assert await _ids(store, max_results=2, max_pages=1) == []
    assert await _ids(store, max_results=2, max_pages=3) == ["b1", "b2"]
    assert await _ids(store, max_results=10, max_pages=1) == ["b1", "b2", "b3"]


@pytest.mark.asyncio
async def test_retrieval_errors_yield_empty_list(store, make_profile) -> None:
    await make_profile("p1")
    failing = FailingStore(store.database, OperationFailure("not authorized", code=13))
    assert await get_discovery_profiles(failing, "viewer") == []


@pytest.mark.asyncio
async def test_timeout_yields_empty_list(store, make_profile) -> None:
    await make_profile("p1")
    slow = SlowStore(store.database)
    assert await fetch_discovery_profiles(slow, "viewer", timeout=0.05) == []


def test_classify_retrieval_error() -> None:
    assert classify_retrieval_error(OperationFailure("denied", code=13)) == "permission-denied"
    assert classify_retrieval_error(OperationFailure("no index", code=291)) == "missing-index"
    assert classify_retrieval_error(ServerSelectionTimeoutError("down")) == "unavailable"
    assert classify_retrieval_error(RuntimeError("boom")) == "unknown"


def _viewer(**fields) -> Profile:
    return Profile(id="viewer", full_name="Viewer", onboarding_completed=True, **fields)


@pytest.mark.asyncio
async def test_session_never_serves_passed_profiles(store, make_profile) -> None:
    for user in ("p1", "p2", "p3"):
        await make_profile(user)
    session = DiscoverySession(store, _viewer(), rng=random.Random(1))

    assert await session.load() is not None
    seen = []
    while session.current is not None:
        seen.append(session.current.id)
        await session.pass_current()
        assert not set(session.passed_ids) & {p.id for p in session.profiles}

    assert sorted(seen) == ["p1", "p2", "p3"]
    assert await get_passed_ids(store, "viewer") == {"p1", "p2", "p3"}

    restored = await session.reload_all()
    assert restored is not None
    assert sorted(p.id for p in session.profiles) == ["p1", "p2", "p3"]
    assert session.passed_ids == ()
    assert await get_passed_ids(store, "viewer") == set()


@pytest.mark.asyncio
async def test_session_undo_pass_restores_profile(store, make_profile) -> None:
    for user in ("p1", "p2"):
        await make_profile(user)
    session = DiscoverySession(store, _viewer(), rng=random.Random(2))
    await session.load()

    passed = session.current.id
    await session.pass_current()
    assert session.current.id != passed

    restored = await session.undo_pass()
    assert restored is not None and restored.id == passed
    assert await get_passed_ids(store, "viewer") == set()
    assert await session.undo_pass() is None


@pytest.mark.asyncio
async def test_session_like_advances_and_skips_liked(store, make_profile) -> None:
    await make_profile("p1")
    session = DiscoverySession(store, _viewer())
    await session.load()

    result = await session.like_current("heart")
    assert result is not None and result.is_match is False
    assert session.current is None
    assert await session.like_current() is None


@pytest.mark.asyncio
async def test_session_waits_for_onboarding(store, make_profile) -> None:
    await make_profile("p1")
    session = DiscoverySession(store, Profile(id="viewer", onboarding_completed=False))
    assert await session.load() is None
    assert session.profiles == []
