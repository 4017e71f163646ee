"""Candidate discovery: fetch, exclude, filter and shuffle profiles for a viewer."""

from __future__ import annotations

import asyncio
import logging
import random
from datetime import date
from typing import Iterable, List, Optional, Sequence, Set

from pymongo.errors import ConnectionFailure, ExecutionTimeout, OperationFailure

from ..db.store import DocumentStore
from ..models.likes import LikeType
from ..models.profile import Coordinates, MatchingPreferences, Profile
from ..repositories.likes import LikeRepository, PassRepository
from ..repositories.profile import ProfileRepository
from .likes_service import LikeResult, clear_passes, record_like, record_pass, remove_pass
from .preference_filter import passes_filters

LOGGER = logging.getLogger("uvicorn.error")

DEFAULT_MAX_RESULTS = 50
DEFAULT_MAX_PAGES = 3
DEFAULT_TIMEOUT_SECONDS = 15.0

# Mongo server error codes
_PERMISSION_CODES = {13, 18}
_INDEX_CODES = {27, 85, 86, 291}


def classify_retrieval_error(exc: BaseException) -> str:
    """Bucket a retrieval failure so the log says what to go and fix."""

    if isinstance(exc, OperationFailure) and not isinstance(exc, ExecutionTimeout):
        if exc.code in _PERMISSION_CODES:
            return "permission-denied"
        if exc.code in _INDEX_CODES:
            return "missing-index"
    if isinstance(exc, (ConnectionFailure, ExecutionTimeout)):
        return "unavailable"
    return "unknown"


def _log_retrieval_error(viewer_id: str, exc: Exception) -> None:
    kind = classify_retrieval_error(exc)
    if kind == "permission-denied":
        LOGGER.error("[discovery] permission denied reading profiles for %s: %s", viewer_id, exc)
    elif kind == "missing-index":
        LOGGER.error("[discovery] missing index while reading profiles for %s: %s", viewer_id, exc)
    elif kind == "unavailable":
        LOGGER.warning("[discovery] store temporarily unavailable for %s: %s", viewer_id, exc)
    else:
        LOGGER.exception("[discovery] failed to load profiles for %s", viewer_id)


async def _excluded_ids(
    store: DocumentStore,
    viewer_id: str,
    session_excluded_ids: Iterable[str],
    include_passed: bool,
) -> Set[str]:
    excluded = set(session_excluded_ids)
    excluded |= await LikeRepository(store).liked_user_ids(viewer_id)
    if not include_passed:
        excluded |= await PassRepository(store).passed_user_ids(viewer_id)
    excluded.add(viewer_id)
    return excluded


async def _collect(
    store: DocumentStore,
    viewer_id: str,
    session_excluded_ids: Iterable[str],
    max_results: int,
    *,
    include_passed: bool,
    matching_preferences: Optional[MatchingPreferences],
    viewer_coords: Optional[Coordinates],
    max_pages: int,
    today: Optional[date],
) -> List[Profile]:
    excluded = await _excluded_ids(store, viewer_id, session_excluded_ids, include_passed)
    repository = ProfileRepository(store)

    eligible: List[Profile] = []
    scanned = skipped = nameless = 0
    after_id: Optional[str] = None
    for _ in range(max(1, max_pages)):
        page = await repository.discoverable_page(limit=max_results, after_id=after_id)
        scanned += len(page.profiles)
        for profile in page.profiles:
            if profile.id in excluded:
                skipped += 1
            elif not profile.is_discoverable:
                nameless += 1
            elif not passes_filters(profile, matching_preferences, viewer_coords, today=today):
                skipped += 1
            else:
                eligible.append(profile)
                if len(eligible) >= max_results:
                    break
        if len(eligible) >= max_results or page.exhausted:
            break
        after_id = page.last_id

    LOGGER.debug(
        "[discovery] viewer=%s scanned=%d excluded=%d nameless=%d returning=%d",
        viewer_id,
        scanned,
        skipped,
        nameless,
        len(eligible),
    )
    return eligible


async def get_discovery_profiles(
    store: DocumentStore,
    viewer_id: str,
    session_excluded_ids: Iterable[str] = (),
    max_results: int = DEFAULT_MAX_RESULTS,
    *,
    include_passed: bool = False,
    matching_preferences: Optional[MatchingPreferences] = None,
    viewer_coords: Optional[Coordinates] = None,
    rng: Optional[random.Random] = None,
    max_pages: int = DEFAULT_MAX_PAGES,
    today: Optional[date] = None,
) -> List[Profile]:
    """Return up to ``max_results`` eligible candidates in random order.

    The viewer, ``session_excluded_ids``, everyone the viewer liked and (unless
    ``include_passed``) everyone they passed on are never returned. Pages of
    ``max_results`` onboarded profiles are read in id order until enough
    candidates pass the viewer's preferences, the collection runs out, or
    ``max_pages`` pages were read. Retrieval errors are logged and produce an
    empty list.
    """

    if max_results <= 0:
        return []
    try:
        profiles = await _collect(
            store,
            viewer_id,
            session_excluded_ids,
            max_results,
            include_passed=include_passed,
            matching_preferences=matching_preferences,
            viewer_coords=viewer_coords,
            max_pages=max_pages,
            today=today,
        )
    except Exception as exc:
        _log_retrieval_error(viewer_id, exc)
        return []

    (rng or random.Random()).shuffle(profiles)
    return profiles


async def fetch_discovery_profiles(
    store: DocumentStore,
    viewer_id: str,
    session_excluded_ids: Iterable[str] = (),
    max_results: int = DEFAULT_MAX_RESULTS,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    **options,
) -> List[Profile]:
    """``get_discovery_profiles`` raced against ``timeout``; a timeout yields no results."""

    try:
        return await asyncio.wait_for(
            get_discovery_profiles(store, viewer_id, session_excluded_ids, max_results, **options),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        LOGGER.warning("[discovery] profile load for %s timed out after %.1fs", viewer_id, timeout)
        return []


class DiscoverySession:
    """One viewer's swipe session: a candidate queue plus the ids passed so far.

    Passed ids are sent back as exclusions on every reload, so a profile the
    viewer passed is not served again during the session even before the
    stored pass is visible to queries.
    """

    def __init__(
        self,
        store: DocumentStore,
        viewer: Profile,
        *,
        page_size: int = DEFAULT_MAX_RESULTS,
        max_pages: int = DEFAULT_MAX_PAGES,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        rng: Optional[random.Random] = None,
        today: Optional[date] = None,
    ) -> None:
        self._store = store
        self._viewer = viewer
        self._page_size = page_size
        self._max_pages = max_pages
        self._timeout = timeout
        self._rng = rng
        self._today = today
        self._queue: List[Profile] = []
        self._passed: List[str] = []
        self._include_passed = False
        self.loaded = False

    @property
    def viewer(self) -> Profile:
        return self._viewer

    @property
    def current(self) -> Optional[Profile]:
        return self._queue[0] if self._queue else None

    @property
    def profiles(self) -> List[Profile]:
        return list(self._queue)

    @property
    def passed_ids(self) -> Sequence[str]:
        return tuple(self._passed)

    async def load(self) -> Optional[Profile]:
        viewer = self._viewer
        if not viewer.onboarding_completed:
            self._queue = []
            return None
        include_passed, self._include_passed = self._include_passed, False
        self._queue = await fetch_discovery_profiles(
            self._store,
            viewer.id,
            self._passed,
            self._page_size,
            timeout=self._timeout,
            include_passed=include_passed,
            matching_preferences=viewer.matching_preferences,
            viewer_coords=viewer.coordinates,
            rng=self._rng,
            max_pages=self._max_pages,
            today=self._today,
        )
        self.loaded = True
        return self.current

    async def advance(self) -> Optional[Profile]:
        """Drop the current profile; refill from the store once the queue runs dry."""

        if len(self._queue) <= 1:
            self._queue = []
            return await self.load()
        self._queue.pop(0)
        return self.current

    async def pass_current(self) -> Optional[Profile]:
        current = self.current
        if current is None:
            return None
        await record_pass(self._store, self._viewer.id, current.id)
        self._passed.append(current.id)
        return await self.advance()

    async def undo_pass(self) -> Optional[Profile]:
        """Bring back the most recently passed profile, if it is still discoverable."""

        if not self._passed:
            return None
        target_id = self._passed.pop()
        await remove_pass(self._store, self._viewer.id, target_id)
        profile = await ProfileRepository(self._store).get(target_id)
        if profile is not None and profile.is_discoverable:
            self._queue.insert(0, profile)
        return self.current

    async def like_current(self, like_type: LikeType = "heart") -> Optional[LikeResult]:
        current = self.current
        if current is None:
            return None
        result = await record_like(self._store, self._viewer.id, current.id, like_type)
        await self.advance()
        return result

    async def reload_all(self) -> Optional[Profile]:
        """Forget every pass, stored and in-session, and start over."""

        await clear_passes(self._store, self._viewer.id)
        self._passed = []
        self._include_passed = True
        return await self.load()


__all__ = [
    "DEFAULT_MAX_PAGES",
    "DEFAULT_MAX_RESULTS",
    "DiscoverySession",
    "classify_retrieval_error",
    "fetch_discovery_profiles",
    "get_discovery_profiles",
]
