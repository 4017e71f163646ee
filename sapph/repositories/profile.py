"""Repository helpers for profile documents."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence

from pydantic import ValidationError

from ..db.collections import PROFILES_COLLECTION
from ..db.store import ASCENDING, DOCUMENT_ID, DocumentStore, where
from ..models.profile import Profile
from .exceptions import NotFoundRepositoryError

LOGGER = logging.getLogger("uvicorn.error")


class ProfilePage(NamedTuple):
    profiles: List[Profile]
    last_id: Optional[str]
    exhausted: bool


def _parse(doc_id: str, document: Dict[str, Any]) -> Optional[Profile]:
    try:
        return Profile.from_document(doc_id, document)
    except ValidationError as exc:
        LOGGER.warning("Skipping malformed profile %s: %s", doc_id, exc)
        return None


class ProfileRepository:
    """Access layer for the ``profiles`` collection (document id = user id)."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get(self, user_id: str) -> Optional[Profile]:
        doc = await self._store.get(PROFILES_COLLECTION, user_id)
        return _parse(user_id, doc) if doc is not None else None

    async def get_many(self, user_ids: Iterable[str]) -> Dict[str, Profile]:
        ids = sorted(set(user_ids))
        if not ids:
            return {}
        rows = await self._store.query(PROFILES_COLLECTION, [where(DOCUMENT_ID, "in", ids)])
        profiles: Dict[str, Profile] = {}
        for doc_id, document in rows:
            profile = _parse(doc_id, document)
            if profile:
                profiles[doc_id] = profile
        return profiles

    async def create_empty(self, user_id: str, *, updated_at: str) -> Profile:
        """Create the blank profile a user gets on first sign-in; no-op if one exists."""

        created = await self._store.create(
            PROFILES_COLLECTION,
            user_id,
            {"onboarding_completed": False, "updated_at": updated_at},
        )
        if not created:
            existing = await self.get(user_id)
            if existing:
                return existing
        return Profile(id=user_id, onboarding_completed=False, updated_at=updated_at)

    async def update_fields(
        self, user_id: str, updates: Dict[str, Any], *, removals: Sequence[str] = ()
    ) -> Profile:
        found = await self._store.update(PROFILES_COLLECTION, user_id, updates, removals=removals)
        if not found:
            raise NotFoundRepositoryError("profile not found")
        profile = await self.get(user_id)
        if profile is None:  # pragma: no cover - deleted between calls
            raise NotFoundRepositoryError("profile not found")
        return profile

    async def discoverable_page(self, *, limit: int, after_id: Optional[str] = None) -> ProfilePage:
        """One page of onboarded profiles in id order, starting after ``after_id``."""

        predicates = [where("onboarding_completed", "==", True)]
        if after_id is not None:
            predicates.append(where(DOCUMENT_ID, ">", after_id))
        rows = await self._store.query(
            PROFILES_COLLECTION,
            predicates,
            order_by=[(DOCUMENT_ID, ASCENDING)],
            limit=limit,
        )
        profiles = [p for p in (_parse(doc_id, doc) for doc_id, doc in rows) if p is not None]
        return ProfilePage(
            profiles=profiles,
            last_id=rows[-1][0] if rows else after_id,
            exhausted=len(rows) < limit,
        )


__all__ = ["ProfilePage", "ProfileRepository"]
