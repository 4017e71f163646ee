from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

from pymongo.errors import PyMongoError

from ..config import get_settings
from ..db import get_store
from ..models.profile import (
    GOALS_KEY,
    LEGACY_GOALS_KEY,
    Coordinates,
    PreferencesUpdate,
    Profile,
    ProfileUpdate,
)
from ..repositories.exceptions import NotFoundRepositoryError
from ..repositories.profile import ProfileRepository
from ..utils.dates import age_from_dob, utc_now_iso

LOGGER = logging.getLogger("uvicorn.error")


class ProfileService:
    """Profile lifecycle: first sign-in, onboarding edits, preferences and location."""

    def __init__(
        self,
        repository: ProfileRepository,
        *,
        fetch_timeout: float = 10.0,
        fetch_retries: int = 2,
        backoff_seconds: float = 1.0,
    ) -> None:
        self._repository = repository
        self._fetch_timeout = fetch_timeout
        self._fetch_retries = max(0, fetch_retries)
        self._backoff = backoff_seconds

    async def fetch_profile(self, user_id: str) -> Profile:
        """Return the user's profile, creating the empty one on first sign-in."""

        if not user_id:
            raise ValueError("user id is required")
        profile = await self._repository.get(user_id)
        if profile is not None:
            return profile
        LOGGER.info("Creating empty profile for %s", user_id)
        return await self._repository.create_empty(user_id, updated_at=utc_now_iso())

    async def fetch_profile_with_fallback(self, user_id: str) -> Profile:
        """``fetch_profile`` with a timeout and retries; never returns None.

        After the last retry one direct read is attempted, and if that fails too
        the caller gets a minimal not-yet-onboarded profile.
        """

        for attempt in range(self._fetch_retries + 1):
            try:
                return await asyncio.wait_for(self.fetch_profile(user_id), timeout=self._fetch_timeout)
            except (asyncio.TimeoutError, PyMongoError) as exc:
                LOGGER.warning(
                    "Profile fetch for %s failed (attempt %d/%d): %s",
                    user_id,
                    attempt + 1,
                    self._fetch_retries + 1,
                    str(exc) or type(exc).__name__,
                )
                if attempt < self._fetch_retries:
                    await asyncio.sleep(self._backoff * (attempt + 1))

        try:
            profile = await self._repository.get(user_id)
            if profile is not None:
                return profile
            return await self._repository.create_empty(user_id, updated_at=utc_now_iso())
        except PyMongoError as exc:
            LOGGER.error("Direct profile check for %s failed: %s", user_id, exc)
            return Profile(id=user_id, onboarding_completed=False)

    async def get_profile(self, user_id: str) -> Profile:
        profile = await self._repository.get(user_id)
        if profile is None:
            raise NotFoundRepositoryError("profile not found")
        return profile

    async def _ensure_exists(self, user_id: str) -> Profile:
        return await self._repository.create_empty(user_id, updated_at=utc_now_iso())

    async def update_profile(self, user_id: str, payload: ProfileUpdate) -> Profile:
        updates: Dict[str, Any] = payload.model_dump(exclude_unset=True)
        if "dob" in updates and updates["dob"] is not None and age_from_dob(updates["dob"]) is None:
            raise ValueError("dob must be a valid date in the past")
        if "full_name" in updates and isinstance(updates["full_name"], str):
            updates["full_name"] = updates["full_name"].strip()
        await self._ensure_exists(user_id)
        updates["updated_at"] = utc_now_iso()
        return await self._repository.update_fields(user_id, updates)

    async def update_matching_preferences(self, user_id: str, payload: PreferencesUpdate) -> Profile:
        """Partially update ``matching_preferences``; keys not in the payload are kept."""

        changes = payload.model_dump(exclude_unset=True, by_alias=True)
        changes.pop(LEGACY_GOALS_KEY, None)
        profile = await self._ensure_exists(user_id)
        updates: Dict[str, Any]
        removals: List[str] = []
        if profile.matching_preferences is None:
            updates = {"matching_preferences": changes}
        else:
            updates = {f"matching_preferences.{key}": value for key, value in changes.items()}
            if GOALS_KEY in changes:
                removals.append(f"matching_preferences.{LEGACY_GOALS_KEY}")
        updates["updated_at"] = utc_now_iso()
        return await self._repository.update_fields(user_id, updates, removals=removals)

    async def update_location(self, user_id: str, coords: Coordinates) -> Profile:
        await self._ensure_exists(user_id)
        now = utc_now_iso()
        return await self._repository.update_fields(
            user_id,
            {
                "latitude": coords.latitude,
                "longitude": coords.longitude,
                "location_updated_at": now,
                "updated_at": now,
            },
        )

    async def start_over(self, user_id: str) -> Profile:
        """Send the user back through onboarding; photos are cleared."""

        return await self._repository.update_fields(
            user_id,
            {"onboarding_completed": False, "photos": [], "updated_at": utc_now_iso()},
        )


def get_profile_service() -> ProfileService:
    settings = get_settings()
    return ProfileService(
        ProfileRepository(get_store()),
        fetch_timeout=settings.profile_fetch_timeout_seconds,
        fetch_retries=settings.profile_fetch_retries,
    )


__all__ = ["ProfileService", "get_profile_service"]
