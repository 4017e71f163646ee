"""Profile endpoints for the signed-in user and profile lookups."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ..models.profile import Coordinates, PreferencesUpdate, Profile, ProfileUpdate
from ..repositories.exceptions import NotFoundRepositoryError
from ..services.profile_service import ProfileService, get_profile_service
from .auth import require_viewer_id

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me", response_model=Profile)
async def get_my_profile(
    viewer_id: str = Depends(require_viewer_id),
    service: ProfileService = Depends(get_profile_service),
) -> Profile:
    return await service.fetch_profile_with_fallback(viewer_id)


@router.patch("/me", response_model=Profile)
async def update_my_profile(
    payload: ProfileUpdate,
    viewer_id: str = Depends(require_viewer_id),
    service: ProfileService = Depends(get_profile_service),
) -> Profile:
    try:
        return await service.update_profile(viewer_id, payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except NotFoundRepositoryError:
        raise HTTPException(status_code=404, detail="profile not found") from None


@router.put("/me/preferences", response_model=Profile)
async def update_my_preferences(
    payload: PreferencesUpdate,
    viewer_id: str = Depends(require_viewer_id),
    service: ProfileService = Depends(get_profile_service),
) -> Profile:
    return await service.update_matching_preferences(viewer_id, payload)


@router.put("/me/location", response_model=Profile)
async def update_my_location(
    payload: Coordinates,
    viewer_id: str = Depends(require_viewer_id),
    service: ProfileService = Depends(get_profile_service),
) -> Profile:
    return await service.update_location(viewer_id, payload)


@router.post("/me/reset", response_model=Profile)
async def start_over(
    viewer_id: str = Depends(require_viewer_id),
    service: ProfileService = Depends(get_profile_service),
) -> Profile:
    try:
        return await service.start_over(viewer_id)
    except NotFoundRepositoryError:
        raise HTTPException(status_code=404, detail="profile not found") from None


@router.get("/{user_id}", response_model=Profile)
async def get_profile(
    user_id: str,
    _: str = Depends(require_viewer_id),
    service: ProfileService = Depends(get_profile_service),
) -> Profile:
    try:
        return await service.get_profile(user_id.strip())
    except NotFoundRepositoryError:
        raise HTTPException(status_code=404, detail="profile not found") from None
