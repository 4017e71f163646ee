from typing import List

from fastapi import APIRouter, Depends, Query

from ..config import get_settings
from ..db import get_store
from ..db.store import DocumentStore
from ..models.profile import DiscoveryResponse
from ..repositories.profile import ProfileRepository
from ..services.discovery_service import fetch_discovery_profiles
from .auth import require_viewer_id

router = APIRouter(tags=["discovery"])


@router.get("/discovery", response_model=DiscoveryResponse)
async def discover(
    exclude: List[str] = Query(default=[]),
    include_passed: bool = Query(default=False),
    limit: int = Query(default=0, ge=0, le=200),
    viewer_id: str = Depends(require_viewer_id),
    store: DocumentStore = Depends(get_store),
) -> DiscoveryResponse:
    """Shuffled candidates for the viewer; ``exclude`` carries ids already seen this session."""

    viewer = await ProfileRepository(store).get(viewer_id)
    if viewer is None or not viewer.onboarding_completed:
        return DiscoveryResponse()

    settings = get_settings()
    profiles = await fetch_discovery_profiles(
        store,
        viewer_id,
        [item.strip() for item in exclude if item.strip()],
        limit or settings.discovery_page_size,
        timeout=settings.discovery_timeout_seconds,
        include_passed=include_passed,
        matching_preferences=viewer.matching_preferences,
        viewer_coords=viewer.coordinates,
        max_pages=settings.discovery_max_pages,
    )
    return DiscoveryResponse(profiles=profiles)
