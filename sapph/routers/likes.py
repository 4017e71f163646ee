from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..db import get_store
from ..db.store import DocumentStore
from ..models.likes import (
    LikeRequest,
    LikeResponse,
    LikesReceivedResponse,
    LikeType,
    MatchesResponse,
)
from ..repositories.profile import ProfileRepository
from ..services.likes_service import get_likes_received, get_matches, record_like
from .auth import require_viewer_id

router = APIRouter(prefix="/likes", tags=["likes"])


@router.post("", response_model=LikeResponse)
async def create_like(
    payload: LikeRequest,
    viewer_id: str = Depends(require_viewer_id),
    store: DocumentStore = Depends(get_store),
):
    target_user_id = payload.target_user_id.strip()
    if not target_user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="target_user_id required")
    if target_user_id == viewer_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="cannot like yourself")

    if await ProfileRepository(store).get(target_user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="target user not found")

    try:
        result = await record_like(store, viewer_id, target_user_id, payload.like_type)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return LikeResponse(
        like_id=result.like_id,
        is_match=result.is_match,
        conversation_id=result.conversation_id,
    )


@router.get("/me", response_model=LikesReceivedResponse)
async def list_likes_received(
    like_type: Optional[LikeType] = Query(default=None),
    viewer_id: str = Depends(require_viewer_id),
    store: DocumentStore = Depends(get_store),
):
    profiles = await get_likes_received(store, viewer_id, like_type)
    return LikesReceivedResponse(liked_me=profiles)


@router.get("/matches", response_model=MatchesResponse)
async def list_matches(
    like_type: Optional[LikeType] = Query(default=None),
    viewer_id: str = Depends(require_viewer_id),
    store: DocumentStore = Depends(get_store),
):
    profiles = await get_matches(store, viewer_id, like_type)
    return MatchesResponse(matches=profiles)
