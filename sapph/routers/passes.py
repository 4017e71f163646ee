from fastapi import APIRouter, Depends, HTTPException, status

from ..db import get_store
from ..db.store import DocumentStore
from ..models.likes import ClearPassesResponse, PassRequest, PassResponse
from ..services.likes_service import clear_passes, record_pass
from .auth import require_viewer_id

router = APIRouter(prefix="/passes", tags=["passes"])


@router.post("", response_model=PassResponse)
async def create_pass(
    payload: PassRequest,
    viewer_id: str = Depends(require_viewer_id),
    store: DocumentStore = Depends(get_store),
):
    try:
        pass_id = await record_pass(store, viewer_id, payload.target_user_id.strip())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return PassResponse(pass_id=pass_id)


@router.delete("", response_model=ClearPassesResponse)
async def reset_passes(
    viewer_id: str = Depends(require_viewer_id),
    store: DocumentStore = Depends(get_store),
):
    """Forget every pass so previously skipped profiles show up in discovery again."""

    cleared = await clear_passes(store, viewer_id)
    return ClearPassesResponse(cleared=cleared)
