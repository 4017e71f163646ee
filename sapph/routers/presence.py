from fastapi import APIRouter, Depends

from ..db import get_store
from ..db.store import DocumentStore
from ..models.presence import Presence, PresenceUpdate
from ..services.presence_service import get_presence, update_presence
from .auth import require_viewer_id

router = APIRouter(prefix="/presence", tags=["presence"])


@router.put("", response_model=Presence)
async def set_presence(
    payload: PresenceUpdate,
    viewer_id: str = Depends(require_viewer_id),
    store: DocumentStore = Depends(get_store),
):
    return await update_presence(store, viewer_id, payload.is_online)


@router.get("/{user_id}", response_model=Presence)
async def read_presence(
    user_id: str,
    _: str = Depends(require_viewer_id),
    store: DocumentStore = Depends(get_store),
):
    presence = await get_presence(store, user_id)
    if presence is None:
        return Presence(user_id=user_id, is_online=False)
    return presence
