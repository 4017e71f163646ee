from typing import Optional

from ..db.store import DocumentStore
from ..models.presence import Presence
from ..repositories.presence import PresenceRepository
from ..utils.dates import now_ms


async def update_presence(store: DocumentStore, user_id: str, is_online: bool) -> Presence:
    return await PresenceRepository(store).upsert(user_id, is_online=is_online, now_ms=now_ms())


async def get_presence(store: DocumentStore, user_id: str) -> Optional[Presence]:
    return await PresenceRepository(store).get(user_id)


__all__ = ["get_presence", "update_presence"]
