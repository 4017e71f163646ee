from __future__ import annotations

from typing import Dict, Iterable, Optional

from ..db.collections import PRESENCE_COLLECTION
from ..db.store import DOCUMENT_ID, DocumentStore, where
from ..models.presence import Presence


class PresenceRepository:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def upsert(self, user_id: str, *, is_online: bool, now_ms: int) -> Presence:
        document = {
            "userId": user_id,
            "isOnline": is_online,
            "lastSeen": now_ms,
            "updatedAt": now_ms,
        }
        await self._store.set(PRESENCE_COLLECTION, user_id, document, merge=True)
        return Presence.model_validate(document)

    async def get(self, user_id: str) -> Optional[Presence]:
        doc = await self._store.get(PRESENCE_COLLECTION, user_id)
        if doc is None:
            return None
        return Presence.model_validate({"userId": user_id, **doc})

    async def get_many(self, user_ids: Iterable[str]) -> Dict[str, Presence]:
        ids = sorted(set(user_ids))
        if not ids:
            return {}
        rows = await self._store.query(PRESENCE_COLLECTION, [where(DOCUMENT_ID, "in", ids)])
        return {doc_id: Presence.model_validate({"userId": doc_id, **doc}) for doc_id, doc in rows}


__all__ = ["PresenceRepository"]
