"""Repository helpers for like and pass edges."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Set

from ..db.collections import LIKES_COLLECTION, PASSES_COLLECTION
from ..db.store import DESCENDING, DocumentStore, where
from ..models.likes import LikeDocument, LikeType


def like_document_id(from_user_id: str, to_user_id: str, like_type: str) -> str:
    return f"like:{from_user_id}|{to_user_id}|{like_type}"


def pass_document_id(from_user_id: str, to_user_id: str) -> str:
    return f"pass:{from_user_id}|{to_user_id}"


def _to_like(doc_id: str, document: Dict[str, Any]) -> LikeDocument:
    return LikeDocument.model_validate({**document, "id": doc_id})


class LikeRepository:
    """Directed like edges; one document per (from, to, likeType)."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def find(self, from_user_id: str, to_user_id: str, like_type: LikeType) -> Optional[LikeDocument]:
        doc_id = like_document_id(from_user_id, to_user_id, like_type)
        doc = await self._store.get(LIKES_COLLECTION, doc_id)
        if doc is not None:
            return _to_like(doc_id, doc)
        # Older clients wrote likes under random ids
        rows = await self._store.query(
            LIKES_COLLECTION,
            [
                where("fromUserId", "==", from_user_id),
                where("toUserId", "==", to_user_id),
                where("likeType", "==", like_type),
            ],
            limit=1,
        )
        return _to_like(*rows[0]) if rows else None

    async def create(
        self,
        from_user_id: str,
        to_user_id: str,
        like_type: LikeType,
        *,
        created_at: int,
    ) -> bool:
        return await self._store.create(
            LIKES_COLLECTION,
            like_document_id(from_user_id, to_user_id, like_type),
            {
                "fromUserId": from_user_id,
                "toUserId": to_user_id,
                "likeType": like_type,
                "matched": False,
                "createdAt": created_at,
            },
        )

    async def mark_matched(self, like_id: str) -> bool:
        return await self._store.update(LIKES_COLLECTION, like_id, {"matched": True})

    async def liked_user_ids(self, from_user_id: str) -> Set[str]:
        """Everyone ``from_user_id`` has liked, across both like types."""

        rows = await self._store.query(LIKES_COLLECTION, [where("fromUserId", "==", from_user_id)])
        return {str(doc["toUserId"]) for _, doc in rows if doc.get("toUserId")}

    async def received(self, to_user_id: str, like_type: Optional[LikeType] = None) -> List[LikeDocument]:
        predicates = [where("toUserId", "==", to_user_id)]
        if like_type:
            predicates.append(where("likeType", "==", like_type))
        rows = await self._store.query(
            LIKES_COLLECTION,
            predicates,
            order_by=[("createdAt", DESCENDING)],
        )
        return [_to_like(doc_id, doc) for doc_id, doc in rows]

    async def matched_from(self, from_user_id: str, like_type: Optional[LikeType] = None) -> List[LikeDocument]:
        predicates = [where("fromUserId", "==", from_user_id), where("matched", "==", True)]
        if like_type:
            predicates.append(where("likeType", "==", like_type))
        rows = await self._store.query(
            LIKES_COLLECTION,
            predicates,
            order_by=[("createdAt", DESCENDING)],
        )
        return [_to_like(doc_id, doc) for doc_id, doc in rows]


class PassRepository:
    """Profiles a user skipped in discovery."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def record(self, from_user_id: str, to_user_id: str, *, created_at: int) -> str:
        doc_id = pass_document_id(from_user_id, to_user_id)
        await self._store.set(
            PASSES_COLLECTION,
            doc_id,
            {"fromUserId": from_user_id, "toUserId": to_user_id, "createdAt": created_at},
        )
        return doc_id

    async def passed_user_ids(self, from_user_id: str) -> Set[str]:
        rows = await self._store.query(PASSES_COLLECTION, [where("fromUserId", "==", from_user_id)])
        return {str(doc["toUserId"]) for _, doc in rows if doc.get("toUserId")}

    async def remove(self, from_user_id: str, to_user_id: str) -> int:
        return await self._store.delete_where(
            PASSES_COLLECTION,
            [where("fromUserId", "==", from_user_id), where("toUserId", "==", to_user_id)],
        )

    async def clear(self, from_user_id: str) -> int:
        return await self._store.delete_where(PASSES_COLLECTION, [where("fromUserId", "==", from_user_id)])


__all__ = [
    "LikeRepository",
    "PassRepository",
    "like_document_id",
    "pass_document_id",
]
