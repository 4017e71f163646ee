"""Repository helpers for conversations and their messages."""

from __future__ import annotations

from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from bson import ObjectId

from ..db.collections import CONVERSATIONS_COLLECTION, MESSAGES_COLLECTION
from ..db.store import ASCENDING, DESCENDING, DOCUMENT_ID, DocumentStore, Snapshot, where
from ..models.conversation import ConversationDocument, MessageDocument
from ..models.likes import LikeType
from .exceptions import NotFoundRepositoryError


def ordered_pair(user_a: str, user_b: str) -> Tuple[str, str]:
    return (user_a, user_b) if user_a <= user_b else (user_b, user_a)


def conversation_document_id(user_a: str, user_b: str, like_type: str) -> str:
    first, second = ordered_pair(user_a, user_b)
    return f"conv:{first}|{second}|{like_type}"


def _to_conversation(doc_id: str, document: Dict[str, Any]) -> ConversationDocument:
    return ConversationDocument.model_validate({**document, "id": doc_id})


def _to_message(doc_id: str, document: Dict[str, Any]) -> MessageDocument:
    return MessageDocument.model_validate({**document, "id": doc_id})


def _message_key(message: MessageDocument) -> Tuple[int, str]:
    return message.timestamp, message.id


class ConversationRepository:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get(self, conversation_id: str) -> Optional[ConversationDocument]:
        doc = await self._store.get(CONVERSATIONS_COLLECTION, conversation_id)
        return _to_conversation(conversation_id, doc) if doc is not None else None

    async def require(self, conversation_id: str) -> ConversationDocument:
        conversation = await self.get(conversation_id)
        if conversation is None:
            raise NotFoundRepositoryError("conversation not found")
        return conversation

    async def find_between(self, user_a: str, user_b: str, like_type: LikeType) -> Optional[str]:
        """Id of the pair's conversation for ``like_type``, including legacy random-id threads."""

        doc_id = conversation_document_id(user_a, user_b, like_type)
        if await self._store.get(CONVERSATIONS_COLLECTION, doc_id) is not None:
            return doc_id
        rows = await self._store.query(
            CONVERSATIONS_COLLECTION,
            [where("participants", "array-contains", user_a), where("likeType", "==", like_type)],
        )
        for legacy_id, document in rows:
            if user_b in (document.get("participants") or []):
                return legacy_id
        return None

    async def create(self, user_a: str, user_b: str, like_type: LikeType, *, created_at: int) -> str:
        """Create the pair's conversation unless it already exists; returns its id either way."""

        first, second = ordered_pair(user_a, user_b)
        doc_id = conversation_document_id(first, second, like_type)
        await self._store.create(
            CONVERSATIONS_COLLECTION,
            doc_id,
            {
                "participants": [first, second],
                "likeType": like_type,
                "lastMessage": "",
                "lastMessageTime": created_at,
                "lastMessageSenderId": None,
                "createdAt": created_at,
                "unreadCount": {first: 0, second: 0},
            },
        )
        return doc_id

    async def for_participant(self, user_id: str, like_type: LikeType) -> List[ConversationDocument]:
        rows = await self._store.query(
            CONVERSATIONS_COLLECTION,
            [where("participants", "array-contains", user_id), where("likeType", "==", like_type)],
            order_by=[("lastMessageTime", DESCENDING)],
        )
        return [_to_conversation(doc_id, doc) for doc_id, doc in rows]

    async def record_message(
        self,
        conversation_id: str,
        *,
        sender_id: str,
        recipient_id: Optional[str],
        text: str,
        timestamp: int,
    ) -> None:
        changes: Dict[str, Any] = {
            "lastMessage": text,
            "lastMessageTime": timestamp,
            "lastMessageSenderId": sender_id,
            f"unreadCount.{sender_id}": 0,
        }
        increments = {f"unreadCount.{recipient_id}": 1} if recipient_id else None
        found = await self._store.update(
            CONVERSATIONS_COLLECTION,
            conversation_id,
            changes,
            increments=increments,
        )
        if not found:
            raise NotFoundRepositoryError("conversation not found")

    async def reset_unread(self, conversation_id: str, user_id: str) -> None:
        found = await self._store.update(
            CONVERSATIONS_COLLECTION,
            conversation_id,
            {f"unreadCount.{user_id}": 0},
        )
        if not found:
            raise NotFoundRepositoryError("conversation not found")


class MessageRepository:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def append(self, conversation_id: str, sender_id: str, text: str, *, timestamp: int) -> MessageDocument:
        doc_id = str(ObjectId())
        document = {
            "conversationId": conversation_id,
            "senderId": sender_id,
            "text": text,
            "timestamp": timestamp,
            "read": False,
        }
        await self._store.set(MESSAGES_COLLECTION, doc_id, document)
        return _to_message(doc_id, document)

    def _order(self) -> List[Tuple[str, int]]:
        return [("timestamp", ASCENDING), (DOCUMENT_ID, ASCENDING)]

    async def list_for(self, conversation_id: str, *, limit: Optional[int] = None) -> List[MessageDocument]:
        """The newest ``limit`` messages (all when unset), oldest first."""

        rows = await self._store.query(
            MESSAGES_COLLECTION,
            [where("conversationId", "==", conversation_id)],
            order_by=[("timestamp", DESCENDING), (DOCUMENT_ID, DESCENDING)],
            limit=limit,
        )
        return sorted((_to_message(doc_id, doc) for doc_id, doc in rows), key=_message_key)

    async def mark_read(self, conversation_id: str, sender_id: str) -> int:
        """Flag the messages ``sender_id`` sent in the conversation as read."""

        return await self._store.update_where(
            MESSAGES_COLLECTION,
            [
                where("conversationId", "==", conversation_id),
                where("senderId", "==", sender_id),
                where("read", "==", False),
            ],
            {"read": True},
        )

    async def snapshots(self, conversation_id: str, *, interval: float = 1.0) -> AsyncIterator[List[MessageDocument]]:
        stream: AsyncIterator[List[Snapshot]] = self._store.subscribe(
            MESSAGES_COLLECTION,
            [where("conversationId", "==", conversation_id)],
            order_by=self._order(),
            interval=interval,
        )
        async for rows in stream:
            yield sorted((_to_message(doc_id, doc) for doc_id, doc in rows), key=_message_key)


__all__ = [
    "ConversationRepository",
    "MessageRepository",
    "conversation_document_id",
    "ordered_pair",
]
