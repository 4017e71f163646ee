"""Conversation inbox, message history and live message stream."""

from __future__ import annotations

from typing import AsyncIterator, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from ..db import get_store
from ..db.store import DocumentStore
from ..models.conversation import (
    ConversationCreateRequest,
    ConversationListResponse,
    ConversationRef,
    MessageCreateRequest,
    MessageDocument,
    MessageListResponse,
    ReadReceipt,
)
from ..models.likes import LikeType
from ..repositories.exceptions import NotFoundRepositoryError, ParticipantRepositoryError
from ..services.chat_service import (
    get_or_create_conversation,
    list_conversations,
    list_messages,
    mark_conversation_as_read,
    send_message,
    stream_messages,
)
from ..services.likes_service import check_match
from .auth import require_viewer_id

router = APIRouter(prefix="/conversations", tags=["conversations"])


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundRepositoryError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="conversation not found")
    if isinstance(exc, ParticipantRepositoryError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="not a participant")
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.get("", response_model=ConversationListResponse)
async def inbox(
    like_type: LikeType = Query(default="heart"),
    viewer_id: str = Depends(require_viewer_id),
    store: DocumentStore = Depends(get_store),
):
    conversations = await list_conversations(store, viewer_id, like_type)
    return ConversationListResponse(conversations=conversations)


@router.post("", response_model=ConversationRef)
async def open_conversation(
    payload: ConversationCreateRequest,
    viewer_id: str = Depends(require_viewer_id),
    store: DocumentStore = Depends(get_store),
):
    other_id = payload.user_id.strip()
    if other_id == viewer_id:
        raise HTTPException(status_code=400, detail="cannot open a conversation with yourself")
    if not await check_match(store, viewer_id, other_id, payload.like_type):
        raise HTTPException(status_code=403, detail="conversations require a match")
    conversation_id = await get_or_create_conversation(store, viewer_id, other_id, payload.like_type)
    return ConversationRef(conversation_id=conversation_id)


@router.get("/{conversation_id}/messages", response_model=MessageListResponse)
async def get_messages(
    conversation_id: str,
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    viewer_id: str = Depends(require_viewer_id),
    store: DocumentStore = Depends(get_store),
):
    try:
        messages = await list_messages(store, conversation_id, viewer_id, limit=limit)
    except (NotFoundRepositoryError, ParticipantRepositoryError) as exc:
        raise _http_error(exc) from None
    return MessageListResponse(messages=messages)


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageDocument,
    status_code=status.HTTP_201_CREATED,
)
async def post_message(
    conversation_id: str,
    payload: MessageCreateRequest,
    viewer_id: str = Depends(require_viewer_id),
    store: DocumentStore = Depends(get_store),
):
    try:
        return await send_message(store, conversation_id, viewer_id, payload.text)
    except (NotFoundRepositoryError, ParticipantRepositoryError, ValueError) as exc:
        raise _http_error(exc) from None


@router.post("/{conversation_id}/read", response_model=ReadReceipt)
async def mark_read(
    conversation_id: str,
    viewer_id: str = Depends(require_viewer_id),
    store: DocumentStore = Depends(get_store),
):
    try:
        await mark_conversation_as_read(store, conversation_id, viewer_id)
    except (NotFoundRepositoryError, ParticipantRepositoryError) as exc:
        raise _http_error(exc) from None
    return ReadReceipt(conversation_id=conversation_id, unread_count=0)


def _sse(messages: List[MessageDocument]) -> str:
    return f"data: {MessageListResponse(messages=messages).model_dump_json(by_alias=True)}\n\n"


@router.get("/{conversation_id}/messages/stream")
async def message_stream(
    conversation_id: str,
    viewer_id: str = Depends(require_viewer_id),
    store: DocumentStore = Depends(get_store),
):
    """Server-sent events: the full message list, re-sent whenever it changes."""

    snapshots = stream_messages(store, conversation_id, viewer_id)
    try:
        first = await snapshots.__anext__()
    except (NotFoundRepositoryError, ParticipantRepositoryError) as exc:
        raise _http_error(exc) from None

    async def events() -> AsyncIterator[str]:
        try:
            yield _sse(first)
            async for messages in snapshots:
                yield _sse(messages)
        finally:
            await snapshots.aclose()

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
