from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .likes import LikeType


class ConversationDocument(BaseModel):
    """Chat thread between a matched pair, one per (pair, likeType)."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    participants: List[str]
    like_type: LikeType = Field(alias="likeType")
    last_message: str = Field(default="", alias="lastMessage")
    last_message_time: Optional[int] = Field(default=None, alias="lastMessageTime")
    last_message_sender_id: Optional[str] = Field(default=None, alias="lastMessageSenderId")
    created_at: Optional[int] = Field(default=None, alias="createdAt")
    unread_count: Dict[str, int] = Field(default_factory=dict, alias="unreadCount")

    def counterpart(self, user_id: str) -> Optional[str]:
        return next((p for p in self.participants if p != user_id), None)


class MessageDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    conversation_id: str = Field(alias="conversationId")
    sender_id: str = Field(alias="senderId")
    text: str
    timestamp: int
    read: bool = False


class ConversationCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId", min_length=1)
    like_type: LikeType = Field(default="heart", alias="likeType")


class ConversationRef(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(alias="conversationId")


class ConversationSummary(BaseModel):
    """Conversation row as shown in the viewer's inbox."""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(alias="conversationId")
    user_id: str = Field(alias="userId")
    user_name: str = Field(default="Unknown", alias="userName")
    user_photo: Optional[str] = Field(default=None, alias="userPhoto")
    last_message: str = Field(default="", alias="lastMessage")
    timestamp: Optional[int] = None
    unread_count: int = Field(default=0, alias="unreadCount")
    like_type: LikeType = Field(alias="likeType")
    is_online: bool = Field(default=False, alias="isOnline")


class ConversationListResponse(BaseModel):
    conversations: List[ConversationSummary] = Field(default_factory=list)


class MessageCreateRequest(BaseModel):
    text: str = Field(min_length=1, max_length=2000)


class MessageListResponse(BaseModel):
    messages: List[MessageDocument] = Field(default_factory=list)


class ReadReceipt(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(alias="conversationId")
    unread_count: int = Field(default=0, alias="unreadCount")


__all__ = [
    "ConversationCreateRequest",
    "ConversationDocument",
    "ConversationListResponse",
    "ConversationRef",
    "ConversationSummary",
    "MessageCreateRequest",
    "MessageDocument",
    "MessageListResponse",
    "ReadReceipt",
]
