from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .profile import Profile

LikeType = Literal["heart", "friendship"]


class LikeDocument(BaseModel):
    """Directed like edge stored in the ``likes`` collection."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    from_user_id: str = Field(alias="fromUserId")
    to_user_id: str = Field(alias="toUserId")
    like_type: LikeType = Field(alias="likeType")
    matched: bool = False
    created_at: Optional[int] = Field(default=None, alias="createdAt")


class LikeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target_user_id: str = Field(alias="target_user_id", min_length=1)
    like_type: LikeType = Field(default="heart", alias="like_type")


class LikeResponse(BaseModel):
    status: Literal["ok"] = "ok"
    like_id: str
    is_match: bool
    conversation_id: Optional[str] = None


class PassRequest(BaseModel):
    target_user_id: str = Field(min_length=1)


class PassResponse(BaseModel):
    status: Literal["ok"] = "ok"
    pass_id: str


class ClearPassesResponse(BaseModel):
    status: Literal["ok"] = "ok"
    cleared: int = 0


class LikedProfile(Profile):
    """A profile annotated with the like that connects it to the viewer."""

    like_type: LikeType
    matched: bool = False
    liked_at: Optional[int] = None
    conversation_id: Optional[str] = None


class LikesReceivedResponse(BaseModel):
    liked_me: List[LikedProfile] = Field(default_factory=list)


class MatchesResponse(BaseModel):
    matches: List[LikedProfile] = Field(default_factory=list)


__all__ = [
    "ClearPassesResponse",
    "LikeDocument",
    "LikeRequest",
    "LikeResponse",
    "LikeType",
    "LikedProfile",
    "LikesReceivedResponse",
    "MatchesResponse",
    "PassRequest",
    "PassResponse",
]
