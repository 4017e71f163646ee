from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Presence(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    user_id: str = Field(alias="userId")
    is_online: bool = Field(default=False, alias="isOnline")
    last_seen: Optional[int] = Field(default=None, alias="lastSeen")
    updated_at: Optional[int] = Field(default=None, alias="updatedAt")


class PresenceUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_online: bool = Field(alias="isOnline")


__all__ = ["Presence", "PresenceUpdate"]
