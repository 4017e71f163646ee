"""MongoDB collection names used by the sapph service."""

from __future__ import annotations

PROFILES_COLLECTION = "profiles"
LIKES_COLLECTION = "likes"
PASSES_COLLECTION = "passes"
CONVERSATIONS_COLLECTION = "conversations"
MESSAGES_COLLECTION = "messages"
PRESENCE_COLLECTION = "presence"

__all__ = [
    "PROFILES_COLLECTION",
    "LIKES_COLLECTION",
    "PASSES_COLLECTION",
    "CONVERSATIONS_COLLECTION",
    "MESSAGES_COLLECTION",
    "PRESENCE_COLLECTION",
]
