"""Repository layer to abstract document-store access patterns."""

from .conversation import ConversationRepository, MessageRepository
from .likes import LikeRepository, PassRepository
from .presence import PresenceRepository
from .profile import ProfilePage, ProfileRepository

__all__ = [
    "ConversationRepository",
    "LikeRepository",
    "MessageRepository",
    "PassRepository",
    "PresenceRepository",
    "ProfilePage",
    "ProfileRepository",
]
