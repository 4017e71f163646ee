from .likes_service import (
    LikeResult,
    check_match,
    clear_passes,
    get_likes_received,
    get_matches,
    get_passed_ids,
    record_like,
    record_pass,
)

__all__ = [
    "LikeResult",
    "check_match",
    "clear_passes",
    "get_likes_received",
    "get_matches",
    "get_passed_ids",
    "record_like",
    "record_pass",
]
