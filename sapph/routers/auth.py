"""Bearer-token identity for the API.

Tokens are issued by the external auth provider and signed with the shared
``JWT_SECRET``; the user id travels in the ``sub`` claim.
"""

from typing import Any, Dict, Optional

import jwt
from fastapi import Header, HTTPException, status

from ..config import get_settings


def _extract_token(authorization: str) -> str:
    if not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing bearer token")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing bearer token")
    return token


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    secret = get_settings().jwt_secret
    if not secret:
        return None
    try:
        return jwt.decode(token, secret, algorithms=["HS256"])
    except jwt.PyJWTError:
        return None


async def require_viewer_id(authorization: str = Header(default="")) -> str:
    """Dependency resolving the calling user's id from the Authorization header."""

    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="authorization required")
    payload = decode_token(_extract_token(authorization))
    if not payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid token")
    user_id = str(payload.get("sub") or "").strip()
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="token missing subject")
    return user_id


__all__ = ["decode_token", "require_viewer_id"]
