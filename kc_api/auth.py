"""Bearer token check for the protected API prefix.

Tokens are issued by the platform's auth service; this only verifies the HS256
signature and expiry.
"""

from __future__ import annotations
from typing import Any, Dict, Optional

import jwt
from fastapi import Header, HTTPException

from .config import settings

ALGORITHM = "HS256"


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=message,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_bearer(authorization: Optional[str] = Header(None)) -> Dict[str, Any]:
    if not authorization or not authorization.startswith("Bearer "):
        raise _unauthorized("Missing or invalid token")

    token = authorization[len("Bearer "):].strip()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")
