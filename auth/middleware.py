# auth/middleware.py
"""
FastAPI authentication dependencies.

Clients send the session ID from /api/auth/login as
`Authorization: Bearer <token>`.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auth.models import User
from auth.service import get_current_user

bearer_scheme = HTTPBearer(auto_error=False)


async def get_session_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Bearer token from the Authorization header, if any."""
    return credentials.credentials if credentials else None


async def get_optional_user(token: Optional[str] = Depends(get_session_token)) -> Optional[User]:
    """Current user, or None for anonymous requests."""
    return get_current_user(token)


async def get_required_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """Current user; 401 when the token is missing, unknown or expired."""
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
