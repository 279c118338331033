# auth/__init__.py
"""
Authentication module.

Provides:
- User profile model with email/password login
- Bearer-token sessions
- Password hashing with bcrypt
"""

from auth.models import User, Session
from auth.service import (
    AuthError,
    UserExistsError,
    WeakPasswordError,
    InvalidCredentialsError,
    register_user,
    authenticate_user,
    create_session,
    get_session,
    invalidate_session,
    get_current_user,
)

__all__ = [
    "User",
    "Session",
    "AuthError",
    "UserExistsError",
    "WeakPasswordError",
    "InvalidCredentialsError",
    "register_user",
    "authenticate_user",
    "create_session",
    "get_session",
    "invalidate_session",
    "get_current_user",
]
