# auth/service.py
"""
Authentication service.

Handles:
- Registration (profile + welcome mail)
- Password login
- Bearer session creation and validation
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from auth.models import User, Session
from auth.password import hash_password, verify_password, password_problem
from persistence.db import get_db, init_db
from persistence.mail import enqueue_welcome_mail

_logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Base authentication error."""
    pass


class UserExistsError(AuthError):
    """User with this email already exists."""
    pass


class WeakPasswordError(AuthError):
    """Password doesn't meet strength requirements."""
    pass


class InvalidCredentialsError(AuthError):
    """Invalid email or password."""
    pass


def register_user(
    email: str,
    password: str,
    name: str,
    designation: Optional[str] = None,
    company: Optional[str] = None,
    phone: Optional[str] = None,
) -> User:
    """
    Create an account and queue the welcome email.

    Raises:
        WeakPasswordError: If password doesn't meet requirements
        UserExistsError: If email already registered
    """
    init_db()

    problem = password_problem(password)
    if problem:
        raise WeakPasswordError(problem)

    user = User.new(
        email=email,
        password_hash=hash_password(password),
        name=name,
        designation=designation,
        company=company,
        phone=phone,
    )

    try:
        with get_db() as conn:
            conn.execute(
                """
                INSERT INTO users
                    (id, email, password_hash, name, designation, company, phone, role, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user.id,
                    user.email,
                    user.password_hash,
                    user.name,
                    user.designation,
                    user.company,
                    user.phone,
                    user.role,
                    user.created_at.isoformat(),
                ),
            )
    except sqlite3.IntegrityError:
        raise UserExistsError(f"User with email {user.email} already exists")

    enqueue_welcome_mail(user.email, user.name)

    _logger.info(f"Registered user: {user.email}")
    return user


def get_user_by_email(email: str) -> Optional[User]:
    """Get user by email address (case-insensitive)."""
    init_db()

    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM users WHERE email = ?",
            (email.lower().strip(),),
        ).fetchone()

    return _row_to_user(row) if row else None


def get_user_by_id(user_id: str) -> Optional[User]:
    """Get user by ID."""
    init_db()

    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM users WHERE id = ?",
            (user_id,),
        ).fetchone()

    return _row_to_user(row) if row else None


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        email=row["email"],
        password_hash=row["password_hash"],
        name=row["name"],
        designation=row["designation"],
        company=row["company"],
        phone=row["phone"],
        role=row["role"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def authenticate_user(email: str, password: str) -> User:
    """
    Authenticate user with email and password.

    Raises:
        InvalidCredentialsError: If credentials are invalid
    """
    user = get_user_by_email(email)

    if not user or not verify_password(password, user.password_hash):
        _logger.warning(f"Failed login attempt for {email}")
        raise InvalidCredentialsError("Invalid email or password")

    _logger.info(f"User authenticated: {user.email}")
    return user


def create_session(
    user_id: str,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Session:
    """Create and persist a new session for a user."""
    init_db()

    session = Session.new(user_id=user_id, ip_address=ip_address, user_agent=user_agent)

    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO sessions (id, user_id, created_at, expires_at, ip_address, user_agent)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                session.id,
                session.user_id,
                session.created_at.isoformat(),
                session.expires_at.isoformat(),
                session.ip_address,
                session.user_agent,
            ),
        )

    _logger.debug(f"Created session for user: {user_id}")
    return session


def get_session(session_id: str) -> Optional[Session]:
    """
    Get a live session by ID.

    Expired sessions are deleted and reported as missing.
    """
    init_db()

    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM sessions WHERE id = ?",
            (session_id,),
        ).fetchone()

    if not row:
        return None

    session = Session(
        id=row["id"],
        user_id=row["user_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
        expires_at=datetime.fromisoformat(row["expires_at"]),
        ip_address=row["ip_address"],
        user_agent=row["user_agent"],
    )

    if not session.is_valid:
        invalidate_session(session_id)
        return None

    return session


def invalidate_session(session_id: str) -> bool:
    """Delete a session. Returns False if it did not exist."""
    init_db()

    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM sessions WHERE id = ?",
            (session_id,),
        )
        return cursor.rowcount > 0


def get_current_user(session_id: Optional[str]) -> Optional[User]:
    """Resolve a bearer token to its user, or None."""
    if not session_id:
        return None

    session = get_session(session_id)
    if not session:
        return None

    return get_user_by_id(session.user_id)
