# auth/password.py
"""
Password hashing (bcrypt) and registration strength rules.
"""

from __future__ import annotations

import logging
from typing import Optional

import bcrypt

_logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12

# bcrypt ignores everything past 72 bytes
MAX_PASSWORD_BYTES = 72
MIN_PASSWORD_LENGTH = 8


def hash_password(password: str) -> str:
    """Hash a password with a fresh salt. Raises ValueError on empty input."""
    if not password:
        raise ValueError("Password cannot be empty")

    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored hash. Malformed hashes never match."""
    if not password or not password_hash:
        return False

    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError as e:
        _logger.warning(f"Password verification error: {e}")
        return False


def password_problem(password: str) -> Optional[str]:
    """
    Describe why a password is unacceptable.

    Returns:
        An error message, or None if the password is acceptable
    """
    if not password:
        return "Password cannot be empty"

    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"

    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return f"Password must be at most {MAX_PASSWORD_BYTES} bytes"

    if not any(c.isalpha() for c in password):
        return "Password must contain at least one letter"

    if not any(c.isdigit() for c in password):
        return "Password must contain at least one digit"

    return None
