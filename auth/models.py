# auth/models.py
"""
User profile and session models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional
import secrets
import uuid

DEFAULT_ROLE = "PROCURER"
SESSION_DURATION_DAYS = 7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class User:
    """
    User profile.

    Written once at registration and read-only afterwards.

    Attributes:
        id: Unique user ID (UUID)
        email: Login email (unique, normalized)
        password_hash: Bcrypt hash
        name: Full name
        designation: Job title
        company: Organization
        phone: Contact number
        role: Application role (PROCURER for self-registered buyers)
        created_at: Registration timestamp
    """
    id: str
    email: str
    password_hash: str
    name: str
    designation: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None
    role: str = DEFAULT_ROLE
    created_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def new(
        cls,
        email: str,
        password_hash: str,
        name: str,
        designation: Optional[str] = None,
        company: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> User:
        """Create a new user with generated ID."""
        return cls(
            id=str(uuid.uuid4()),
            email=email.lower().strip(),
            password_hash=password_hash,
            name=name.strip(),
            designation=designation,
            company=company,
            phone=phone,
            role=DEFAULT_ROLE,
            created_at=_utcnow(),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary (excludes password_hash)."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "designation": self.designation,
            "company": self.company,
            "phone": self.phone,
            "role": self.role,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass
class Session:
    """
    Login session. The ID doubles as the bearer token.

    Attributes:
        id: Random URL-safe token
        user_id: Associated user ID
        created_at: Session creation timestamp
        expires_at: Session expiration timestamp
        ip_address: Client IP (optional, for audit)
        user_agent: Client user agent (optional, for audit)
    """
    id: str
    user_id: str
    created_at: datetime = field(default_factory=_utcnow)
    expires_at: datetime = field(default_factory=lambda: _utcnow() + timedelta(days=SESSION_DURATION_DAYS))
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @classmethod
    def new(
        cls,
        user_id: str,
        duration_days: int = SESSION_DURATION_DAYS,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Session:
        now = _utcnow()
        return cls(
            id=secrets.token_urlsafe(32),
            user_id=user_id,
            created_at=now,
            expires_at=now + timedelta(days=duration_days),
            ip_address=ip_address,
            user_agent=user_agent,
        )

    @property
    def is_valid(self) -> bool:
        return _utcnow() < self.expires_at
