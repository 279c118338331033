# entitlements/models.py
"""
Entitlement record model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

# Audits a user may run without an active subscription
FREE_AUDIT_LIMIT = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class EntitlementRecord:
    """
    Per-user usage and subscription state.

    Attributes:
        user_id: Owning user ID
        audit_count: Audits performed so far (never decreases)
        is_subscribed: True while a paid subscription is active
        stripe_customer_id: Stripe customer ID, set by the first activation
        created_at: When the record was lazily created
        updated_at: Last write
    """
    user_id: str
    audit_count: int = 0
    is_subscribed: bool = False
    stripe_customer_id: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def remaining_free_audits(self, free_limit: int = FREE_AUDIT_LIMIT) -> int:
        return max(0, free_limit - self.audit_count)

    def to_dict(self) -> dict:
        """Convert to the JSON shape the client reads."""
        return {
            "userId": self.user_id,
            "auditCount": self.audit_count,
            "isSubscribed": self.is_subscribed,
            "hasBillingAccount": bool(self.stripe_customer_id),
            "updatedAt": self.updated_at.isoformat(),
        }
