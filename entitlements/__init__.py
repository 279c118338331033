# entitlements/__init__.py
"""
Free-tier metering and subscription entitlement.

Provides:
- Entitlement check (free limit or active subscription)
- Transactional usage counting
- Idempotent subscription activation/deactivation
"""

from entitlements.models import EntitlementRecord, FREE_AUDIT_LIMIT
from entitlements.tracker import (
    EntitlementError,
    EntitlementStoreError,
    check_entitlement,
    get_entitlement,
    record_usage,
    activate_subscription,
    deactivate_subscription,
)

__all__ = [
    "EntitlementRecord",
    "FREE_AUDIT_LIMIT",
    "EntitlementError",
    "EntitlementStoreError",
    "check_entitlement",
    "get_entitlement",
    "record_usage",
    "activate_subscription",
    "deactivate_subscription",
]
