"""
Usage endpoints for the signed-in user.

The client reads its entitlement before an audit and records usage only
after it has parsed a complete report.
"""

from fastapi import APIRouter, Depends, HTTPException

from auth.middleware import get_required_user
from auth.models import User
from billing.service import get_upgrade_url
from entitlements import (
    FREE_AUDIT_LIMIT,
    EntitlementRecord,
    EntitlementStoreError,
    check_entitlement,
    get_entitlement,
    record_usage,
)


router = APIRouter(prefix="/api/usage", tags=["usage"])


def _usage_response(record: EntitlementRecord) -> dict:
    return {
        **record.to_dict(),
        "freeLimit": FREE_AUDIT_LIMIT,
        "allowed": check_entitlement(record),
        "remainingFreeAudits": None if record.is_subscribed else record.remaining_free_audits(),
        "upgradeUrl": None if record.is_subscribed else get_upgrade_url(record.user_id),
    }


@router.get("")
def read_usage(user: User = Depends(get_required_user)):
    """Current entitlement, created on first read."""
    try:
        record = get_entitlement(user.id)
    except EntitlementStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return _usage_response(record)


@router.post("/record")
def record_audit(user: User = Depends(get_required_user)):
    """Count one completed audit."""
    try:
        record = record_usage(user.id)
    except EntitlementStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return _usage_response(record)
