# billing/__init__.py
"""
Billing module for Stripe subscriptions.

Provides:
- Payment-link upgrade URLs
- Customer portal sessions
- Webhook verification and subscription event handling
"""

from billing.service import (
    BillingError,
    BillingDisabledError,
    NoBillingAccountError,
    PortalError,
    get_upgrade_url,
    create_portal_session,
    handle_checkout_completed,
    handle_subscription_deleted,
)
from billing.webhooks import (
    WebhookError,
    SignatureVerificationError,
    verify_webhook_signature,
    process_webhook_event,
)

__all__ = [
    "BillingError",
    "BillingDisabledError",
    "NoBillingAccountError",
    "PortalError",
    "get_upgrade_url",
    "create_portal_session",
    "handle_checkout_completed",
    "handle_subscription_deleted",
    "WebhookError",
    "SignatureVerificationError",
    "verify_webhook_signature",
    "process_webhook_event",
]
