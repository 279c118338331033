# billing/service.py
"""
Billing service for Stripe subscription management.

Handles:
- Upgrade links (hosted payment link tagged with our user ID)
- Customer portal sessions
- Subscription event processing (delegates state to entitlements)
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlencode

from billing.stripe_client import (
    get_payment_link,
    get_portal_return_url,
    get_stripe,
    is_billing_enabled,
)
from entitlements.tracker import (
    activate_subscription,
    deactivate_subscription,
    get_billing_customer_id,
)

_logger = logging.getLogger(__name__)


class BillingError(Exception):
    """Base billing error."""
    pass


class BillingDisabledError(BillingError):
    """Billing is not enabled."""
    pass


class NoBillingAccountError(BillingError):
    """User has no Stripe customer on file."""
    pass


class PortalError(BillingError):
    """Portal session creation failed."""
    pass


def get_upgrade_url(user_id: str) -> str:
    """
    Payment link for the paywall.

    Stripe echoes client_reference_id back in checkout.session.completed,
    which is how the webhook knows whose record to activate.
    """
    link = get_payment_link()
    separator = "&" if "?" in link else "?"
    return f"{link}{separator}{urlencode({'client_reference_id': user_id})}"


def create_portal_session(user_id: str, return_url: Optional[str] = None) -> str:
    """
    Create a Stripe Customer Portal session.

    Args:
        user_id: User ID
        return_url: URL to return to after the portal (default: PORTAL_RETURN_URL)

    Returns:
        Portal URL

    Raises:
        BillingDisabledError: If STRIPE_SECRET_KEY is not set
        NoBillingAccountError: If the user never completed a checkout
        PortalError: If Stripe rejects the request
    """
    if not is_billing_enabled():
        raise BillingDisabledError("Server missing Stripe Key")

    customer_id = get_billing_customer_id(user_id)
    if not customer_id:
        raise NoBillingAccountError("No subscription found for this user.")

    try:
        stripe = get_stripe()
        session = stripe.billing_portal.Session.create(
            customer=customer_id,
            return_url=return_url or get_portal_return_url(),
        )
    except Exception as e:
        _logger.error(f"Failed to create portal session for {user_id}: {e}")
        raise PortalError(str(e)) from e

    return session.url


def handle_checkout_completed(session: dict) -> Optional[str]:
    """
    Handle checkout.session.completed.

    Activates the subscription for the user named in client_reference_id
    (or metadata.user_id for API-created sessions). Only call this with
    an event whose signature has been verified: the user ID itself is
    client-supplied.

    Returns:
        The activated user ID, or None when the session names no user

    Raises:
        EntitlementStoreError: If the record could not be written
    """
    user_id = session.get("client_reference_id") or (session.get("metadata") or {}).get("user_id")
    customer_id = session.get("customer")

    if not user_id:
        _logger.warning(f"Checkout {session.get('id')} completed without a user reference; ignoring")
        return None

    _logger.info(
        f"Processing checkout completed for user {user_id}",
        extra={"customer_id": customer_id},
    )
    activate_subscription(user_id, customer_id)
    return user_id


def handle_subscription_deleted(subscription: dict) -> int:
    """
    Handle customer.subscription.deleted.

    The event only names the Stripe customer, so the record is found by
    reverse lookup. No match is acknowledged, not retried.

    Returns:
        Number of entitlement records downgraded

    Raises:
        EntitlementStoreError: If the lookup or update failed
    """
    customer_id = subscription.get("customer")
    if not customer_id:
        _logger.warning(f"Subscription {subscription.get('id')} deleted without a customer; ignoring")
        return 0

    return deactivate_subscription(customer_id)
