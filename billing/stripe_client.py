# billing/stripe_client.py
"""
Stripe SDK initialization and configuration.

Environment variables:
- STRIPE_SECRET_KEY: Stripe API secret key (portal sessions)
- STRIPE_WEBHOOK_SECRET: Webhook signing secret (webhook verification)
- STRIPE_PAYMENT_LINK: Hosted payment link the paywall sends users to
- PORTAL_RETURN_URL: Where the billing portal sends users back to
"""

from __future__ import annotations

import logging
import os

import stripe

_logger = logging.getLogger(__name__)

STRIPE_API_VERSION = "2023-10-16"

DEFAULT_PAYMENT_LINK = "https://buy.stripe.com/cNi00i4JHdOmdTT8VJafS00"
DEFAULT_PORTAL_RETURN_URL = "https://smartprocure-secure.onrender.com"


def get_stripe_key() -> str:
    """Get Stripe secret key from environment."""
    return os.environ.get("STRIPE_SECRET_KEY", "")


def get_webhook_secret() -> str:
    """Get Stripe webhook signing secret from environment."""
    return os.environ.get("STRIPE_WEBHOOK_SECRET", "")


def get_payment_link() -> str:
    return os.environ.get("STRIPE_PAYMENT_LINK", DEFAULT_PAYMENT_LINK)


def get_portal_return_url() -> str:
    return os.environ.get("PORTAL_RETURN_URL", DEFAULT_PORTAL_RETURN_URL)


def is_billing_enabled() -> bool:
    """Check if billing is enabled (Stripe key configured)."""
    return bool(get_stripe_key())


def get_stripe():
    """
    Get the Stripe module configured with the current secret key.

    Raises:
        RuntimeError: If STRIPE_SECRET_KEY is not set
    """
    key = get_stripe_key()
    if not key:
        raise RuntimeError("Stripe not initialized. Check STRIPE_SECRET_KEY.")

    if stripe.api_key != key:
        stripe.api_key = key
        stripe.api_version = STRIPE_API_VERSION
        mode = "test" if key.startswith("sk_test") else "live"
        _logger.info(f"Stripe initialized in {mode} mode")

    return stripe
