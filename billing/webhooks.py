# billing/webhooks.py
"""
Stripe webhook handling with signature verification.

The signature is the only thing that authenticates a webhook: the
checkout event carries a user ID that came from the browser, so nothing
is applied to state until verify_webhook_signature has passed.
"""

from __future__ import annotations

import json
import logging
from typing import Optional, Tuple

import stripe

from billing.service import handle_checkout_completed, handle_subscription_deleted
from billing.stripe_client import get_webhook_secret

_logger = logging.getLogger(__name__)


class WebhookError(Exception):
    """Webhook processing error."""
    pass


class SignatureVerificationError(WebhookError):
    """Webhook signature verification failed."""
    pass


def verify_webhook_signature(payload: bytes, signature: Optional[str]) -> dict:
    """
    Verify a Stripe-Signature header and parse the event.

    Args:
        payload: Raw request body bytes (exactly as received)
        signature: Stripe-Signature header value

    Returns:
        The event as a plain dict

    Raises:
        SignatureVerificationError: If the secret is missing or the signature is invalid
        WebhookError: If the verified payload is not a JSON object
    """
    webhook_secret = get_webhook_secret()
    if not webhook_secret:
        raise SignatureVerificationError("Webhook secret not configured")

    if not signature:
        raise SignatureVerificationError("Missing Stripe-Signature header")

    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise SignatureVerificationError("Invalid webhook payload encoding") from e

    try:
        stripe.WebhookSignature.verify_header(
            body,
            signature,
            webhook_secret,
            stripe.Webhook.DEFAULT_TOLERANCE,
        )
    except stripe.SignatureVerificationError as e:
        _logger.warning(f"Webhook signature verification failed: {e}")
        raise SignatureVerificationError("Invalid webhook signature") from e

    try:
        event = json.loads(body)
    except ValueError as e:
        raise WebhookError(f"Failed to parse webhook: {e}") from e

    if not isinstance(event, dict):
        raise WebhookError("Failed to parse webhook: event is not an object")

    return event


def process_webhook_event(event: dict) -> Tuple[bool, str]:
    """
    Process a verified Stripe webhook event.

    Returns:
        Tuple of (success, message). success=False means the event should
        not be acknowledged so Stripe redelivers it.
    """
    event_type = event.get("type", "unknown")
    event_id = event.get("id", "unknown")

    _logger.info(f"Processing webhook event: {event_type}", extra={"event_id": event_id})

    handlers = {
        "checkout.session.completed": _handle_checkout_session,
        "customer.subscription.deleted": _handle_subscription_deleted,
    }

    handler = handlers.get(event_type)

    if handler is None:
        _logger.debug(f"Unhandled webhook event type: {event_type}")
        return True, f"Event type {event_type} not handled"

    try:
        return True, handler(event)
    except Exception as e:
        _logger.error(f"Webhook handler error for {event_type} ({event_id}): {e}")
        return False, f"Handler error: {e}"


def _handle_checkout_session(event: dict) -> str:
    session = event.get("data", {}).get("object", {})
    user_id = handle_checkout_completed(session)
    if user_id is None:
        return "Checkout had no user reference"
    return f"Subscription activated for {user_id}"


def _handle_subscription_deleted(event: dict) -> str:
    subscription = event.get("data", {}).get("object", {})
    matched = handle_subscription_deleted(subscription)
    if matched == 0:
        return "No matching user for cancelled subscription"
    return f"Subscription deactivated for {matched} user(s)"
