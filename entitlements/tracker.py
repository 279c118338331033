# entitlements/tracker.py
"""
Usage and entitlement tracking.

Single owner of the entitlements table. Every mutation is one of three
named transactions:

- record_usage: count += 1 after a successful audit
- activate_subscription: UNSUBSCRIBED -> SUBSCRIBED (verified checkout event)
- deactivate_subscription: SUBSCRIBED -> UNSUBSCRIBED (verified cancellation)

Both subscription transitions are idempotent, so duplicate or reordered
webhook deliveries settle on the last event processed.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from entitlements.models import EntitlementRecord, FREE_AUDIT_LIMIT
from persistence.db import get_db, init_db, transaction

_logger = logging.getLogger(__name__)


class EntitlementError(Exception):
    """Base entitlement error."""
    pass


class EntitlementStoreError(EntitlementError):
    """The entitlement store could not be read or written."""
    pass


def check_entitlement(record: EntitlementRecord, free_limit: int = FREE_AUDIT_LIMIT) -> bool:
    """
    Whether the user may run another audit.

    Subscribers are unlimited; everyone else gets free_limit audits.
    """
    return record.is_subscribed or record.audit_count < free_limit


def get_entitlement(user_id: str) -> EntitlementRecord:
    """
    Get a user's entitlement record, creating it on first read.

    Raises:
        EntitlementStoreError: If the store is unavailable
    """
    init_db()
    now = _now()

    try:
        with get_db() as conn:
            _ensure_record(conn, user_id, now)
            row = _select(conn, user_id)
    except sqlite3.Error as e:
        _logger.error(f"Failed to read entitlement for {user_id}: {e}")
        raise EntitlementStoreError(f"Could not read entitlement record: {e}") from e

    return _row_to_record(row)


def record_usage(user_id: str) -> EntitlementRecord:
    """
    Count one completed audit.

    Read and write happen inside one BEGIN IMMEDIATE transaction, so
    overlapping calls for the same user (two tabs, a retried request)
    each add exactly one.

    Returns:
        The updated record

    Raises:
        EntitlementStoreError: If the store is unavailable
    """
    init_db()
    now = _now()

    try:
        with transaction() as conn:
            _ensure_record(conn, user_id, now)
            current = _select(conn, user_id)
            new_count = current["audit_count"] + 1
            conn.execute(
                """
                UPDATE entitlements SET audit_count = ?, updated_at = ?
                WHERE user_id = ?
                """,
                (new_count, now, user_id),
            )
            row = _select(conn, user_id)
    except sqlite3.Error as e:
        _logger.error(f"Failed to record usage for {user_id}: {e}")
        raise EntitlementStoreError(f"Could not record usage: {e}") from e

    _logger.info(f"Recorded audit for user {user_id} (count={new_count})")
    return _row_to_record(row)


def activate_subscription(user_id: str, stripe_customer_id: Optional[str]) -> EntitlementRecord:
    """
    Mark a user as subscribed and link their Stripe customer.

    Merges into the existing record: audit_count is left alone and a
    missing customer ID does not erase one already on file.

    Raises:
        EntitlementStoreError: If the store is unavailable
    """
    init_db()
    now = _now()

    try:
        with transaction() as conn:
            _ensure_record(conn, user_id, now)
            conn.execute(
                """
                UPDATE entitlements
                SET is_subscribed = 1,
                    stripe_customer_id = COALESCE(?, stripe_customer_id),
                    updated_at = ?
                WHERE user_id = ?
                """,
                (stripe_customer_id, now, user_id),
            )
            row = _select(conn, user_id)
    except sqlite3.Error as e:
        _logger.error(f"Failed to activate subscription for {user_id}: {e}")
        raise EntitlementStoreError(f"Could not activate subscription: {e}") from e

    _logger.info(f"Subscription active: {user_id} -> {stripe_customer_id}")
    return _row_to_record(row)


def deactivate_subscription(stripe_customer_id: str) -> int:
    """
    Clear the subscription flag on every record linked to a Stripe customer.

    Cancellation events only carry the customer ID, so this is a reverse
    lookup through idx_entitlements_customer.

    Returns:
        Number of records matched. Zero is a no-op, not an error.

    Raises:
        EntitlementStoreError: If the store is unavailable
    """
    if not stripe_customer_id:
        _logger.warning("Deactivation requested without a Stripe customer ID")
        return 0

    init_db()
    now = _now()

    try:
        with transaction() as conn:
            rows = conn.execute(
                "SELECT user_id FROM entitlements WHERE stripe_customer_id = ?",
                (stripe_customer_id,),
            ).fetchall()

            if rows:
                conn.execute(
                    """
                    UPDATE entitlements SET is_subscribed = 0, updated_at = ?
                    WHERE stripe_customer_id = ?
                    """,
                    (now, stripe_customer_id),
                )
    except sqlite3.Error as e:
        _logger.error(f"Failed to deactivate subscription for {stripe_customer_id}: {e}")
        raise EntitlementStoreError(f"Could not deactivate subscription: {e}") from e

    if not rows:
        _logger.warning(f"No entitlement record found for Stripe customer {stripe_customer_id}")
        return 0

    for row in rows:
        _logger.info(f"Subscription cancelled: {row['user_id']} ({stripe_customer_id})")
    return len(rows)


def get_billing_customer_id(user_id: str) -> Optional[str]:
    """Stripe customer ID on file for a user. Read-only: never creates a record."""
    init_db()

    with get_db() as conn:
        row = conn.execute(
            "SELECT stripe_customer_id FROM entitlements WHERE user_id = ?",
            (user_id,),
        ).fetchone()

    return row["stripe_customer_id"] if row else None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _ensure_record(conn: sqlite3.Connection, user_id: str, now: str) -> None:
    """Insert a zeroed record unless one exists."""
    conn.execute(
        """
        INSERT OR IGNORE INTO entitlements
            (user_id, audit_count, is_subscribed, stripe_customer_id, created_at, updated_at)
        VALUES (?, 0, 0, NULL, ?, ?)
        """,
        (user_id, now, now),
    )


def _select(conn: sqlite3.Connection, user_id: str) -> sqlite3.Row:
    return conn.execute(
        "SELECT * FROM entitlements WHERE user_id = ?",
        (user_id,),
    ).fetchone()


def _row_to_record(row: sqlite3.Row) -> EntitlementRecord:
    """Convert a database row to an EntitlementRecord."""
    return EntitlementRecord(
        user_id=row["user_id"],
        audit_count=row["audit_count"],
        is_subscribed=bool(row["is_subscribed"]),
        stripe_customer_id=row["stripe_customer_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )
