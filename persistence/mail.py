# persistence/mail.py
"""
Outbound mail queue.

The service never talks SMTP itself. It writes a row per message and a
separate mail worker picks up rows with sent_at IS NULL.

Service side: enqueue_mail, enqueue_welcome_mail (called on registration).
Worker side: get_pending_mail to fetch a batch, mark_sent after delivery.
Nothing in this service drains the queue.
"""

from __future__ import annotations

import html
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from persistence.db import get_db, init_db

_logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Welcome to SmartProcure – Start Evaluating Vendors"


def enqueue_mail(recipient: str, subject: str, html_body: str) -> str:
    """
    Queue a message for delivery.

    Returns:
        The queued message ID
    """
    init_db()

    message_id = str(uuid.uuid4())
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO mail_queue (id, recipient, subject, html, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                message_id,
                recipient,
                subject,
                html_body,
                datetime.now(timezone.utc).isoformat(),
            ),
        )

    _logger.info(f"Queued mail {message_id} to {recipient}")
    return message_id


def enqueue_welcome_mail(recipient: str, name: str) -> str:
    """Queue the welcome message sent after registration."""
    body = (
        f"<p>Hi {html.escape(name)},</p>"
        "<p>Welcome to <strong>SmartProcure</strong>. "
        "Your automated procurement assistant is ready.</p>"
    )
    return enqueue_mail(recipient, WELCOME_SUBJECT, body)


def get_pending_mail(limit: int = 50) -> list[dict]:
    """Oldest unsent messages first."""
    init_db()

    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM mail_queue
            WHERE sent_at IS NULL
            ORDER BY created_at ASC, rowid ASC
            LIMIT ?
            """,
            (limit,),
        ).fetchall()

    return [
        {
            "id": row["id"],
            "to": row["recipient"],
            "subject": row["subject"],
            "html": row["html"],
            "created_at": row["created_at"],
        }
        for row in rows
    ]


def mark_sent(message_id: str, sent_at: Optional[datetime] = None) -> bool:
    """Mark a message delivered. Returns False if it was unknown or already sent."""
    init_db()
    sent_at = sent_at or datetime.now(timezone.utc)

    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE mail_queue SET sent_at = ? WHERE id = ? AND sent_at IS NULL",
            (sent_at.isoformat(), message_id),
        )
        return cursor.rowcount > 0
