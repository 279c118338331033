# persistence/__init__.py
"""
Persistence layer.

SQLite-backed storage for:
- User profiles and sessions
- Entitlement records (usage counter, subscription flag)
- Outbound mail queue
"""

from persistence.db import get_db, init_db, close_db, transaction
from persistence.mail import enqueue_mail, enqueue_welcome_mail, get_pending_mail, mark_sent

__all__ = [
    "get_db",
    "init_db",
    "close_db",
    "transaction",
    "enqueue_mail",
    "enqueue_welcome_mail",
    "get_pending_mail",
    "mark_sent",
]
