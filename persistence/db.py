# persistence/db.py
"""
SQLite database connection and schema management.

Holds the account documents for SmartProcure:
- users (profile, written once at registration)
- sessions (bearer tokens)
- entitlements (usage counter + subscription flag, one row per user)
- mail_queue (outbound transactional email, drained by an external worker)

Point SMARTPROCURE_DB_PATH at a persistent volume in production.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

_logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path(__file__).parent.parent / "data" / "smartprocure.db"
DB_PATH = Path(os.environ.get("SMARTPROCURE_DB_PATH", str(DEFAULT_DB_PATH)))

# Seconds a writer waits on a locked database before giving up
BUSY_TIMEOUT_SECONDS = 30.0

# One connection per thread
_local = threading.local()
_init_lock = threading.Lock()
_initialized_path: Optional[str] = None


def _get_connection() -> sqlite3.Connection:
    """Get thread-local database connection, reconnecting if DB_PATH moved."""
    conn = getattr(_local, "connection", None)
    if conn is not None and getattr(_local, "path", None) != str(DB_PATH):
        conn.close()
        conn = None

    if conn is None:
        DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(
            str(DB_PATH),
            timeout=BUSY_TIMEOUT_SECONDS,
            check_same_thread=False,
        )
        conn.execute("PRAGMA foreign_keys = ON")
        conn.row_factory = sqlite3.Row
        _local.connection = conn
        _local.path = str(DB_PATH)

    return conn


@contextmanager
def get_db():
    """
    Get database connection context manager.

    Commits on success, rolls back on error.

    Usage:
        with get_db() as conn:
            cursor = conn.execute("SELECT ...")
    """
    conn = _get_connection()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise


@contextmanager
def transaction():
    """
    Run a read-modify-write under a write lock.

    BEGIN IMMEDIATE takes SQLite's reserved lock up front, so two
    transactions on the same row are serialized instead of both reading
    the old value. Other writers block (up to the busy timeout) until
    this one commits.
    """
    conn = _get_connection()
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise


def init_db() -> None:
    """
    Initialize database schema.

    Creates tables if they don't exist.
    Safe to call multiple times (idempotent).
    """
    global _initialized_path

    with _init_lock:
        if _initialized_path == str(DB_PATH):
            return

        with get_db() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    name TEXT NOT NULL,
                    designation TEXT,
                    company TEXT,
                    phone TEXT,
                    role TEXT NOT NULL DEFAULT 'PROCURER',
                    created_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL,
                    ip_address TEXT,
                    user_agent TEXT,
                    FOREIGN KEY (user_id) REFERENCES users(id)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_sessions_user
                ON sessions(user_id)
            """)

            # No foreign key to users: the webhook may create the record
            # for a user id that only exists on the billing side
            conn.execute("""
                CREATE TABLE IF NOT EXISTS entitlements (
                    user_id TEXT PRIMARY KEY,
                    audit_count INTEGER NOT NULL DEFAULT 0 CHECK (audit_count >= 0),
                    is_subscribed INTEGER NOT NULL DEFAULT 0,
                    stripe_customer_id TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            # Cancellation events carry only the Stripe customer id
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_entitlements_customer
                ON entitlements(stripe_customer_id)
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS mail_queue (
                    id TEXT PRIMARY KEY,
                    recipient TEXT NOT NULL,
                    subject TEXT NOT NULL,
                    html TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    sent_at TEXT
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_mail_queue_pending
                ON mail_queue(sent_at, created_at)
            """)

            _logger.info(f"Database initialized at {DB_PATH}")
            _initialized_path = str(DB_PATH)


def close_db() -> None:
    """Close thread-local database connection."""
    if getattr(_local, "connection", None) is not None:
        _local.connection.close()
        _local.connection = None
        _local.path = None


def reset_db() -> None:
    """Reset database (for testing). Drops all tables."""
    global _initialized_path

    with _init_lock:
        with get_db() as conn:
            conn.execute("DROP TABLE IF EXISTS mail_queue")
            conn.execute("DROP TABLE IF EXISTS entitlements")
            conn.execute("DROP TABLE IF EXISTS sessions")
            conn.execute("DROP TABLE IF EXISTS users")
        _initialized_path = None


def get_db_path() -> Path:
    """Get the database file path."""
    return DB_PATH
