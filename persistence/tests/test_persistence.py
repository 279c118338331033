# persistence/tests/test_persistence.py
"""Tests for persistence layer."""

import sqlite3
import threading
from datetime import datetime, timezone

import pytest

import persistence.db as db_module
from persistence.db import get_db, get_db_path, init_db, reset_db, transaction
from persistence.mail import (
    WELCOME_SUBJECT,
    enqueue_mail,
    enqueue_welcome_mail,
    get_pending_mail,
    mark_sent,
)


class TestDatabaseInit:
    """Test database initialization."""

    def test_init_creates_tables(self):
        init_db()
        with get_db() as conn:
            tables = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            ).fetchall()
        names = {row["name"] for row in tables}

        assert {"users", "sessions", "entitlements", "mail_queue"} <= names

    def test_init_creates_customer_index(self):
        init_db()
        with get_db() as conn:
            indexes = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='index' AND tbl_name='entitlements'"
            ).fetchall()

        assert "idx_entitlements_customer" in {row["name"] for row in indexes}

    def test_init_is_idempotent(self):
        init_db()
        init_db()
        db_module._initialized_path = None
        init_db()

    def test_db_path_follows_module_setting(self, tmp_path):
        assert get_db_path() == tmp_path / "smartprocure-test.db"

    def test_reset_drops_tables(self):
        init_db()
        reset_db()
        with get_db() as conn:
            tables = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            ).fetchall()
        assert tables == []

    def test_audit_count_cannot_go_negative(self):
        init_db()
        now = datetime.now(timezone.utc).isoformat()
        with pytest.raises(sqlite3.IntegrityError):
            with get_db() as conn:
                conn.execute(
                    "INSERT INTO entitlements (user_id, audit_count, created_at, updated_at) VALUES (?, ?, ?, ?)",
                    ("u1", -1, now, now),
                )


class TestTransactions:
    """Test commit/rollback behavior."""

    def test_get_db_rolls_back_on_error(self):
        init_db()
        with pytest.raises(RuntimeError):
            with get_db() as conn:
                conn.execute(
                    "INSERT INTO mail_queue (id, recipient, subject, html, created_at) VALUES ('m1', 'a', 'b', 'c', 'd')"
                )
                raise RuntimeError("boom")

        with get_db() as conn:
            assert conn.execute("SELECT COUNT(*) FROM mail_queue").fetchone()[0] == 0

    def test_transaction_commits(self):
        init_db()
        with transaction() as conn:
            conn.execute(
                "INSERT INTO mail_queue (id, recipient, subject, html, created_at) VALUES ('m1', 'a', 'b', 'c', 'd')"
            )

        with get_db() as conn:
            assert conn.execute("SELECT COUNT(*) FROM mail_queue").fetchone()[0] == 1

    def test_transaction_rolls_back_on_error(self):
        init_db()
        with pytest.raises(ValueError):
            with transaction() as conn:
                conn.execute(
                    "INSERT INTO mail_queue (id, recipient, subject, html, created_at) VALUES ('m1', 'a', 'b', 'c', 'd')"
                )
                raise ValueError("boom")

        with get_db() as conn:
            assert conn.execute("SELECT COUNT(*) FROM mail_queue").fetchone()[0] == 0

    def test_connections_are_per_thread(self):
        init_db()
        seen = []

        def worker():
            with get_db() as conn:
                seen.append(id(conn))

        with get_db() as conn:
            main_id = id(conn)

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

        assert seen and seen[0] != main_id


class TestMailQueue:
    """Test outbound mail queue."""

    def test_enqueue_and_list_pending(self):
        message_id = enqueue_mail("a@example.com", "Hello", "<p>Hi</p>")

        pending = get_pending_mail()
        assert len(pending) == 1
        assert pending[0]["id"] == message_id
        assert pending[0]["to"] == "a@example.com"
        assert pending[0]["subject"] == "Hello"
        assert pending[0]["html"] == "<p>Hi</p>"

    def test_pending_is_oldest_first(self):
        first = enqueue_mail("a@example.com", "1", "x")
        second = enqueue_mail("b@example.com", "2", "y")

        assert [m["id"] for m in get_pending_mail()] == [first, second]

    def test_pending_respects_limit(self):
        for i in range(5):
            enqueue_mail(f"u{i}@example.com", "s", "b")

        assert len(get_pending_mail(limit=2)) == 2

    def test_mark_sent_removes_from_pending(self):
        message_id = enqueue_mail("a@example.com", "Hello", "<p>Hi</p>")

        assert mark_sent(message_id) is True
        assert get_pending_mail() == []

    def test_mark_sent_twice_returns_false(self):
        message_id = enqueue_mail("a@example.com", "Hello", "<p>Hi</p>")
        mark_sent(message_id)

        assert mark_sent(message_id) is False

    def test_mark_sent_unknown_returns_false(self):
        assert mark_sent("missing") is False

    def test_welcome_mail(self):
        enqueue_welcome_mail("new@example.com", "Ada")

        pending = get_pending_mail()
        assert pending[0]["subject"] == WELCOME_SUBJECT
        assert "Hi Ada," in pending[0]["html"]
        assert "SmartProcure" in pending[0]["html"]

    def test_welcome_mail_escapes_name(self):
        enqueue_welcome_mail("new@example.com", "<script>x</script>")

        html = get_pending_mail()[0]["html"]
        assert "<script>" not in html
        assert "&lt;script&gt;" in html
