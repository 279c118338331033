"""Configure pytest for the SmartProcure project."""
import os
import sys
from pathlib import Path

import pytest

# =============================================================================
# CI/Test Environment Configuration
# =============================================================================
# Set environment for tests BEFORE any imports
# This ensures rate limiting bypass is active for all tests
os.environ.setdefault("ENV", "test")
os.environ.setdefault("SMARTPROCURE_RATE_LIMIT_MODE", "ci")

# Make the top-level packages importable without an install
root_path = Path(__file__).parent
if str(root_path) not in sys.path:
    sys.path.insert(0, str(root_path))


def pytest_configure(config):
    """Ensure environment is set before test collection."""
    os.environ.setdefault("ENV", "test")
    os.environ.setdefault("SMARTPROCURE_RATE_LIMIT_MODE", "ci")


@pytest.fixture(autouse=True)
def isolated_database(tmp_path, monkeypatch):
    """Give every test its own SQLite file."""
    import persistence.db as db_module

    monkeypatch.setattr(db_module, "DB_PATH", tmp_path / "smartprocure-test.db")
    monkeypatch.setattr(db_module, "_initialized_path", None)
    yield
    db_module.close_db()


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Minimum bcrypt cost so registration-heavy tests stay fast."""
    import auth.password as password_module

    monkeypatch.setattr(password_module, "BCRYPT_ROUNDS", 4)
