# audit_client/errors.py
"""
Audit client exceptions.

Every failure the CLI can report is an AuditClientError; str(e) is the
message shown to the user.
"""
from __future__ import annotations

from typing import Any, Optional


class AuditClientError(Exception):
    """Base exception for audit client errors."""
    pass


class UnsupportedFileTypeError(AuditClientError):
    """The document is not .txt, .pdf or .docx."""
    pass


class ExtractionError(AuditClientError):
    """The document could not be read."""
    pass


class AuthenticationError(AuditClientError):
    """Login failed or the session is missing/expired."""
    pass


class AuditLimitReachedError(AuditClientError):
    """Free audits are used up and the user is not subscribed."""

    def __init__(self, message: str, upgrade_url: Optional[str] = None):
        super().__init__(message)
        self.upgrade_url = upgrade_url


class ServiceError(AuditClientError):
    """The edge service answered with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ReportParseError(AuditClientError):
    """The model response did not contain a valid report."""
    pass


class UsageNotRecordedError(AuditClientError):
    """The audit succeeded but the usage record could not be updated."""

    def __init__(self, message: str, report: Any = None):
        super().__init__(message)
        self.report = report
