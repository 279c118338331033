# audit_client/__init__.py
"""
SmartProcure audit client.

Provides:
- Text extraction for RFQ and bid documents
- The auditor prompt and report schema
- Retrying analyze calls against the edge service
- Report parsing, metrics and rendering
"""

from audit_client.client import AuditClient, AuditResult
from audit_client.errors import (
    AuditClientError,
    AuditLimitReachedError,
    AuthenticationError,
    ExtractionError,
    ReportParseError,
    ServiceError,
    UnsupportedFileTypeError,
    UsageNotRecordedError,
)
from audit_client.extraction import extract_text
from audit_client.prompts import COMPREHENSIVE_REPORT_SCHEMA, build_payload
from audit_client.render import render_html, render_text
from audit_client.report import Report, compliance_percentage, parse_report, risk_color
from audit_client.retry import fetch_with_retry

__all__ = [
    "AuditClient",
    "AuditResult",
    "AuditClientError",
    "AuditLimitReachedError",
    "AuthenticationError",
    "ExtractionError",
    "ReportParseError",
    "ServiceError",
    "UnsupportedFileTypeError",
    "UsageNotRecordedError",
    "extract_text",
    "COMPREHENSIVE_REPORT_SCHEMA",
    "build_payload",
    "render_html",
    "render_text",
    "Report",
    "compliance_percentage",
    "parse_report",
    "risk_color",
    "fetch_with_retry",
]
