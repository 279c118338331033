# audit_client/client.py
"""
SmartProcure audit client.

Talks to the edge service over HTTP and runs one audit end to end:

    usage check -> extract texts -> analyze (with retry) -> parse -> record usage

Usage is recorded only after a report parses, so a failed or garbled
analysis never costs the user a free audit.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import httpx

from audit_client.errors import (
    AuditLimitReachedError,
    AuthenticationError,
    ReportParseError,
    ServiceError,
    UsageNotRecordedError,
)
from audit_client.extraction import extract_text
from audit_client.prompts import build_payload
from audit_client.report import Report, parse_report
from audit_client.retry import DEFAULT_MAX_ATTEMPTS, fetch_with_retry

_logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "http://localhost:3000"

# Gemini can take a while on long tenders
DEFAULT_TIMEOUT_SECONDS = 180.0


@dataclass
class AuditResult:
    """A parsed report and the usage record after it was counted."""
    report: Report
    usage: Dict[str, Any]


def _error_message(response: httpx.Response) -> str:
    """The service's {error} message, or the status line."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and body.get("error"):
        error = body["error"]
        return error if isinstance(error, str) else str(error)
    if response.text:
        return response.text
    return f"HTTP {response.status_code}"


class AuditClient:
    """
    Client for the SmartProcure edge service.

    Args:
        server_url: Base URL of the edge service
        http_client: Preconfigured httpx.Client (overrides server_url)
        max_attempts: Attempts for the analyze call
        sleep: Backoff sleep function (for testing)
    """

    def __init__(
        self,
        server_url: str = DEFAULT_SERVER_URL,
        http_client: Optional[httpx.Client] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        sleep: Callable[[float], Any] = time.sleep,
    ):
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(base_url=server_url, timeout=DEFAULT_TIMEOUT_SECONDS)
        self.max_attempts = max_attempts
        self._sleep = sleep
        self.token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "AuditClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # =========================================================================
    # HTTP helpers
    # =========================================================================

    def _headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _call(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self._http.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            raise ServiceError(f"Could not reach SmartProcure server: {e}") from e

        if response.status_code == 401:
            raise AuthenticationError(_error_message(response))
        if response.is_error:
            raise ServiceError(_error_message(response), status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise ServiceError(f"Unexpected response from {path}") from e

    def _require_login(self) -> None:
        if not self.token:
            raise AuthenticationError("Not logged in")

    # =========================================================================
    # Account
    # =========================================================================

    def register(
        self,
        name: str,
        email: str,
        password: str,
        designation: Optional[str] = None,
        company: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create an account. Does not log in."""
        body = {
            "name": name,
            "email": email,
            "password": password,
            "designation": designation,
            "company": company,
            "phone": phone,
        }
        data = self._call("POST", "/api/auth/register", json={k: v for k, v in body.items() if v is not None})
        return data["user"]

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._call("POST", "/api/auth/login", json={"email": email, "password": password})
        self.token = data["token"]
        self.user = data["user"]
        _logger.info(f"Logged in as {self.user.get('email')}")
        return self.user

    def logout(self) -> None:
        if self.token:
            self._call("POST", "/api/auth/logout")
        self.token = None
        self.user = None

    # =========================================================================
    # Usage and billing
    # =========================================================================

    def get_usage(self) -> Dict[str, Any]:
        self._require_login()
        return self._call("GET", "/api/usage")

    def record_usage(self) -> Dict[str, Any]:
        self._require_login()
        return self._call("POST", "/api/usage/record")

    def portal_url(self) -> str:
        """Billing portal link for the signed-in user."""
        self._require_login()
        data = self._call("POST", "/api/create-portal-session", json={"userId": self.user["id"]})
        return data["url"]

    # =========================================================================
    # Audit
    # =========================================================================

    def analyze(self, rfq_text: str, bid_text: str) -> Dict[str, Any]:
        """Send both texts to /api/analyze and return the provider response."""
        try:
            response = fetch_with_retry(
                self._http,
                "POST",
                "/api/analyze",
                max_attempts=self.max_attempts,
                sleep=self._sleep,
                json=build_payload(rfq_text, bid_text),
            )
        except httpx.HTTPStatusError as e:
            raise ServiceError(
                f"Analysis failed: {_error_message(e.response)}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ServiceError(f"Analysis failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise ReportParseError("AI Analysis Failed: response is not JSON") from e

    def run_audit(self, rfq_path: Union[str, Path], bid_path: Union[str, Path]) -> AuditResult:
        """
        Audit a bid against an RFQ.

        Raises:
            AuditLimitReachedError: Free audits used up (carries upgrade_url)
            UsageNotRecordedError: Report parsed but not counted (carries report)
            AuditClientError: Any other failure; usage is not recorded
        """
        usage = self.get_usage()
        if not usage.get("allowed"):
            raise AuditLimitReachedError(
                "Audit limit reached. Upgrade to SmartProcure Pro for unlimited vendor evaluations.",
                upgrade_url=usage.get("upgradeUrl"),
            )

        rfq_text = extract_text(rfq_path)
        bid_text = extract_text(bid_path)

        report = parse_report(self.analyze(rfq_text, bid_text))

        try:
            usage = self.record_usage()
        except (AuthenticationError, ServiceError) as e:
            _logger.warning(f"Report parsed but usage was not recorded: {e}")
            raise UsageNotRecordedError(f"Audit finished but usage was not recorded: {e}", report=report) from e

        _logger.info(f"Audit complete; {usage.get('auditCount')} audit(s) used")
        return AuditResult(report=report, usage=usage)
