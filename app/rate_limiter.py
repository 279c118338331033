# app/rate_limiter.py
"""
In-memory rate limiter for the AI relay.

Fixed window per client IP:
- The first request from an IP opens a window of window_seconds
- Up to max_requests are allowed inside the window
- Further requests get 429 until the window closes

Single instance only (no shared state between processes).

CI/Test Mode:
- Set SMARTPROCURE_RATE_LIMIT_MODE=ci to bypass rate limiting in tests
- Set SMARTPROCURE_RATE_LIMIT_MODE=off to disable entirely (non-production only)
- Production safety: bypass NEVER activates when ENV=production
"""
from __future__ import annotations

import logging
import math
import os
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import DEFAULT_ANALYZE_RATE_LIMIT, DEFAULT_ANALYZE_RATE_WINDOW_SECONDS

_logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."

# =============================================================================
# Rate Limit Mode Configuration
# =============================================================================

RATE_LIMIT_MODE_PROD = "prod"  # Default: normal rate limiting
RATE_LIMIT_MODE_CI = "ci"      # CI/test: bypass rate limiting
RATE_LIMIT_MODE_OFF = "off"    # Off: bypass entirely (non-prod only)

_bypass_warning_logged = False


def _get_rate_limit_mode() -> str:
    return os.environ.get("SMARTPROCURE_RATE_LIMIT_MODE", RATE_LIMIT_MODE_PROD).lower()


def _get_bypass_until() -> Optional[datetime]:
    """Optional expiry for a bypass, ISO 8601."""
    until_str = os.environ.get("SMARTPROCURE_RATE_LIMIT_BYPASS_UNTIL")
    if not until_str:
        return None
    try:
        return datetime.fromisoformat(until_str.replace("Z", "+00:00"))
    except ValueError:
        _logger.warning(f"Invalid SMARTPROCURE_RATE_LIMIT_BYPASS_UNTIL format: {until_str}")
        return None


def _is_production() -> bool:
    return os.environ.get("ENV", "").lower() == "production"


def _is_bypass_allowed() -> bool:
    """
    Determine if rate limit bypass is allowed.

    Never in production; never after the bypass expiry; warns once.
    """
    global _bypass_warning_logged

    mode = _get_rate_limit_mode()

    if mode == RATE_LIMIT_MODE_PROD:
        return False

    if _is_production():
        _logger.error(
            f"SECURITY: Rate limit bypass attempted in production with mode={mode}. "
            "Bypass DENIED."
        )
        return False

    bypass_until = _get_bypass_until()
    if bypass_until:
        if bypass_until.tzinfo is None:
            bypass_until = bypass_until.replace(tzinfo=timezone.utc)
        if datetime.now(timezone.utc) > bypass_until:
            _logger.warning(
                f"Rate limit bypass expired at {bypass_until.isoformat()}. "
                "Reverting to normal rate limiting."
            )
            return False

    if not _bypass_warning_logged:
        until_msg = f" until {bypass_until.isoformat()}" if bypass_until else ""
        _logger.warning(
            f"RATE_LIMIT_BYPASS_ACTIVE: mode={mode}{until_msg}. "
            "This should only be used in CI/test environments."
        )
        _bypass_warning_logged = True

    return True


# =============================================================================
# Limiter
# =============================================================================


@dataclass
class RateLimitDecision:
    """Outcome of one check."""
    allowed: bool
    limit: int
    remaining: int
    reset_after: float  # seconds until the window closes

    @property
    def retry_after(self) -> int:
        return max(1, math.ceil(self.reset_after)) if not self.allowed else 0


@dataclass
class Window:
    """Request count for one client in the current window."""
    started_at: float
    count: int = 0


@dataclass
class FixedWindowRateLimiter:
    """
    Fixed-window request counter keyed by client IP.

    Attributes:
        max_requests: Requests allowed per window
        window_seconds: Window length
        clock: Callable returning current time (for testing)
    """
    max_requests: int = DEFAULT_ANALYZE_RATE_LIMIT
    window_seconds: float = DEFAULT_ANALYZE_RATE_WINDOW_SECONDS
    clock: Callable[[], float] = field(default=time.time)
    _windows: Dict[str, Window] = field(default_factory=dict)
    _lock: Lock = field(default_factory=Lock)
    _last_cleanup: float = field(default=0.0)

    def __post_init__(self):
        self._last_cleanup = self.clock()

    def check(self, client_ip: str) -> RateLimitDecision:
        """Count a request from client_ip and decide whether it may proceed."""
        now = self.clock()

        with self._lock:
            if now - self._last_cleanup > self.window_seconds:
                self._cleanup_expired(now)
                self._last_cleanup = now

            window = self._windows.get(client_ip)
            if window is None or now - window.started_at >= self.window_seconds:
                window = Window(started_at=now)
                self._windows[client_ip] = window

            reset_after = window.started_at + self.window_seconds - now

            if window.count >= self.max_requests:
                return RateLimitDecision(False, self.max_requests, 0, reset_after)

            window.count += 1
            return RateLimitDecision(
                True, self.max_requests, self.max_requests - window.count, reset_after
            )

    def _cleanup_expired(self, now: float) -> None:
        expired = [
            ip for ip, window in self._windows.items()
            if now - window.started_at >= self.window_seconds
        ]
        for ip in expired:
            del self._windows[ip]

    def reset(self) -> None:
        """Reset all windows (for testing)."""
        with self._lock:
            self._windows.clear()


class BypassRateLimiter:
    """Always allows. Used in CI/test mode."""

    def check(self, client_ip: str) -> RateLimitDecision:
        return RateLimitDecision(True, 0, 0, 0.0)

    def reset(self) -> None:
        pass


def get_client_ip(request: Request) -> str:
    """
    Extract client IP from request, respecting X-Forwarded-For.

    Only the first IP in the chain is used (the original client).
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first_ip = forwarded_for.split(",")[0].strip()
        if first_ip:
            return first_ip

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


_rate_limiter: Optional[FixedWindowRateLimiter] = None


def get_rate_limiter():
    """
    Get or create the global rate limiter.

    Returns a bypass limiter in CI/test mode (when safe).
    """
    global _rate_limiter

    if _is_bypass_allowed():
        return BypassRateLimiter()

    if _rate_limiter is None:
        _rate_limiter = FixedWindowRateLimiter()
    return _rate_limiter


def set_rate_limiter(limiter: Optional[FixedWindowRateLimiter]) -> None:
    """Set the global rate limiter (startup configuration and tests)."""
    global _rate_limiter
    _rate_limiter = limiter


def reset_bypass_warning() -> None:
    """Reset the bypass warning flag (for testing)."""
    global _bypass_warning_logged
    _bypass_warning_logged = False


# =============================================================================
# Middleware
# =============================================================================


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Apply the global limiter to requests under path_prefix.

    Adds draft-7 RateLimit / RateLimit-Policy headers to limited routes.
    """

    def __init__(self, app, path_prefix: str):
        super().__init__(app)
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        limiter = get_rate_limiter()
        decision = limiter.check(get_client_ip(request))

        headers = {}
        if decision.limit:
            reset = math.ceil(decision.reset_after)
            headers["RateLimit-Policy"] = f"{decision.limit};w={math.ceil(limiter.window_seconds)}"
            headers["RateLimit"] = f"limit={decision.limit}, remaining={decision.remaining}, reset={reset}"

        if not decision.allowed:
            _logger.warning(f"Rate limited {get_client_ip(request)} on {request.url.path}")
            headers["Retry-After"] = str(decision.retry_after)
            return JSONResponse(
                status_code=429,
                content={"error": RATE_LIMIT_MESSAGE},
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
