# audit_client/retry.py
"""
Fixed-count retry with exponential backoff for the analyze call.

Attempt i (0-based) that fails is followed by a sleep of 2**i seconds,
except after the last attempt, whose error propagates.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable

import httpx

_logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


def fetch_with_retry(
    client: httpx.Client,
    method: str,
    url: str,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    sleep: Callable[[float], Any] = time.sleep,
    **kwargs,
) -> httpx.Response:
    """
    Send a request, retrying transport errors and non-2xx responses.

    Args:
        client: httpx client to send with
        method: HTTP method
        url: URL or path relative to the client's base_url
        max_attempts: Total attempts, at least 1
        sleep: Called with the backoff in seconds (for testing)
        **kwargs: Passed through to client.request

    Returns:
        The first successful response

    Raises:
        httpx.HTTPError: From the last attempt (HTTPStatusError for non-2xx)
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(max_attempts):
        try:
            response = client.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPError as e:
            if attempt == max_attempts - 1:
                _logger.error(f"{method} {url} failed after {max_attempts} attempts: {e}")
                raise
            delay = 2 ** attempt
            _logger.warning(f"{method} {url} attempt {attempt + 1} failed ({e}); retrying in {delay}s")
            sleep(delay)
