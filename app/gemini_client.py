# app/gemini_client.py
"""
Google Gemini relay.

Forwards a generateContent request body unchanged, adding the
server-held API key, and hands back the provider's JSON.
"""
from __future__ import annotations

import os
from typing import Any, Dict

import httpx

# =============================================================================
# Configuration
# =============================================================================

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
GEMINI_ENDPOINT_TEMPLATE = (
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
)

# Audits of long documents can take a while to generate
REQUEST_TIMEOUT_SECONDS = 120.0


# =============================================================================
# Exceptions
# =============================================================================


class GeminiError(Exception):
    """Base exception for Gemini relay errors."""
    pass


class GeminiConfigurationError(GeminiError):
    """Raised when the relay is misconfigured (e.g., missing API key)."""
    pass


class GeminiAPIError(GeminiError):
    """Raised when the Gemini API returns an error."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


# =============================================================================
# Configuration Helpers
# =============================================================================


def get_google_api_key() -> str:
    return os.environ.get("GOOGLE_API_KEY", "")


def get_gemini_model() -> str:
    return os.environ.get("GEMINI_MODEL", DEFAULT_GEMINI_MODEL)


def get_endpoint(model: str) -> str:
    return GEMINI_ENDPOINT_TEMPLATE.format(model=model)


# =============================================================================
# Relay
# =============================================================================


async def generate_content(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Send a generateContent request and return the provider's JSON.

    Args:
        payload: {contents, systemInstruction, generationConfig}

    Raises:
        GeminiConfigurationError: If GOOGLE_API_KEY is not set
        GeminiAPIError: If the provider answers with an error or unreadable body
        httpx.HTTPError: On transport failures
    """
    api_key = get_google_api_key()
    if not api_key:
        raise GeminiConfigurationError("GOOGLE_API_KEY environment variable is not set.")

    async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS) as client:
        response = await client.post(
            get_endpoint(get_gemini_model()),
            params={"key": api_key},
            headers={"Content-Type": "application/json"},
            json=payload,
        )

    try:
        data = response.json()
    except ValueError:
        data = None

    if response.status_code != 200:
        message = "Google API Error"
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict) and error.get("message"):
            message = error["message"]
        raise GeminiAPIError(message, status_code=response.status_code)

    if not isinstance(data, dict):
        raise GeminiAPIError("Google API returned a non-JSON response", status_code=response.status_code)

    return data
