# app/config.py
"""
Centralized configuration management with startup validation.

All settings come from environment variables. Secrets are read where
they are used (billing.stripe_client, app.gemini_client); this module
only records whether they are present.
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

SERVICE_NAME = "smartprocure"
SERVICE_VERSION = "1.0.0"

DEFAULT_PORT = 3000

# Large RFQs/bids travel as raw text inside the JSON body
DEFAULT_MAX_REQUEST_SIZE_BYTES = 50 * 1024 * 1024  # 50MB
MIN_REQUEST_SIZE_BYTES = 1024  # 1KB minimum

# /api/analyze: fixed window per client
DEFAULT_ANALYZE_RATE_LIMIT = 100
DEFAULT_ANALYZE_RATE_WINDOW_SECONDS = 15 * 60

DEFAULT_STATIC_DIR = Path(__file__).resolve().parent.parent / "dist"


# =============================================================================
# Configuration Dataclass
# =============================================================================


@dataclass
class AppConfig:
    """Application configuration loaded from environment."""

    service_name: str = SERVICE_NAME
    service_version: str = SERVICE_VERSION
    environment: str = "development"
    port: int = DEFAULT_PORT

    # Request limits
    max_request_size_bytes: int = DEFAULT_MAX_REQUEST_SIZE_BYTES
    analyze_rate_limit: int = DEFAULT_ANALYZE_RATE_LIMIT
    analyze_rate_window_seconds: int = DEFAULT_ANALYZE_RATE_WINDOW_SECONDS

    static_dir: Path = DEFAULT_STATIC_DIR

    # Secret presence only, never values
    google_api_key_present: bool = False
    stripe_secret_key_present: bool = False
    stripe_webhook_secret_present: bool = False

    warnings: list = field(default_factory=list)


# =============================================================================
# Configuration Loading
# =============================================================================


def _parse_int_env(
    name: str, default: int, min_value: Optional[int] = None
) -> tuple[int, Optional[str]]:
    """
    Parse an integer environment variable with validation.

    Returns (value, warning_message).
    On invalid input, returns default with a warning.
    """
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default, None

    try:
        value = int(raw)
    except ValueError:
        return default, f"{name}='{raw}' is not a valid integer; using default {default}"

    if min_value is not None and value < min_value:
        return default, f"{name}={value} is below minimum {min_value}; using default {default}"

    return value, None


def get_static_dir() -> Path:
    """Directory holding the built single-page app."""
    raw = os.environ.get("STATIC_DIR")
    return Path(raw) if raw else DEFAULT_STATIC_DIR


def load_config() -> AppConfig:
    """
    Load and validate application configuration from environment.

    Invalid numeric values fall back to their defaults with a logged
    warning rather than failing startup.
    """
    warnings = []

    environment = os.environ.get("ENV", "development")

    int_settings = {}
    for env_name, attr, default, minimum in (
        ("PORT", "port", DEFAULT_PORT, 1),
        ("MAX_REQUEST_SIZE_BYTES", "max_request_size_bytes", DEFAULT_MAX_REQUEST_SIZE_BYTES, MIN_REQUEST_SIZE_BYTES),
        ("ANALYZE_RATE_LIMIT", "analyze_rate_limit", DEFAULT_ANALYZE_RATE_LIMIT, 1),
        ("ANALYZE_RATE_WINDOW_SECONDS", "analyze_rate_window_seconds", DEFAULT_ANALYZE_RATE_WINDOW_SECONDS, 1),
    ):
        value, warning = _parse_int_env(env_name, default, min_value=minimum)
        if warning:
            warnings.append(warning)
        int_settings[attr] = value

    google_api_key_present = bool(os.environ.get("GOOGLE_API_KEY"))
    stripe_secret_key_present = bool(os.environ.get("STRIPE_SECRET_KEY"))
    stripe_webhook_secret_present = bool(os.environ.get("STRIPE_WEBHOOK_SECRET"))

    if not google_api_key_present:
        warnings.append("GOOGLE_API_KEY is not set; /api/analyze will return errors")
    if stripe_secret_key_present and not stripe_webhook_secret_present:
        warnings.append(
            "STRIPE_SECRET_KEY is set but STRIPE_WEBHOOK_SECRET is not; "
            "subscription webhooks will be rejected"
        )

    for warning in warnings:
        logger.warning(f"[CONFIG] {warning}")

    return AppConfig(
        environment=environment,
        static_dir=get_static_dir(),
        google_api_key_present=google_api_key_present,
        stripe_secret_key_present=stripe_secret_key_present,
        stripe_webhook_secret_present=stripe_webhook_secret_present,
        warnings=warnings,
        **int_settings,
    )


def log_config_snapshot(config: AppConfig) -> str:
    """
    Generate and log a safe configuration snapshot.

    Returns the snapshot string for testing purposes.
    Never logs actual secret values - only boolean presence flags.
    """
    snapshot = (
        f"[STARTUP] service={config.service_name} "
        f"version={config.service_version} "
        f"environment={config.environment} "
        f"max_request_size_bytes={config.max_request_size_bytes} "
        f"analyze_rate_limit={config.analyze_rate_limit}/{config.analyze_rate_window_seconds}s "
        f"static_dir={config.static_dir} "
        f"google_api_key_present={config.google_api_key_present} "
        f"stripe_secret_key_present={config.stripe_secret_key_present} "
        f"stripe_webhook_secret_present={config.stripe_webhook_secret_present}"
    )
    logger.info(snapshot)
    return snapshot
