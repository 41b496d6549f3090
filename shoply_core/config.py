# =============================================================================
# shoply_core/config.py
# Application Configuration
# =============================================================================
"""
Configuration for the Shoply client core.

Required identifiers come from the environment (a local ``.env`` file is
loaded with python-dotenv) or, in the Streamlit app, from the ``[shoply]``
section of ``.streamlit/secrets.toml``:

    [shoply]
    SHOPLY_API_KEY = "..."
    SHOPLY_AUTH_DOMAIN = "shop.example.com"
    SHOPLY_PROJECT_ID = "abcdefghijklmnop"
    SHOPLY_STORAGE_BUCKET = "profile-images"
    SHOPLY_MESSAGING_SENDER_ID = "1234567890"
    SHOPLY_APP_ID = "1:1234567890:web:abcdef"

A missing identifier is fatal: ``load_config`` raises ``ConfigurationError``.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from shoply_core.errors import ConfigurationError

REQUIRED_ENV_VARS = (
    "SHOPLY_API_KEY",
    "SHOPLY_AUTH_DOMAIN",
    "SHOPLY_PROJECT_ID",
    "SHOPLY_STORAGE_BUCKET",
    "SHOPLY_MESSAGING_SENDER_ID",
    "SHOPLY_APP_ID",
)

ENVIRONMENTS = ("development", "production")

# Local Supabase stack used in development when no URL override is given
LOCAL_STORE_URL = "http://localhost:54321"


@dataclass(frozen=True)
class AppConfig:
    """Validated runtime configuration."""
    api_key: str
    auth_domain: str
    project_id: str
    storage_bucket: str
    messaging_sender_id: str
    app_id: str
    environment: str = "production"
    store_url_override: Optional[str] = None
    cache_ttl_seconds: float = 300.0
    session_timeout_seconds: float = 3600.0
    retry_max_attempts: int = 5
    retry_base_delay: float = 1.0
    retry_backoff_factor: float = 1.5
    pending_queue_path: Optional[str] = None
    log_level: Optional[str] = None

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def store_url(self) -> str:
        """Base URL of the hosted store (local stack in development)."""
        if self.store_url_override:
            return self.store_url_override.rstrip("/")
        if self.is_development:
            return LOCAL_STORE_URL
        return f"https://{self.project_id}.supabase.co"

    @property
    def password_reset_url(self) -> str:
        """Where password-reset emails send the user back to."""
        return f"https://{self.auth_domain}/reset-password"


def _read_float(values: Mapping[str, Any], key: str, default: float) -> float:
    raw = values.get(key)
    if raw in (None, ""):
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Invalid value for {key}: {raw!r}",
            config_key=key,
            expected_type="float",
        )
    if value < 0:
        raise ConfigurationError(
            f"{key} must not be negative",
            config_key=key,
            expected_type="non-negative float",
        )
    return value


def _read_int(values: Mapping[str, Any], key: str, default: int) -> int:
    raw = values.get(key)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Invalid value for {key}: {raw!r}",
            config_key=key,
            expected_type="int",
        )
    if value < 0:
        raise ConfigurationError(
            f"{key} must not be negative",
            config_key=key,
            expected_type="non-negative int",
        )
    return value


def load_config(environ: Optional[Mapping[str, Any]] = None) -> AppConfig:
    """
    Build the application configuration.

    Args:
        environ: Mapping to read from. When omitted, ``.env`` is loaded into
            the process environment and ``os.environ`` is used.

    Returns:
        Frozen AppConfig

    Raises:
        ConfigurationError: if a required identifier is missing or a tuning
            value is malformed
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    for key in REQUIRED_ENV_VARS:
        if not environ.get(key):
            raise ConfigurationError(
                f"Missing required environment variable: {key}",
                config_key=key,
            )

    environment = str(environ.get("SHOPLY_ENV") or "production").lower()
    if environment not in ENVIRONMENTS:
        raise ConfigurationError(
            f"SHOPLY_ENV must be one of {', '.join(ENVIRONMENTS)}",
            config_key="SHOPLY_ENV",
        )

    return AppConfig(
        api_key=str(environ["SHOPLY_API_KEY"]),
        auth_domain=str(environ["SHOPLY_AUTH_DOMAIN"]),
        project_id=str(environ["SHOPLY_PROJECT_ID"]),
        storage_bucket=str(environ["SHOPLY_STORAGE_BUCKET"]),
        messaging_sender_id=str(environ["SHOPLY_MESSAGING_SENDER_ID"]),
        app_id=str(environ["SHOPLY_APP_ID"]),
        environment=environment,
        store_url_override=environ.get("SHOPLY_STORE_URL") or None,
        cache_ttl_seconds=_read_float(environ, "SHOPLY_CACHE_TTL_SECONDS", 300.0),
        session_timeout_seconds=_read_float(environ, "SHOPLY_SESSION_TIMEOUT_SECONDS", 3600.0),
        retry_max_attempts=_read_int(environ, "SHOPLY_RETRY_MAX_ATTEMPTS", 5),
        retry_base_delay=_read_float(environ, "SHOPLY_RETRY_BASE_DELAY", 1.0),
        retry_backoff_factor=_read_float(environ, "SHOPLY_RETRY_BACKOFF_FACTOR", 1.5),
        pending_queue_path=environ.get("SHOPLY_PENDING_QUEUE_PATH") or None,
        log_level=environ.get("SHOPLY_LOG_LEVEL") or None,
    )
