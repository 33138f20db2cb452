"""Proxy settings: environment variables, with the downstream URL optionally mounted as a secret."""
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

SECRETS_DIR = "/run/secrets"
DEMO_PROXY_URL = "http://127.0.0.1:9000"


def _read_mounted_secret(name: str) -> Optional[str]:
    """Contents of SECRETS_DIR/<name>, or None when absent, empty or unreadable."""
    secret_path = Path(SECRETS_DIR) / name
    if not secret_path.is_file():
        return None
    try:
        content = secret_path.read_text().strip()
    except OSError as e:
        print(f"[settings] ✗ Could not read {name} secret: {e}")
        return None
    if content:
        print(f"[settings] ✓ {name} taken from mounted secret")
    return content or None


@dataclass
class AppConfig:
    """Application configuration container."""
    # Mode
    demo_mode: bool

    # Downstream SCIM endpoint (e.g. https://scim.us-east-1.amazonaws.com/<tenant>)
    proxy_url: str

    # Transport
    request_timeout: float = 10.0
    upstream_retries: int = 3
    upstream_retry_delay: float = 1.0

    # Membership resolution fan-out
    fanout_max_workers: int = 16

    # Inbound requests
    max_payload_bytes: int = 65536

    # Logging
    log_level: str = "INFO"


def _validate_url(var_name: str, value: str) -> str:
    """Ensure an http(s) URL with a host; strip the trailing slash."""
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise RuntimeError(f"Environment variable {var_name} must be an http(s) URL, got '{value}'.")
    return value.rstrip("/")


def _resolve_proxy_url(demo_mode: bool) -> str:
    """Mounted secret first, then PROXY_URL; demo mode falls back to a local endpoint."""
    url = _read_mounted_secret("proxy_url") or os.environ.get("PROXY_URL", "").strip()
    if url:
        return url
    if demo_mode:
        print(f"[demo-mode] PROXY_URL not set, using {DEMO_PROXY_URL}")
        return DEMO_PROXY_URL
    raise RuntimeError("Environment variable PROXY_URL is required in production mode.")


def _get_number(var_name: str, default: str, cast):
    raw = os.environ.get(var_name, default).strip()
    try:
        value = cast(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be numeric, got '{raw}'.") from None
    if value < 0:
        raise RuntimeError(f"Environment variable {var_name} must not be negative.")
    return value


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"

    proxy_url = _validate_url("PROXY_URL", _resolve_proxy_url(demo_mode))

    request_timeout = _get_number("REQUEST_TIMEOUT", "10", float)
    upstream_retries = _get_number("UPSTREAM_RETRIES", "3", int)
    upstream_retry_delay = _get_number("UPSTREAM_RETRY_DELAY", "1.0", float)
    fanout_max_workers = max(1, _get_number("FANOUT_MAX_WORKERS", "16", int))
    max_payload_bytes = _get_number("MAX_PAYLOAD_BYTES", "65536", int)

    log_level = os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    print(f"[settings] Mode={mode_label}; proxy_url={proxy_url}; retries={upstream_retries}")

    return AppConfig(
        demo_mode=demo_mode,
        proxy_url=proxy_url,
        request_timeout=request_timeout,
        upstream_retries=upstream_retries,
        upstream_retry_delay=upstream_retry_delay,
        fanout_max_workers=fanout_max_workers,
        max_payload_bytes=max_payload_bytes,
        log_level=log_level,
    )
