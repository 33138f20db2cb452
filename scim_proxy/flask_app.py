"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the proxy with its blueprints, downstream client and configuration.
"""
from __future__ import annotations
import logging
from typing import Optional

import requests
from flask import Flask

from scim_proxy.config import AppConfig, load_settings
from scim_proxy.core.upstream import DirectoryService, UpstreamClient


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(cfg: Optional[AppConfig] = None, session: Optional[requests.Session] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Settings; loaded from the environment when omitted
        session: HTTP session for the downstream client (tests pass fakes)
    """
    cfg = cfg or load_settings()
    _configure_logging(cfg.log_level)

    app = Flask(__name__)

    # Store config for easy access in routes
    app.config["APP_CONFIG"] = cfg
    app.config["MAX_CONTENT_LENGTH"] = cfg.max_payload_bytes

    client = UpstreamClient(
        cfg.proxy_url,
        timeout=cfg.request_timeout,
        retries=cfg.upstream_retries,
        retry_delay=cfg.upstream_retry_delay,
        session=session,
    )
    app.config["UPSTREAM_CLIENT"] = client
    app.config["DIRECTORY_SERVICE"] = DirectoryService(client, max_workers=cfg.fanout_max_workers)

    # Register blueprints
    from scim_proxy.api import errors, health, proxy

    app.register_blueprint(health.bp)
    app.register_blueprint(proxy.bp)

    # Register error handlers
    errors.register_error_handlers(app)

    mode_label = "DEMO" if cfg.demo_mode else "PRODUCTION"
    app.logger.info(f"[flask_app] Mode={mode_label}; proxying to {cfg.proxy_url}")

    if cfg.demo_mode:
        app.logger.warning("[flask_app] Demo mode active - downstream defaults to a local endpoint")

    return app


def _configure_logging(level: str) -> None:
    """Configure root logging once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    root.setLevel(level)


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
