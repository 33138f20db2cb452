"""Gunicorn configuration for the SCIM proxy.

Settings come from the environment so the same image runs in every stage:
- BIND / PORT        : listen address (default 0.0.0.0:5000)
- WEB_CONCURRENCY    : worker processes (default 2)
- GUNICORN_THREADS   : threads per worker (default 4)
- REQUEST_TIMEOUT    : downstream timeout; worker timeout is derived from it
- LOG_LEVEL          : gunicorn and application log level
"""
import os

wsgi_app = "scim_proxy.flask_app:create_app()"

bind = os.environ.get("BIND", f"0.0.0.0:{os.environ.get('PORT', '5000')}")
workers = int(os.environ.get("WEB_CONCURRENCY", "2"))
threads = int(os.environ.get("GUNICORN_THREADS", "4"))

# Membership resolution makes one directory call plus one check per user,
# each bounded by REQUEST_TIMEOUT and retried on 429
timeout = int(float(os.environ.get("REQUEST_TIMEOUT", "10")) * 6)

loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"


def post_fork(server, worker):
    """Called just after a worker has been forked."""
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"
    if demo_mode:
        worker.log.warning("DEMO_MODE=true - downstream defaults to a local endpoint")
    if not os.environ.get("PROXY_URL") and not os.path.exists("/run/secrets/proxy_url") and not demo_mode:
        worker.log.error("PROXY_URL is not set; workers will fail to load settings")
