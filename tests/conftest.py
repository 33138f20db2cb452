"""Pytest shared fixtures."""
import json
import os
import pathlib
import re
import sys
from typing import Callable, Optional
from urllib.parse import unquote

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Configure test environment BEFORE any app imports
os.environ.setdefault("DEMO_MODE", "true")
os.environ.setdefault("PROXY_URL", "https://scim.example.test/tenant-id")

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from scim_proxy.config import AppConfig
from scim_proxy.flask_app import create_app


# ─────────────────────────────────────────────────────────────────────────────
# Directory fixtures
# ─────────────────────────────────────────────────────────────────────────────
TENANT_PATH = "/tenant-id/scim/v2"

GROUP_FIXTURES = {
    "a358d675-46ef-5b6c-85ac-d8bbb1410e73": [
        "6215c125-4a6e-50b9-822a-86fe33f8172f",
        "1ee5e1d3-40dc-5ae1-aa51-aca7a832ddea",
        "edf32347-6d27-533f-a8ee-2898c657a184",
    ],
    "a8a90f06-89fc-5633-9205-0f37699f0eb6": [
        "98feceb2-1ea1-5a8a-b818-4eb19c32166a",
        "8a58f666-46a9-522b-b40a-484b09db59ec",
    ],
}

USER_FIXTURES = [
    "6215c125-4a6e-50b9-822a-86fe33f8172f",
    "1ee5e1d3-40dc-5ae1-aa51-aca7a832ddea",
    "edf32347-6d27-533f-a8ee-2898c657a184",
    "98feceb2-1ea1-5a8a-b818-4eb19c32166a",
    "8a58f666-46a9-522b-b40a-484b09db59ec",
]

RELATIONSHIP_FILTER = re.compile(r'filter=id eq "([^"]+)" and members eq "([^"]+)"')


def make_response(status: int = 200, payload=None, headers: Optional[dict] = None) -> requests.Response:
    """Build a real requests.Response carrying a JSON payload."""
    resp = requests.Response()
    resp.status_code = status
    resp._content = b"" if payload is None else json.dumps(payload).encode()
    resp.headers = CaseInsensitiveDict(headers or {})
    if payload is not None:
        resp.headers.setdefault("Content-Type", "application/scim+json")
    resp.encoding = "utf-8"
    return resp


class FakeSession:
    """Stands in for requests.Session; records calls and answers from a handler."""

    def __init__(self, handler: Callable[..., requests.Response]):
        self.handler = handler
        self.calls = []

    def request(self, method, url, headers=None, json=None, timeout=None, **kwargs):
        self.calls.append({"method": method, "url": url, "headers": headers, "json": json, "timeout": timeout})
        return self.handler(method, url, headers=headers, json=json)

    def calls_to(self, fragment: str):
        return [call for call in self.calls if fragment in unquote(call["url"])]


def directory_handler(groups=None, users=None, default=None):
    """Answer directory and relationship queries from the fixtures above.

    Anything else is delegated to `default`, or answered 200 with the request body.
    """
    groups = GROUP_FIXTURES if groups is None else groups
    users = USER_FIXTURES if users is None else users

    def _handle(method, url, headers=None, json=None):
        decoded = unquote(url)
        if method == "GET" and decoded.endswith("/Users"):
            return make_response(200, {"Resources": [{"id": user_id} for user_id in users]})
        match = RELATIONSHIP_FILTER.search(decoded)
        if method == "GET" and match:
            group_id, user_id = match.groups()
            found = user_id in groups.get(group_id, [])
            return make_response(200, {"Resources": [{"id": group_id}] if found else []})
        if default is not None:
            return default(method, url, headers=headers, json=json)
        return make_response(200, json)

    return _handle


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from reaching a real SCIM endpoint.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _refuse(self, method, url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")

    monkeypatch.setattr(requests.Session, "request", _refuse)


# ─────────────────────────────────────────────────────────────────────────────
# Configuration and Flask Test Client
# ─────────────────────────────────────────────────────────────────────────────
def make_config(**overrides) -> AppConfig:
    base = dict(
        demo_mode=False,
        proxy_url="https://scim.example.test",
        request_timeout=5.0,
        upstream_retries=0,
        upstream_retry_delay=0.0,
        fanout_max_workers=4,
        max_payload_bytes=65536,
        log_level="INFO",
    )
    base.update(overrides)
    return AppConfig(**base)


@pytest.fixture()
def app_config():
    return make_config()


@pytest.fixture()
def fake_session():
    """Directory-backed fake session; tests may swap `fake_session.handler`."""
    return FakeSession(directory_handler())


@pytest.fixture()
def client(app_config, fake_session):
    """Flask test client wired to the fake downstream session."""
    flask_app = create_app(app_config, session=fake_session)
    flask_app.config.update(TESTING=True)

    with flask_app.test_client() as client:
        with flask_app.app_context():
            yield client
