"""Low-level HTTP client for the downstream SCIM endpoint.

Handles header filtering, retries on rate limiting, and response decoding.
"""
from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..models import Method
from .exceptions import UpstreamAPIError, UpstreamConnectionError

REQUEST_TIMEOUT = 10

# Headers that must not be forwarded as received
BAD_HEADERS = frozenset({"content-length", "host", "transfer-encoding", "connection"})

logger = logging.getLogger(__name__)


@dataclass
class UpstreamResponse:
    status: int
    data: Any = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class _ConstantDelayRetry(Retry):
    """Retry with a fixed sleep between attempts, honouring Retry-After when sent."""

    def __init__(self, *args, delay: float = 1.0, **kwargs):
        self.delay = delay
        super().__init__(*args, **kwargs)

    def new(self, **kw):
        retry = super().new(**kw)
        retry.delay = self.delay
        return retry

    def get_backoff_time(self) -> float:
        return self.delay


def filter_headers(headers: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Drop headers that break proxying and stringify the rest."""
    return {
        key: str(value)
        for key, value in (headers or {}).items()
        if key.lower() not in BAD_HEADERS and value is not None
    }


def _decode(resp: requests.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text


class UpstreamClient:
    """HTTP client for the downstream SCIM endpoint.

    Features:
    - Retries on HTTP 429 with a constant delay
    - Host header rewritten to the downstream hostname
    - Optional relaying of error statuses instead of raising

    Usage:
        client = UpstreamClient("https://scim.example.com/tenant")
        resp = client.send(Method.READ, "/tenant/scim/v2/Users", headers={})
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = REQUEST_TIMEOUT,
        retries: int = 3,
        retry_delay: float = 1.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize client.

        Args:
            base_url: Downstream base URL; request paths are appended to it
            timeout: Seconds per request
            retries: Retries on HTTP 429
            retry_delay: Seconds between retries
            session: Pre-built session (tests inject fakes here)
        """
        self.base_url = base_url.rstrip("/")
        self.host = urlparse(self.base_url).hostname or ""
        self.timeout = timeout
        self.session = session if session is not None else self._build_session(retries, retry_delay)

    @staticmethod
    def _build_session(retries: int, retry_delay: float) -> requests.Session:
        session = requests.Session()
        retry = _ConstantDelayRetry(
            total=retries,
            connect=0,
            read=0,
            status_forcelist=[429],
            allowed_methods=frozenset(m.upper() for m in Method.allowed()),
            raise_on_status=False,
            delay=retry_delay,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def send(
        self,
        method: Method,
        path: str,
        headers: Optional[Dict[str, Any]] = None,
        data: Any = None,
        proxy_status: bool = True,
    ) -> UpstreamResponse:
        """Send a request to the downstream endpoint.

        Args:
            method: HTTP method
            path: Resource path appended to the base URL (may include a query)
            headers: Headers to forward (filtered)
            data: JSON payload, or None for no body
            proxy_status: Return error responses instead of raising

        Returns:
            UpstreamResponse

        Raises:
            UpstreamAPIError: Status >= 400 and proxy_status is False
            UpstreamConnectionError: Endpoint unreachable
        """
        url = f"{self.base_url}{path}"
        request_headers = filter_headers(headers)
        request_headers["host"] = self.host

        logger.debug(f"Sending request upstream {json.dumps({'method': method.value, 'path': path, 'data': data}, default=str)}")

        try:
            resp = self.session.request(
                method.value.upper(),
                url,
                headers=request_headers,
                json=data,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error(f"Upstream {method.value.upper()} {path} failed: {exc}")
            raise UpstreamConnectionError(f"{method.value.upper()} {url}: {exc}") from exc

        response = UpstreamResponse(
            status=resp.status_code,
            data=_decode(resp),
            headers=dict(resp.headers),
        )
        logger.debug(f"Received response upstream {json.dumps({'status': response.status, 'data': response.data}, default=str)}")

        if not proxy_status:
            self._handle_error(response, url)
        return response

    def get(self, path: str, headers: Optional[Dict[str, Any]] = None) -> UpstreamResponse:
        """GET that raises on error statuses."""
        return self.send(Method.READ, path, headers=headers, proxy_status=False)

    def _handle_error(self, response: UpstreamResponse, endpoint: str) -> None:
        """Raise UpstreamAPIError for error statuses."""
        if response.status >= 400:
            raise UpstreamAPIError(response.status, response.data, endpoint)
