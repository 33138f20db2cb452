"""Downstream SCIM endpoint exceptions."""
from typing import Any


class UpstreamError(Exception):
    """Base exception for all calls to the downstream SCIM endpoint."""
    pass


class UpstreamAPIError(UpstreamError):
    """HTTP error returned by the downstream SCIM endpoint.

    Attributes:
        status_code: HTTP status code
        data: Decoded response body (JSON or text)
        endpoint: URL that failed
    """

    def __init__(self, status_code: int, data: Any, endpoint: str):
        self.status_code = status_code
        self.data = data
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {data}")


class UpstreamConnectionError(UpstreamError):
    """Downstream endpoint could not be reached (DNS, TLS, timeout, retries exhausted)."""
    pass
