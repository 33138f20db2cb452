"""Downstream SCIM endpoint access.

Modules:
    client.py     : HTTP client (header filtering, 429 retries, decoding)
    directory.py  : User directory and group membership lookups
    exceptions.py : Error hierarchy
"""
from .client import UpstreamClient, UpstreamResponse, filter_headers
from .directory import DirectoryService, GroupLocator, parse_group_locator
from .exceptions import UpstreamAPIError, UpstreamConnectionError, UpstreamError

__all__ = [
    "UpstreamClient",
    "UpstreamResponse",
    "filter_headers",
    "DirectoryService",
    "GroupLocator",
    "parse_group_locator",
    "UpstreamError",
    "UpstreamAPIError",
    "UpstreamConnectionError",
]
