"""Current group membership lookups against the downstream directory."""
from __future__ import annotations
import logging
import re
from typing import Any, Dict, List, NamedTuple, Optional
from urllib.parse import quote, urlencode

from ..concurrency import DEFAULT_MAX_WORKERS, gather
from ..models import FetchMembers, MembershipReference
from .client import UpstreamClient

logger = logging.getLogger(__name__)

GROUP_PATH_PATTERN = re.compile(r"(/[A-Za-z0-9-]+/scim/v2)/Groups/([^/?]+)/?$")


class GroupLocator(NamedTuple):
    tenant_path: str
    group_id: str


def parse_group_locator(path: str) -> Optional[GroupLocator]:
    """Split a group resource path into tenant scope and group id.

    Example:
        >>> parse_group_locator("/tenant-id/scim/v2/Groups/group-id/")
        GroupLocator(tenant_path='/tenant-id/scim/v2', group_id='group-id')

    Returns:
        GroupLocator, or None if the path does not address a group
    """
    match = GROUP_PATH_PATTERN.search(path or "")
    if match is None:
        return None
    return GroupLocator(match.group(1), match.group(2))


class DirectoryService:
    """Reads users and user/group relationships from the downstream directory."""

    def __init__(self, client: UpstreamClient, max_workers: int = DEFAULT_MAX_WORKERS):
        """Initialize directory service.

        Args:
            client: Downstream HTTP client
            max_workers: Bound on concurrent relationship checks
        """
        self.client = client
        self.max_workers = max_workers

    def fetch_all_users(self, tenant_path: str, headers: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Fetch the user directory.

        A single unpaginated call: only the first page the directory returns
        is considered.
        """
        resp = self.client.get(f"{tenant_path}/Users", headers=headers)
        return (resp.data or {}).get("Resources") or []

    def fetch_user_group_relationship(
        self,
        locator: GroupLocator,
        user_id: str,
        headers: Dict[str, Any],
    ) -> Optional[Any]:
        """Ask whether a user belongs to a group.

        Returns:
            The matching group resource (presence marker), or None
        """
        query = urlencode(
            {"filter": f'id eq "{locator.group_id}" and members eq "{user_id}"'},
            quote_via=quote,
        )
        resp = self.client.get(f"{locator.tenant_path}/Groups?{query}", headers=headers)
        resources = (resp.data or {}).get("Resources") or []
        return resources[0] if resources else None

    def resolve_current_members(
        self,
        group_locator: str,
        headers: Optional[Dict[str, Any]] = None,
    ) -> Optional[List[MembershipReference]]:
        """List the users currently in the group addressed by `group_locator`.

        Relationship checks run concurrently, one per directory user; the
        first failing check aborts the lookup.

        Args:
            group_locator: Resource path, e.g. /<tenant>/scim/v2/Groups/<id>
            headers: Headers forwarded to the directory calls

        Returns:
            Members in directory order, or None if the path is not a group

        Raises:
            UpstreamAPIError: If any directory call fails
        """
        locator = parse_group_locator(group_locator)
        if locator is None:
            return None

        headers = headers or {}
        users = self.fetch_all_users(locator.tenant_path, headers)
        user_ids = [user["id"] for user in users if isinstance(user, dict) and "id" in user]

        markers = gather(
            lambda user_id: self.fetch_user_group_relationship(locator, user_id, headers),
            user_ids,
            self.max_workers,
        )
        members = [
            MembershipReference(user_id=user_id, group=marker)
            for user_id, marker in zip(user_ids, markers)
            if marker is not None
        ]

        logger.info(f"Group {locator.group_id}: {len(members)} member(s) among {len(user_ids)} user(s)")
        return members

    def member_fetcher(self, headers: Optional[Dict[str, Any]] = None) -> FetchMembers:
        """Bind the inbound headers into a FetchMembers capability."""
        bound_headers = dict(headers or {})

        def _fetch(group_locator: str) -> Optional[List[MembershipReference]]:
            return self.resolve_current_members(group_locator, bound_headers)

        return _fetch
