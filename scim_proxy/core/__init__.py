"""Core Business Logic Module

This module provides the request transformation engine, independent of
HTTP frameworks (Flask).

Architecture:
    - Pure Python (no Flask dependencies in core logic)
    - Testable without HTTP mocking (membership lookups are injected)
    - Reusable across interfaces (proxy blueprint, preview CLI)

Module Structure:
    - upstream/           : HTTP client and directory lookups for the downstream endpoint
    - models.py           : Method, AtomicOperation, MembershipReference, NormalizedRequest
    - membership.py       : Membership delta calculation
    - scim_transformer.py : Upstream dialect -> downstream PatchOp dialect
    - concurrency.py      : Ordered fail-fast fan-out
    - validators.py       : Input shape checks

Usage Pattern:
    Import explicitly when needed:
        from scim_proxy.core.scim_transformer import normalize
        from scim_proxy.core.models import Method
        from scim_proxy.core.upstream import UpstreamClient, DirectoryService

Public APIs:
    Transformation (scim_proxy.core.scim_transformer):
        - normalize()
        - split_patch_to_patches()
        - split_put_to_patch()
        - build_operations()
        - build_operation()

    Membership (scim_proxy.core.membership):
        - membership_delta()
        - compute_delta()

    Downstream (scim_proxy.core.upstream):
        - UpstreamClient.send()
        - DirectoryService.resolve_current_members()
        - DirectoryService.member_fetcher()
        - parse_group_locator()
"""
