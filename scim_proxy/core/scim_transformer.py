"""Upstream SCIM dialect -> downstream PatchOp dialect.

The identity provider sends PUT full replacements and PATCH operations whose
value is a whole attribute object (group membership included as a complete
list). The downstream directory accepts only PatchOp documents built from
atomic operations scoped to a single attribute, and membership changes only
as add/remove deltas.

Usage:
    request = normalize(Method.REPLACE_FULL, headers, path, body, fetch_members)
    request.to_dict()  # {"data": {...PatchOp...}, "headers", "method", "path"}
"""
from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from .concurrency import DEFAULT_MAX_WORKERS, gather
from .membership import compute_delta
from .models import (
    MEMBERS_ATTRIBUTE,
    PATCH_OP_SCHEMA,
    STRIPPED_ATTRIBUTES,
    AtomicOperation,
    FetchMembers,
    Method,
    NormalizedRequest,
    PatchOpType,
)
from .validators import member_ids, validate_patch_body, validate_put_body

logger = logging.getLogger(__name__)

KeyValue = Tuple[str, Any]
OperationResult = Union[AtomicOperation, List[AtomicOperation]]


def build_operation(
    fetch_members: Optional[FetchMembers],
    group_locator: str,
) -> Callable[[KeyValue], OperationResult]:
    """Return a converter from one attribute key/value pair to operations.

    Args:
        fetch_members: Capability resolving a group's current members, or None
        group_locator: Path of the resource being modified

    Returns:
        Callable yielding a single replace operation, or for `members` the
        add/remove pair (an empty list when membership cannot be resolved)
    """

    def _convert(key_value: KeyValue) -> OperationResult:
        key, value = key_value
        if key == MEMBERS_ATTRIBUTE:
            if fetch_members is None:
                logger.info(f"No membership lookup for {group_locator}; skipping members operation")
                return []
            desired = member_ids(value)
            operations = compute_delta(desired, fetch_members(group_locator))
            if operations is None:
                logger.info(f"Membership of {group_locator} could not be resolved; skipping members operation")
                return []
            return list(operations)

        return AtomicOperation(PatchOpType.REPLACE, key, value)

    return _convert


def build_operations(
    fetch_members: Optional[FetchMembers],
    group_locator: str,
    entries: Iterable[KeyValue],
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> List[AtomicOperation]:
    """Build the operation list for a set of attribute key/value pairs.

    Entries are converted concurrently and reassembled in input order.
    Operations with an undefined value or an empty list are dropped.
    """
    converted = gather(build_operation(fetch_members, group_locator), entries, max_workers)

    operations: List[AtomicOperation] = []
    for result in converted:
        if isinstance(result, list):
            operations.extend(result)
        else:
            operations.append(result)

    return [operation for operation in operations if operation.is_effective]


def _attribute_entries(resource: Optional[Dict[str, Any]]) -> List[KeyValue]:
    """Key/value pairs of a resource object, minus `id` and `schemas`."""
    if not resource:
        return []
    return [(key, value) for key, value in resource.items() if key not in STRIPPED_ATTRIBUTES]


def _patch_document(body: Dict[str, Any], operations: List[AtomicOperation]) -> Dict[str, Any]:
    document = {key: value for key, value in body.items() if key not in ("schemas", "Operations")}
    document["schemas"] = [PATCH_OP_SCHEMA]
    document["Operations"] = [operation.to_dict() for operation in operations]
    return document


def split_patch_to_patches(
    headers: Dict[str, Any],
    path: str,
    body: Dict[str, Any],
    fetch_members: Optional[FetchMembers],
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> NormalizedRequest:
    """Decompose every embedded operation's value object into atomic operations.

    Fields of the inbound body other than `schemas` and `Operations` are kept.
    """
    embedded = validate_patch_body(body)

    per_operation = gather(
        lambda operation: build_operations(
            fetch_members, path, _attribute_entries(operation.get("value")), max_workers
        ),
        embedded,
        max_workers,
    )
    operations = [operation for chunk in per_operation for operation in chunk]

    logger.debug(f"PATCH {path}: {len(embedded)} embedded operation(s) -> {len(operations)} atomic operation(s)")
    return NormalizedRequest(
        method=Method.REPLACE_PATCH,
        headers=headers,
        path=path,
        data=_patch_document(body, operations),
    )


def split_put_to_patch(
    headers: Dict[str, Any],
    path: str,
    body: Dict[str, Any],
    fetch_members: Optional[FetchMembers],
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> NormalizedRequest:
    """Rewrite a full replacement as a PATCH with one operation per attribute."""
    resource = validate_put_body(body)
    operations = build_operations(fetch_members, path, _attribute_entries(resource), max_workers)

    logger.debug(f"PUT {path}: rewritten as PATCH with {len(operations)} operation(s)")
    return NormalizedRequest(
        method=Method.REPLACE_PATCH,
        headers=headers,
        path=path,
        data={
            "schemas": [PATCH_OP_SCHEMA],
            "Operations": [operation.to_dict() for operation in operations],
        },
    )


def normalize(
    method: Method,
    headers: Dict[str, Any],
    path: str,
    body: Any,
    fetch_members: Optional[FetchMembers],
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> NormalizedRequest:
    """Produce the downstream-compliant request for an inbound request.

    Args:
        method: Inbound method
        headers: Inbound headers (passed through)
        path: Resource locator
        body: Decoded JSON body, or None
        fetch_members: Capability resolving current group members, or None
        max_workers: Bound on concurrent conversions

    Returns:
        NormalizedRequest. PATCH and PUT bodies become PatchOp documents;
        every other method (and a missing body) passes through unchanged.

    Raises:
        InvalidPayloadError: If a PATCH/PUT body has the wrong shape
        UpstreamError: If resolving current membership fails
    """
    if body is None:
        return NormalizedRequest(method=method, headers=headers, path=path, data=None)

    if method is Method.REPLACE_PATCH:
        return split_patch_to_patches(headers, path, body, fetch_members, max_workers)
    if method is Method.REPLACE_FULL:
        return split_put_to_patch(headers, path, body, fetch_members, max_workers)
    if method in (Method.CREATE, Method.DELETE, Method.READ):
        return NormalizedRequest(method=method, headers=headers, path=path, data=body)

    raise AssertionError(f"Unhandled method: {method!r}")
