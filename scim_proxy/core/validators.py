"""Input shape checks for inbound SCIM payloads."""
from __future__ import annotations
from typing import Any, Dict, List, Sequence


class InvalidPayloadError(ValueError):
    """Inbound body does not have the shape required by its method."""


class MethodNotAllowedError(ValueError):
    """HTTP verb is not one the proxy forwards.

    Attributes:
        method: Verb that was rejected
        allowed: Verbs that are forwarded
    """

    def __init__(self, method: str, allowed: Sequence[str]):
        self.method = method
        self.allowed = list(allowed)
        super().__init__(f"Method '{method}' is not allowed (allowed: {', '.join(self.allowed)})")


def validate_put_body(body: Any) -> Dict[str, Any]:
    """Validate a full-replacement body.

    Args:
        body: Decoded JSON body

    Returns:
        The body, unchanged

    Raises:
        InvalidPayloadError: If the body is not a JSON object
    """
    if not isinstance(body, dict):
        raise InvalidPayloadError("PUT body must be a JSON object")
    return body


def validate_patch_body(body: Any) -> List[Dict[str, Any]]:
    """Validate a composite PATCH body and return its embedded operations.

    Every embedded operation must be an object whose `value`, when present,
    is itself an object (attribute name -> new value).

    Args:
        body: Decoded JSON body

    Returns:
        The `Operations` list

    Raises:
        InvalidPayloadError: If `Operations` is missing or malformed
    """
    if not isinstance(body, dict):
        raise InvalidPayloadError("PATCH body must be a JSON object")

    operations = body.get("Operations")
    if not isinstance(operations, list):
        raise InvalidPayloadError("PATCH body must contain an 'Operations' list")

    for index, operation in enumerate(operations):
        if not isinstance(operation, dict):
            raise InvalidPayloadError(f"Operations[{index}] must be an object")
        value = operation.get("value", {})
        if value is not None and not isinstance(value, dict):
            raise InvalidPayloadError(f"Operations[{index}].value must be an object")

    return operations


def member_ids(value: Any) -> List[str]:
    """Extract member ids from a `[{"value": id}, ...]` list.

    Raises:
        InvalidPayloadError: If the list or one of its references is malformed
    """
    if value is None:
        return []
    if not isinstance(value, list):
        raise InvalidPayloadError("'members' must be a list of {\"value\": id} references")

    ids = []
    for reference in value:
        if not isinstance(reference, dict) or "value" not in reference:
            raise InvalidPayloadError("'members' entries must be objects with a 'value'")
        ids.append(reference["value"])
    return ids
