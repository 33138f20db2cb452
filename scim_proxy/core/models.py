"""Value types shared by the transformation engine and the upstream client."""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence

from .validators import MethodNotAllowedError

PATCH_OP_SCHEMA = "urn:ietf:params:scim:api:messages:2.0:PatchOp"
MEMBERS_ATTRIBUTE = "members"
STRIPPED_ATTRIBUTES = ("id", "schemas")


class _Absent:
    """Marker for an attribute value that is undefined (distinct from JSON null)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT: Any = _Absent()


class Method(Enum):
    """HTTP verbs the proxy forwards, named by what they do to a resource."""

    CREATE = "post"
    REPLACE_FULL = "put"
    REPLACE_PATCH = "patch"
    DELETE = "delete"
    READ = "get"

    @classmethod
    def from_http(cls, verb: str) -> "Method":
        """Map an HTTP verb (any case) to a Method.

        Raises:
            MethodNotAllowedError: If the verb is not proxied
        """
        try:
            return cls(verb.strip().lower())
        except ValueError:
            raise MethodNotAllowedError(verb, cls.allowed()) from None

    @classmethod
    def allowed(cls) -> List[str]:
        return [method.value for method in (cls.READ, cls.CREATE, cls.REPLACE_PATCH, cls.REPLACE_FULL, cls.DELETE)]


class PatchOpType(str, Enum):
    ADD = "add"
    REPLACE = "replace"
    REMOVE = "remove"


@dataclass(frozen=True)
class AtomicOperation:
    """A single {op, path, value} instruction of a PatchOp document."""

    op: PatchOpType
    path: Optional[str] = None
    value: Any = ABSENT

    @property
    def is_effective(self) -> bool:
        """False for undefined values and empty lists, which change nothing."""
        if self.value is ABSENT:
            return False
        if isinstance(self.value, (list, tuple)):
            return len(self.value) > 0
        return True

    def to_dict(self) -> Dict[str, Any]:
        operation: Dict[str, Any] = {"op": self.op.value}
        if self.path is not None:
            operation["path"] = self.path
        if self.value is not ABSENT:
            operation["value"] = self.value
        return operation


@dataclass(frozen=True)
class MembershipReference:
    """A user found to belong to a group; `group` is the presence marker returned downstream."""

    user_id: str
    group: Any = None


class MembershipDelta(NamedTuple):
    additions: List[str]
    removals: List[str]


@dataclass(frozen=True)
class NormalizedRequest:
    """Request ready to be dispatched to the downstream directory."""

    method: Method
    headers: Dict[str, Any]
    path: str
    data: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": self.data,
            "headers": self.headers,
            "method": self.method.value,
            "path": self.path,
        }


FetchMembers = Callable[[str], Optional[Sequence[MembershipReference]]]
