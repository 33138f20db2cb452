"""Group membership delta calculation.

The downstream directory refuses `replace` on `members`; a desired member
list has to be expressed as the ids to add and the ids to remove relative to
the membership it currently holds.
"""
from __future__ import annotations
from typing import Optional, Sequence, Tuple

from .models import (
    MEMBERS_ATTRIBUTE,
    AtomicOperation,
    MembershipDelta,
    MembershipReference,
    PatchOpType,
)


def membership_delta(
    desired_ids: Sequence[str],
    current_members: Sequence[MembershipReference],
) -> MembershipDelta:
    """Compute the ids to add and to remove.

    Args:
        desired_ids: Member ids the group should end up with
        current_members: Members the group holds now

    Returns:
        MembershipDelta; additions keep the order of `desired_ids`,
        removals keep the order of `current_members`
    """
    current_ids = [member.user_id for member in current_members]
    current_set = set(current_ids)
    desired_set = set(desired_ids)

    additions = [user_id for user_id in desired_ids if user_id not in current_set]
    removals = [user_id for user_id in current_ids if user_id not in desired_set]
    return MembershipDelta(additions, removals)


def _references(user_ids: Sequence[str]) -> list:
    return [{"value": user_id} for user_id in user_ids]


def compute_delta(
    desired_ids: Sequence[str],
    current_members: Optional[Sequence[MembershipReference]],
) -> Optional[Tuple[AtomicOperation, AtomicOperation]]:
    """Turn a desired member list into an (add, remove) operation pair.

    Both operations are always returned, even when a side is empty; empty
    operations are dropped when the operation set is assembled.

    Returns:
        (add, remove) operations, or None when the current membership is unknown
    """
    if current_members is None:
        return None

    delta = membership_delta(desired_ids, current_members)
    return (
        AtomicOperation(PatchOpType.ADD, MEMBERS_ATTRIBUTE, _references(delta.additions)),
        AtomicOperation(PatchOpType.REMOVE, MEMBERS_ATTRIBUTE, _references(delta.removals)),
    )
