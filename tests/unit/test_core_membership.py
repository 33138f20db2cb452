import pytest

from scim_proxy.core.membership import compute_delta, membership_delta
from scim_proxy.core.models import AtomicOperation, MembershipReference, PatchOpType


def refs(*user_ids):
    return [MembershipReference(user_id=user_id, group={"id": "g"}) for user_id in user_ids]


def test_delta_adds_new_and_removes_departed_members():
    delta = membership_delta(["U2", "U3", "U4"], refs("U1", "U2", "U3"))
    assert delta.additions == ["U4"]
    assert delta.removals == ["U1"]


def test_delta_of_identical_sets_is_empty():
    delta = membership_delta(["U1", "U2"], refs("U1", "U2"))
    assert delta.additions == []
    assert delta.removals == []


def test_additions_follow_desired_order_and_removals_follow_current_order():
    delta = membership_delta(["Z", "A", "M", "B"], refs("C", "B", "Y", "D"))
    assert delta.additions == ["Z", "A", "M"]
    assert delta.removals == ["C", "Y", "D"]


@pytest.mark.parametrize(
    "desired, current",
    [
        ([], []),
        (["a"], []),
        ([], ["a"]),
        (["a", "b", "c"], ["b", "c", "d"]),
        (["x", "y"], ["x", "y", "z", "w"]),
    ],
)
def test_set_difference_laws(desired, current):
    delta = membership_delta(desired, refs(*current))
    assert not set(delta.additions) & set(current)
    assert not set(delta.removals) & set(desired)
    assert set(delta.additions) | (set(current) & set(desired)) == set(desired)
    assert set(delta.removals) | (set(desired) & set(current)) == set(current)


def test_compute_delta_returns_add_then_remove_even_when_empty():
    add, remove = compute_delta(["U1"], refs("U1"))
    assert add == AtomicOperation(PatchOpType.ADD, "members", [])
    assert remove == AtomicOperation(PatchOpType.REMOVE, "members", [])


def test_compute_delta_wraps_ids_as_references():
    add, remove = compute_delta(["A", "B"], refs("B", "C"))
    assert add.to_dict() == {"op": "add", "path": "members", "value": [{"value": "A"}]}
    assert remove.to_dict() == {"op": "remove", "path": "members", "value": [{"value": "C"}]}


def test_compute_delta_without_current_membership_returns_none():
    assert compute_delta(["A"], None) is None


def test_compute_delta_against_empty_group_adds_everyone():
    add, remove = compute_delta(["A", "B"], [])
    assert add.value == [{"value": "A"}, {"value": "B"}]
    assert remove.value == []
