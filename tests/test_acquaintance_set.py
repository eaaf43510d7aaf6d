# tests/test_acquaintance_set.py
from __future__ import annotations

import pytest

from kirkman_engine.acquaintance_set import AcquaintanceSet


def _set(capacity: int, *members: int) -> AcquaintanceSet:
    s = AcquaintanceSet(capacity)
    for m in members:
        s.insert(m)
    return s


def test_insert_contains_and_cardinality() -> None:
    s = _set(10, 0, 3, 9)

    assert s.contains(0)
    assert s.contains(3)
    assert s.contains(9)
    assert not s.contains(4)
    assert s.cardinality() == 3
    assert len(s) == 3


def test_insert_is_idempotent() -> None:
    s = _set(10, 2, 2, 2)
    assert s.cardinality() == 1


def test_remove_member() -> None:
    s = _set(10, 1, 2)
    s.remove(1)
    assert not s.contains(1)
    assert s.cardinality() == 1


def test_remove_absent_member_is_a_fault() -> None:
    s = _set(10, 1)
    with pytest.raises(AssertionError):
        s.remove(2)


def test_handles_outside_capacity_are_a_fault() -> None:
    s = AcquaintanceSet(4)
    with pytest.raises(AssertionError):
        s.insert(4)
    with pytest.raises(AssertionError):
        s.insert(-1)
    # contains() is a query and simply answers False.
    assert not s.contains(4)


def test_union_and_subtract() -> None:
    a = _set(10, 1, 2)
    b = _set(10, 2, 5)

    a.union_with(b)
    assert sorted(a) == [1, 2, 5]

    a.subtract(_set(10, 2, 7))
    assert sorted(a) == [1, 5]


def test_intersection_and_count() -> None:
    a = _set(10, 1, 2, 3)
    b = _set(10, 2, 3, 4)

    common = a.intersection(b)
    assert sorted(common) == [2, 3]
    assert a.intersection_count(b) == 2
    assert a.has_common(b)
    assert not a.has_common(_set(10, 7))

    # Neither operand is modified.
    assert sorted(a) == [1, 2, 3]
    assert sorted(b) == [2, 3, 4]


def test_single_member() -> None:
    assert _set(10, 7).single_member() == 7
    assert _set(10, 0).single_member() == 0


@pytest.mark.parametrize("members", [(), (1, 2)])
def test_single_member_requires_exactly_one(members) -> None:
    with pytest.raises(AssertionError):
        _set(10, *members).single_member()


def test_clear() -> None:
    s = _set(10, 1, 2, 3)
    s.clear()
    assert s.cardinality() == 0
    assert not s


def test_iterates_in_ascending_order() -> None:
    assert list(_set(20, 17, 3, 9, 0)) == [0, 3, 9, 17]


def test_copy_is_independent() -> None:
    a = _set(10, 1)
    b = a.copy()
    b.insert(2)
    assert sorted(a) == [1]
    assert a != b
    assert a == _set(10, 1)


def test_capacity_beyond_a_machine_word() -> None:
    s = AcquaintanceSet(300)
    for i in range(0, 300, 7):
        s.insert(i)
    assert s.cardinality() == len(range(0, 300, 7))
    assert s.contains(294)
    only = AcquaintanceSet(300)
    only.insert(299)
    assert only.single_member() == 299


def test_in_operator() -> None:
    s = _set(10, 4)
    assert 4 in s
    assert 5 not in s
    assert "4" not in s
