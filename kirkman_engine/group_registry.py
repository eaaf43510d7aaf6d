# kirkman_engine/group_registry.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List

from .acquaintance_set import AcquaintanceSet
from .schedule_types import GroupHandle, GroupListing, ParticipantHandle


@dataclass
class _Group:
    id: int            # display id, 1-based, unique across the registry
    size: int          # fixed capacity
    members: AcquaintanceSet


class GroupRegistry:
    """
    Owns one record per group: its capacity and its current member set.

    Groups are referenced by handle (index into the registry). Handles stay
    valid for the life of the registry; reset() only empties member sets.
    """

    def __init__(self, set_capacity: int) -> None:
        # Capacity of every member set, i.e. the population size.
        self.set_capacity = set_capacity
        self._insts: List[_Group] = []

    # ------------------------------------------------------------------
    # Allocation / lookup
    # ------------------------------------------------------------------

    def allocate(self, num: int, size: int) -> List[GroupHandle]:
        """
        Create `num` groups of capacity `size` and return their handles.
        Ids continue from where the last allocation left off.
        """
        assert size > 0, "group capacity must be positive"
        start = len(self._insts)
        for i in range(start, start + num):
            self._insts.append(
                _Group(id=i + 1, size=size, members=AcquaintanceSet(self.set_capacity))
            )
        return list(range(start, start + num))

    def _get(self, hg: GroupHandle) -> _Group:
        if not 0 <= hg < len(self._insts):
            raise IndexError(f"group handle {hg} out of range (0..{len(self._insts) - 1})")
        return self._insts[hg]

    @property
    def count(self) -> int:
        return len(self._insts)

    def handles(self) -> List[GroupHandle]:
        return list(range(len(self._insts)))

    def reset(self) -> None:
        """Clear every member set; capacities and ids are kept."""
        for g in self._insts:
            g.members.clear()

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def member_set(self, hg: GroupHandle) -> AcquaintanceSet:
        """Live view of the member set. Callers must not mutate it."""
        return self._get(hg).members

    def add(self, hg: GroupHandle, hp: ParticipantHandle) -> None:
        group = self._get(hg)
        assert not group.members.contains(hp), f"participant {hp} already in group {hg}"
        assert group.members.cardinality() < group.size, f"group {hg} is full"
        group.members.insert(hp)

    def remove(self, hg: GroupHandle, hp: ParticipantHandle) -> None:
        self._get(hg).members.remove(hp)

    def has(self, hg: GroupHandle, hp: ParticipantHandle) -> bool:
        return self._get(hg).members.contains(hp)

    def is_full(self, hg: GroupHandle) -> bool:
        group = self._get(hg)
        return group.members.cardinality() >= group.size

    def member_count(self, hg: GroupHandle) -> int:
        return self._get(hg).members.cardinality()

    def capacity(self, hg: GroupHandle) -> int:
        return self._get(hg).size

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def label(self, hg: GroupHandle) -> str:
        return f"Group_{self._get(hg).id}"

    def listing(
        self,
        hg: GroupHandle,
        display_id: Callable[[ParticipantHandle], int],
    ) -> GroupListing:
        """Display ids of the group's members, ascending."""
        return tuple(sorted(display_id(hp) for hp in self._get(hg).members))
