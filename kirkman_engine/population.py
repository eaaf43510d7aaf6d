"""
Population registry: placement and swap-chain repair.

Each participant record holds:

  • the group it occupies in the round in progress (or None)
  • its cumulative acquaintance set: everyone it has shared a group with
    during the current attempt, across all rounds filled so far

Two participants become acquainted the moment they share a group and stay
acquainted for the rest of the attempt. A participant may only join a group
when it is acquainted with none of the group's current members, which is
what keeps every pair from meeting twice.

When a participant cannot be placed, try_repair() moves some *other*
already-placed participant (the "helper") to a different group of a round,
either by taking a free slot or by exchanging places with one member of the
target group, so that capacity or acquaintance conflicts shift and the
blocked participant may fit on its next try.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional

from .acquaintance_set import AcquaintanceSet
from .group_registry import GroupRegistry
from .round_registry import RoundRegistry
from .schedule_types import (
    GroupHandle,
    ParticipantHandle,
    RepairOutcome,
    RepairResult,
    RoundHandle,
)


@dataclass
class _Participant:
    id: int
    group: Optional[GroupHandle]
    acquaintances: AcquaintanceSet


class Population:
    """Owns one record per participant and implements placement/repair."""

    def __init__(self, num: int) -> None:
        self.capacity = num
        self._insts: List[_Participant] = [
            _Participant(id=i + 1, group=None, acquaintances=AcquaintanceSet(num))
            for i in range(num)
        ]
        # Round whose groups the `group` fields refer to.
        self._active_round: Optional[RoundHandle] = None

    def _get(self, hp: ParticipantHandle) -> _Participant:
        if not 0 <= hp < len(self._insts):
            raise IndexError(f"participant handle {hp} out of range (0..{len(self._insts) - 1})")
        return self._insts[hp]

    @property
    def count(self) -> int:
        return len(self._insts)

    def handles(self) -> List[ParticipantHandle]:
        return list(range(len(self._insts)))

    def display_id(self, hp: ParticipantHandle) -> int:
        return self._get(hp).id

    @property
    def active_round(self) -> Optional[RoundHandle]:
        return self._active_round

    # ------------------------------------------------------------------
    # Attempt / round lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Ungroup everyone and wipe every acquaintance set."""
        for p in self._insts:
            p.group = None
            p.acquaintances.clear()
        self._active_round = None

    def begin_round(self, hr: RoundHandle) -> None:
        """Clear the round-scoped group fields before filling round `hr`."""
        for p in self._insts:
            p.group = None
        self._active_round = hr

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def group(self, hp: ParticipantHandle) -> Optional[GroupHandle]:
        return self._get(hp).group

    def is_placed(self, hp: ParticipantHandle) -> bool:
        return self._get(hp).group is not None

    def acquaintances(self, hp: ParticipantHandle) -> AcquaintanceSet:
        """Live view of the acquaintance set. Callers must not mutate it."""
        return self._get(hp).acquaintances

    def is_acquainted(self, hp: ParticipantHandle, other: ParticipantHandle) -> bool:
        return self._get(hp).acquaintances.contains(other)

    def acquainted_with_group(
        self,
        hp: ParticipantHandle,
        hg: GroupHandle,
        groups: GroupRegistry,
    ) -> bool:
        return self._get(hp).acquaintances.has_common(groups.member_set(hg))

    def acquaintance_count(
        self,
        hp: ParticipantHandle,
        hg: GroupHandle,
        groups: GroupRegistry,
    ) -> int:
        return self._get(hp).acquaintances.intersection_count(groups.member_set(hg))

    # ------------------------------------------------------------------
    # Low-level membership edits (no group-field bookkeeping)
    # ------------------------------------------------------------------

    def _join(self, hp: ParticipantHandle, hg: GroupHandle, groups: GroupRegistry) -> None:
        # Acquaint first so the participant never lands in its own set.
        members = groups.member_set(hg)
        for hop in members:
            self._insts[hop].acquaintances.insert(hp)
        self._get(hp).acquaintances.union_with(members)
        groups.add(hg, hp)

    def _leave(self, hp: ParticipantHandle, hg: GroupHandle, groups: GroupRegistry) -> None:
        groups.remove(hg, hp)
        members = groups.member_set(hg)
        self._get(hp).acquaintances.subtract(members)
        for hop in members:
            self._insts[hop].acquaintances.remove(hp)

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def place(self, hp: ParticipantHandle, hg: GroupHandle, groups: GroupRegistry) -> bool:
        """
        Join `hp` to group `hg` if the group has room and `hp` knows none of
        its members. Returns False, and changes nothing, otherwise.
        """
        if groups.is_full(hg) or self.acquainted_with_group(hp, hg, groups):
            return False
        self._join(hp, hg, groups)
        self._get(hp).group = hg
        return True

    def place_in_round(
        self,
        hp: ParticipantHandle,
        hr: RoundHandle,
        rounds: RoundRegistry,
        groups: GroupRegistry,
    ) -> bool:
        """Try each of the round's groups in stored order; stop at the first fit."""
        for hg in rounds.groups(hr):
            if self.place(hp, hg, groups):
                return True
        return False

    def withdraw(self, hp: ParticipantHandle, hg: GroupHandle, groups: GroupRegistry) -> None:
        """
        Undo a placement: remove `hp` from `hg` and drop the acquaintance
        edges between `hp` and the group's remaining members.

        Only valid while `hg` is the sole place `hp` met those members,
        which the no-repeat rule guarantees.
        """
        self._leave(hp, hg, groups)
        self._get(hp).group = None

    # ------------------------------------------------------------------
    # Repair
    # ------------------------------------------------------------------

    def _exchange(
        self,
        hp: ParticipantHandle,
        hg: GroupHandle,
        hop: ParticipantHandle,
        hog: GroupHandle,
        groups: GroupRegistry,
        track: bool,
    ) -> None:
        self._leave(hp, hg, groups)
        self._leave(hop, hog, groups)
        assert not groups.is_full(hog) and not self.acquainted_with_group(hp, hog, groups)
        self._join(hp, hog, groups)
        assert not groups.is_full(hg) and not self.acquainted_with_group(hop, hg, groups)
        self._join(hop, hg, groups)
        if track:
            self._get(hp).group = hog
            self._get(hop).group = hg

    def _relocate(
        self,
        hp: ParticipantHandle,
        hg: GroupHandle,
        hog: GroupHandle,
        groups: GroupRegistry,
        track: bool,
    ) -> None:
        self._leave(hp, hg, groups)
        assert not groups.is_full(hog) and not self.acquainted_with_group(hp, hog, groups)
        self._join(hp, hog, groups)
        if track:
            self._get(hp).group = hog

    def try_repair(
        self,
        hp: ParticipantHandle,
        hr: RoundHandle,
        rounds: RoundRegistry,
        groups: GroupRegistry,
        rng: random.Random,
    ) -> RepairResult:
        """
        Move `hp` out of its group in round `hr` into another group of that
        round, swapping with one member there when needed.

        Candidate groups are scanned in random order. For each candidate
        `hog`, with k = number of `hp`'s acquaintances in `hog`:

          k > 1              skip; one swap cannot clear two conflicts
          k == 1             swap with that acquaintance, provided `hp` is
                             its only acquaintance in `hp`'s group
          k == 0, hog full   swap with any member that knows nobody in
                             `hp`'s group
          k == 0, room left  move `hp` straight into `hog`

        The first candidate that works ends the scan.
        """
        hg = rounds.group_of(hr, hp, groups)
        if hg is None:
            return RepairResult(RepairOutcome.NOT_APPLICABLE)

        # Group fields only describe the round being filled.
        track = hr == self._active_round

        candidates = [g for g in rounds.groups(hr) if g != hg]
        rng.shuffle(candidates)

        acquaintances = self._get(hp).acquaintances
        for hog in candidates:
            hog_members = groups.member_set(hog)
            num_acq = acquaintances.intersection_count(hog_members)

            if num_acq > 1:
                continue

            if num_acq == 1:
                hop = acquaintances.intersection(hog_members).single_member()
                # hop's one acquaintance in hg, if any, is hp itself.
                if self.acquaintance_count(hop, hg, groups) == 1:
                    self._exchange(hp, hg, hop, hog, groups, track)
                    return RepairResult(RepairOutcome.SWAPPED, hop)

            elif groups.is_full(hog):
                for hop in list(hog_members):
                    if self.acquaintance_count(hop, hg, groups) == 0:
                        self._exchange(hp, hg, hop, hog, groups, track)
                        return RepairResult(RepairOutcome.SWAPPED, hop)

            else:
                self._relocate(hp, hg, hog, groups, track)
                return RepairResult(RepairOutcome.RELOCATED)

        return RepairResult(RepairOutcome.FAILED)
