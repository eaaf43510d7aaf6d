# kirkman_engine/round_registry.py
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence

from .group_registry import GroupRegistry
from .schedule_types import (
    GroupHandle,
    ParticipantHandle,
    RoundHandle,
    RoundListing,
)


@dataclass
class _Round:
    id: int
    groups: List[GroupHandle] = field(default_factory=list)


class RoundRegistry:
    """Owns, per round, the ordered list of groups active in that round."""

    def __init__(self) -> None:
        self._insts: List[_Round] = []

    def allocate(self, num: int) -> List[RoundHandle]:
        start = len(self._insts)
        for i in range(start, start + num):
            self._insts.append(_Round(id=i + 1))
        return list(range(start, start + num))

    def _get(self, hr: RoundHandle) -> _Round:
        if not 0 <= hr < len(self._insts):
            raise IndexError(f"round handle {hr} out of range (0..{len(self._insts) - 1})")
        return self._insts[hr]

    @property
    def count(self) -> int:
        return len(self._insts)

    def handles(self) -> List[RoundHandle]:
        return list(range(len(self._insts)))

    def reset(self) -> None:
        for rnd in self._insts:
            rnd.groups.clear()

    # ------------------------------------------------------------------
    # Group lists
    # ------------------------------------------------------------------

    def assign_groups(self, hr: RoundHandle, groups: Iterable[GroupHandle]) -> None:
        """Append `groups` to the round's active group list."""
        self._get(hr).groups.extend(groups)

    def groups(self, hr: RoundHandle) -> List[GroupHandle]:
        """The round's groups in stored order (a copy)."""
        return list(self._get(hr).groups)

    def shuffle_groups(self, hr: RoundHandle, rng: random.Random) -> None:
        """Randomise the stored order used by place_in_round."""
        rng.shuffle(self._get(hr).groups)

    # ------------------------------------------------------------------
    # Queries over group state
    # ------------------------------------------------------------------

    def total_placed(self, rounds: Sequence[RoundHandle], groups: GroupRegistry) -> int:
        """Sum of member counts over every group of every given round."""
        return sum(
            groups.member_count(hg)
            for hr in rounds
            for hg in self._get(hr).groups
        )

    def group_of(
        self,
        hr: RoundHandle,
        hp: ParticipantHandle,
        groups: GroupRegistry,
    ) -> Optional[GroupHandle]:
        """The round's group containing `hp`, or None."""
        for hg in self._get(hr).groups:
            if groups.has(hg, hp):
                return hg
        return None

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def label(self, hr: RoundHandle) -> str:
        return f"Round_{self._get(hr).id}"

    def listing(
        self,
        hr: RoundHandle,
        groups: GroupRegistry,
        display_id: Callable[[ParticipantHandle], int],
    ) -> RoundListing:
        # Groups are listed by group id so shuffling does not change output.
        return tuple(
            groups.listing(hg, display_id) for hg in sorted(self._get(hr).groups)
        )
