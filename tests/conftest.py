from __future__ import annotations

from itertools import combinations
from typing import Callable, Iterable, List, Optional

import pytest

from kirkman_engine.schedule_types import ScheduleSnapshot
from kirkman_engine.solver import Registries
from kirkman_engine.solver_config import SolverConfig


@pytest.fixture
def make_registries() -> Callable[..., Registries]:
    """
    Factory returning freshly built registries.

    Rounds are allocated but no groups are assigned yet; use fill_round (or
    open_round) to start a round.
    """

    def _make(participants: int = 10, groups_per_round: int = 5, rounds: int = 1) -> Registries:
        config = SolverConfig(
            attempts=1,
            participants=participants,
            groups_per_round=groups_per_round,
            rounds=rounds,
        ).validate()
        return Registries.build(config)

    return _make


@pytest.fixture
def open_round() -> Callable[[Registries, int], int]:
    """Begin round `index`: assign its groups and clear group fields."""

    def _open(reg: Registries, index: int) -> int:
        hr = reg.round_handles[index]
        reg.population.begin_round(hr)
        reg.rounds.assign_groups(hr, reg.group_slices[index])
        return hr

    return _open


@pytest.fixture
def fill_round(open_round) -> Callable[..., int]:
    """
    Open round `index` and place participants.

    With `layout`, layout[i] is the list of participant handles for the
    round's i-th group, placed exactly there. Without it, everyone is
    placed with place_in_round in handle order.
    """

    def _fill(
        reg: Registries,
        index: int,
        layout: Optional[List[List[int]]] = None,
    ) -> int:
        hr = open_round(reg, index)
        if layout is None:
            for hp in reg.population.handles():
                assert reg.population.place_in_round(hp, hr, reg.rounds, reg.groups)
        else:
            for hg, members in zip(reg.group_slices[index], layout):
                for hp in members:
                    assert reg.population.place(hp, hg, reg.groups)
        return hr

    return _fill


def _pairs(groups: Iterable[Iterable[int]]):
    for g in groups:
        for a, b in combinations(sorted(g), 2):
            yield a, b


@pytest.fixture
def assert_no_repeat_pairs() -> Callable[[Registries], None]:
    """
    Check the registries against the schedule rules:

      • no group over capacity
      • no pair of participants shares more than one group
      • acquaintance sets equal the union of group-mates over all rounds
    """

    def _check(reg: Registries) -> None:
        seen = set()
        expected = {hp: set() for hp in reg.population.handles()}
        for hr in reg.round_handles:
            members_by_group = []
            for hg in reg.rounds.groups(hr):
                assert reg.groups.member_count(hg) <= reg.groups.capacity(hg)
                members_by_group.append(list(reg.groups.member_set(hg)))
            for a, b in _pairs(members_by_group):
                assert (a, b) not in seen, f"participants {a} and {b} met twice"
                seen.add((a, b))
                expected[a].add(b)
                expected[b].add(a)
        for hp, mates in expected.items():
            assert set(reg.population.acquaintances(hp)) == mates

    return _check


@pytest.fixture
def assert_valid_snapshot() -> Callable[[ScheduleSnapshot, int, int], None]:
    """Check a complete snapshot: every round partitions 1..N, no repeat pairs."""

    def _check(snapshot: ScheduleSnapshot, participants: int, group_size: int) -> None:
        everyone = set(range(1, participants + 1))
        seen = set()
        for rnd in snapshot.rounds:
            ids = [m for g in rnd for m in g]
            assert sorted(ids) == sorted(everyone)
            for g in rnd:
                assert len(g) == group_size
            for pair in _pairs(rnd):
                assert pair not in seen, f"pair {pair} repeated"
                seen.add(pair)

    return _check
