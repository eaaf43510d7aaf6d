# kirkman_engine/solver.py
"""
Solver loop.

Each attempt starts from a clean slate, fills the rounds in order, and
places every participant in turn. A blocked participant triggers repairs
(see Population.try_repair); if repairs run out the whole attempt is thrown
away and the next one starts from scratch. There is no backtracking stack:
cheap restarts stand in for it.

After every attempt the number of placements it reached is compared with
the best so far, and the best schedule is published to a BestSchedule that
an interrupt handler may read at any time.
"""

from __future__ import annotations

import json
import os
import random
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from . import schedule_types as _st
from .group_registry import GroupRegistry
from .population import Population
from .round_registry import RoundRegistry
from .schedule_types import (
    EMPTY_SNAPSHOT,
    GroupHandle,
    ParticipantHandle,
    RepairResult,
    RoundHandle,
    ScheduleSnapshot,
    SolveResult,
)
from .solver_config import SolverConfig

# Environment variable names for optional debugging output.
DEBUG_FILE_ENV = "KIRKMAN_DEBUG_FILE"
STATS_FILE_ENV = "KIRKMAN_STATS_FILE"


def _debug_log(message: str, stats: Optional[Dict[str, int]] = None) -> None:
    """
    Append a debug line and refresh the stats JSON, if the user has
    configured KIRKMAN_DEBUG_FILE / KIRKMAN_STATS_FILE.

    Best-effort only: a failed write never stops the search.
    """
    debug_path_str = os.getenv(DEBUG_FILE_ENV)
    stats_path_str = os.getenv(STATS_FILE_ENV)

    if not debug_path_str and not stats_path_str:
        return

    try:
        if debug_path_str:
            debug_path = Path(debug_path_str)
            debug_path.parent.mkdir(parents=True, exist_ok=True)
            with debug_path.open("a", encoding="utf-8") as f:
                f.write(message + "\n")

        if stats_path_str and stats is not None:
            stats_path = Path(stats_path_str)
            stats_path.parent.mkdir(parents=True, exist_ok=True)
            stats_path.write_text(json.dumps(stats, indent=2), encoding="utf-8")
    except OSError:
        pass


# ---------------------------------------------------------------------------
# Best-so-far snapshot
# ---------------------------------------------------------------------------


class BestSchedule:
    """
    Best schedule seen so far, safe to read from another thread or from a
    KeyboardInterrupt handler.

    Snapshots are immutable and swapped in whole under a lock, so a reader
    sees either the previous snapshot or the new one, never a mix.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot: ScheduleSnapshot = EMPTY_SNAPSHOT

    @property
    def snapshot(self) -> ScheduleSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def placed(self) -> int:
        return self.snapshot.placed

    def offer(self, snapshot: ScheduleSnapshot) -> bool:
        """Publish `snapshot` if it beats the current best. Returns True if so."""
        with self._lock:
            if snapshot.placed <= self._snapshot.placed:
                return False
            self._snapshot = snapshot
            return True


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------


@dataclass
class Registries:
    """All mutable search state for one run, reset in place per attempt."""

    population: Population
    groups: GroupRegistry
    rounds: RoundRegistry
    round_handles: List[RoundHandle]
    # group_slices[i] holds the groups used by round_handles[i].
    group_slices: List[List[GroupHandle]]

    @classmethod
    def build(cls, config: SolverConfig) -> "Registries":
        population = Population(config.participants)
        groups = GroupRegistry(set_capacity=config.participants)
        rounds = RoundRegistry()

        group_handles = groups.allocate(config.total_groups, config.group_size)
        round_handles = rounds.allocate(config.rounds)
        n = config.groups_per_round
        group_slices = [group_handles[i * n:(i + 1) * n] for i in range(config.rounds)]

        return cls(
            population=population,
            groups=groups,
            rounds=rounds,
            round_handles=round_handles,
            group_slices=group_slices,
        )

    def reset(self) -> None:
        self.population.reset()
        self.groups.reset()
        self.rounds.reset()

    def total_placed(self) -> int:
        return self.rounds.total_placed(self.round_handles, self.groups)

    def snapshot(self) -> ScheduleSnapshot:
        listings = tuple(
            self.rounds.listing(hr, self.groups, self.population.display_id)
            for hr in self.round_handles
        )
        # Rounds not reached in this attempt have no groups yet; pad them
        # with empty groups so the snapshot always has the full shape.
        padded = tuple(
            listing if listing else tuple(() for _ in self.group_slices[i])
            for i, listing in enumerate(listings)
        )
        return ScheduleSnapshot(rounds=padded, placed=self.total_placed())


# ---------------------------------------------------------------------------
# Per-run counters
# ---------------------------------------------------------------------------


@dataclass
class _RunStats:
    num_rounds: int
    placement_failures: int = 0
    repairs_succeeded: int = 0
    repairs_tried: int = 0
    round_failures: List[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.round_failures:
            self.round_failures = [0] * self.num_rounds

    def as_dict(self, attempt: int, best: int) -> Dict[str, int]:
        return {
            "attempt": attempt,
            "best_placed": best,
            "placement_failures": self.placement_failures,
            "repairs_tried": self.repairs_tried,
            "repairs_succeeded": self.repairs_succeeded,
        }


# ---------------------------------------------------------------------------
# Attempt internals
# ---------------------------------------------------------------------------


def _repair_helpers(
    reg: Registries,
    blocked: ParticipantHandle,
    hr: RoundHandle,
    in_progress: bool,
    rng: random.Random,
) -> List[ParticipantHandle]:
    """
    Participants worth moving in round `hr` to make room for `blocked`.

    In the round being filled that is anyone already placed. In an earlier
    round it is `blocked` and its group-mates there, since moving any of
    them changes who `blocked` already knows.
    """
    if in_progress:
        helpers = [hp for hp in reg.population.handles() if reg.population.is_placed(hp)]
    else:
        hg = reg.rounds.group_of(hr, blocked, reg.groups)
        helpers = list(reg.groups.member_set(hg)) if hg is not None else []
    rng.shuffle(helpers)
    return helpers


def _repair(
    reg: Registries,
    blocked: ParticipantHandle,
    round_index: int,
    attempt: int,
    rng: random.Random,
    stats: _RunStats,
) -> bool:
    current = reg.round_handles[round_index]
    earlier = list(reg.round_handles[:round_index])
    rng.shuffle(earlier)

    for hr in [current] + earlier:
        in_progress = hr == current
        for helper in _repair_helpers(reg, blocked, hr, in_progress, rng):
            result: RepairResult = reg.population.try_repair(
                helper, hr, reg.rounds, reg.groups, rng
            )
            stats.repairs_tried += 1
            if _st._DEBUG_ON_REPAIR is not None:
                _st._DEBUG_ON_REPAIR(attempt, reg.round_handles.index(hr), helper, result)
            if result.succeeded:
                stats.repairs_succeeded += 1
                return True
    return False


def _place_with_repairs(
    reg: Registries,
    hp: ParticipantHandle,
    round_index: int,
    attempt: int,
    config: SolverConfig,
    rng: random.Random,
    stats: _RunStats,
) -> bool:
    hr = reg.round_handles[round_index]
    repairs = 0
    while True:
        reg.rounds.shuffle_groups(hr, rng)
        if reg.population.place_in_round(hp, hr, reg.rounds, reg.groups):
            return True

        stats.placement_failures += 1
        if repairs >= config.max_repairs:
            return False
        if not _repair(reg, hp, round_index, attempt, rng, stats):
            return False
        repairs += 1


def _run_attempt(
    reg: Registries,
    attempt: int,
    config: SolverConfig,
    rng: random.Random,
    stats: _RunStats,
) -> bool:
    """One full pass over every round. True if everyone was placed everywhere."""
    # First round in handle order; later rounds shuffled to vary dead ends.
    order = reg.population.handles()

    for round_index, hr in enumerate(reg.round_handles):
        reg.population.begin_round(hr)
        reg.rounds.assign_groups(hr, reg.group_slices[round_index])
        if round_index > 0:
            rng.shuffle(order)

        for hp in order:
            if not _place_with_repairs(reg, hp, round_index, attempt, config, rng, stats):
                stats.round_failures[round_index] += 1
                return False

    return True


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def solve(
    config: SolverConfig,
    *,
    rng: Optional[random.Random] = None,
    best: Optional[BestSchedule] = None,
    on_improvement: Optional[Callable[[ScheduleSnapshot], None]] = None,
    should_stop: Optional[Callable[[], bool]] = None,
) -> SolveResult:
    """
    Search for a complete schedule.

    Runs up to config.attempts attempts and stops early on the first
    complete schedule, or when should_stop() returns True (polled between
    attempts). The best schedule reached is always reported, solved or not.

    Raises
    ------
    ConfigError
        If the configuration is invalid.
    """
    config.validate()

    if rng is None:
        rng = random.Random(config.seed)
    if best is None:
        best = BestSchedule()

    reg = Registries.build(config)
    stats = _RunStats(num_rounds=config.rounds)
    target = config.target_placements

    t0 = time.monotonic()
    solved = False
    attempts_used = 0

    for attempt in range(1, config.attempts + 1):
        if should_stop is not None and should_stop():
            break

        reg.reset()
        attempts_used = attempt
        solved = _run_attempt(reg, attempt, config, rng, stats)

        placed = reg.total_placed()
        if placed > best.placed and best.offer(reg.snapshot()):
            if on_improvement is not None:
                on_improvement(best.snapshot)

        if _st._DEBUG_ON_ATTEMPT_END is not None:
            _st._DEBUG_ON_ATTEMPT_END(attempt, placed, solved, list(stats.round_failures))

        if (
            solved
            or attempt <= _st.DEBUG_LOG_FIRST_N_ATTEMPTS
            or attempt % _st.DEBUG_LOG_EVERY_N_ATTEMPTS == 0
        ):
            _debug_log(
                f"Attempt {attempt}: placed={placed}/{target} solved={solved} "
                f"best={best.placed} placement_failures={stats.placement_failures} "
                f"repairs={stats.repairs_succeeded}/{stats.repairs_tried}",
                stats.as_dict(attempt, best.placed),
            )

        if solved:
            break

    return SolveResult(
        solved=solved,
        attempts_used=attempts_used,
        best=best.snapshot,
        target_placements=target,
        placement_failures=stats.placement_failures,
        repairs_succeeded=stats.repairs_succeeded,
        elapsed_seconds=time.monotonic() - t0,
        round_failures=list(stats.round_failures),
    )
