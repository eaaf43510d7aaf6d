# kirkman_engine/schedule_types.py
#
# Types, constants, dataclasses, exceptions, and debug hooks shared by the
# registries, the solver, and the output/report layers.
#
# Leaf module: no kirkman_engine imports.
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------

# Handles are small stable integer indices into the owning registry.
ParticipantHandle = int
GroupHandle = int
RoundHandle = int

# Display ids of the members of one group, ascending.
GroupListing = Tuple[int, ...]
RoundListing = Tuple[GroupListing, ...]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ScheduleError(Exception):
    """Raised when something goes wrong while building a schedule."""


class ConfigError(ScheduleError):
    """Raised when a solver configuration is unusable."""


# ---------------------------------------------------------------------------
# Repair outcomes
# ---------------------------------------------------------------------------

class RepairOutcome(Enum):
    NOT_APPLICABLE = "not_applicable"  # individual has no group in the round
    SWAPPED = "swapped"                # exchanged groups with a counterpart
    RELOCATED = "relocated"            # moved into a group with a free slot
    FAILED = "failed"                  # no candidate group worked


@dataclass(frozen=True)
class RepairResult:
    outcome: RepairOutcome
    counterpart: Optional[ParticipantHandle] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome in (RepairOutcome.SWAPPED, RepairOutcome.RELOCATED)


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScheduleSnapshot:
    """
    Immutable serialised copy of a (possibly partial) schedule.

    `rounds[r][g]` holds the display ids of the members of group g in
    round r. `placed` is the total number of placements across all rounds.
    """
    rounds: Tuple[RoundListing, ...]
    placed: int

    @property
    def num_rounds(self) -> int:
        return len(self.rounds)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "placed": self.placed,
            "rounds": [[list(g) for g in rnd] for rnd in self.rounds],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduleSnapshot":
        rounds = tuple(
            tuple(tuple(int(m) for m in g) for g in rnd)
            for rnd in data.get("rounds", [])
        )
        return cls(rounds=rounds, placed=int(data.get("placed", 0)))


EMPTY_SNAPSHOT = ScheduleSnapshot(rounds=(), placed=0)


@dataclass(frozen=True)
class SolveResult:
    solved: bool
    attempts_used: int
    best: ScheduleSnapshot
    target_placements: int
    placement_failures: int = 0
    repairs_succeeded: int = 0
    elapsed_seconds: float = 0.0
    # Per-round count of blocked placements (index = round position).
    round_failures: List[int] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Defaults for a run when the CLI is given no flags.
DEFAULT_ATTEMPTS: int = 300_000
DEFAULT_PARTICIPANTS: int = 70
DEFAULT_GROUPS_PER_ROUND: int = 10
DEFAULT_ROUNDS: int = 5

# Number of successful repairs a single blocked individual may consume
# before the whole attempt is abandoned and restarted.
DEFAULT_MAX_REPAIRS: int = 5

# Only log every Nth failed attempt once past the first few, to keep the
# debug file readable on long runs.
DEBUG_LOG_EVERY_N_ATTEMPTS: int = 1000
DEBUG_LOG_FIRST_N_ATTEMPTS: int = 20


# ---------------------------------------------------------------------------
# Debug hooks
#
# Mutable module-level variables. Callers that need to read them at
# call-time must import the MODULE (not the names) so monkeypatching in
# tests is visible:
#   from . import schedule_types as _st
#   ... _st._DEBUG_ON_ATTEMPT_END ...
# ---------------------------------------------------------------------------

# Invoked after every attempt.
# Signature: (attempt_number, placed, solved, round_failures) -> None
_DEBUG_ON_ATTEMPT_END: Optional[Callable[..., None]] = None

# Invoked after every try_repair call made by the solver.
# Signature: (attempt_number, round_index, helper, RepairResult) -> None
_DEBUG_ON_REPAIR: Optional[Callable[..., None]] = None
