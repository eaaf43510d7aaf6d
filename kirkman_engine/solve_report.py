"""
Solve Report Module

Structured export of where a solver run spends its effort: which rounds
cause restarts, how repairs turn out, and how close attempts get.

Usage:
    from kirkman_engine.solve_report import collect_solve_report

    report = collect_solve_report(config, seed=1)
    report.to_json(Path("report.json"))
    report.to_csv(Path("report.csv"))
"""

from __future__ import annotations

import csv
import json
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from . import schedule_types as _st
from .schedule_types import RepairOutcome, RepairResult, ScheduleSnapshot, SolveResult
from .solver import BestSchedule, solve
from .solver_config import SolverConfig


@dataclass
class SolveReport:
    """Aggregated statistics for one solver run."""

    schedule_name: str
    attempts_requested: int
    attempts_used: int
    solved: bool
    best_placed: int
    target_placements: int

    # Restarts caused by each round, keyed by 1-based round number.
    round_failures: Dict[int, int] = field(default_factory=dict)
    # Repair outcome counts keyed by RepairOutcome.value.
    repair_outcomes: Dict[str, int] = field(default_factory=dict)
    # Placements reached by each attempt, in attempt order.
    placed_per_attempt: List[int] = field(default_factory=list)
    # Best schedule reached, as ScheduleSnapshot.to_dict().
    best_schedule: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for outcome in RepairOutcome:
            self.repair_outcomes.setdefault(outcome.value, 0)

    @property
    def completion_rate(self) -> float:
        """Best placements as a fraction of a complete schedule."""
        if self.target_placements == 0:
            return 0.0
        return self.best_placed / self.target_placements

    @property
    def restart_share(self) -> Dict[int, float]:
        """Fraction of all restarts caused by each round."""
        total = sum(self.round_failures.values())
        if total == 0:
            return {r: 0.0 for r in self.round_failures}
        return {r: count / total for r, count in self.round_failures.items()}

    @property
    def hardest_round(self) -> Optional[int]:
        """The round causing the most restarts, or None if none did."""
        if not any(self.round_failures.values()):
            return None
        return max(self.round_failures, key=lambda r: self.round_failures[r])

    @property
    def repair_success_rate(self) -> float:
        tried = sum(self.repair_outcomes.values())
        if tried == 0:
            return 0.0
        ok = (
            self.repair_outcomes[RepairOutcome.SWAPPED.value]
            + self.repair_outcomes[RepairOutcome.RELOCATED.value]
        )
        return ok / tried

    @property
    def best_snapshot(self) -> ScheduleSnapshot:
        return ScheduleSnapshot.from_dict(self.best_schedule)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schedule_name": self.schedule_name,
            "attempts_requested": self.attempts_requested,
            "attempts_used": self.attempts_used,
            "solved": self.solved,
            "best_placed": self.best_placed,
            "target_placements": self.target_placements,
            "completion_rate": self.completion_rate,
            "hardest_round": self.hardest_round,
            "restart_share": {str(r): s for r, s in self.restart_share.items()},
            "round_failures": {str(r): n for r, n in self.round_failures.items()},
            "repair_outcomes": dict(self.repair_outcomes),
            "repair_success_rate": self.repair_success_rate,
            "placed_per_attempt": list(self.placed_per_attempt),
            "best_schedule": self.best_schedule,
        }

    def to_json(self, path: Path, indent: int = 2) -> None:
        path.write_text(json.dumps(self.to_dict(), indent=indent), encoding="utf-8")

    def to_csv(self, path: Path) -> None:
        """One row per round."""
        share = self.restart_share
        rows = [
            {"round": r, "restarts": n, "restart_share": share[r]}
            for r, n in sorted(self.round_failures.items())
        ]
        with path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["round", "restarts", "restart_share"])
            writer.writeheader()
            writer.writerows(rows)

    def summary(self) -> str:
        lines = [
            f"Schedule: {self.schedule_name}",
            f"Solved: {'yes' if self.solved else 'no'} "
            f"({self.best_placed}/{self.target_placements}, {self.completion_rate:.1%})",
            f"Attempts: {self.attempts_used}/{self.attempts_requested}",
            f"Hardest round: {self.hardest_round or 'N/A'}",
            f"Repair success: {self.repair_success_rate:.1%}",
            "",
            "Restarts per round:",
        ]
        share = self.restart_share
        for r, n in sorted(self.round_failures.items()):
            lines.append(f"  Round {r}: {n:6d} ({share[r]:.1%})")
        return "\n".join(lines)


def collect_solve_report(
    config: SolverConfig,
    seed: int = 0,
) -> SolveReport:
    """Run the solver with a fixed seed and return its statistics."""
    _, report = solve_with_report(config, rng=random.Random(seed))
    return report


def solve_with_report(
    config: SolverConfig,
    *,
    rng: random.Random,
    best: Optional[BestSchedule] = None,
    on_improvement: Optional[Callable[[ScheduleSnapshot], None]] = None,
) -> Tuple[SolveResult, SolveReport]:
    """
    Run the solver with reporting hooks attached.

    Any hooks already installed are restored afterwards, including when
    the run is interrupted.
    """
    repair_outcomes: Dict[str, int] = {o.value: 0 for o in RepairOutcome}
    placed_per_attempt: List[int] = []

    def repair_hook(_attempt: int, _round_index: int, _helper: int, result: RepairResult) -> None:
        repair_outcomes[result.outcome.value] += 1

    def attempt_hook(_attempt: int, placed: int, _solved: bool, _round_failures: List[int]) -> None:
        placed_per_attempt.append(placed)

    old_repair = _st._DEBUG_ON_REPAIR
    old_attempt = _st._DEBUG_ON_ATTEMPT_END
    _st._DEBUG_ON_REPAIR = repair_hook
    _st._DEBUG_ON_ATTEMPT_END = attempt_hook

    try:
        result = solve(config, rng=rng, best=best, on_improvement=on_improvement)
    finally:
        _st._DEBUG_ON_REPAIR = old_repair
        _st._DEBUG_ON_ATTEMPT_END = old_attempt

    return result, SolveReport(
        schedule_name=config.name,
        attempts_requested=config.attempts,
        attempts_used=result.attempts_used,
        solved=result.solved,
        best_placed=result.best.placed,
        target_placements=result.target_placements,
        round_failures={i + 1: n for i, n in enumerate(result.round_failures)},
        repair_outcomes=repair_outcomes,
        placed_per_attempt=placed_per_attempt,
        best_schedule=result.best.to_dict(),
    )
