"""
Schedule text output.

Turns the best ScheduleSnapshot of a SolveResult into the round-by-round
group listing, closes it with a "Solved" or "Best effort" line, and writes
it to the .txt path chosen by setup_env. Nothing here reads or changes
search state.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from .schedule_types import GroupListing, ScheduleSnapshot, SolveResult
from .setup_env import SetupResult


# ---------------------------------------------------------------------------
# Errors and summary
# ---------------------------------------------------------------------------


class OutputError(Exception):
    """The schedule file could not be written."""


@dataclass
class ScheduleOutputSummary:
    """Summary of what render_schedule() produced."""

    solved: bool
    placed: int
    target: int
    txt_path: Path
    warnings: List[str]


# ---------------------------------------------------------------------------
# Text formatting
# ---------------------------------------------------------------------------

GROUP_INDENT = 4


def _id_width(snapshot: ScheduleSnapshot) -> int:
    widest = max(
        (m for rnd in snapshot.rounds for g in rnd for m in g),
        default=0,
    )
    return max(2, len(str(widest)))


def format_group_line(index: int, members: GroupListing, width: int = 2) -> str:
    """e.g. 'Group_3 : [ 1,  6, 11]'"""
    ids = ", ".join(f"{m:>{width}}" for m in members)
    return f"Group_{index:<2}: [{ids}]"


def format_round_block(index: int, groups: Sequence[GroupListing], width: int = 2) -> str:
    pad = " " * GROUP_INDENT
    lines = [f"Round_{index}:"]
    for g_index, members in enumerate(groups, start=1):
        lines.append(pad + format_group_line(g_index, members, width))
    return "\n".join(lines)


def format_schedule_text(snapshot: ScheduleSnapshot) -> str:
    """All rounds of the schedule, one block per round."""
    width = _id_width(snapshot)
    return "\n\n".join(
        format_round_block(r_index, groups, width)
        for r_index, groups in enumerate(snapshot.rounds, start=1)
    )


def format_outcome(result: SolveResult) -> str:
    """The closing line telling a solved run apart from a best-effort one."""
    placed = result.best.placed
    target = result.target_placements
    if result.solved:
        return (
            f"Solved: every participant placed in every round "
            f"({placed}/{target} placements) after {result.attempts_used} attempt(s)."
        )
    return (
        f"Best effort: {placed}/{target} placements after "
        f"{result.attempts_used} attempt(s); no complete schedule found."
    )


def format_result_text(result: SolveResult) -> str:
    body = format_schedule_text(result.best)
    outcome = format_outcome(result)
    return f"{body}\n\n{outcome}" if body else outcome


def print_schedule_to_console(snapshot: ScheduleSnapshot) -> None:
    print(format_schedule_text(snapshot))


def write_schedule_to_text_file(path: Path, result: SolveResult) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(format_result_text(result) + "\n", encoding="utf-8")
    except OSError as exc:
        raise OutputError(f"Failed to write text output to {path}: {exc}") from exc


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def render_schedule(
    setup: SetupResult,
    result: SolveResult,
    *,
    print_to_console: bool = True,
) -> ScheduleOutputSummary:
    """
    Write the best schedule of `result` to setup.output_txt_file and
    optionally echo it to the console.
    """
    warnings: List[str] = []
    if not result.solved:
        warnings.append(
            f"Schedule is incomplete: {result.best.placed}/{result.target_placements} placements."
        )

    write_schedule_to_text_file(setup.output_txt_file, result)

    if print_to_console:
        print(format_result_text(result))

    return ScheduleOutputSummary(
        solved=result.solved,
        placed=result.best.placed,
        target=result.target_placements,
        txt_path=setup.output_txt_file,
        warnings=warnings,
    )
