"""
Command-line front end for the Kirkman schedule solver.

Ties together:

- Configuration: flags (or --interactive prompts) → SolverConfig
- Environment setup (setup_env.run_setup) when an output dir is given
- The search (solver.solve)
- Output (schedule_output) and the optional run report (solve_report)

Ctrl-C during the search prints the best schedule found so far and exits.
"""

from __future__ import annotations

import argparse
import os
import random
import sys
from pathlib import Path
from typing import List, Optional

from . import cli_prompts
from .schedule_output import (
    OutputError,
    format_result_text,
    print_schedule_to_console,
    render_schedule,
)
from .schedule_types import ConfigError, ScheduleSnapshot, SolveResult
from .setup_env import DEFAULT_SEED, SetupError, SetupResult, run_setup
from .solve_report import solve_with_report
from .solver import DEBUG_FILE_ENV, BestSchedule, solve
from .solver_config import SolverConfig

EXIT_OK = 0
EXIT_UNSOLVED = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130

# Upper bound offered by the interactive prompts.
PROMPT_MAX = 10_000_000


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    defaults = SolverConfig()
    parser = argparse.ArgumentParser(
        prog="kirkman_engine",
        description=(
            "Search for a multi-round grouping schedule where no two "
            "participants share a group more than once."
        ),
    )
    parser.add_argument("-a", "--attempts", type=int, default=defaults.attempts,
                        help="maximum number of restart attempts (default: %(default)s)")
    parser.add_argument("-p", "--participants", type=int, default=defaults.participants,
                        help="population size (default: %(default)s)")
    parser.add_argument("-g", "--groups", type=int, default=defaults.groups_per_round,
                        help="groups per round (default: %(default)s)")
    parser.add_argument("-r", "--rounds", type=int, default=defaults.rounds,
                        help="number of rounds (default: %(default)s)")
    parser.add_argument("--regroups", type=int, default=defaults.max_repairs,
                        help="repairs allowed per blocked participant (default: %(default)s)")

    seed_group = parser.add_mutually_exclusive_group()
    seed_group.add_argument("--seed", type=int, default=None,
                            help=f"random seed (default: {DEFAULT_SEED})")
    seed_group.add_argument("--random-seed", action="store_true",
                            help="use a fresh random seed")

    parser.add_argument("--out", type=Path, default=None,
                        help="base directory for txt/ and logs/ output")
    parser.add_argument("--owner", default="Kirkman",
                        help="owner name used in output filenames (default: %(default)s)")
    parser.add_argument("--report", type=Path, default=None,
                        help="write a JSON run report to this path")
    parser.add_argument("--debug-log", action="store_true",
                        help="append solver diagnostics to logs/ under --out")
    parser.add_argument("-i", "--interactive", action="store_true",
                        help="prompt for the configuration values")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="do not print progress lines")
    return parser


def _prompt_config(base: SolverConfig) -> SolverConfig:
    # Open-ended prompts skip the range hint; only the group count has a real bound.
    participants = cli_prompts.prompt_int(
        "Participants", base.participants, 1, PROMPT_MAX, show_range_suffix=False
    )
    groups = cli_prompts.prompt_int(
        "Groups per round", min(base.groups_per_round, participants), 1, participants
    )
    rounds = cli_prompts.prompt_int(
        "Rounds", base.rounds, 1, PROMPT_MAX, show_range_suffix=False
    )
    attempts = cli_prompts.prompt_int(
        "Attempts", base.attempts, 1, PROMPT_MAX, show_range_suffix=False
    )
    return SolverConfig(
        attempts=attempts,
        participants=participants,
        groups_per_round=groups,
        rounds=rounds,
        max_repairs=base.max_repairs,
        seed=base.seed,
    )


def config_from_args(args: argparse.Namespace) -> SolverConfig:
    """Build and validate the config. Raises ConfigError."""
    config = SolverConfig(
        attempts=args.attempts,
        participants=args.participants,
        groups_per_round=args.groups,
        rounds=args.rounds,
        max_repairs=args.regroups,
        seed=args.seed,
    )
    if args.interactive:
        config = _prompt_config(config)
    return config.validate()


def _resolve_seed(args: argparse.Namespace, setup: Optional[SetupResult]) -> int:
    if args.seed is not None:
        return args.seed
    if setup is not None:
        return setup.seed
    if args.random_seed:
        return random.SystemRandom().randint(1, 2**31 - 1)
    return DEFAULT_SEED


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def _print_interrupted(snapshot: ScheduleSnapshot, target: int) -> None:
    print("\nInterrupted. Best schedule found so far:")
    if snapshot.rounds:
        print_schedule_to_console(snapshot)
    print(f"\nBest effort: {snapshot.placed}/{target} placements (interrupted).")


def _finish(result: SolveResult, setup: Optional[SetupResult]) -> int:
    if setup is None:
        print(format_result_text(result))
    else:
        try:
            summary = render_schedule(setup, result, print_to_console=True)
        except OutputError as exc:
            print(f"\nERROR while writing schedule: {exc}", file=sys.stderr)
            return EXIT_UNSOLVED
        print(f"\nTXT output    : {summary.txt_path}")
        for w in summary.warnings:
            print(f"  - {w}")
    return EXIT_OK if result.solved else EXIT_UNSOLVED


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.debug_log and args.out is None:
        parser.error("--debug-log requires --out")

    try:
        config = config_from_args(args)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup: Optional[SetupResult] = None
    if args.out is not None:
        try:
            setup = run_setup(
                base_dir=args.out.expanduser(),
                owner=args.owner,
                schedule_name=config.name,
                ask_seed_choice=(
                    args.interactive and args.seed is None and not args.random_seed
                ),
                use_seeded_default=not args.random_seed,
            )
        except SetupError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return EXIT_CONFIG_ERROR

        if args.debug_log and not os.environ.get(DEBUG_FILE_ENV):
            os.environ[DEBUG_FILE_ENV] = str(setup.debug_log_file)

    seed = _resolve_seed(args, setup)
    config = config.with_seed(seed)
    rng = random.Random(seed)
    best = BestSchedule()

    def on_improvement(snapshot: ScheduleSnapshot) -> None:
        if not args.quiet:
            print(f"Best so far: {snapshot.placed}")

    print(
        f"Solving {config.participants} participants, {config.groups_per_round} groups "
        f"of {config.group_size}, {config.rounds} rounds "
        f"(attempts={config.attempts}, seed={seed})"
    )

    try:
        if args.report is not None:
            result, report = solve_with_report(
                config, rng=rng, best=best, on_improvement=on_improvement
            )
            try:
                report.to_json(args.report)
            except OSError as exc:
                print(f"ERROR: could not write report to {args.report}: {exc}", file=sys.stderr)
        else:
            result = solve(config, rng=rng, best=best, on_improvement=on_improvement)
    except KeyboardInterrupt:
        _print_interrupted(best.snapshot, config.target_placements)
        return EXIT_INTERRUPTED

    return _finish(result, setup)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
