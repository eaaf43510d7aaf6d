"""
Run environment for a solver invocation.

run_setup() decides where a run writes its schedule and which seed drives
the search. It never touches the solver itself.

Layout under base_dir:

    txt/   {Owner}_{schedule}_{MMDD_HHMM}.txt   rendered schedule
    logs/  {Owner}_{schedule}_{MMDD_HHMM}.log   optional solver debug log
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Tuple

from . import cli_prompts

# Seed used unless a random one is asked for, so reruns reproduce schedules.
DEFAULT_SEED = 18500101


class SetupError(Exception):
    """Output directories for the run could not be created."""


@dataclass(frozen=True)
class SetupResult:
    base_dir: Path
    txt_dir: Path
    log_dir: Path
    output_txt_file: Path

    owner: str           # as given
    owner_file: str      # whitespace collapsed to underscores
    schedule_name: str   # SolverConfig.name, e.g. "15p_5g_7r"
    timestamp: str       # MMDD_HHMM
    seed: int
    use_seeded_run: bool  # False when the seed was drawn at random

    @property
    def file_stem(self) -> str:
        return f"{self.owner_file}_{self.schedule_name}_{self.timestamp}"

    @property
    def debug_log_file(self) -> Path:
        return self.log_dir / f"{self.file_stem}.log"


def _owner_slug(owner: str) -> str:
    """'  Thomas  Kirkman ' -> 'Thomas_Kirkman'"""
    return "_".join(owner.split())


def _timestamp_now() -> str:
    return datetime.now().strftime("%m%d_%H%M")


def _choose_seed(use_seeded: bool) -> int:
    if use_seeded:
        return DEFAULT_SEED
    return random.SystemRandom().randint(1, 2**31 - 1)


def _make_dirs(base_dir: Path) -> Tuple[Path, Path, Path]:
    txt_dir = base_dir / "txt"
    log_dir = base_dir / "logs"
    for path in (base_dir, txt_dir, log_dir):
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise SetupError(f"Could not create directory {path}: {exc}") from exc
    return base_dir.resolve(), txt_dir.resolve(), log_dir.resolve()


def run_setup(
    *,
    base_dir: Path,
    owner: str,
    schedule_name: str,
    ask_seed_choice: bool = False,
    use_seeded_default: bool = True,
) -> SetupResult:
    """
    Create the output folders and settle the seed for one run.

    With ask_seed_choice the user is asked whether to keep DEFAULT_SEED;
    otherwise use_seeded_default decides. Raises SetupError if a folder
    cannot be created.
    """
    if ask_seed_choice:
        use_seeded = cli_prompts.prompt_yes_no("Use default seeded run?", default=True)
    else:
        use_seeded = use_seeded_default

    base, txt_dir, log_dir = _make_dirs(base_dir)
    owner_file = _owner_slug(owner)
    timestamp = _timestamp_now()

    return SetupResult(
        base_dir=base,
        txt_dir=txt_dir,
        log_dir=log_dir,
        output_txt_file=txt_dir / f"{owner_file}_{schedule_name}_{timestamp}.txt",
        owner=owner,
        owner_file=owner_file,
        schedule_name=schedule_name,
        timestamp=timestamp,
        seed=_choose_seed(use_seeded),
        use_seeded_run=use_seeded,
    )
