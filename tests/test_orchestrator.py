# tests/test_orchestrator.py
from __future__ import annotations

import builtins
import json
from pathlib import Path
from typing import List

import pytest

from kirkman_engine import orchestrator
from kirkman_engine.schedule_types import ScheduleSnapshot
from kirkman_engine.setup_env import DEFAULT_SEED

_EASY = ["-p", "10", "-g", "5", "-r", "1", "-a", "5"]
_INFEASIBLE = ["-p", "4", "-g", "2", "-r", "4", "-a", "5"]


def test_parser_defaults() -> None:
    args = orchestrator.build_parser().parse_args([])
    assert args.attempts == 300_000
    assert args.participants == 70
    assert args.groups == 10
    assert args.rounds == 5
    assert args.regroups == 5
    assert args.seed is None
    assert args.random_seed is False
    assert args.owner == "Kirkman"


def test_seed_flags_are_mutually_exclusive(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        orchestrator.main(["--seed", "1", "--random-seed"])
    assert excinfo.value.code == 2


def test_main_solved_run(capsys) -> None:
    code = orchestrator.main(_EASY)

    out = capsys.readouterr().out
    assert code == orchestrator.EXIT_OK
    assert f"seed={DEFAULT_SEED}" in out
    assert "Best so far: 10" in out
    assert "Round_1:" in out
    assert "Solved: every participant placed in every round (10/10 placements)" in out


def test_main_unsolved_run(capsys) -> None:
    code = orchestrator.main(_INFEASIBLE + ["--seed", "3"])

    out = capsys.readouterr().out
    assert code == orchestrator.EXIT_UNSOLVED
    assert "seed=3" in out
    assert "Best effort:" in out
    assert "no complete schedule found" in out


def test_main_quiet_hides_progress(capsys) -> None:
    orchestrator.main(_EASY + ["--quiet"])
    assert "Best so far" not in capsys.readouterr().out


def test_main_rejects_bad_config(capsys) -> None:
    code = orchestrator.main(["-p", "10", "-g", "3"])

    captured = capsys.readouterr()
    assert code == orchestrator.EXIT_CONFIG_ERROR
    assert "ERROR:" in captured.err
    assert "divide evenly" in captured.err


def test_main_writes_text_output(tmp_path: Path, capsys) -> None:
    code = orchestrator.main(_EASY + ["--out", str(tmp_path), "--owner", "Thomas Kirkman"])

    assert code == orchestrator.EXIT_OK
    files = list((tmp_path / "txt").glob("Thomas_Kirkman_10p_5g_1r_*.txt"))
    assert len(files) == 1
    assert files[0].read_text(encoding="utf-8").startswith("Round_1:")
    assert "TXT output" in capsys.readouterr().out


def test_main_writes_report(tmp_path: Path) -> None:
    report = tmp_path / "report.json"

    code = orchestrator.main(_INFEASIBLE + ["--report", str(report), "-q"])

    assert code == orchestrator.EXIT_UNSOLVED
    data = json.loads(report.read_text(encoding="utf-8"))
    assert data["schedule_name"] == "4p_2g_4r"
    assert data["attempts_used"] == 5
    assert data["solved"] is False
    assert len(data["placed_per_attempt"]) == 5
    assert data["best_schedule"]["placed"] == max(data["placed_per_attempt"])
    assert len(data["best_schedule"]["rounds"]) == 4


def test_main_prints_best_on_interrupt(monkeypatch, capsys) -> None:
    def fake_solve(config, *, rng, best, on_improvement):
        snap = ScheduleSnapshot(rounds=(((1, 2), (3, 4)),), placed=4)
        best.offer(snap)
        on_improvement(snap)
        raise KeyboardInterrupt

    monkeypatch.setattr(orchestrator, "solve", fake_solve)

    code = orchestrator.main(["-p", "4", "-g", "2", "-r", "2"])

    out = capsys.readouterr().out
    assert code == orchestrator.EXIT_INTERRUPTED
    assert "Interrupted. Best schedule found so far:" in out
    assert "Group_1 : [ 1,  2]" in out
    assert "Best effort: 4/8 placements (interrupted)." in out


def test_main_interactive_prompts(monkeypatch, capsys) -> None:
    answers: List[str] = ["10", "5", "1", "3"]

    def fake_input(prompt: str) -> str:
        return answers.pop(0)

    monkeypatch.setattr(builtins, "input", fake_input)

    code = orchestrator.main(["--interactive"])

    assert code == orchestrator.EXIT_OK
    assert answers == []
    out = capsys.readouterr().out
    assert "Solving 10 participants, 5 groups of 2, 1 rounds (attempts=3" in out


def test_random_seed_flag_picks_a_seed(capsys) -> None:
    code = orchestrator.main(_EASY + ["--random-seed"])
    assert code == orchestrator.EXIT_OK
    assert "seed=" in capsys.readouterr().out


def test_debug_log_requires_out(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        orchestrator.main(_EASY + ["--debug-log"])
    assert excinfo.value.code == 2
    assert "--debug-log requires --out" in capsys.readouterr().err


def test_debug_log_is_written_under_logs(tmp_path: Path, monkeypatch) -> None:
    # Registered with monkeypatch so the variable main() sets is undone.
    monkeypatch.setenv("KIRKMAN_DEBUG_FILE", "")
    monkeypatch.delenv("KIRKMAN_STATS_FILE", raising=False)

    code = orchestrator.main(_EASY + ["--out", str(tmp_path), "--debug-log", "-q"])

    assert code == orchestrator.EXIT_OK
    logs = list((tmp_path / "logs").glob("Kirkman_10p_5g_1r_*.log"))
    assert len(logs) == 1
    assert "solved=True" in logs[0].read_text(encoding="utf-8")


def test_interactive_group_default_is_clamped_to_participants(monkeypatch, capsys) -> None:
    answers: List[str] = ["4", "", "2", "3"]
    prompts: List[str] = []

    def fake_input(prompt: str) -> str:
        prompts.append(prompt)
        return answers.pop(0)

    monkeypatch.setattr(builtins, "input", fake_input)

    code = orchestrator.main(["--interactive", "-q"])

    assert code == orchestrator.EXIT_OK
    assert prompts[0] == "Participants [70]: "
    assert prompts[1] == "Groups per round [4] (>=1 and <=4): "
    assert "Solving 4 participants, 4 groups of 1, 2 rounds" in capsys.readouterr().out


def test_interactive_run_with_out_asks_for_seed(tmp_path: Path, monkeypatch, capsys) -> None:
    answers: List[str] = ["10", "5", "1", "3", "n"]
    prompts: List[str] = []

    def fake_input(prompt: str) -> str:
        prompts.append(prompt)
        return answers.pop(0)

    monkeypatch.setattr(builtins, "input", fake_input)

    code = orchestrator.main(["--interactive", "--out", str(tmp_path), "-q"])

    assert code == orchestrator.EXIT_OK
    assert answers == []
    assert prompts[-1] == "Use default seeded run? (Y/n): "
    assert f"seed={DEFAULT_SEED})" not in capsys.readouterr().out


def test_explicit_seed_skips_seed_question(tmp_path: Path, monkeypatch, capsys) -> None:
    answers: List[str] = ["10", "5", "1", "3"]

    monkeypatch.setattr(builtins, "input", lambda prompt: answers.pop(0))

    code = orchestrator.main(["--interactive", "--out", str(tmp_path), "--seed", "9", "-q"])

    assert code == orchestrator.EXIT_OK
    assert answers == []
    assert "seed=9)" in capsys.readouterr().out
