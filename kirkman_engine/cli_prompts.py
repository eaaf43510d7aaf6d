# kirkman_engine/cli_prompts.py
from __future__ import annotations

import sys

_YES_NO = {"y": True, "yes": True, "n": False, "no": False}


def _read(text: str) -> str:
    try:
        return input(text).strip()
    except EOFError:
        raise RuntimeError("Input aborted (EOF) while prompting user.")


def prompt_yes_no(prompt: str, default: bool = True) -> bool:
    """Ask a y/n question; Enter keeps `default`, anything else re-asks."""
    hint = "Y/n" if default else "y/N"
    while True:
        answer = _read(f"{prompt} ({hint}): ").lower()
        if not answer:
            return default
        if answer in _YES_NO:
            return _YES_NO[answer]
        print("Please enter y or n.", file=sys.stderr)


def prompt_int(
    prompt: str,
    default: int,
    minimum: int,
    maximum: int,
    *,
    show_range_suffix: bool = True,
) -> int:
    """
    Read a whole number in [minimum, maximum].

    Enter keeps `default`. Non-numeric or out-of-range answers print a hint
    to stderr and ask again.
    """
    bounds = f" (>={minimum} and <={maximum})" if show_range_suffix else ""
    while True:
        answer = _read(f"{prompt} [{default}]{bounds}: ")
        if not answer:
            return default
        try:
            value = int(answer)
        except ValueError:
            print("Please enter a whole number.", file=sys.stderr)
            continue
        if minimum <= value <= maximum:
            return value
        print(f"Please enter a value between {minimum} and {maximum}.", file=sys.stderr)
