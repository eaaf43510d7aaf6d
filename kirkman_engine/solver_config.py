# kirkman_engine/solver_config.py
from __future__ import annotations

from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Optional

from .schedule_types import (
    ConfigError,
    DEFAULT_ATTEMPTS,
    DEFAULT_GROUPS_PER_ROUND,
    DEFAULT_MAX_REPAIRS,
    DEFAULT_PARTICIPANTS,
    DEFAULT_ROUNDS,
)


@dataclass(frozen=True)
class SolverConfig:
    """
    Parameters for one solver run.

    group_size is derived: participants / groups_per_round. A population
    that does not divide evenly into the groups is rejected by validate()
    rather than silently truncated.
    """

    attempts: int = DEFAULT_ATTEMPTS
    participants: int = DEFAULT_PARTICIPANTS
    groups_per_round: int = DEFAULT_GROUPS_PER_ROUND
    rounds: int = DEFAULT_ROUNDS
    max_repairs: int = DEFAULT_MAX_REPAIRS
    seed: Optional[int] = None

    @property
    def group_size(self) -> int:
        return self.participants // self.groups_per_round

    @property
    def total_groups(self) -> int:
        return self.groups_per_round * self.rounds

    @property
    def target_placements(self) -> int:
        """Placements in a complete schedule: everyone, every round."""
        return self.participants * self.rounds

    @property
    def name(self) -> str:
        """Short label used in filenames, e.g. '15p_5g_7r'."""
        return f"{self.participants}p_{self.groups_per_round}g_{self.rounds}r"

    def validate(self) -> "SolverConfig":
        """Return self if usable; raise ConfigError otherwise."""
        for field_name in ("attempts", "participants", "groups_per_round", "rounds"):
            value = getattr(self, field_name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ConfigError(f"{field_name} must be a positive integer, got {value!r}.")

        if (
            not isinstance(self.max_repairs, int)
            or isinstance(self.max_repairs, bool)
            or self.max_repairs < 0
        ):
            raise ConfigError(
                f"max_repairs must be a non-negative integer, got {self.max_repairs!r}."
            )

        if self.groups_per_round > self.participants:
            raise ConfigError(
                f"Cannot split {self.participants} participants into "
                f"{self.groups_per_round} non-empty groups."
            )

        if self.participants % self.groups_per_round != 0:
            raise ConfigError(
                f"{self.participants} participants do not divide evenly into "
                f"{self.groups_per_round} groups per round."
            )

        return self

    def with_seed(self, seed: int) -> "SolverConfig":
        return replace(self, seed=seed)

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["group_size"] = self.group_size
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SolverConfig":
        """
        Build a config from a JSON-style dict. Missing keys take defaults;
        the derived 'group_size' key is ignored if present.
        """
        known = {"attempts", "participants", "groups_per_round", "rounds", "max_repairs", "seed"}
        unknown = set(data) - known - {"group_size"}
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        kwargs: Dict[str, Any] = {}
        for key in known:
            if key not in data:
                continue
            value = data[key]
            if key == "seed" and value is None:
                kwargs[key] = None
                continue
            try:
                kwargs[key] = int(value)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"{key} must be an integer, got {value!r}.") from exc
        return cls(**kwargs)
