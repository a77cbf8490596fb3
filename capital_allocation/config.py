"""Per-request options and runtime settings for the allocation core."""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

import pulp as lp

OBJECTIVES = ("benefit", "priority")

DEFAULT_LEVELS = (0.8, 0.9, 1.0, 1.1, 1.2)

_OPTION_KEYS: dict[str, str] = {
    "maxPerPeriod": "max_per_period",
    "maxProjects": "max_projects",
    "excludedIds": "excluded_ids",
    "excludedProjectIds": "excluded_ids",
}


@dataclass(frozen=True)
class OptimizeOptions:
    """Options that shape the allocation program for one request.

    Parameters
    ----------
    objective : str
        ``"benefit"`` maximizes expected benefit, ``"priority"`` maximizes
        priority score.
    max_per_period : int, optional
        Maximum number of selected candidates per period bucket.
    max_projects : int, optional
        Maximum number of selected candidates overall.
    excluded_ids : frozenset[str]
        Candidates that must not be funded.
    levels : tuple[float, ...]
        Budget multipliers for sensitivity sweeps.

    Raises
    ------
    ValueError
        If the objective is unknown or a cap or level is out of range.
    """

    objective: str = "benefit"
    max_per_period: int | None = None
    max_projects: int | None = None
    excluded_ids: frozenset[str] = field(default_factory=frozenset)
    levels: tuple[float, ...] = DEFAULT_LEVELS

    def __post_init__(self) -> None:
        if self.objective not in OBJECTIVES:
            raise ValueError(f"objective must be one of {OBJECTIVES}, got {self.objective!r}")
        if self.max_per_period is not None and self.max_per_period < 0:
            raise ValueError(f"max_per_period must be non-negative, got {self.max_per_period}")
        if self.max_projects is not None and self.max_projects < 0:
            raise ValueError(f"max_projects must be non-negative, got {self.max_projects}")
        if any(level <= 0 for level in self.levels):
            raise ValueError("Sensitivity levels must be positive.")
        object.__setattr__(self, "excluded_ids", frozenset(str(i) for i in self.excluded_ids))
        object.__setattr__(self, "levels", tuple(float(level) for level in self.levels))

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> "OptimizeOptions":
        """Build options from a collaborator dict using camelCase or snake_case keys."""
        if not options:
            return cls()
        kwargs = {_OPTION_KEYS.get(key, key): value for key, value in options.items() if value is not None}
        unknown = set(kwargs) - {f.name for f in fields(cls)}
        if unknown:
            raise ValueError(f"Unknown optimization option(s): {sorted(unknown)}")
        if "excluded_ids" in kwargs:
            kwargs["excluded_ids"] = frozenset(kwargs["excluded_ids"])
        if "levels" in kwargs:
            kwargs["levels"] = tuple(kwargs["levels"])
        return cls(**kwargs)


@dataclass(frozen=True)
class AllocationSettings:
    """Runtime settings for the solver backend and analysis sweeps.

    Parameters
    ----------
    time_limit : float, optional
        Wall-clock seconds allowed per CBC solve.
    solver_msg : bool
        Forward CBC's log to stdout.
    max_candidates : int, optional
        Reject requests with more candidates than this before solving.
    pareto_enumeration_cap : int
        Largest decision set for which the Pareto engine enumerates every
        subset instead of sweeping budgets.
    max_workers : int
        Thread count for sensitivity and Pareto sweeps. ``1`` runs serially.
    """

    time_limit: float | None = None
    solver_msg: bool = False
    max_candidates: int | None = None
    pareto_enumeration_cap: int = 12
    max_workers: int = 1

    def __post_init__(self) -> None:
        if self.time_limit is not None and self.time_limit <= 0:
            raise ValueError(f"time_limit must be positive, got {self.time_limit}")
        if self.max_candidates is not None and self.max_candidates <= 0:
            raise ValueError(f"max_candidates must be positive, got {self.max_candidates}")
        if not 0 <= self.pareto_enumeration_cap <= 20:
            raise ValueError(f"pareto_enumeration_cap must be in [0, 20], got {self.pareto_enumeration_cap}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    def solver_factory(self) -> lp.LpSolver:
        """Return a fresh CBC command configured from these settings."""
        return lp.PULP_CBC_CMD(msg=self.solver_msg, timeLimit=self.time_limit)

    def check_candidate_count(self, count: int) -> None:
        """Raise ``ValueError`` if ``count`` exceeds ``max_candidates``."""
        if self.max_candidates is not None and count > self.max_candidates:
            raise ValueError(f"{count} candidates exceeds the configured ceiling of {self.max_candidates}")
