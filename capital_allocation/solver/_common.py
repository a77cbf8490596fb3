"""Shared helpers for selection strategies."""

import math

import pulp as lp

from capital_allocation.models import Candidate
from capital_allocation.solver._types import SolverResult


def extract_selection(x_vars: dict[int, lp.LpVariable], candidates: list[Candidate]) -> list[str]:
    """Read selected candidate ids from a solved binary program.

    Parameters
    ----------
    x_vars : dict[int, LpVariable]
        Binary selection variables keyed by position in ``candidates``.
    candidates : list[Candidate]
        Decision candidates, in variable order.

    Returns
    -------
    list[str]
        Ids whose variable is set, in candidate order.
    """
    return [c.id for n, c in enumerate(candidates) if (x_vars[n].varValue or 0.0) > 0.5]


def objective_value(candidates: list[Candidate], selected_ids: list[str], objective: str) -> float:
    chosen = set(selected_ids)
    return math.fsum(c.weight(objective) for c in candidates if c.id in chosen)


def empty_solver_result(status: str, rule: str) -> SolverResult:
    """Build a ``SolverResult`` with no selection."""
    return {
        "status": status,
        "selected_ids": [],
        "objective_value": 0.0,
        "rule": rule,
        "detail": {},
    }
