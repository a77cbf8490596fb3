"""Portfolio capital-allocation optimizer.

Selects the subset of candidates that maximizes total benefit (or priority)
within the constraint set. The exact binary program is tried first; if the
backend fails, the greedy strategy takes over and the result is tagged
``greedy-fallback``. Infeasibility is reported in the result, never raised.
"""

import logging
import math
from collections.abc import Iterable
from typing import Any

from capital_allocation.candidates import normalize
from capital_allocation.config import OBJECTIVES, AllocationSettings, OptimizeOptions
from capital_allocation.constraints import ConstraintSet, build
from capital_allocation.exceptions import SolverError
from capital_allocation.models import (
    METHOD_GREEDY_FALLBACK,
    METHOD_LP,
    AllocationResult,
    Candidate,
    from_cents,
)
from capital_allocation.solver import AllocationSolver, BinaryProgramSolver, GreedySolver

logger = logging.getLogger(__name__)


def _result(
    constraint_set: ConstraintSet,
    selected: Iterable[str],
    objective: str,
    *,
    feasible: bool,
    method: str,
    status: str,
    message: str = "",
) -> AllocationResult:
    chosen = set(selected)
    funded = [c for c in constraint_set.candidates if c.id in chosen]
    return AllocationResult(
        selected_ids=tuple(c.id for c in funded),
        total_cost=from_cents(sum(c.cost_cents for c in funded)),
        total_benefit=math.fsum(c.expected_benefit for c in funded),
        feasible=feasible,
        method=method,
        budget=constraint_set.budget,
        objective=objective,
        objective_value=math.fsum(c.weight(objective) for c in funded),
        status=status,
        message=message,
        mandatory_ids=constraint_set.forced_ids,
    )


def optimize(
    candidates: list[Candidate],
    constraint_set: ConstraintSet,
    objective: str = "benefit",
    solver: AllocationSolver | None = None,
    fallback: AllocationSolver | None = None,
) -> AllocationResult:
    """Choose the candidates to fund.

    Parameters
    ----------
    candidates : list[Candidate]
        The candidates ``constraint_set`` was built from.
    constraint_set : ConstraintSet
        Output of :func:`capital_allocation.constraints.build`.
    objective : str
        ``"benefit"`` or ``"priority"``.
    solver : AllocationSolver, optional
        Primary strategy. Defaults to :class:`BinaryProgramSolver`.
    fallback : AllocationSolver, optional
        Strategy used when the primary raises ``SolverError``. Defaults to
        :class:`GreedySolver`.

    Returns
    -------
    AllocationResult
        ``feasible`` is ``False`` with the mandatory-only selection when the
        mandatory candidates cannot be funded.

    Raises
    ------
    ValueError
        If the objective is unknown or ``candidates`` do not match the
        constraint set.
    """
    if objective not in OBJECTIVES:
        raise ValueError(f"objective must be one of {OBJECTIVES}, got {objective!r}")
    if [c.id for c in candidates] != [c.id for c in constraint_set.candidates]:
        raise ValueError("candidates do not match the constraint set they are optimized against")

    forced = constraint_set.forced_ids
    if not constraint_set.feasible:
        logger.warning("Returning mandatory-only allocation: %s", constraint_set.reason)
        return _result(
            constraint_set,
            forced,
            objective,
            feasible=False,
            method=METHOD_LP,
            status="Infeasible",
            message=constraint_set.reason,
        )

    solver = solver or BinaryProgramSolver()
    fallback = fallback or GreedySolver()
    method = METHOD_LP
    message = ""
    try:
        solved = solver(constraint_set, objective)
    except SolverError as exc:
        logger.warning("Solver failed (%s); falling back to greedy selection", exc)
        solved = fallback(constraint_set, objective)
        method = METHOD_GREEDY_FALLBACK
        message = f"Exact solver unavailable ({exc}); greedy selection used"

    if solved["status"] == "Infeasible":
        return _result(
            constraint_set,
            forced,
            objective,
            feasible=False,
            method=method,
            status="Infeasible",
            message="Solver reported the allocation program infeasible; only mandatory candidates are funded",
        )

    result = _result(
        constraint_set,
        [*forced, *solved["selected_ids"]],
        objective,
        feasible=True,
        method=method,
        status=solved["status"],
        message=message,
    )
    logger.info(
        "Allocation complete: method=%s, selected=%d, cost=%.2f, benefit=%.4f",
        result.method,
        len(result.selected_ids),
        result.total_cost,
        result.total_benefit,
    )
    return result


def allocate(
    raw_items: Iterable[Any],
    budget: float,
    options: OptimizeOptions | None = None,
    settings: AllocationSettings | None = None,
    solver: AllocationSolver | None = None,
) -> AllocationResult:
    """Normalize, build constraints and optimize in one call.

    Parameters
    ----------
    raw_items : Iterable[Any]
        Raw candidate records, see :func:`capital_allocation.candidates.normalize`.
    budget : float
        Total budget.
    options : OptimizeOptions, optional
        Objective, caps and exclusions.
    settings : AllocationSettings, optional
        Solver configuration and candidate ceiling.
    solver : AllocationSolver, optional
        Overrides the solver built from ``settings``.

    Returns
    -------
    AllocationResult
    """
    options = options or OptimizeOptions()
    settings = settings or AllocationSettings()
    candidates = normalize(raw_items)
    settings.check_candidate_count(len(candidates))
    constraint_set = build(candidates, budget, options)
    solver = solver or BinaryProgramSolver(settings.solver_factory)
    return optimize(candidates, constraint_set, options.objective, solver=solver)
