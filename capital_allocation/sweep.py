"""Independent optimizer runs over a list of budgets."""

import logging
from concurrent.futures import ThreadPoolExecutor

from capital_allocation.config import AllocationSettings, OptimizeOptions
from capital_allocation.constraints import build
from capital_allocation.models import AllocationResult, Candidate
from capital_allocation.optimizer import optimize
from capital_allocation.solver import AllocationSolver, BinaryProgramSolver

logger = logging.getLogger(__name__)


def solve_at_budgets(
    candidates: list[Candidate],
    budgets: list[float],
    options: OptimizeOptions | None = None,
    settings: AllocationSettings | None = None,
    solver: AllocationSolver | None = None,
) -> list[AllocationResult]:
    """Optimize once per budget and return results in the order of ``budgets``.

    Runs share no state, so with ``settings.max_workers > 1`` they are spread
    over a thread pool.

    Parameters
    ----------
    candidates : list[Candidate]
        Normalized candidates.
    budgets : list[float]
        Budgets to evaluate.
    options : OptimizeOptions, optional
        Objective, caps and exclusions applied at every budget.
    settings : AllocationSettings, optional
        Solver configuration and worker count.
    solver : AllocationSolver, optional
        Overrides the solver built from ``settings``.

    Returns
    -------
    list[AllocationResult]
    """
    options = options or OptimizeOptions()
    settings = settings or AllocationSettings()
    settings.check_candidate_count(len(candidates))
    solver = solver or BinaryProgramSolver(settings.solver_factory)

    def run(budget: float) -> AllocationResult:
        return optimize(candidates, build(candidates, budget, options), options.objective, solver=solver)

    logger.info("Solving %d budget levels with %d worker(s)", len(budgets), settings.max_workers)
    if settings.max_workers == 1 or len(budgets) < 2:
        return [run(budget) for budget in budgets]
    with ThreadPoolExecutor(max_workers=settings.max_workers) as pool:
        return list(pool.map(run, budgets))
