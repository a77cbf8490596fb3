"""Pareto frontier of portfolio cost against benefit."""

import itertools
import logging
import math

from capital_allocation.config import AllocationSettings, OptimizeOptions
from capital_allocation.constraints import ConstraintSet, build
from capital_allocation.models import Candidate, ParetoPoint, from_cents, to_cents
from capital_allocation.ranking import rank
from capital_allocation.solver import AllocationSolver
from capital_allocation.sweep import solve_at_budgets

logger = logging.getLogger(__name__)


def non_dominated(points: list[ParetoPoint]) -> list[ParetoPoint]:
    """Keep only points no other point dominates.

    Points with equal cost and benefit are collapsed to the one with the
    fewest (then lexicographically smallest) selected ids.

    Parameters
    ----------
    points : list[ParetoPoint]
        Candidate points, in any order.

    Returns
    -------
    list[ParetoPoint]
        Frontier sorted by ascending cost; benefit strictly increases along it.
    """
    ordered = sorted(
        points,
        key=lambda p: (to_cents(p.total_cost), -p.total_benefit, len(p.selected_ids), p.selected_ids),
    )
    frontier: list[ParetoPoint] = []
    for point in ordered:
        if frontier and not point.total_benefit > frontier[-1].total_benefit + 1e-9:
            continue
        frontier.append(point)
    return frontier


def _enumerate(constraint_set: ConstraintSet) -> list[ParetoPoint]:
    forced = [constraint_set.candidate(cid) for cid in constraint_set.forced_ids]
    forced_cents = sum(c.cost_cents for c in forced)
    forced_benefit = [c.expected_benefit for c in forced]
    decision = constraint_set.decision_candidates
    order = {c.id: n for n, c in enumerate(constraint_set.candidates)}

    points = []
    for size in range(len(decision) + 1):
        for subset in itertools.combinations(decision, size):
            if constraint_set.violations(c.id for c in subset):
                continue
            ids = sorted([*constraint_set.forced_ids, *(c.id for c in subset)], key=order.__getitem__)
            points.append(
                ParetoPoint(
                    total_cost=from_cents(forced_cents + sum(c.cost_cents for c in subset)),
                    total_benefit=math.fsum([*forced_benefit, *(c.expected_benefit for c in subset)]),
                    selected_ids=tuple(ids),
                )
            )
    return points


def _ranked_breakpoints(constraint_set: ConstraintSet, objective: str) -> list[float]:
    running = constraint_set.forced_cents
    budgets = [running]
    for ranked in rank(constraint_set.decision_candidates, objective):
        running += ranked.candidate.cost_cents
        budgets.append(running)
    return [from_cents(cents) for cents in sorted(set(budgets))]


def pareto_frontier(
    candidates: list[Candidate],
    budget_sweep: list[float] | None = None,
    options: OptimizeOptions | None = None,
    settings: AllocationSettings | None = None,
    solver: AllocationSolver | None = None,
) -> list[ParetoPoint]:
    """Compute the non-dominated (cost, benefit) portfolios.

    Parameters
    ----------
    candidates : list[Candidate]
        Normalized candidates.
    budget_sweep : list[float], optional
        Budgets to optimize at. When omitted, every constraint-respecting
        subset is enumerated if the decision set has at most
        ``settings.pareto_enumeration_cap`` candidates; otherwise the
        cumulative costs of the cost-effectiveness ranking are swept.
    options : OptimizeOptions, optional
        Objective, caps and exclusions.
    settings : AllocationSettings, optional
        Enumeration cap, solver configuration and worker count.
    solver : AllocationSolver, optional
        Overrides the solver built from ``settings``.

    Returns
    -------
    list[ParetoPoint]
        Sorted by ascending total cost. Empty if the mandatory candidates
        cannot be funded at any swept budget.
    """
    options = options or OptimizeOptions()
    settings = settings or AllocationSettings()

    if budget_sweep is None:
        total = from_cents(sum(c.cost_cents for c in candidates))
        reference = build(candidates, total, options)
        if not reference.feasible:
            logger.warning("No Pareto frontier: %s", reference.reason)
            return []
        if len(reference.decision_ids) <= settings.pareto_enumeration_cap:
            logger.info("Enumerating subsets of %d decision candidates", len(reference.decision_ids))
            return non_dominated(_enumerate(reference))
        budget_sweep = _ranked_breakpoints(reference, options.objective)

    results = solve_at_budgets(candidates, list(budget_sweep), options, settings, solver)
    points = [
        ParetoPoint(total_cost=r.total_cost, total_benefit=r.total_benefit, selected_ids=r.selected_ids)
        for r in results
        if r.feasible
    ]
    frontier = non_dominated(points)
    logger.info("Pareto frontier: %d of %d swept points are non-dominated", len(frontier), len(points))
    return frontier
