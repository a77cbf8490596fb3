"""Budget sensitivity analysis.

Re-runs the optimizer at a series of budget multipliers around a base
budget. Summaries (marginal benefit, ROI, inflection points) are derived
from the sweep afterwards and never feed back into it.
"""

import logging

from capital_allocation.config import AllocationSettings, OptimizeOptions
from capital_allocation.models import (
    Candidate,
    SensitivityPoint,
    SensitivitySummary,
    from_cents,
    to_cents,
)
from capital_allocation.solver import AllocationSolver
from capital_allocation.sweep import solve_at_budgets

logger = logging.getLogger(__name__)


def budget_levels(range_percent: float = 50, steps: int = 10) -> tuple[float, ...]:
    """Evenly spaced multipliers from ``1 - range`` to ``1 + range``.

    Parameters
    ----------
    range_percent : float
        Half-width of the sweep in percent of the base budget.
    steps : int
        Number of intervals; ``steps + 1`` levels are returned. An even
        number of steps includes the level ``1.0``.

    Returns
    -------
    tuple[float, ...]

    Raises
    ------
    ValueError
        If ``range_percent`` is outside ``[0, 100)`` or ``steps`` < 1.
    """
    if not 0 <= range_percent < 100:
        raise ValueError(f"range_percent must be in [0, 100), got {range_percent}")
    if steps < 1:
        raise ValueError(f"steps must be >= 1, got {steps}")
    low = 1 - range_percent / 100
    width = 2 * range_percent / 100
    return tuple(round(low + i * width / steps, 6) for i in range(steps + 1))


def analyze_sensitivity(
    candidates: list[Candidate],
    base_budget: float,
    levels: tuple[float, ...] | list[float] | None = None,
    options: OptimizeOptions | None = None,
    settings: AllocationSettings | None = None,
    solver: AllocationSolver | None = None,
) -> list[SensitivityPoint]:
    """Optimize at ``base_budget * level`` for each level.

    Parameters
    ----------
    candidates : list[Candidate]
        Normalized candidates.
    base_budget : float
        Reference budget.
    levels : sequence of float, optional
        Budget multipliers. Defaults to ``options.levels``, which defaults
        to ``(0.8, 0.9, 1.0, 1.1, 1.2)``.
    options : OptimizeOptions, optional
        Objective, caps and exclusions applied at every level.
    settings : AllocationSettings, optional
        Solver configuration and worker count.
    solver : AllocationSolver, optional
        Overrides the solver built from ``settings``.

    Returns
    -------
    list[SensitivityPoint]
        One point per level, in the order given.

    Raises
    ------
    ValueError
        If the base budget is negative or a level is not positive.
    """
    if base_budget < 0:
        raise ValueError(f"base_budget must be non-negative, got {base_budget}")
    options = options or OptimizeOptions()
    levels = tuple(options.levels if levels is None else levels)
    if any(level <= 0 for level in levels):
        raise ValueError("Sensitivity levels must be positive.")

    budgets = [from_cents(to_cents(base_budget * level)) for level in levels]
    logger.info("Sensitivity sweep over %d levels around %.2f", len(levels), base_budget)
    results = solve_at_budgets(candidates, budgets, options, settings, solver)
    return [
        SensitivityPoint(level=level, budget=budget, result=result)
        for level, budget, result in zip(levels, budgets, results)
    ]


def find_inflection_points(points: list[SensitivityPoint]) -> list[float]:
    """Levels at which the selected set differs from the previous level."""
    return [
        current.level
        for previous, current in zip(points, points[1:])
        if set(current.result.selected_ids) != set(previous.result.selected_ids)
    ]


def summarize_sensitivity(points: list[SensitivityPoint]) -> SensitivitySummary:
    """Derive marginal benefit, ROI and turning points from a sweep.

    Parameters
    ----------
    points : list[SensitivityPoint]
        Output of :func:`analyze_sensitivity`, ordered by budget.

    Returns
    -------
    SensitivitySummary
        ``roi`` is benefit per 100 currency units of budget. The optimal
        budget is the first with the highest ROI. The diminishing-returns
        budget is the first whose marginal benefit falls below half the
        previous level's.
    """
    marginal: list[float] = []
    roi: list[float] = []
    previous_benefit = 0.0
    for point in points:
        benefit = point.result.total_benefit
        marginal.append(benefit - previous_benefit)
        roi.append(benefit / point.budget * 100 if point.budget > 0 else 0.0)
        previous_benefit = benefit

    optimal_budget = None
    if points:
        best = max(range(len(points)), key=lambda n: (roi[n], -n))
        optimal_budget = points[best].budget

    diminishing = None
    for n in range(1, len(points)):
        if marginal[n] < marginal[n - 1] * 0.5:
            diminishing = points[n].budget
            break

    return SensitivitySummary(
        points=tuple(points),
        marginal_benefit=tuple(marginal),
        roi=tuple(roi),
        optimal_budget=optimal_budget,
        inflection_levels=tuple(find_inflection_points(points)),
        diminishing_returns_budget=diminishing,
    )
