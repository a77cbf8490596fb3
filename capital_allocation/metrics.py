"""Portfolio condition metrics before and after funding.

Weighted CI and FCI are cost-weighted averages over the candidates that
carry condition data. Funded candidates move to their target condition;
unfunded candidates keep their current condition.
"""

import math
from collections.abc import Iterable

from capital_allocation.models import (
    AllocationResult,
    Candidate,
    PortfolioComparison,
    PortfolioMetrics,
    from_cents,
)

MAX_CI = 100.0


def _selection_ids(candidates: list[Candidate], selection: AllocationResult | Iterable[str]) -> set[str]:
    ids = set(selection.selected_ids if isinstance(selection, AllocationResult) else selection)
    unknown = ids - {c.id for c in candidates}
    if unknown:
        raise ValueError(f"Selection references unknown candidate(s): {sorted(unknown)}")
    return ids


def _post_ci(candidate: Candidate, funded: bool) -> float:
    if not funded:
        return candidate.current_ci
    if candidate.target_ci is not None:
        return candidate.target_ci
    return min(MAX_CI, candidate.current_ci + candidate.expected_benefit)


def _post_fci(candidate: Candidate, funded: bool) -> float:
    if funded and candidate.target_fci is not None:
        return candidate.target_fci
    return candidate.current_fci


def _weighted_average(pairs: list[tuple[float, float]]) -> float:
    total_weight = math.fsum(weight for weight, _ in pairs)
    if total_weight <= 0:
        return 0.0
    return math.fsum(weight * value for weight, value in pairs) / total_weight


def aggregate(candidates: list[Candidate], selection: AllocationResult | Iterable[str]) -> PortfolioMetrics:
    """Compute portfolio metrics for a funding selection.

    Parameters
    ----------
    candidates : list[Candidate]
        The whole portfolio.
    selection : AllocationResult | Iterable[str]
        Funded candidate ids, or a result carrying them.

    Returns
    -------
    PortfolioMetrics
        All zeros for an empty portfolio. CI and FCI are zero when no
        candidate carries the respective condition data.

    Raises
    ------
    ValueError
        If the selection names ids not in ``candidates``.
    """
    funded = _selection_ids(candidates, selection)
    ci_pairs = [(c.cost, _post_ci(c, c.id in funded)) for c in candidates if c.current_ci is not None]
    fci_pairs = [(c.cost, _post_fci(c, c.id in funded)) for c in candidates if c.current_fci is not None]
    chosen = [c for c in candidates if c.id in funded]
    return PortfolioMetrics(
        weighted_ci=_weighted_average(ci_pairs),
        weighted_fci=_weighted_average(fci_pairs),
        total_cost=from_cents(sum(c.cost_cents for c in chosen)),
        total_benefit=math.fsum(c.expected_benefit for c in chosen),
    )


def compare_portfolio(
    candidates: list[Candidate],
    selection: AllocationResult | Iterable[str],
    budget: float | None = None,
) -> PortfolioComparison:
    """Compare the unfunded portfolio with the portfolio after a selection.

    Parameters
    ----------
    candidates : list[Candidate]
        The whole portfolio.
    selection : AllocationResult | Iterable[str]
        Funded candidate ids, or a result carrying them.
    budget : float, optional
        Budget used for the utilization figure.

    Returns
    -------
    PortfolioComparison
    """
    before = aggregate(candidates, ())
    after = aggregate(candidates, selection)
    ci_percent = (after.weighted_ci - before.weighted_ci) / before.weighted_ci * 100 if before.weighted_ci > 0 else 0.0
    fci_percent = (
        (before.weighted_fci - after.weighted_fci) / before.weighted_fci * 100 if before.weighted_fci > 0 else 0.0
    )
    if budget is None:
        utilization = None
    else:
        utilization = after.total_cost / budget * 100 if budget > 0 else 0.0
    return PortfolioComparison(
        before=before,
        after=after,
        ci_improvement_percent=ci_percent,
        fci_improvement_percent=fci_percent,
        budget_utilization=utilization,
        average_cost_effectiveness=after.total_cost / after.total_benefit if after.total_benefit > 0 else 0.0,
    )
