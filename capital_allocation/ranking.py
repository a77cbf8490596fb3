"""Cost-effectiveness ranking of candidates.

The ranking is reported on its own and also fixes the scan order of the
greedy fallback strategy.
"""

from capital_allocation.config import OBJECTIVES
from capital_allocation.models import Candidate, RankedCandidate, benefit_ratio


def _sort_key(candidate: Candidate, objective: str) -> tuple[float, int, str]:
    return (-candidate.weight(objective) / candidate.cost, candidate.cost_cents, candidate.id)


def rank(candidates: list[Candidate], objective: str = "benefit") -> list[RankedCandidate]:
    """Rank candidates by objective weight per unit of cost.

    Parameters
    ----------
    candidates : list[Candidate]
        Normalized candidates.
    objective : str
        ``"benefit"`` or ``"priority"``.

    Returns
    -------
    list[RankedCandidate]
        Descending by weight / cost. Ties go to the cheaper candidate, then
        to the lower id.

    Raises
    ------
    ValueError
        If the objective is unknown.
    """
    if objective not in OBJECTIVES:
        raise ValueError(f"objective must be one of {OBJECTIVES}, got {objective!r}")
    ordered = sorted(candidates, key=lambda c: _sort_key(c, objective))
    return [
        RankedCandidate(
            candidate=c,
            rank=position,
            benefit_per_cost=c.weight(objective) / c.cost,
            cost_per_benefit=benefit_ratio(c.cost, c.weight(objective)),
        )
        for position, c in enumerate(ordered, start=1)
    ]
