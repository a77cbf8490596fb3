"""Data models for the capital allocation core.

All monetary comparisons are done in integer cents via :func:`to_cents`
so that floating-point drift cannot cause spurious infeasibility.
"""

import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

METHOD_LP = "lp"
METHOD_GREEDY_FALLBACK = "greedy-fallback"

_BENEFIT_TOLERANCE = 1e-9


def to_cents(amount: float) -> int:
    """Round a currency amount half-up to whole cents.

    Parameters
    ----------
    amount : float
        Monetary amount in currency units.

    Returns
    -------
    int
        Amount in cents.
    """
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> float:
    """Convert integer cents back to a two-place currency amount."""
    return float(Decimal(cents) / 100)


@dataclass(frozen=True)
class Candidate:
    """One fundable unit of capital work.

    Parameters
    ----------
    id : str
        Unique identifier (e.g. a project/component pair).
    cost : float
        Positive cost, rounded to cents.
    expected_benefit : float
        Non-negative condition improvement if funded.
    priority_score : float, optional
        Secondary weight used by the ``"priority"`` objective.
    depends_on : frozenset[str]
        Ids that must be funded for this candidate to be eligible.
    period : str, optional
        Period or year bucket used by phasing caps.
    mandatory : bool
        Fund regardless of optimization.
    name : str, optional
        Display name.
    current_ci, target_ci, current_fci, target_fci : float, optional
        Condition data consumed by the portfolio metrics.
    """

    id: str
    cost: float
    expected_benefit: float
    priority_score: float | None = None
    depends_on: frozenset[str] = field(default_factory=frozenset)
    period: str | None = None
    mandatory: bool = False
    name: str | None = None
    current_ci: float | None = None
    target_ci: float | None = None
    current_fci: float | None = None
    target_fci: float | None = None

    def __post_init__(self) -> None:
        if self.cost <= 0:
            raise ValueError(f"Candidate {self.id!r}: cost must be positive, got {self.cost}")
        if self.expected_benefit < 0:
            raise ValueError(f"Candidate {self.id!r}: expected_benefit must be non-negative")

    @property
    def cost_cents(self) -> int:
        """Cost in integer cents."""
        return to_cents(self.cost)

    def weight(self, objective: str) -> float:
        """Objective coefficient for this candidate."""
        if objective == "priority":
            return self.priority_score or 0.0
        return self.expected_benefit


@dataclass(frozen=True)
class RankedCandidate:
    """A candidate with its cost-effectiveness position."""

    candidate: Candidate
    rank: int
    benefit_per_cost: float
    cost_per_benefit: float


@dataclass(frozen=True)
class AllocationResult:
    """Outcome of one optimization run.

    Parameters
    ----------
    selected_ids : tuple[str, ...]
        Funded candidate ids, in input order.
    total_cost : float
        Sum of cost over the selection.
    total_benefit : float
        Sum of expected benefit over the selection.
    feasible : bool
        ``False`` only when the mandatory candidates alone break the budget
        or a cap.
    method : str
        ``"lp"`` or ``"greedy-fallback"``.
    budget : float
        Budget the run was given.
    objective : str
        Objective that was maximized.
    objective_value : float
        Sum of objective weights over the selection.
    status : str
        Backend status, e.g. ``"Optimal"``, ``"Infeasible"``, ``"Fallback"``.
    message : str
        Infeasibility explanation or fallback reason, empty otherwise.
    mandatory_ids : tuple[str, ...]
        Ids that were forced into the selection.
    """

    selected_ids: tuple[str, ...]
    total_cost: float
    total_benefit: float
    feasible: bool
    method: str
    budget: float = 0.0
    objective: str = "benefit"
    objective_value: float = 0.0
    status: str = ""
    message: str = ""
    mandatory_ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.method not in (METHOD_LP, METHOD_GREEDY_FALLBACK):
            raise ValueError(f"Unknown allocation method {self.method!r}")
        if not set(self.mandatory_ids) <= set(self.selected_ids):
            raise ValueError("mandatory_ids must be a subset of selected_ids")

    @property
    def budget_utilization(self) -> float:
        """Percent of the budget spent; ``0.0`` for a zero budget."""
        return (self.total_cost / self.budget) * 100 if self.budget > 0 else 0.0


@dataclass(frozen=True)
class SensitivityPoint:
    """Result of one budget level in a sensitivity sweep."""

    level: float
    budget: float
    result: AllocationResult


@dataclass(frozen=True)
class SensitivitySummary:
    """Derived view over a sensitivity sweep.

    Parameters
    ----------
    points : tuple[SensitivityPoint, ...]
        The sweep, in request order.
    marginal_benefit : tuple[float, ...]
        Benefit gained over the previous level (the first level is measured
        against zero).
    roi : tuple[float, ...]
        Benefit per 100 currency units of budget at each level.
    optimal_budget : float | None
        Budget with the highest ROI.
    inflection_levels : tuple[float, ...]
        Levels at which the selection changes.
    diminishing_returns_budget : float | None
        First budget whose marginal benefit falls below half the previous one.
    """

    points: tuple[SensitivityPoint, ...]
    marginal_benefit: tuple[float, ...]
    roi: tuple[float, ...]
    optimal_budget: float | None
    inflection_levels: tuple[float, ...]
    diminishing_returns_budget: float | None


@dataclass(frozen=True)
class ParetoPoint:
    """A non-dominated (cost, benefit) portfolio."""

    total_cost: float
    total_benefit: float
    selected_ids: tuple[str, ...]

    def dominates(self, other: "ParetoPoint") -> bool:
        """Return whether this point is at least as good on both axes and better on one."""
        no_worse = (
            to_cents(self.total_cost) <= to_cents(other.total_cost)
            and self.total_benefit >= other.total_benefit - _BENEFIT_TOLERANCE
        )
        better = (
            to_cents(self.total_cost) < to_cents(other.total_cost)
            or self.total_benefit > other.total_benefit + _BENEFIT_TOLERANCE
        )
        return no_worse and better


@dataclass(frozen=True)
class PortfolioMetrics:
    """Portfolio-level condition and spend figures."""

    weighted_ci: float
    weighted_fci: float
    total_cost: float
    total_benefit: float


@dataclass(frozen=True)
class PortfolioComparison:
    """Before/after comparison of a funding selection."""

    before: PortfolioMetrics
    after: PortfolioMetrics
    ci_improvement_percent: float
    fci_improvement_percent: float
    budget_utilization: float | None
    average_cost_effectiveness: float

    @property
    def ci_delta(self) -> float:
        return self.after.weighted_ci - self.before.weighted_ci

    @property
    def fci_delta(self) -> float:
        return self.before.weighted_fci - self.after.weighted_fci


def benefit_ratio(numerator: float, denominator: float) -> float:
    """Divide, returning ``inf`` for a zero denominator."""
    return numerator / denominator if denominator else math.inf
