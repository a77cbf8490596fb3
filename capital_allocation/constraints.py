"""Translation of budget, dependency and phasing rules into program rows.

Every row has the form ``sum(coefficient * x) <= rhs`` over the binary
decision variables of the candidates that remain after mandatory candidates
are fixed and excluded candidates are dropped. Monetary rows use integer
cents.
"""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from capital_allocation.candidates import topological_order
from capital_allocation.config import OptimizeOptions
from capital_allocation.exceptions import UnknownDependencyError
from capital_allocation.models import Candidate, from_cents, to_cents

logger = logging.getLogger(__name__)

BUDGET = "budget"
DEPENDENCY = "dependency"
PHASING = "phasing"
COUNT = "count"

CAPACITY_KINDS = (BUDGET, PHASING, COUNT)


@dataclass(frozen=True)
class LinearConstraint:
    """One ``<=`` row of the allocation program.

    Parameters
    ----------
    name : str
        Unique, solver-safe row name.
    kind : str
        ``"budget"``, ``"dependency"``, ``"phasing"`` or ``"count"``.
    coefficients : dict[str, int]
        Coefficient per candidate id; ids not listed have coefficient 0.
    rhs : int
        Right-hand side.
    """

    name: str
    kind: str
    coefficients: dict[str, int]
    rhs: int

    @property
    def is_capacity(self) -> bool:
        """Capacity rows only have non-negative coefficients and never loosen as items are added."""
        return self.kind in CAPACITY_KINDS

    def activity(self, selection: Iterable[str]) -> int:
        return sum(self.coefficients.get(cid, 0) for cid in selection)

    def is_satisfied(self, selection: Iterable[str]) -> bool:
        return self.activity(selection) <= self.rhs


@dataclass(frozen=True)
class ConstraintSet:
    """Program constraints for one optimization request.

    Parameters
    ----------
    candidates : tuple[Candidate, ...]
        All candidates of the request, in input order.
    budget : float
        Total budget, including the share consumed by forced candidates.
    forced_ids : tuple[str, ...]
        Mandatory candidates and their transitive dependencies.
    excluded_ids : tuple[str, ...]
        Candidates fixed to zero, including dependents of excluded ids.
    decision_ids : tuple[str, ...]
        Candidates left for the optimizer.
    rows : tuple[LinearConstraint, ...]
        Constraint rows over ``decision_ids``.
    feasible : bool
        ``False`` when the forced candidates alone break the budget or a cap.
    reason : str
        Explanation when not feasible.
    """

    candidates: tuple[Candidate, ...]
    budget: float
    forced_ids: tuple[str, ...]
    excluded_ids: tuple[str, ...]
    decision_ids: tuple[str, ...]
    rows: tuple[LinearConstraint, ...]
    feasible: bool = True
    reason: str = ""
    _by_id: dict[str, Candidate] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_by_id", {c.id: c for c in self.candidates})

    def candidate(self, candidate_id: str) -> Candidate:
        return self._by_id[candidate_id]

    @property
    def decision_candidates(self) -> list[Candidate]:
        return [self._by_id[cid] for cid in self.decision_ids]

    @property
    def budget_cents(self) -> int:
        return to_cents(self.budget)

    @property
    def forced_cents(self) -> int:
        return sum(self._by_id[cid].cost_cents for cid in self.forced_ids)

    @property
    def available_cents(self) -> int:
        """Budget left for decision candidates after forced spend."""
        return self.budget_cents - self.forced_cents

    def violations(self, selection: Iterable[str]) -> list[str]:
        """Names of rows broken by a selection of decision ids.

        Raises
        ------
        ValueError
            If the selection contains ids outside ``decision_ids``.
        """
        chosen = set(selection)
        stray = chosen - set(self.decision_ids)
        if stray:
            raise ValueError(f"Selection contains non-decision ids: {sorted(stray)}")
        return [row.name for row in self.rows if not row.is_satisfied(chosen)]


def _check_dependencies(candidates: list[Candidate]) -> None:
    known = {c.id for c in candidates}
    missing = [(c.id, dep) for c in candidates for dep in sorted(c.depends_on) if dep not in known]
    if missing:
        raise UnknownDependencyError(missing)


def _forced_closure(candidates: list[Candidate]) -> set[str]:
    by_id = {c.id: c for c in candidates}
    forced: set[str] = set()
    stack = [c.id for c in candidates if c.mandatory]
    while stack:
        cid = stack.pop()
        if cid in forced:
            continue
        forced.add(cid)
        stack.extend(by_id[cid].depends_on)
    return forced


def _excluded_closure(candidates: list[Candidate], seeds: set[str], forced: set[str]) -> set[str]:
    by_id = {c.id: c for c in candidates}
    order, _ = topological_order(candidates)
    excluded: set[str] = set()
    for cid in order:
        if cid in forced:
            continue
        if cid in seeds or by_id[cid].depends_on & excluded:
            excluded.add(cid)
    return excluded


def _describe_forced(candidates: list[Candidate], forced: set[str]) -> str:
    return ", ".join(f"{c.id} ({c.cost:,.2f})" for c in candidates if c.id in forced)


def build(candidates: list[Candidate], budget: float, options: OptimizeOptions | None = None) -> ConstraintSet:
    """Build the constraint set for one allocation request.

    Parameters
    ----------
    candidates : list[Candidate]
        Normalized candidates.
    budget : float
        Total budget available, including mandatory spend.
    options : OptimizeOptions, optional
        Phasing cap, project-count cap and exclusions.

    Returns
    -------
    ConstraintSet
        Marked infeasible, rather than raising, when mandatory candidates
        alone exceed the budget or a cap.

    Raises
    ------
    UnknownDependencyError
        If a candidate depends on an id that is not in ``candidates``.
    ValueError
        If the budget is negative or not finite.
    """
    if not math.isfinite(budget) or budget < 0:
        raise ValueError(f"budget must be a non-negative number, got {budget}")
    options = options or OptimizeOptions()
    _check_dependencies(candidates)

    known = {c.id for c in candidates}
    forced = _forced_closure(candidates)

    unknown_exclusions = options.excluded_ids - known
    if unknown_exclusions:
        logger.warning("Ignoring exclusion of unknown candidate(s): %s", sorted(unknown_exclusions))
    ignored = options.excluded_ids & forced
    if ignored:
        logger.warning("Ignoring exclusion of mandatory candidate(s): %s", sorted(ignored))
    excluded = _excluded_closure(candidates, set(options.excluded_ids & known), forced)

    decision = [c for c in candidates if c.id not in forced and c.id not in excluded]
    decision_ids = {c.id for c in decision}
    budget = from_cents(to_cents(budget))
    problems: list[str] = []

    forced_cents = sum(c.cost_cents for c in candidates if c.id in forced)
    available = to_cents(budget) - forced_cents
    if available < 0:
        problems.append(
            f"Mandatory candidates {_describe_forced(candidates, forced)} require "
            f"{from_cents(forced_cents):,.2f} but the budget is {budget:,.2f}"
        )

    rows = [
        LinearConstraint(
            name="budget",
            kind=BUDGET,
            coefficients={c.id: c.cost_cents for c in decision},
            rhs=max(available, 0),
        )
    ]

    edge_number = 0
    for c in decision:
        for dep in sorted(c.depends_on & decision_ids):
            rows.append(
                LinearConstraint(
                    name=f"dependency_{edge_number}",
                    kind=DEPENDENCY,
                    coefficients={c.id: 1, dep: -1},
                    rhs=0,
                )
            )
            edge_number += 1

    if options.max_per_period is not None:
        periods = sorted({c.period for c in candidates if c.period is not None})
        for number, period in enumerate(periods):
            forced_in_period = sum(1 for c in candidates if c.id in forced and c.period == period)
            remaining = options.max_per_period - forced_in_period
            if remaining < 0:
                problems.append(
                    f"{forced_in_period} mandatory candidates fall in period {period} "
                    f"but at most {options.max_per_period} are allowed"
                )
            members = {c.id: 1 for c in decision if c.period == period}
            if members:
                rows.append(
                    LinearConstraint(
                        name=f"phasing_{number}", kind=PHASING, coefficients=members, rhs=max(remaining, 0)
                    )
                )

    if options.max_projects is not None:
        remaining = options.max_projects - len(forced)
        if remaining < 0:
            problems.append(f"{len(forced)} mandatory candidates exceed the limit of {options.max_projects} projects")
        rows.append(
            LinearConstraint(name="count", kind=COUNT, coefficients={c.id: 1 for c in decision}, rhs=max(remaining, 0))
        )

    reason = "; ".join(problems)
    if problems:
        logger.warning("Mandatory candidates cannot be funded: %s", reason)

    return ConstraintSet(
        candidates=tuple(candidates),
        budget=budget,
        forced_ids=tuple(c.id for c in candidates if c.id in forced),
        excluded_ids=tuple(c.id for c in candidates if c.id in excluded),
        decision_ids=tuple(c.id for c in decision),
        rows=tuple(rows),
        feasible=not problems,
        reason=reason,
    )
