"""Greedy cost-effectiveness selection.

Deterministic approximation used when the exact program cannot be solved.
Respects every row of the constraint set.
"""

import logging

from capital_allocation.constraints import ConstraintSet
from capital_allocation.ranking import rank
from capital_allocation.solver._common import objective_value
from capital_allocation.solver._types import SolverResult

logger = logging.getLogger(__name__)

RULE = "greedy"


class GreedySolver:
    """Scan candidates in ranked order and accept whatever still fits.

    A candidate whose dependencies are not yet selected is deferred and
    rescanned after the next pass. A candidate is rejected when it would
    overflow a capacity row (budget, phasing, count) or when a dependency was
    rejected. Candidates with a negative weight are never funded. Passes
    repeat until one accepts nothing.
    """

    def __call__(self, constraint_set: ConstraintSet, objective: str) -> SolverResult:
        candidates = constraint_set.decision_candidates
        decision_ids = set(constraint_set.decision_ids)
        capacity_rows = [row for row in constraint_set.rows if row.is_capacity]
        usage = {row.name: 0 for row in capacity_rows}

        selected: list[str] = []
        accepted: set[str] = set()
        rejected: set[str] = set()
        pending = [ranked.candidate for ranked in rank(candidates, objective)]
        passes = 0

        while pending:
            passes += 1
            deferred = []
            progress = False
            for candidate in pending:
                dependencies = candidate.depends_on & decision_ids
                if candidate.weight(objective) < 0 or dependencies & rejected:
                    rejected.add(candidate.id)
                    continue
                if not dependencies <= accepted:
                    deferred.append(candidate)
                    continue
                fits = all(
                    usage[row.name] + row.coefficients.get(candidate.id, 0) <= row.rhs for row in capacity_rows
                )
                if not fits:
                    rejected.add(candidate.id)
                    continue
                for row in capacity_rows:
                    usage[row.name] += row.coefficients.get(candidate.id, 0)
                accepted.add(candidate.id)
                selected.append(candidate.id)
                progress = True
            if not progress:
                rejected.update(c.id for c in deferred)
                break
            pending = deferred

        order = {cid: n for n, cid in enumerate(constraint_set.decision_ids)}
        selected.sort(key=order.__getitem__)
        logger.info("Greedy selection: selected=%d, rejected=%d, passes=%d", len(selected), len(rejected), passes)
        return {
            "status": "Heuristic",
            "selected_ids": selected,
            "objective_value": objective_value(candidates, selected, objective),
            "rule": RULE,
            "detail": {"passes": passes, "rejected": sorted(rejected)},
        }
