"""Exact selection via a binary integer linear program.

Maximizes the objective weight of the selected decision candidates subject
to every row of the constraint set. Uses PuLP with the CBC solver.
"""

import logging
from collections.abc import Callable

import pulp as lp

from capital_allocation.config import AllocationSettings
from capital_allocation.constraints import ConstraintSet
from capital_allocation.exceptions import SolverError
from capital_allocation.solver._common import empty_solver_result, extract_selection, objective_value
from capital_allocation.solver._types import SolverResult

logger = logging.getLogger(__name__)

RULE = "binary_program"


class BinaryProgramSolver:
    """Binary integer program over the decision candidates.

    Parameters
    ----------
    solver_factory : Callable[[], LpSolver], optional
        Returns a fresh PuLP solver command for each solve. Defaults to
        CBC as configured by :class:`AllocationSettings`.
    """

    def __init__(self, solver_factory: Callable[[], lp.LpSolver] | None = None) -> None:
        self._solver_factory = solver_factory or AllocationSettings().solver_factory

    def __call__(self, constraint_set: ConstraintSet, objective: str) -> SolverResult:
        """Solve the allocation program.

        Parameters
        ----------
        constraint_set : ConstraintSet
            Rows over the decision candidates.
        objective : str
            ``"benefit"`` or ``"priority"``.

        Returns
        -------
        SolverResult
            ``status`` is ``"Optimal"`` or ``"Infeasible"``.

        Raises
        ------
        SolverError
            If the backend raises, stops with any other status, or returns a
            selection that breaks a row.
        """
        candidates = constraint_set.decision_candidates
        if not candidates:
            return empty_solver_result("Optimal", RULE)

        position = {c.id: n for n, c in enumerate(candidates)}

        logger.info("Formulating allocation program: %d variables, %d rows", len(candidates), len(constraint_set.rows))
        prob = lp.LpProblem("Capital_Allocation", lp.LpMaximize)
        x = lp.LpVariable.dicts("Select", list(range(len(candidates))), 0, 1, lp.LpBinary)
        prob += lp.lpSum(x[n] * c.weight(objective) for n, c in enumerate(candidates))
        for row in constraint_set.rows:
            prob += (
                lp.lpSum(coefficient * x[position[cid]] for cid, coefficient in row.coefficients.items()) <= row.rhs,
                row.name,
            )

        try:
            prob.solve(self._solver_factory())
        except Exception as exc:
            logger.exception("Error solving allocation program")
            raise SolverError(f"solver backend failed: {exc}") from exc

        status = lp.LpStatus[prob.status]
        if prob.status == lp.LpStatusInfeasible:
            logger.warning("Allocation program reported infeasible")
            return empty_solver_result(status, RULE)
        if prob.status != lp.LpStatusOptimal:
            raise SolverError(f"solver stopped with status {status}")

        selected = extract_selection(x, candidates)
        broken = constraint_set.violations(selected)
        if broken:
            raise SolverError(f"solver returned a selection violating {', '.join(broken)}")

        logger.info("Allocation program solved: status=%s, selected=%d", status, len(selected))
        return {
            "status": status,
            "selected_ids": selected,
            "objective_value": objective_value(candidates, selected, objective),
            "rule": RULE,
            "detail": {"variables": len(candidates), "rows": len(constraint_set.rows)},
        }
