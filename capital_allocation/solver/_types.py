"""Type definitions for the solver protocol and result contract."""

from typing import TYPE_CHECKING, Any, Protocol, TypedDict

if TYPE_CHECKING:
    from capital_allocation.constraints import ConstraintSet


class SolverResult(TypedDict):
    """Common output contract all selection strategies must satisfy.

    Parameters
    ----------
    status : str
        Termination status (``"Optimal"``, ``"Infeasible"`` or
        ``"Heuristic"``).
    selected_ids : list[str]
        Selected decision candidates. Forced candidates are not included.
    objective_value : float
        Objective value over the selected decision candidates.
    rule : str
        Identifier for the strategy (e.g. ``"binary_program"``).
    detail : dict[str, Any]
        Strategy-specific diagnostics.
    """

    status: str
    selected_ids: list[str]
    objective_value: float
    rule: str
    detail: dict[str, Any]


class AllocationSolver(Protocol):
    """Protocol for selection strategies.

    Implementations receive a built :class:`ConstraintSet` and choose among
    its decision candidates. Failures other than infeasibility must be
    raised as :class:`~capital_allocation.exceptions.SolverError`.
    """

    def __call__(self, constraint_set: "ConstraintSet", objective: str) -> SolverResult: ...
