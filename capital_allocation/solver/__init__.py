"""Selection strategies for the allocation program.

``BinaryProgramSolver`` solves the program exactly with PuLP/CBC and
``GreedySolver`` is the deterministic fallback. Both satisfy the
``AllocationSolver`` protocol.
"""

from capital_allocation.solver._common import empty_solver_result, extract_selection
from capital_allocation.solver._types import AllocationSolver, SolverResult
from capital_allocation.solver.binary_program import BinaryProgramSolver
from capital_allocation.solver.greedy import GreedySolver

__all__ = [
    "AllocationSolver",
    "BinaryProgramSolver",
    "GreedySolver",
    "SolverResult",
    "empty_solver_result",
    "extract_selection",
]
