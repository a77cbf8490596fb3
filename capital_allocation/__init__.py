"""Portfolio capital-allocation optimization for building condition assessment."""

from capital_allocation.adapter import CapitalPlanningComponent
from capital_allocation.candidates import normalize
from capital_allocation.config import AllocationSettings, OptimizeOptions
from capital_allocation.constraints import ConstraintSet, build
from capital_allocation.exceptions import (
    CapitalAllocationError,
    DependencyCycleError,
    InvalidCandidateError,
    SolverError,
    UnknownDependencyError,
)
from capital_allocation.metrics import aggregate, compare_portfolio
from capital_allocation.models import (
    AllocationResult,
    Candidate,
    ParetoPoint,
    PortfolioComparison,
    PortfolioMetrics,
    RankedCandidate,
    SensitivityPoint,
    SensitivitySummary,
)
from capital_allocation.optimizer import allocate, optimize
from capital_allocation.pareto import non_dominated, pareto_frontier
from capital_allocation.ranking import rank
from capital_allocation.sensitivity import (
    analyze_sensitivity,
    budget_levels,
    find_inflection_points,
    summarize_sensitivity,
)
from capital_allocation.solver import BinaryProgramSolver, GreedySolver

__all__ = [
    "AllocationResult",
    "AllocationSettings",
    "BinaryProgramSolver",
    "Candidate",
    "CapitalAllocationError",
    "CapitalPlanningComponent",
    "ConstraintSet",
    "DependencyCycleError",
    "GreedySolver",
    "InvalidCandidateError",
    "OptimizeOptions",
    "ParetoPoint",
    "PortfolioComparison",
    "PortfolioMetrics",
    "RankedCandidate",
    "SensitivityPoint",
    "SensitivitySummary",
    "SolverError",
    "UnknownDependencyError",
    "aggregate",
    "allocate",
    "analyze_sensitivity",
    "budget_levels",
    "build",
    "compare_portfolio",
    "find_inflection_points",
    "non_dominated",
    "normalize",
    "optimize",
    "pareto_frontier",
    "rank",
    "summarize_sensitivity",
]
