"""Pipeline component wrapping the allocation core for the planning application."""

import logging
from dataclasses import asdict
from typing import Any, Protocol

from capital_allocation.candidates import normalize, parse_number
from capital_allocation.config import AllocationSettings, OptimizeOptions
from capital_allocation.constraints import build
from capital_allocation.metrics import compare_portfolio
from capital_allocation.models import METHOD_GREEDY_FALLBACK
from capital_allocation.optimizer import optimize
from capital_allocation.pareto import pareto_frontier
from capital_allocation.sensitivity import analyze_sensitivity, summarize_sensitivity
from capital_allocation.solver import AllocationSolver, BinaryProgramSolver

logger = logging.getLogger(__name__)

ANALYSES = ("sensitivity", "pareto")


class PipelineComponent(Protocol):
    """Structural interface for pipeline stage components."""

    def execute(self, event: dict) -> dict:
        """Process event and return result."""
        ...


_FIELD_MAP_IN: dict[str, str] = {
    "projectId": "id",
    "candidateId": "id",
    "projectName": "name",
    "estimatedCost": "cost",
    "expectedBenefit": "expected_benefit",
    "expectedCIImprovement": "expected_benefit",
    "priorityScore": "priority_score",
    "dependsOn": "depends_on",
    "periodConstraint": "period",
    "currentCI": "current_ci",
    "targetCI": "target_ci",
    "currentFCI": "current_fci",
    "targetFCI": "target_fci",
}


def _to_candidate_format(record: dict[str, Any]) -> dict[str, Any]:
    """Map an application record to candidate field names.

    Parameters
    ----------
    record : dict[str, Any]
        Project/component record with application field names.

    Returns
    -------
    dict[str, Any]
        Record with candidate field names; unknown keys pass through.
    """
    if not isinstance(record, dict):
        return record
    return {_FIELD_MAP_IN.get(key, key): value for key, value in record.items()}


class CapitalPlanningComponent(PipelineComponent):
    """Select capital projects for a budget and report the outcome.

    Handles field mapping and normalization, then runs the optimizer and
    any requested analyses.

    Parameters
    ----------
    settings : AllocationSettings, optional
        Solver configuration, candidate ceiling and sweep workers.
    solver : AllocationSolver, optional
        Primary strategy. Defaults to :class:`BinaryProgramSolver` built
        from ``settings``.
    """

    def __init__(
        self,
        settings: AllocationSettings | None = None,
        solver: AllocationSolver | None = None,
    ) -> None:
        self.settings = settings or AllocationSettings()
        self._solver = solver or BinaryProgramSolver(self.settings.solver_factory)

    def execute(self, event: dict) -> dict:
        """Run the allocation and return a serializable result.

        Parameters
        ----------
        event : dict
            Must contain ``candidates`` (list of application records) and
            ``budget``. May contain ``options`` (``objective``,
            ``maxPerPeriod``, ``maxProjects``, ``excludedIds``, ``levels``)
            and ``analyses`` (any of ``"sensitivity"``, ``"pareto"``).

        Returns
        -------
        dict
            ``allocation`` and ``metrics``, plus ``sensitivity`` and
            ``pareto`` when requested.

        Raises
        ------
        InvalidCandidateError, UnknownDependencyError
            If the records do not form a valid candidate set.
        ValueError
            If the budget is not a number, or options or analyses are not
            recognized.
        """
        try:
            budget = parse_number(event["budget"])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"budget is not a valid number: {event['budget']!r}") from exc
        options = OptimizeOptions.from_mapping(event.get("options"))
        analyses = set(event.get("analyses", ()))
        unknown = analyses - set(ANALYSES)
        if unknown:
            raise ValueError(f"Unknown analyses requested: {sorted(unknown)}")

        candidates = normalize(_to_candidate_format(r) for r in event["candidates"])
        self.settings.check_candidate_count(len(candidates))

        allocation = optimize(candidates, build(candidates, budget, options), options.objective, solver=self._solver)
        if not allocation.feasible:
            logger.warning("Allocation infeasible: %s", allocation.message)
        elif allocation.method == METHOD_GREEDY_FALLBACK:
            logger.warning("Allocation used greedy fallback: %s", allocation.message)
        else:
            logger.info("Allocation complete: selected=%d candidates", len(allocation.selected_ids))

        result: dict[str, Any] = {
            "allocation": asdict(allocation),
            "metrics": asdict(compare_portfolio(candidates, allocation, budget)),
        }
        if "sensitivity" in analyses:
            points = analyze_sensitivity(
                candidates, budget, options=options, settings=self.settings, solver=self._solver
            )
            result["sensitivity"] = asdict(summarize_sensitivity(points))
        if "pareto" in analyses:
            frontier = pareto_frontier(candidates, options=options, settings=self.settings, solver=self._solver)
            result["pareto"] = [asdict(point) for point in frontier]
        return result
