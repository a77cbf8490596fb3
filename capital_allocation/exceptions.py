"""Error taxonomy for the capital allocation core.

Validation errors always propagate to the caller. ``SolverError`` is
recovered inside :func:`capital_allocation.optimizer.optimize` by switching
to the greedy strategy.
"""

from typing import Any


class CapitalAllocationError(Exception):
    """Base class for all errors raised by this package."""


class InvalidCandidateError(CapitalAllocationError, ValueError):
    """One or more raw records could not be normalized into candidates.

    Parameters
    ----------
    issues : list[tuple[int | None, Any, str]]
        ``(index, id, message)`` for every offending record. ``index`` is
        ``None`` for issues that span several records (e.g. cycles).
    """

    def __init__(self, issues: list[tuple[int | None, Any, str]]) -> None:
        self.issues = list(issues)
        super().__init__(self._format())

    def _format(self) -> str:
        lines = [f"{len(self.issues)} invalid candidate record(s):"]
        for index, item_id, message in self.issues:
            where = f"#{index}" if index is not None else "batch"
            lines.append(f"  [{where}] id={item_id!r}: {message}")
        return "\n".join(lines)


class DependencyCycleError(InvalidCandidateError):
    """The dependency graph among candidates contains at least one cycle.

    Parameters
    ----------
    cycles : list[list[str]]
        Member ids of each cycle, sorted within each cycle.
    """

    def __init__(self, cycles: list[list[str]]) -> None:
        self.cycles = [list(c) for c in cycles]
        super().__init__(
            [(None, ", ".join(members), "dependency cycle between candidates") for members in self.cycles]
        )


class UnknownDependencyError(CapitalAllocationError, ValueError):
    """A candidate depends on an id absent from the candidate set.

    Parameters
    ----------
    missing : list[tuple[str, str]]
        ``(candidate_id, dependency_id)`` pairs.
    """

    def __init__(self, missing: list[tuple[str, str]]) -> None:
        self.missing = list(missing)
        details = ", ".join(f"{cid} -> {dep}" for cid, dep in self.missing)
        super().__init__(f"Unknown dependency reference(s): {details}")


class SolverError(CapitalAllocationError, RuntimeError):
    """The optimization backend failed for a reason other than infeasibility."""
