"""Normalization of loosely-typed project records into validated candidates.

Every record in a batch is checked before anything is raised, so the caller
sees all problems at once.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any

from capital_allocation.exceptions import DependencyCycleError, InvalidCandidateError
from capital_allocation.models import Candidate, from_cents, to_cents

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"1", "true", "yes", "y", "t"}
_FALSE_STRINGS = {"0", "false", "no", "n", "f", ""}

_OPTIONAL_FLOATS = ("priority_score", "current_ci", "target_ci", "current_fci", "target_fci")


def parse_number(value: Any) -> float:
    """Parse a finite number, accepting numeric strings with thousands separators."""
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, str):
        value = value.strip().replace(",", "")
    number = float(value)
    if not math.isfinite(number):
        raise ValueError("must be finite")
    return number


def _as_bool(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in _TRUE_STRINGS | _FALSE_STRINGS:
        return value.strip().lower() in _TRUE_STRINGS
    raise ValueError(f"cannot interpret {value!r} as a boolean")


def _as_id_set(value: Any) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, (str, int)):
        value = [value]
    if not isinstance(value, Iterable):
        raise ValueError("depends_on must be an id or a collection of ids")
    ids = set()
    for item in value:
        if item is None or str(item).strip() == "":
            raise ValueError("depends_on contains a blank id")
        ids.add(str(item).strip())
    return frozenset(ids)


def _parse_record(item: Any) -> tuple[Candidate | None, Any, list[str]]:
    """Convert one raw record, collecting every problem instead of stopping at the first."""
    if not isinstance(item, Mapping):
        return None, None, [f"record must be a mapping, got {type(item).__name__}"]

    problems: list[str] = []
    raw_id = item.get("id")
    candidate_id = None if raw_id is None else str(raw_id).strip()
    if not candidate_id:
        problems.append("missing id")

    values: dict[str, Any] = {}
    for key in ("cost", "expected_benefit"):
        if item.get(key) is None:
            problems.append(f"missing {key}")
            continue
        try:
            values[key] = parse_number(item[key])
        except (TypeError, ValueError) as exc:
            problems.append(f"{key} is not a valid number ({exc})")

    if "cost" in values:
        values["cost"] = from_cents(to_cents(values["cost"]))
        if values["cost"] <= 0:
            problems.append(f"cost must be positive, got {values['cost']}")
    if "expected_benefit" in values and values["expected_benefit"] < 0:
        problems.append(f"expected_benefit must be non-negative, got {values['expected_benefit']}")

    for key in _OPTIONAL_FLOATS:
        if item.get(key) is None:
            continue
        try:
            values[key] = parse_number(item[key])
        except (TypeError, ValueError) as exc:
            problems.append(f"{key} is not a valid number ({exc})")

    try:
        depends_on = _as_id_set(item.get("depends_on"))
    except (TypeError, ValueError) as exc:
        problems.append(str(exc))
        depends_on = frozenset()
    if candidate_id and candidate_id in depends_on:
        problems.append("candidate depends on itself")

    try:
        mandatory = _as_bool(item.get("mandatory"))
    except ValueError as exc:
        problems.append(f"mandatory: {exc}")
        mandatory = False

    if problems:
        return None, candidate_id or raw_id, problems

    period = item.get("period")
    name = item.get("name")
    candidate = Candidate(
        id=candidate_id,
        depends_on=depends_on,
        period=None if period is None else str(period),
        mandatory=mandatory,
        name=None if name is None else str(name),
        **values,
    )
    return candidate, candidate_id, []


def topological_order(candidates: list[Candidate]) -> tuple[list[str], set[str]]:
    """Order candidate ids so that every dependency precedes its dependents.

    Uses Kahn's algorithm on the edges between candidates in the set; edges
    to unknown ids are ignored here. Ties are resolved by input order.

    Parameters
    ----------
    candidates : list[Candidate]
        Candidates with unique ids.

    Returns
    -------
    tuple[list[str], set[str]]
        ``(order, blocked)`` where ``blocked`` holds ids that are on or
        downstream of a cycle and could not be ordered.
    """
    ids = [c.id for c in candidates]
    known = set(ids)
    in_degree = {cid: 0 for cid in ids}
    dependents: dict[str, list[str]] = {cid: [] for cid in ids}
    for c in candidates:
        for dep in c.depends_on:
            if dep in known:
                in_degree[c.id] += 1
                dependents[dep].append(c.id)

    position = {cid: n for n, cid in enumerate(ids)}
    ready = [cid for cid in ids if in_degree[cid] == 0]
    order: list[str] = []
    while ready:
        ready.sort(key=position.__getitem__)
        current = ready.pop(0)
        order.append(current)
        for child in dependents[current]:
            in_degree[child] -= 1
            if in_degree[child] == 0:
                ready.append(child)

    return order, known - set(order)


def find_cycles(candidates: list[Candidate]) -> list[list[str]]:
    """Return the member ids of each dependency cycle, empty if the graph is acyclic."""
    _, blocked = topological_order(candidates)
    if not blocked:
        return []

    by_id = {c.id: c for c in candidates}
    # Nodes left after Kahn's algorithm are cycles plus their downstream
    # dependents; keep only strongly connected groups (Tarjan).
    index_of: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    stack: list[str] = []
    on_stack: set[str] = set()
    cycles: list[list[str]] = []
    counter = 0

    def visit(node: str) -> None:
        nonlocal counter
        index_of[node] = lowlink[node] = counter
        counter += 1
        stack.append(node)
        on_stack.add(node)
        for dep in sorted(by_id[node].depends_on & blocked):
            if dep not in index_of:
                visit(dep)
                lowlink[node] = min(lowlink[node], lowlink[dep])
            elif dep in on_stack:
                lowlink[node] = min(lowlink[node], index_of[dep])
        if lowlink[node] == index_of[node]:
            component = []
            while True:
                member = stack.pop()
                on_stack.discard(member)
                component.append(member)
                if member == node:
                    break
            if len(component) > 1:
                cycles.append(sorted(component))

    for node in sorted(blocked):
        if node not in index_of:
            visit(node)
    return sorted(cycles)


def normalize(raw_items: Iterable[Any]) -> list[Candidate]:
    """Validate raw project records and convert them into candidates.

    Parameters
    ----------
    raw_items : Iterable[Any]
        Mappings with keys ``id``, ``cost``, ``expected_benefit`` and
        optionally ``priority_score``, ``depends_on``, ``period``,
        ``mandatory``, ``name``, ``current_ci``, ``target_ci``,
        ``current_fci``, ``target_fci``. Input is not mutated.

    Returns
    -------
    list[Candidate]
        Candidates in input order.

    Raises
    ------
    InvalidCandidateError
        If any record is malformed, has a non-positive cost, a negative
        benefit or a duplicate id. Cycle issues are included in the batch.
    DependencyCycleError
        If the records are otherwise valid but dependencies form a cycle.
    """
    issues: list[tuple[int | None, Any, str]] = []
    candidates: list[Candidate] = []
    seen: dict[str, int] = {}

    for index, item in enumerate(raw_items):
        candidate, item_id, problems = _parse_record(item)
        for problem in problems:
            issues.append((index, item_id, problem))
        if candidate is None:
            continue
        if candidate.id in seen:
            issues.append((index, candidate.id, f"duplicate id (first seen at #{seen[candidate.id]})"))
            continue
        seen[candidate.id] = index
        candidates.append(candidate)

    cycles = find_cycles(candidates)
    if issues:
        issues.extend((None, ", ".join(members), "dependency cycle between candidates") for members in cycles)
        logger.warning("Rejected candidate batch with %d issue(s)", len(issues))
        raise InvalidCandidateError(issues)
    if cycles:
        logger.warning("Rejected candidate batch with %d dependency cycle(s)", len(cycles))
        raise DependencyCycleError(cycles)

    logger.info("Normalized %d candidates (%d mandatory)", len(candidates), sum(c.mandatory for c in candidates))
    return candidates
