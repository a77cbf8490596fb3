"""Shared fixtures for capital allocation tests."""

import pytest

from capital_allocation.candidates import normalize
from capital_allocation.exceptions import SolverError


@pytest.fixture()
def sample_records():
    """A small building portfolio with a dependency, phasing periods and one mandatory item."""
    return [
        {"id": "roof", "cost": 120_000, "expected_benefit": 30, "priority_score": 8, "period": "2026",
         "current_ci": 45, "current_fci": 0.32},
        {"id": "hvac", "cost": 250_000, "expected_benefit": 45, "priority_score": 9, "period": "2026",
         "current_ci": 40, "current_fci": 0.41},
        {"id": "controls", "cost": 40_000, "expected_benefit": 12, "priority_score": 4, "period": "2027",
         "depends_on": ["hvac"], "current_ci": 55, "current_fci": 0.2},
        {"id": "windows", "cost": 80_000, "expected_benefit": 18, "priority_score": 6, "period": "2027",
         "current_ci": 60, "current_fci": 0.18},
        {"id": "fire_alarm", "cost": 30_000, "expected_benefit": 10, "priority_score": 10, "period": "2026",
         "mandatory": True, "current_ci": 35, "current_fci": 0.5},
        {"id": "paving", "cost": 60_000, "expected_benefit": 8, "priority_score": 2, "period": "2028",
         "current_ci": 70, "current_fci": 0.1},
    ]


@pytest.fixture()
def sample_candidates(sample_records):
    return normalize(sample_records)


@pytest.fixture()
def scenario_candidates():
    """A, B and mandatory C with a budget of 250: the optimum is {B, C}."""
    return normalize(
        [
            {"id": "A", "cost": 100, "expected_benefit": 50},
            {"id": "B", "cost": 200, "expected_benefit": 90},
            {"id": "C", "cost": 50, "expected_benefit": 40, "mandatory": True},
        ]
    )


class FailingSolver:
    """Stand-in backend that always fails like a broken solver installation."""

    def __init__(self):
        self.calls = 0

    def __call__(self, constraint_set, objective):
        self.calls += 1
        raise SolverError("injected failure")


@pytest.fixture()
def failing_solver():
    return FailingSolver()
