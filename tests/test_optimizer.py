"""Unit tests for the optimizer entry points."""

import logging

import pytest

from capital_allocation.config import AllocationSettings, OptimizeOptions
from capital_allocation.constraints import build
from capital_allocation.models import METHOD_GREEDY_FALLBACK, METHOD_LP
from capital_allocation.optimizer import allocate, optimize
from capital_allocation.solver import BinaryProgramSolver, empty_solver_result

SCENARIO_RECORDS = [
    {"id": "A", "cost": 100, "expected_benefit": 50},
    {"id": "B", "cost": 200, "expected_benefit": 90},
    {"id": "C", "cost": 50, "expected_benefit": 40, "mandatory": True},
]

SWEEP_BUDGETS = [30_000, 100_000, 200_000, 300_000, 400_000, 600_000]


def broken_factory():
    raise OSError("solver executable missing")


def infeasible_solver(constraint_set, objective):
    return empty_solver_result("Infeasible", "stub")


class TestOptimize:
    def test_scenario_optimum(self, scenario_candidates):
        result = optimize(scenario_candidates, build(scenario_candidates, 250))
        assert result.selected_ids == ("B", "C")
        assert result.total_cost == pytest.approx(250.0)
        assert result.total_benefit == pytest.approx(130.0)
        assert result.feasible
        assert result.method == METHOD_LP
        assert result.status == "Optimal"
        assert result.mandatory_ids == ("C",)
        assert result.message == ""

    def test_budget_utilization(self, scenario_candidates):
        result = optimize(scenario_candidates, build(scenario_candidates, 500))
        assert result.total_cost == pytest.approx(350.0)
        assert result.budget_utilization == pytest.approx(70.0)

    def test_mandatory_over_budget(self, scenario_candidates, caplog):
        with caplog.at_level(logging.WARNING, logger="capital_allocation.optimizer"):
            result = optimize(scenario_candidates, build(scenario_candidates, 0))
        assert not result.feasible
        assert result.selected_ids == ("C",)
        assert result.status == "Infeasible"
        assert "C (50.00)" in result.message
        assert "mandatory-only" in caplog.text

    def test_exclusion_removes_dependents(self, sample_candidates):
        options = OptimizeOptions(excluded_ids=frozenset({"hvac"}))
        result = optimize(sample_candidates, build(sample_candidates, 1_000_000, options))
        assert result.selected_ids == ("roof", "windows", "fire_alarm", "paving")

    def test_phasing_cap(self, sample_candidates):
        options = OptimizeOptions(max_per_period=1)
        result = optimize(sample_candidates, build(sample_candidates, 1_000_000, options))
        assert result.selected_ids == ("windows", "fire_alarm", "paving")

    def test_project_count_cap(self, sample_candidates):
        options = OptimizeOptions(max_projects=2)
        result = optimize(sample_candidates, build(sample_candidates, 1_000_000, options))
        assert len(result.selected_ids) == 2
        assert "fire_alarm" in result.selected_ids
        assert "hvac" in result.selected_ids

    def test_priority_objective(self, sample_candidates):
        result = optimize(sample_candidates, build(sample_candidates, 150_000), objective="priority")
        assert result.selected_ids == ("roof", "fire_alarm")
        assert result.objective == "priority"
        assert result.objective_value == pytest.approx(18.0)

    def test_idempotent(self, sample_candidates):
        cs = build(sample_candidates, 300_000)
        assert optimize(sample_candidates, cs) == optimize(sample_candidates, cs)

    def test_unknown_objective(self, scenario_candidates):
        with pytest.raises(ValueError, match="objective"):
            optimize(scenario_candidates, build(scenario_candidates, 250), objective="risk")

    def test_mismatched_candidates(self, scenario_candidates, sample_candidates):
        with pytest.raises(ValueError, match="do not match"):
            optimize(scenario_candidates, build(sample_candidates, 250))


class TestOptimizeProperties:
    @pytest.mark.parametrize("budget", SWEEP_BUDGETS)
    def test_within_budget(self, sample_candidates, budget):
        result = optimize(sample_candidates, build(sample_candidates, budget))
        if result.feasible:
            assert result.total_cost <= budget

    @pytest.mark.parametrize("budget", SWEEP_BUDGETS)
    def test_mandatory_always_selected(self, sample_candidates, budget):
        result = optimize(sample_candidates, build(sample_candidates, budget))
        assert "fire_alarm" in result.selected_ids

    @pytest.mark.parametrize("budget", SWEEP_BUDGETS)
    def test_dependencies_closed(self, sample_candidates, budget):
        result = optimize(sample_candidates, build(sample_candidates, budget))
        by_id = {c.id: c for c in sample_candidates}
        for cid in result.selected_ids:
            assert by_id[cid].depends_on <= set(result.selected_ids)

    def test_benefit_monotone_in_budget(self, sample_candidates):
        benefits = [optimize(sample_candidates, build(sample_candidates, b)).total_benefit for b in SWEEP_BUDGETS]
        assert benefits == sorted(benefits)

    def test_infeasible_below_mandatory_cost(self, sample_candidates):
        assert not optimize(sample_candidates, build(sample_candidates, 29_999.99)).feasible


class TestFallback:
    def test_failing_solver_falls_back_to_greedy(self, scenario_candidates, failing_solver, caplog):
        with caplog.at_level(logging.WARNING, logger="capital_allocation.optimizer"):
            result = optimize(scenario_candidates, build(scenario_candidates, 250), solver=failing_solver)
        assert failing_solver.calls == 1
        assert result.method == METHOD_GREEDY_FALLBACK
        assert result.selected_ids == ("A", "C")
        assert result.feasible
        assert result.status == "Heuristic"
        assert "injected failure" in result.message
        assert "falling back" in caplog.text

    def test_broken_backend_falls_back(self, scenario_candidates):
        solver = BinaryProgramSolver(solver_factory=broken_factory)
        result = optimize(scenario_candidates, build(scenario_candidates, 250), solver=solver)
        assert result.method == METHOD_GREEDY_FALLBACK
        assert "solver executable missing" in result.message

    def test_fallback_respects_constraints(self, sample_candidates, failing_solver):
        cs = build(sample_candidates, 400_000, OptimizeOptions(max_per_period=1))
        result = optimize(sample_candidates, cs, solver=failing_solver)
        decision = [cid for cid in result.selected_ids if cid in cs.decision_ids]
        assert cs.violations(decision) == []

    def test_infeasible_set_skips_solver(self, scenario_candidates, failing_solver):
        result = optimize(scenario_candidates, build(scenario_candidates, 0), solver=failing_solver)
        assert failing_solver.calls == 0
        assert result.method == METHOD_LP

    def test_solver_reported_infeasible(self, scenario_candidates):
        result = optimize(scenario_candidates, build(scenario_candidates, 250), solver=infeasible_solver)
        assert not result.feasible
        assert result.selected_ids == ("C",)
        assert result.status == "Infeasible"


class TestAllocate:
    def test_end_to_end(self):
        result = allocate(SCENARIO_RECORDS, 250)
        assert result.selected_ids == ("B", "C")

    def test_options_applied(self):
        result = allocate(SCENARIO_RECORDS, 250, OptimizeOptions(excluded_ids=frozenset({"B"})))
        assert result.selected_ids == ("A", "C")

    def test_candidate_ceiling(self):
        with pytest.raises(ValueError, match="ceiling"):
            allocate(SCENARIO_RECORDS, 250, settings=AllocationSettings(max_candidates=2))

    def test_solver_override(self, failing_solver):
        result = allocate(SCENARIO_RECORDS, 250, solver=failing_solver)
        assert result.method == METHOD_GREEDY_FALLBACK
