"""Unit tests for budget sensitivity analysis."""

import pytest

from capital_allocation.config import AllocationSettings, OptimizeOptions
from capital_allocation.models import METHOD_GREEDY_FALLBACK
from capital_allocation.sensitivity import (
    analyze_sensitivity,
    budget_levels,
    find_inflection_points,
    summarize_sensitivity,
)


class TestBudgetLevels:
    def test_default_levels(self):
        levels = budget_levels()
        assert len(levels) == 11
        assert levels[0] == pytest.approx(0.5)
        assert levels[5] == pytest.approx(1.0)
        assert levels[-1] == pytest.approx(1.5)

    def test_custom_range(self):
        assert budget_levels(20, 4) == (0.8, 0.9, 1.0, 1.1, 1.2)

    def test_zero_range(self):
        assert budget_levels(0, 2) == (1.0, 1.0, 1.0)

    @pytest.mark.parametrize("range_percent, steps", [(-1, 10), (100, 10), (50, 0)])
    def test_invalid_arguments(self, range_percent, steps):
        with pytest.raises(ValueError):
            budget_levels(range_percent, steps)


class TestAnalyzeSensitivity:
    def test_default_levels_and_budgets(self, scenario_candidates):
        points = analyze_sensitivity(scenario_candidates, 250)
        assert [p.level for p in points] == [0.8, 0.9, 1.0, 1.1, 1.2]
        assert [p.budget for p in points] == [200.0, 225.0, 250.0, 275.0, 300.0]

    def test_selection_per_level(self, scenario_candidates):
        points = analyze_sensitivity(scenario_candidates, 250)
        assert [p.result.selected_ids for p in points] == [
            ("A", "C"),
            ("A", "C"),
            ("B", "C"),
            ("B", "C"),
            ("B", "C"),
        ]

    def test_levels_from_options(self, scenario_candidates):
        points = analyze_sensitivity(scenario_candidates, 100, options=OptimizeOptions(levels=(1.0, 2.0)))
        assert [p.budget for p in points] == [100.0, 200.0]

    def test_explicit_levels_keep_order(self, scenario_candidates):
        points = analyze_sensitivity(scenario_candidates, 100, levels=[3.0, 1.0])
        assert [p.level for p in points] == [3.0, 1.0]

    def test_infeasible_level_reported(self, scenario_candidates):
        points = analyze_sensitivity(scenario_candidates, 100, levels=[0.1, 1.0])
        assert not points[0].result.feasible
        assert points[1].result.feasible

    def test_empty_levels(self, scenario_candidates):
        assert analyze_sensitivity(scenario_candidates, 250, levels=[]) == []

    def test_budgets_rounded_to_cents(self, scenario_candidates):
        points = analyze_sensitivity(scenario_candidates, 100.005, levels=[1.0])
        assert points[0].budget == 100.01

    def test_parallel_matches_serial(self, sample_candidates):
        serial = analyze_sensitivity(sample_candidates, 300_000)
        parallel = analyze_sensitivity(sample_candidates, 300_000, settings=AllocationSettings(max_workers=4))
        assert parallel == serial

    def test_fallback_per_level(self, scenario_candidates, failing_solver):
        points = analyze_sensitivity(scenario_candidates, 250, solver=failing_solver)
        assert failing_solver.calls == 5
        assert all(p.result.method == METHOD_GREEDY_FALLBACK for p in points)

    def test_negative_base_budget(self, scenario_candidates):
        with pytest.raises(ValueError, match="base_budget"):
            analyze_sensitivity(scenario_candidates, -1)

    def test_non_positive_level(self, scenario_candidates):
        with pytest.raises(ValueError, match="positive"):
            analyze_sensitivity(scenario_candidates, 250, levels=[1.0, 0.0])

    def test_candidate_ceiling(self, scenario_candidates):
        with pytest.raises(ValueError, match="ceiling"):
            analyze_sensitivity(scenario_candidates, 250, settings=AllocationSettings(max_candidates=1))


class TestSummarizeSensitivity:
    @pytest.fixture()
    def summary(self, scenario_candidates):
        return summarize_sensitivity(analyze_sensitivity(scenario_candidates, 250))

    def test_marginal_benefit(self, summary):
        assert summary.marginal_benefit == pytest.approx((90.0, 0.0, 40.0, 0.0, 0.0))

    def test_roi(self, summary):
        assert summary.roi == pytest.approx((45.0, 40.0, 52.0, 130 / 275 * 100, 130 / 300 * 100))

    def test_optimal_budget(self, summary):
        assert summary.optimal_budget == 250.0

    def test_inflection_levels(self, summary):
        assert summary.inflection_levels == (1.0,)

    def test_diminishing_returns(self, summary):
        assert summary.diminishing_returns_budget == 225.0

    def test_find_inflection_points_matches(self, summary):
        assert find_inflection_points(list(summary.points)) == list(summary.inflection_levels)

    def test_empty_sweep(self):
        summary = summarize_sensitivity([])
        assert summary.points == ()
        assert summary.optimal_budget is None
        assert summary.diminishing_returns_budget is None
        assert summary.inflection_levels == ()
