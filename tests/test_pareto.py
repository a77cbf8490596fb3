"""Unit tests for the Pareto frontier."""

import pytest

from capital_allocation.candidates import normalize
from capital_allocation.config import AllocationSettings, OptimizeOptions
from capital_allocation.models import ParetoPoint
from capital_allocation.pareto import non_dominated, pareto_frontier


def _pairs(frontier):
    return [(p.total_cost, pytest.approx(p.total_benefit)) for p in frontier]


class TestNonDominated:
    def test_dominated_point_removed(self):
        points = [
            ParetoPoint(total_cost=100, total_benefit=10, selected_ids=("a",)),
            ParetoPoint(total_cost=150, total_benefit=8, selected_ids=("b",)),
            ParetoPoint(total_cost=200, total_benefit=20, selected_ids=("a", "b")),
        ]
        assert [p.selected_ids for p in non_dominated(points)] == [("a",), ("a", "b")]

    def test_ties_collapse_to_fewest_ids(self):
        points = [
            ParetoPoint(total_cost=100, total_benefit=10, selected_ids=("a", "b")),
            ParetoPoint(total_cost=100, total_benefit=10, selected_ids=("c",)),
        ]
        assert non_dominated(points) == [points[1]]

    def test_sorted_by_cost(self):
        points = [
            ParetoPoint(total_cost=300, total_benefit=30, selected_ids=("c",)),
            ParetoPoint(total_cost=100, total_benefit=10, selected_ids=("a",)),
        ]
        assert [p.total_cost for p in non_dominated(points)] == [100, 300]

    def test_empty(self):
        assert non_dominated([]) == []


class TestParetoPoint:
    def test_dominates(self):
        cheap = ParetoPoint(total_cost=100, total_benefit=10, selected_ids=("a",))
        worse = ParetoPoint(total_cost=120, total_benefit=10, selected_ids=("b",))
        assert cheap.dominates(worse)
        assert not worse.dominates(cheap)

    def test_equal_points_do_not_dominate(self):
        point = ParetoPoint(total_cost=100, total_benefit=10, selected_ids=("a",))
        assert not point.dominates(point)


class TestParetoFrontier:
    def test_enumeration(self, scenario_candidates):
        frontier = pareto_frontier(scenario_candidates)
        assert _pairs(frontier) == [(50.0, 40.0), (150.0, 90.0), (250.0, 130.0), (350.0, 180.0)]
        assert [p.selected_ids for p in frontier] == [("C",), ("A", "C"), ("B", "C"), ("A", "B", "C")]

    def test_budget_sweep(self, scenario_candidates):
        frontier = pareto_frontier(scenario_candidates, budget_sweep=[0, 100, 250])
        assert _pairs(frontier) == [(50.0, 40.0), (250.0, 130.0)]

    def test_ranked_breakpoints_when_over_cap(self, scenario_candidates):
        frontier = pareto_frontier(scenario_candidates, settings=AllocationSettings(pareto_enumeration_cap=0))
        assert _pairs(frontier) == [(50.0, 40.0), (150.0, 90.0), (350.0, 180.0)]

    def test_every_point_includes_mandatory(self, sample_candidates):
        for point in pareto_frontier(sample_candidates):
            assert "fire_alarm" in point.selected_ids

    def test_benefit_strictly_increases(self, sample_candidates):
        frontier = pareto_frontier(sample_candidates)
        for previous, current in zip(frontier, frontier[1:]):
            assert current.total_cost > previous.total_cost
            assert current.total_benefit > previous.total_benefit

    def test_dependencies_respected(self, sample_candidates):
        for point in pareto_frontier(sample_candidates):
            if "controls" in point.selected_ids:
                assert "hvac" in point.selected_ids

    def test_enumeration_matches_exhaustive_sweep(self, sample_candidates):
        enumerated = pareto_frontier(sample_candidates)
        budgets = sorted({p.total_cost for p in enumerated})
        swept = pareto_frontier(sample_candidates, budget_sweep=budgets)
        assert [(p.total_cost, p.total_benefit) for p in swept] == [(p.total_cost, p.total_benefit) for p in enumerated]

    def test_options_applied(self, sample_candidates):
        options = OptimizeOptions(excluded_ids=frozenset({"hvac"}))
        for point in pareto_frontier(sample_candidates, options=options):
            assert "hvac" not in point.selected_ids
            assert "controls" not in point.selected_ids

    def test_unfundable_mandatory_gives_empty_frontier(self, scenario_candidates):
        assert pareto_frontier(scenario_candidates, options=OptimizeOptions(max_projects=0)) == []

    def test_zero_benefit_candidates_do_not_add_points(self):
        candidates = normalize(
            [
                {"id": "useful", "cost": 10, "expected_benefit": 5},
                {"id": "useless", "cost": 5, "expected_benefit": 0},
            ]
        )
        frontier = pareto_frontier(candidates)
        assert [p.selected_ids for p in frontier] == [(), ("useful",)]
