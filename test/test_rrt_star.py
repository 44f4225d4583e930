"""test/test_rrt_star.py - RRT* 测试"""
import math

import numpy as np
import pytest

from rrt_planning.exceptions import InvalidStartOrGoal
from rrt_planning.models import PlannerConfig, PlanningStatus
from rrt_planning.rrt_star import RRTStarPlanner, rewiring_radius
from rrt_planning.scene import SceneSpace

from conftest import GOAL, START, WORLD_BOUNDS, assert_same_trees


def _chain_cost(space, tree, handle):
    total = 0.0
    cur = handle
    while tree.parent(cur) is not None:
        p = tree.parent(cur)
        total += space.distance(tree.state(p), tree.state(cur))
        cur = p
    return total


class TestRewiringRadius:

    def test_single_node_is_unbounded(self):
        assert rewiring_radius(2, 1) == math.inf

    def test_shrinks_with_n(self):
        r_small = rewiring_radius(2, 100, volume=1e4)
        r_large = rewiring_radius(2, 10000, volume=1e4)
        assert r_large < r_small

    def test_explicit_gamma(self):
        r = rewiring_radius(2, 100, gamma=10.0)
        assert r == pytest.approx(10.0 * math.sqrt(math.log(100) / 100))

    def test_volume_scales_gamma(self):
        assert rewiring_radius(3, 50, volume=8.0) == pytest.approx(
            2.0 * rewiring_radius(3, 50, volume=1.0))

    def test_planner_radius_capped(self, empty_space):
        planner = RRTStarPlanner(empty_space, PlannerConfig(step_size=5.0))
        for n in (1, 2, 10, 1000, 100000):
            assert planner.rewire_radius(n) <= 5.0

    def test_fixed_policy(self, empty_space):
        cfg = PlannerConfig(step_size=5.0, rewire_radius_policy='fixed',
                            rewire_radius=3.0)
        planner = RRTStarPlanner(empty_space, cfg)
        assert planner.rewire_radius(10) == 3.0
        assert planner.rewire_radius(100000) == 3.0


class TestRRTStarEndToEnd:

    @pytest.fixture
    def star_result(self, empty_space):
        cfg = PlannerConfig(step_size=5.0, max_iterations=2000,
                            goal_tolerance=5.0, seed=0)
        return empty_space, RRTStarPlanner(empty_space, cfg).plan(START, GOAL)

    def test_open_world_found(self, empty_space, e2e_config):
        result = RRTStarPlanner(empty_space, e2e_config).plan(START, GOAL)
        assert result.success
        path = result.path
        np.testing.assert_array_equal(path[0], START)
        for a, b in zip(path[:-1], path[1:]):
            assert empty_space.distance(a, b) <= 5.0 + 1e-9
            assert empty_space.is_edge_free(a, b)
        assert empty_space.distance(path[-1], GOAL) <= 5.0

    def test_runs_full_budget(self, star_result):
        _, result = star_result
        assert result.status is PlanningStatus.FOUND
        assert result.n_iterations == 2000
        assert result.metadata["budget_status"] == "iteration_budget_exhausted"

    def test_cost_history_non_increasing(self, star_result):
        _, result = star_result
        history = result.cost_history
        assert len(history) >= 1
        assert all(b <= a for a, b in zip(history[:-1], history[1:]))
        assert result.cost == pytest.approx(history[-1])

    def test_cost_near_straight_line(self, star_result):
        _, result = star_result
        straight = np.linalg.norm(GOAL - START)
        assert result.cost >= straight - 5.0
        assert result.cost < 1.5 * straight

    def test_tree_costs_consistent(self, star_result):
        space, result = star_result
        tree = result.trees[0]
        for h in tree.handles():
            assert tree.cost(h) == pytest.approx(_chain_cost(space, tree, h))

    def test_tree_edges_within_step(self, star_result):
        space, result = star_result
        for a, b in result.trees[0].edges():
            assert space.distance(a, b) <= 5.0 + 1e-9

    def test_first_solution_time(self, star_result):
        _, result = star_result
        assert 0.0 <= result.first_solution_time <= result.computation_time


class TestRRTStarOptions:

    def test_return_on_first_found(self, empty_space):
        cfg = PlannerConfig(step_size=5.0, max_iterations=5000,
                            goal_tolerance=5.0, return_on_first_found=True,
                            seed=0)
        result = RRTStarPlanner(empty_space, cfg).plan(START, GOAL)
        assert result.success
        assert result.n_iterations < 5000
        assert len(result.cost_history) == 1

    def test_fixed_radius_found(self, empty_space):
        cfg = PlannerConfig(step_size=5.0, max_iterations=1500,
                            goal_tolerance=5.0, rewire_radius_policy='fixed',
                            seed=1)
        result = RRTStarPlanner(empty_space, cfg).plan(START, GOAL)
        assert result.success

    def test_wall_never_found(self, wall_space):
        cfg = PlannerConfig(step_size=5.0, max_iterations=1000, seed=0)
        result = RRTStarPlanner(wall_space, cfg).plan(START, GOAL)
        assert not result.success
        assert result.status is PlanningStatus.ITERATION_BUDGET_EXHAUSTED
        assert result.cost_history == []

    def test_invalid_start(self, counting_wall_space):
        planner = RRTStarPlanner(counting_wall_space, PlannerConfig(step_size=5.0))
        with pytest.raises(InvalidStartOrGoal):
            planner.plan(np.array([50.0, 50.0]), GOAL)
        assert counting_wall_space.calls["sample"] == 0

    def test_deterministic(self):
        cfg = PlannerConfig(step_size=5.0, max_iterations=800,
                            goal_tolerance=5.0, seed=5)
        r1 = RRTStarPlanner(SceneSpace(WORLD_BOUNDS, seed=2), cfg).plan(START, GOAL)
        r2 = RRTStarPlanner(SceneSpace(WORLD_BOUNDS, seed=2), cfg).plan(START, GOAL)
        assert r1.success == r2.success
        assert r1.cost == r2.cost
        assert r1.cost_history == r2.cost_history
        assert len(r1.path) == len(r2.path)
        for a, b in zip(r1.path, r2.path):
            np.testing.assert_array_equal(a, b)
        assert_same_trees(r1.trees, r2.trees)

    def test_shortcut_cost_matches_history(self, empty_space):
        cfg = PlannerConfig(step_size=5.0, max_iterations=800,
                            goal_tolerance=5.0, path_shortcut_iters=200,
                            seed=0)
        result = RRTStarPlanner(empty_space, cfg).plan(START, GOAL)
        assert result.success
        assert result.cost <= result.metadata["raw_path_length"] + 1e-9
        assert result.cost_history[-1] == pytest.approx(result.cost)
        history = result.cost_history
        assert all(b <= a + 1e-9 for a, b in zip(history, history[1:]))
