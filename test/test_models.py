"""
test_models.py — Unit tests for models.py data classes.

Covers:
    - PlannerConfig validation, derived defaults and JSON round trip
    - PlanningResult status helpers and dict export
    - TreeNode root flag
"""

import math

import numpy as np
import pytest

from rrt_planning.exceptions import (
    BudgetExhausted,
    IterationBudgetExhausted,
    PlanningTimeout,
)
from rrt_planning.models import (
    PlannerConfig,
    PlanningResult,
    PlanningStatus,
    TreeNode,
)


class TestPlannerConfig:

    def test_defaults(self):
        cfg = PlannerConfig()
        assert cfg.max_iterations == 5000
        assert cfg.time_budget is None
        assert cfg.rewire_radius_policy == 'shrinking'
        assert not cfg.return_on_first_found

    def test_effective_values_follow_step_size(self):
        cfg = PlannerConfig(step_size=2.5)
        assert cfg.effective_cell_size == pytest.approx(2.5)
        assert cfg.effective_rewire_radius == pytest.approx(2.5)

    def test_explicit_values_override(self):
        cfg = PlannerConfig(step_size=2.5, cell_size=10.0, rewire_radius=1.0)
        assert cfg.effective_cell_size == pytest.approx(10.0)
        assert cfg.effective_rewire_radius == pytest.approx(1.0)

    @pytest.mark.parametrize("kwargs", [
        dict(max_iterations=-1),
        dict(time_budget=-0.5),
        dict(step_size=0.0),
        dict(goal_bias=1.5),
        dict(goal_bias=-0.1),
        dict(goal_tolerance=-1.0),
        dict(rewire_radius_policy='adaptive'),
        dict(rewire_radius=0.0),
        dict(rewire_gamma=-2.0),
        dict(connect_tolerance=-1e-3),
        dict(cell_size=0.0),
        dict(path_shortcut_iters=-5),
    ])
    def test_invalid_values_raise(self, kwargs):
        with pytest.raises(ValueError):
            PlannerConfig(**kwargs)

    def test_to_dict_contains_all_fields(self):
        d = PlannerConfig(step_size=3.0, seed=7).to_dict()
        assert d['step_size'] == 3.0
        assert d['seed'] == 7
        assert 'rewire_radius_policy' in d

    def test_from_dict_ignores_unknown(self):
        cfg = PlannerConfig.from_dict({'step_size': 4.0, 'bogus': 1})
        assert cfg.step_size == 4.0

    def test_json_roundtrip(self, tmp_path):
        cfg = PlannerConfig(step_size=5.0, max_iterations=123, goal_bias=0.2,
                            rewire_radius_policy='fixed', seed=11)
        path = cfg.to_json(tmp_path / "sub" / "cfg.json")
        loaded = PlannerConfig.from_json(path)
        assert loaded == cfg


class TestPlanningResult:

    def test_defaults_are_failure(self):
        r = PlanningResult()
        assert not r.success
        assert r.cost == math.inf
        assert r.n_waypoints == 0
        assert math.isnan(r.first_solution_time)

    def test_raise_for_status_found(self):
        r = PlanningResult(success=True, status=PlanningStatus.FOUND,
                           path=[np.zeros(2)], cost=0.0)
        r.raise_for_status()

    def test_raise_for_status_iterations(self):
        r = PlanningResult(status=PlanningStatus.ITERATION_BUDGET_EXHAUSTED)
        with pytest.raises(IterationBudgetExhausted):
            r.raise_for_status()

    def test_raise_for_status_timeout(self):
        r = PlanningResult(status=PlanningStatus.TIMEOUT)
        with pytest.raises(PlanningTimeout):
            r.raise_for_status()
        assert issubclass(PlanningTimeout, BudgetExhausted)

    def test_to_dict_merges_metadata(self):
        r = PlanningResult(success=True, status=PlanningStatus.FOUND,
                           path=[np.zeros(2), np.ones(2)], cost=1.4,
                           metadata={'algorithm': 'RRT'})
        d = r.to_dict()
        assert d['status'] == 'found'
        assert d['n_waypoints'] == 2
        assert d['algorithm'] == 'RRT'

    def test_path_length(self):
        r = PlanningResult(path=[np.array([0.0, 0.0]), np.array([3.0, 4.0]),
                                 np.array([3.0, 6.0])])
        assert r.path_length() == pytest.approx(7.0)


class TestTreeNode:

    def test_is_root(self):
        assert TreeNode(handle=0, state=np.zeros(2)).is_root
        assert not TreeNode(handle=1, state=np.ones(2), parent=0, cost=1.0).is_root
