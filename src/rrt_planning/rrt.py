"""
rrt_planning/rrt.py - 基础 RRT（单树，朝目标生长）

每次迭代：采样（以 goal_bias 概率直接取目标）→ 最近邻 → steer →
边检测 → 插入 → 目标检测。新节点落入 goal_tolerance 即返回。
"""

import logging
from typing import Any

import numpy as np

from .base import BasePlanner
from .models import PlanningResult, PlanningStatus

logger = logging.getLogger(__name__)


class RRTPlanner(BasePlanner):
    """基础 RRT

    Example:
        >>> planner = RRTPlanner(space, PlannerConfig(step_size=5.0, seed=0))
        >>> result = planner.plan(np.array([1.0, 1.0]), np.array([99.0, 99.0]))
    """

    @property
    def name(self) -> str:
        return "RRT"

    def _plan_impl(
        self,
        start: Any,
        goal: Any,
        rng: np.random.Generator,
        t0: float,
    ) -> PlanningResult:
        tree = self._new_tree(start)
        iteration = 0

        while True:
            status = self._budget_status(iteration, t0)
            if status is not None:
                return self._make_result(status, [tree], iteration, t0)
            iteration += 1
            self._log_progress(iteration, len(tree))

            target = self._sample_target(goal, rng)
            handle = self._extend_toward(tree, target)
            if handle is None:
                continue

            if self.space.is_goal(tree.state(handle), goal,
                                  self.config.goal_tolerance):
                path = self.extractor.extract(tree, handle)
                result = self._make_result(
                    PlanningStatus.FOUND, [tree], iteration, t0,
                    path=path, cost=tree.cost(handle))
                result.first_solution_time = result.computation_time
                result.cost_history = [result.cost]
                return result
