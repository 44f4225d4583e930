"""
rrt_planning/rrt_star.py - RRT*（渐近最优）

在基础 RRT 的基础上：
1. choose-parent：在邻域内选 cost + 距离最小且边无碰撞的父节点
2. rewire：邻域内经新节点代价更低的节点改挂到新节点下，
   代价改进量由 SearchTree.rewire 传播到整棵子树
3. 记录所有落入目标容差的节点，每轮重新选出代价最低者

邻域半径::

    shrinking:  r_n = min(r_max, gamma * (log(n)/n)^(1/d))
    fixed:      r_n = r_max

r_max = min(rewire_radius, step_size)，保证树上每条边都不超过步长。
"""

import logging
import math
import time
from typing import Any, List, Optional

import numpy as np

from .base import BasePlanner
from .models import PlanningResult, PlanningStatus
from .tree import SearchTree

logger = logging.getLogger(__name__)


def rewiring_radius(
    ndim: int,
    n_nodes: int,
    gamma: Optional[float] = None,
    volume: Optional[float] = None,
) -> float:
    """RRT* 的搜索半径 r_n = gamma * (log(n)/n)^(1/d)

    gamma 未给出时按 Karaman & Frazzoli 的下界取值：
    gamma > (2 (1 + 1/d))^(1/d) * (mu(X_free) / zeta_d)^(1/d)，
    mu 为空间测度（未知时取 1），zeta_d 为 d 维单位球体积。
    """
    if gamma is None:
        unit_ball = math.pi ** (ndim / 2.0) / math.gamma(ndim / 2.0 + 1.0)
        mu = volume if volume is not None and volume > 0 else 1.0
        gamma = (2.0 * (1.0 + 1.0 / ndim)) ** (1.0 / ndim) \
            * (mu / unit_ball) ** (1.0 / ndim)
    if n_nodes < 2:
        return float('inf')
    return gamma * (math.log(n_nodes) / n_nodes) ** (1.0 / ndim)


class RRTStarPlanner(BasePlanner):
    """RRT*

    ``return_on_first_found=True`` 时找到第一条路径立即返回，
    否则一直迭代到预算耗尽，返回期间找到的最优路径（status=FOUND）。
    """

    @property
    def name(self) -> str:
        return "RRT*"

    def rewire_radius(self, n_nodes: int) -> float:
        """当前树规模下的邻域半径"""
        r_max = min(self.config.effective_rewire_radius, self.config.step_size)
        if self.config.rewire_radius_policy == 'fixed':
            return r_max
        r = rewiring_radius(self.space.ndim, n_nodes,
                            gamma=self.config.rewire_gamma,
                            volume=self.space.volume)
        return min(r_max, r)

    def _plan_impl(
        self,
        start: Any,
        goal: Any,
        rng: np.random.Generator,
        t0: float,
    ) -> PlanningResult:
        tree = self._new_tree(start)
        goal_handles: List[int] = []
        best_handle: Optional[int] = None
        best_cost = float('inf')
        cost_history: List[float] = []
        first_sol_t = float('nan')
        iteration = 0

        while True:
            status = self._budget_status(iteration, t0)
            if status is not None:
                break
            iteration += 1
            self._log_progress(iteration, len(tree))

            target = self._sample_target(goal, rng)
            nearest = tree.nearest(target)
            near_state = tree.state(nearest)
            new_state = self._steer(near_state, target)
            if new_state is None:
                continue
            if not self._edge_free(near_state, new_state):
                continue

            new_handle = self._insert(tree, nearest, new_state)

            if self.space.is_goal(new_state, goal, self.config.goal_tolerance):
                goal_handles.append(new_handle)

            if goal_handles:
                cand = min(goal_handles, key=lambda h: (tree.cost(h), h))
                cand_cost = tree.cost(cand)
                if cand_cost < best_cost:
                    if best_handle is None:
                        first_sol_t = time.perf_counter() - t0
                        logger.info("RRT*: 首次找到解，代价 %.4f，迭代 %d",
                                    cand_cost, iteration)
                    best_cost = cand_cost
                    cost_history.append(cand_cost)
                best_handle = cand

                if self.config.return_on_first_found:
                    status = PlanningStatus.FOUND
                    break

        if best_handle is None:
            return self._make_result(status, [tree], iteration, t0)

        path = self.extractor.extract(tree, best_handle)
        result = self._make_result(
            PlanningStatus.FOUND, [tree], iteration, t0,
            path=path, cost=tree.cost(best_handle))
        result.first_solution_time = first_sol_t
        result.cost_history = cost_history
        result.metadata["budget_status"] = status.value
        return result

    def _insert(self, tree: SearchTree, nearest: int, new_state: Any) -> int:
        """choose-parent + 插入 + rewire，返回新节点 handle"""
        r = self.rewire_radius(len(tree))
        neighbors = tree.near(new_state, r)

        best_parent = nearest
        best_edge = self.space.distance(tree.state(nearest), new_state)
        best_total = tree.cost(nearest) + best_edge
        for nb in neighbors:
            if nb == nearest:
                continue
            d = self.space.distance(tree.state(nb), new_state)
            c = tree.cost(nb) + d
            if c < best_total and self._edge_free(tree.state(nb), new_state):
                best_parent, best_edge, best_total = nb, d, c

        new_handle = tree.extend(best_parent, new_state, best_edge)

        n_rewired = 0
        for nb in neighbors:
            if nb == best_parent:
                continue
            d = self.space.distance(new_state, tree.state(nb))
            if tree.cost(new_handle) + d < tree.cost(nb) \
                    and self._edge_free(new_state, tree.state(nb)):
                if tree.rewire(nb, new_handle, d):
                    n_rewired += 1
        if n_rewired:
            logger.debug("RRT*: 节点 %d 触发 %d 次 rewire", new_handle, n_rewired)
        return new_handle
