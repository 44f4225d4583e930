"""
rrt_planning/rrt_connect.py - RRT-Connect（双向）

两棵树分别以起点 / 终点为根。每次迭代：
1. active 树朝随机采样生长一步
2. passive 树从最近节点出发反复朝新节点 steer，直到被阻挡（失败）
   或到达新节点（成功）
3. 交换 active / passive

连接成功后，起点树 根 → 连接点 与 终点树 连接点 → 根 拼接为完整路径。
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from .base import BasePlanner
from .models import PlanningResult, PlanningStatus
from .tree import SearchTree

logger = logging.getLogger(__name__)


@dataclass
class _TreePair:
    """双向搜索的交替状态"""
    start_tree: SearchTree
    goal_tree: SearchTree
    swapped: bool = False

    @property
    def active(self) -> SearchTree:
        return self.goal_tree if self.swapped else self.start_tree

    @property
    def passive(self) -> SearchTree:
        return self.start_tree if self.swapped else self.goal_tree

    def swap(self) -> None:
        self.swapped = not self.swapped


class RRTConnectPlanner(BasePlanner):
    """RRT-Connect

    不使用 goal_bias；连接判定使用 ``config.connect_tolerance``。
    """

    @property
    def name(self) -> str:
        return "RRTConnect"

    def _plan_impl(
        self,
        start: Any,
        goal: Any,
        rng: np.random.Generator,
        t0: float,
    ) -> PlanningResult:
        pair = _TreePair(self._new_tree(start), self._new_tree(goal))
        trees = [pair.start_tree, pair.goal_tree]
        iteration = 0

        while True:
            status = self._budget_status(iteration, t0)
            if status is not None:
                return self._make_result(status, trees, iteration, t0)
            iteration += 1
            self._log_progress(iteration, len(trees[0]) + len(trees[1]))

            active, passive = pair.active, pair.passive
            new_handle = self._extend_toward(active, self.space.sample())
            if new_handle is not None:
                reached = self._connect(passive, active.state(new_handle))
                if reached is not None:
                    if pair.swapped:
                        start_handle, goal_handle = reached, new_handle
                    else:
                        start_handle, goal_handle = new_handle, reached
                    path = self.extractor.join(pair.start_tree, start_handle,
                                               pair.goal_tree, goal_handle)
                    cost = (pair.start_tree.cost(start_handle)
                            + pair.goal_tree.cost(goal_handle)
                            + self.space.distance(
                                pair.start_tree.state(start_handle),
                                pair.goal_tree.state(goal_handle)))
                    result = self._make_result(
                        PlanningStatus.FOUND, trees, iteration, t0,
                        path=path, cost=cost)
                    result.first_solution_time = result.computation_time
                    result.cost_history = [cost]
                    logger.debug("RRTConnect: 两树在迭代 %d 连通", iteration)
                    return result

            pair.swap()

    def _connect(self, tree: SearchTree, target: Any) -> Optional[int]:
        """tree 反复朝 target 生长，到达（容差内）时返回最后插入或已有的节点

        被阻挡、无法 steer 或不再前进时返回 None。
        """
        tol = self.config.connect_tolerance
        current = tree.nearest(target)
        while True:
            cur_state = tree.state(current)
            gap = self.space.distance(cur_state, target)
            if gap <= tol:
                if (self.space.states_equal(cur_state, target)
                        or self._edge_free(cur_state, target)):
                    return current
                return None

            new_state = self._steer(cur_state, target)
            if new_state is None:
                return None
            if not self._edge_free(cur_state, new_state):
                return None
            if self.space.distance(new_state, target) >= gap:
                return None
            current = tree.extend(current, new_state,
                                  self.space.distance(cur_state, new_state))
