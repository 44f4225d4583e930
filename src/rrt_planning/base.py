"""
rrt_planning/base.py - 统一规划器接口

BasePlanner 负责所有变体共享的部分：
- 入口校验（起点 / 终点必须无碰撞，否则抛 InvalidStartOrGoal）
- 迭代 / 墙钟预算检查（每次迭代开始时，协作式取消）
- 单步 extend（nearest → steer → 碰撞检测 → 插入）
- 结果组装、可选的 shortcut 后处理、日志

生命周期::

    planner = RRTPlanner(space, PlannerConfig(step_size=5.0))
    result = planner.plan(start, goal)
    if result.success:
        ...
"""

import abc
import logging
import time
from typing import Any, List, Optional

import numpy as np

from .exceptions import DisconnectedPathError, InvalidStartOrGoal
from .models import PlannerConfig, PlanningResult, PlanningStatus
from .path_extractor import PathExtractor
from .path_smoother import PathSmoother, compute_path_length
from .space import ConfigurationSpace
from .tree import SearchTree

logger = logging.getLogger(__name__)

_PROGRESS_EVERY = 500


class BasePlanner(abc.ABC):
    """所有 RRT 变体的基类

    一个实例可以反复调用 ``plan()``，每次调用都新建自己的树，
    调用之间不共享可变状态。实例本身不是线程安全的。

    Args:
        space: 配置空间 oracle
        config: 规划参数（默认 PlannerConfig()）
    """

    def __init__(
        self,
        space: ConfigurationSpace,
        config: Optional[PlannerConfig] = None,
    ) -> None:
        self.space = space
        self.config = config or PlannerConfig()
        self.extractor = PathExtractor(space, self.config.step_size)
        self.smoother = PathSmoother(space, self.config.step_size)
        self._n_collision_checks = 0
        self._n_skipped = 0

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """算法名称（用于日志 / 报告）"""

    def plan(self, start: Any, goal: Any) -> PlanningResult:
        """执行规划

        Args:
            start: 起始状态
            goal: 目标状态

        Returns:
            PlanningResult；预算耗尽时 success=False，不抛异常

        Raises:
            InvalidStartOrGoal: 起点或终点不在自由空间中（不执行任何迭代）
        """
        self._check_endpoints(start, goal)

        t0 = time.perf_counter()
        rng = np.random.default_rng(self.config.seed)
        self._n_collision_checks = 0
        self._n_skipped = 0

        if self.space.is_goal(start, goal, self.config.goal_tolerance):
            result = self._make_result(
                PlanningStatus.FOUND, [self._new_tree(start)], 0, t0,
                path=[start], cost=0.0,
                message="起点已在目标容差内")
            result.first_solution_time = result.computation_time
        else:
            result = self._plan_impl(start, goal, rng, t0)

        if result.success and self.config.path_shortcut_iters > 0:
            self._shortcut(result)

        result.computation_time = time.perf_counter() - t0
        if result.success:
            logger.info("%s: 找到路径，%d 个点，代价 %.4f，%d 次迭代，%d 个节点，%.3fs",
                        self.name, result.n_waypoints, result.cost,
                        result.n_iterations, result.n_nodes,
                        result.computation_time)
        else:
            logger.warning("%s: %s（%d 次迭代，%d 个节点，%.3fs）",
                           self.name, result.message, result.n_iterations,
                           result.n_nodes, result.computation_time)
        return result

    @abc.abstractmethod
    def _plan_impl(
        self,
        start: Any,
        goal: Any,
        rng: np.random.Generator,
        t0: float,
    ) -> PlanningResult:
        """plan() 的实际搜索循环（入口校验之后调用）"""

    # ── 共享步骤 ──

    def _check_endpoints(self, start: Any, goal: Any) -> None:
        if not self.space.is_state_free(start):
            logger.error("%s: 起始状态存在碰撞: %r", self.name, start)
            raise InvalidStartOrGoal(f"起始状态存在碰撞: {start!r}")
        if not self.space.is_state_free(goal):
            logger.error("%s: 目标状态存在碰撞: %r", self.name, goal)
            raise InvalidStartOrGoal(f"目标状态存在碰撞: {goal!r}")

    def _new_tree(self, root_state: Any) -> SearchTree:
        return SearchTree(
            root_state,
            distance_fn=self.space.distance,
            coords_fn=self.space.coordinates,
            cell_size=self.config.effective_cell_size,
        )

    def _budget_status(self, iteration: int, t0: float) -> Optional[PlanningStatus]:
        """预算耗尽时返回对应状态，否则返回 None"""
        if iteration >= self.config.max_iterations:
            return PlanningStatus.ITERATION_BUDGET_EXHAUSTED
        if (self.config.time_budget is not None
                and time.perf_counter() - t0 >= self.config.time_budget):
            return PlanningStatus.TIMEOUT
        return None

    def _log_progress(self, iteration: int, n_nodes: int) -> None:
        if self.config.verbose and iteration % _PROGRESS_EVERY == 0:
            logger.info("%s: 迭代 %d，%d 个节点", self.name, iteration, n_nodes)

    def _sample_target(self, goal: Any, rng: np.random.Generator) -> Any:
        if rng.uniform() < self.config.goal_bias:
            return goal
        return self.space.sample()

    def _edge_free(self, a: Any, b: Any) -> bool:
        self._n_collision_checks += 1
        return self.space.is_edge_free(a, b)

    def _steer(self, from_state: Any, toward: Any) -> Optional[Any]:
        """steer 一步；无法前进时返回 None 并计一次跳过"""
        new_state = self.space.steer(from_state, toward, self.config.step_size)
        if new_state is None or self.space.states_equal(new_state, from_state):
            self._n_skipped += 1
            return None
        return new_state

    def _extend_toward(self, tree: SearchTree, target: Any) -> Optional[int]:
        """树朝 target 生长一步，成功时返回新节点 handle"""
        nearest = tree.nearest(target)
        near_state = tree.state(nearest)
        new_state = self._steer(near_state, target)
        if new_state is None:
            return None
        if not self._edge_free(near_state, new_state):
            return None
        return tree.extend(nearest, new_state,
                           self.space.distance(near_state, new_state))

    # ── 结果 ──

    def _make_result(
        self,
        status: PlanningStatus,
        trees: List[SearchTree],
        n_iterations: int,
        t0: float,
        path: Optional[List[Any]] = None,
        cost: float = float('inf'),
        message: str = "",
    ) -> PlanningResult:
        success = status is PlanningStatus.FOUND
        if not message:
            message = {
                PlanningStatus.FOUND: "找到路径",
                PlanningStatus.ITERATION_BUDGET_EXHAUSTED: "迭代次数用尽，未找到路径",
                PlanningStatus.TIMEOUT: "规划超时，未找到路径",
            }[status]
        return PlanningResult(
            success=success,
            status=status,
            path=list(path) if (success and path) else [],
            cost=cost if success else float('inf'),
            n_iterations=n_iterations,
            n_nodes=sum(len(t) for t in trees),
            n_collision_checks=self._n_collision_checks,
            computation_time=time.perf_counter() - t0,
            trees=list(trees),
            message=message,
            metadata={
                "algorithm": self.name,
                "n_skipped": self._n_skipped,
            },
        )

    def _shortcut(self, result: PlanningResult) -> None:
        """shortcut + 重采样；结果路径不满足步长 / 碰撞约束时保留原路径"""
        seed = self.config.seed + 9999 if self.config.seed is not None else None
        raw_length = result.cost
        result.metadata["raw_path_length"] = raw_length
        short = self.smoother.shortcut(
            result.path, max_iters=self.config.path_shortcut_iters,
            rng=np.random.default_rng(seed))
        path = self.smoother.resample(short)
        try:
            self.extractor.validate(path)
        except DisconnectedPathError as e:
            logger.warning("%s: shortcut 后路径无效，保留原始路径 (%s)",
                           self.name, e)
            result.metadata["shortcut_fallback"] = True
            return
        result.path = path
        result.cost = compute_path_length(path, self.space.distance)
        # cost_history 以最终返回的路径代价结尾
        if not result.cost_history or result.cost < result.cost_history[-1]:
            result.cost_history.append(result.cost)
