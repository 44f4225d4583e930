"""
rrt_planning/space.py - 配置空间 oracle 接口

规划核心只通过 ConfigurationSpace 访问外部世界：采样、距离、steer、
边碰撞检测。核心不关心状态的具体类型，也不关心障碍物如何表示。

EuclideanSpace 是实向量空间上的部分实现：盒约束均匀采样、L2 距离、
直线 steer、等间隔采样的线段检测。子类只需覆写 ``is_state_free``。
"""

from __future__ import annotations

import abc
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

State = Any


class ConfigurationSpace(abc.ABC):
    """配置空间 oracle

    距离必须满足三角不等式，RRT* 的最优性才成立。空间索引按
    ``coordinates()`` 做网格划分，要求 ``distance(a, b)`` 不小于
    两者坐标的欧氏距离（默认实现相等）。
    """

    @property
    @abc.abstractmethod
    def ndim(self) -> int:
        """配置空间维度"""

    @abc.abstractmethod
    def sample(self) -> State:
        """从配置空间采样一个状态（分布由实现决定）"""

    @abc.abstractmethod
    def distance(self, a: State, b: State) -> float:
        """非负度量"""

    @abc.abstractmethod
    def steer(self, from_state: State, toward: State,
              max_step: float) -> Optional[State]:
        """从 from_state 朝 toward 前进至多 max_step

        Returns:
            新状态；无法前进（如两者重合）时返回 None
        """

    @abc.abstractmethod
    def is_edge_free(self, a: State, b: State) -> bool:
        """a → b 的连接是否无碰撞"""

    @property
    def volume(self) -> Optional[float]:
        """配置空间的测度（RRT* 自动计算 rewire 系数时使用），未知时为 None"""
        return None

    def is_state_free(self, state: State) -> bool:
        return self.is_edge_free(state, state)

    def is_goal(self, state: State, goal: State, tolerance: float) -> bool:
        return self.distance(state, goal) <= tolerance

    def coordinates(self, state: State) -> np.ndarray:
        """状态在网格索引中使用的坐标"""
        return np.asarray(state, dtype=np.float64)

    def states_equal(self, a: State, b: State) -> bool:
        return self.distance(a, b) == 0.0


class EuclideanSpace(ConfigurationSpace):
    """盒约束的欧氏空间（无障碍物）

    Args:
        bounds: 各维 [(lo, hi), ...]
        seed: 采样随机数种子
        resolution: 线段碰撞检测的采样间隔，None 时只检查端点

    Example:
        >>> space = EuclideanSpace([(0.0, 10.0), (0.0, 10.0)], seed=0)
        >>> space.steer(np.zeros(2), np.array([3.0, 4.0]), 10.0)
        array([3., 4.])
    """

    def __init__(
        self,
        bounds: Sequence[Tuple[float, float]],
        seed: Optional[int] = None,
        resolution: Optional[float] = None,
    ) -> None:
        self.bounds: List[Tuple[float, float]] = [
            (float(lo), float(hi)) for lo, hi in bounds]
        if not self.bounds:
            raise ValueError("bounds 不能为空")
        self.lows = np.array([lo for lo, _ in self.bounds], dtype=np.float64)
        self.highs = np.array([hi for _, hi in self.bounds], dtype=np.float64)
        if np.any(self.highs < self.lows):
            raise ValueError("bounds 中存在 hi < lo 的维度")
        self.resolution = resolution
        self.rng = np.random.default_rng(seed)

    @property
    def ndim(self) -> int:
        return len(self.bounds)

    @property
    def volume(self) -> float:
        return float(np.prod(self.highs - self.lows))

    def sample(self) -> np.ndarray:
        return self.rng.uniform(self.lows, self.highs)

    def distance(self, a: State, b: State) -> float:
        return float(np.linalg.norm(np.asarray(a, dtype=np.float64)
                                    - np.asarray(b, dtype=np.float64)))

    def steer(self, from_state: State, toward: State,
              max_step: float) -> Optional[np.ndarray]:
        q_from = np.asarray(from_state, dtype=np.float64)
        q_to = np.asarray(toward, dtype=np.float64)
        diff = q_to - q_from
        dist = float(np.linalg.norm(diff))
        if dist < 1e-12:
            return None
        if dist <= max_step:
            return q_to.copy()
        return q_from + (max_step / dist) * diff

    def in_bounds(self, state: State) -> bool:
        q = np.asarray(state, dtype=np.float64)
        return bool(np.all(q >= self.lows) and np.all(q <= self.highs))

    def is_state_free(self, state: State) -> bool:
        return self.in_bounds(state)

    def is_edge_free(self, a: State, b: State) -> bool:
        """等间隔采样逐点检测（含两端点）"""
        q_a = np.asarray(a, dtype=np.float64)
        q_b = np.asarray(b, dtype=np.float64)
        dist = float(np.linalg.norm(q_b - q_a))
        if dist < 1e-10 or self.resolution is None:
            return self.is_state_free(q_a) and self.is_state_free(q_b)

        n_steps = max(2, int(np.ceil(dist / self.resolution)) + 1)
        for i in range(n_steps):
            t = i / (n_steps - 1)
            if not self.is_state_free(q_a + t * (q_b - q_a)):
                return False
        return True
