"""
rrt_planning/path_smoother.py - 路径后处理

1. Shortcut 优化：随机选两点尝试直连，若无碰撞则移除中间点
2. 按步长重采样：用 oracle 的 steer 重新加密路径，使相邻点距离 <= step_size

只依赖 ConfigurationSpace 接口，不假设状态是向量。
"""

import logging
from typing import Any, Callable, List, Optional

import numpy as np

from .space import ConfigurationSpace

logger = logging.getLogger(__name__)


class PathSmoother:
    """路径后处理器

    Args:
        space: 配置空间 oracle
        step_size: 重采样的最大步长

    Example:
        >>> smoother = PathSmoother(space, step_size=1.0)
        >>> short = smoother.shortcut(path, max_iters=200)
        >>> dense = smoother.resample(short)
    """

    def __init__(self, space: ConfigurationSpace, step_size: float) -> None:
        self.space = space
        self.step_size = step_size

    def shortcut(
        self,
        path: List[Any],
        max_iters: int = 100,
        rng: Optional[np.random.Generator] = None,
    ) -> List[Any]:
        """随机 shortcut 优化

        反复随机选两个非相邻路径点，若它们之间的连接无碰撞，
        则移除中间所有点。
        """
        if len(path) <= 2:
            return list(path)

        if rng is None:
            rng = np.random.default_rng()

        path = list(path)
        n_before = len(path)
        improved = 0

        for _ in range(max_iters):
            if len(path) <= 2:
                break

            i = int(rng.integers(0, len(path) - 2))
            j = int(rng.integers(i + 2, len(path)))

            if self.space.is_edge_free(path[i], path[j]):
                path = path[:i + 1] + path[j:]
                improved += 1

        if improved > 0:
            logger.info("Shortcut 优化: 移除 %d 个中间段, 路径从 %d → %d 个点",
                        improved, n_before, len(path))
        return path

    def resample(self, path: List[Any]) -> List[Any]:
        """用 steer 把每一段切成不超过 step_size 的小段"""
        if len(path) <= 1:
            return list(path)

        resampled = [path[0]]
        for target in path[1:]:
            cur = resampled[-1]
            while self.space.distance(cur, target) > self.step_size:
                nxt = self.space.steer(cur, target, self.step_size)
                if nxt is None:
                    logger.warning("resample: steer 无法继续，%r → %r 未加密", cur, target)
                    break
                resampled.append(nxt)
                cur = nxt
            if not self.space.states_equal(cur, target):
                resampled.append(target)
        return resampled


def compute_path_length(
    path: List[Any],
    distance_fn: Optional[Callable[[Any, Any], float]] = None,
) -> float:
    """计算路径总长度，默认 L2"""
    if len(path) < 2:
        return 0.0
    if distance_fn is None:
        def distance_fn(a, b):
            return float(np.linalg.norm(np.asarray(a) - np.asarray(b)))
    return sum(distance_fn(path[i - 1], path[i]) for i in range(1, len(path)))
