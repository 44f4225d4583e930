"""
rrt_planning/path_extractor.py - 路径回溯与校验

沿父指针从终止节点回溯到根，再逐边复核步长与碰撞。
树的代价 / 父子关系在规划中被信任但不会再次对照 oracle 验证，
提取时复核一次；校验失败说明实现有 bug。
"""

import logging
from typing import Any, List

from .exceptions import DisconnectedPathError
from .space import ConfigurationSpace
from .tree import SearchTree

logger = logging.getLogger(__name__)


class PathExtractor:
    """路径提取器

    Args:
        space: 配置空间 oracle
        step_size: 相邻路径点允许的最大距离
        tolerance: 步长比较的相对容差
    """

    def __init__(
        self,
        space: ConfigurationSpace,
        step_size: float,
        tolerance: float = 1e-9,
    ) -> None:
        self.space = space
        self.step_size = step_size
        self.tolerance = tolerance

    def extract(self, tree: SearchTree, handle: int) -> List[Any]:
        """根 → handle 的已校验路径"""
        path = tree.path_to(handle)
        self.validate(path)
        return path

    def join(
        self,
        start_tree: SearchTree,
        start_handle: int,
        goal_tree: SearchTree,
        goal_handle: int,
    ) -> List[Any]:
        """拼接双向搜索的两段路径

        start_tree 根 → start_handle，再接 goal_tree 中 goal_handle → 根。
        两个连接点状态相同时只保留一个。
        """
        head = start_tree.path_to(start_handle)
        tail = goal_tree.path_to(goal_handle)
        tail.reverse()
        if self.space.states_equal(head[-1], tail[0]):
            tail = tail[1:]
        path = head + tail
        self.validate(path)
        return path

    def validate(self, path: List[Any]) -> None:
        """逐边检查步长与碰撞

        Raises:
            DisconnectedPathError: 任一条边不满足约束
        """
        if not path:
            raise DisconnectedPathError("路径为空")

        limit = self.step_size * (1.0 + self.tolerance)
        for i in range(len(path) - 1):
            a, b = path[i], path[i + 1]
            d = self.space.distance(a, b)
            if d > limit:
                logger.error("路径第 %d 段长度 %.6f 超过步长 %.6f", i, d, self.step_size)
                raise DisconnectedPathError(
                    f"路径第 {i} 段长度 {d:.6f} 超过步长 {self.step_size:.6f}: "
                    f"{a!r} → {b!r}",
                    index=i, reason='step')
            if not self.space.is_edge_free(a, b):
                logger.error("路径第 %d 段存在碰撞", i)
                raise DisconnectedPathError(
                    f"路径第 {i} 段存在碰撞: {a!r} → {b!r}",
                    index=i, reason='collision')
