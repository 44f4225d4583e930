"""
rrt_planning/scene.py - 参考场景与 oracle 实现

规划核心之外的参考世界：轴对齐 box 障碍物集合 + 基于它的
ConfigurationSpace 实现。测试与示例使用它；核心模块不 import 本文件。
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .space import EuclideanSpace, State

logger = logging.getLogger(__name__)


@dataclass
class Obstacle:
    """规划空间中的轴对齐 box 障碍物，按闭集处理（落在边界上也算碰撞）

    碰撞查询都接受 margin，把 box 各向外扩后再判断，
    SceneSpace 用它实现安全裕度。
    """
    min_point: np.ndarray
    max_point: np.ndarray
    name: str = ""

    def __post_init__(self) -> None:
        self.min_point = np.asarray(self.min_point, dtype=np.float64).reshape(-1)
        self.max_point = np.asarray(self.max_point, dtype=np.float64).reshape(-1)
        if self.min_point.shape != self.max_point.shape:
            raise ValueError(
                f"角点维度不一致: {self.min_point.shape[0]} vs {self.max_point.shape[0]}")
        bad = np.flatnonzero(self.max_point < self.min_point)
        if bad.size:
            raise ValueError(f"第 {bad.tolist()} 维上 max_point < min_point")

    @property
    def ndim(self) -> int:
        return self.min_point.shape[0]

    @property
    def size(self) -> np.ndarray:
        return self.max_point - self.min_point

    def inflated(self, margin: float = 0.0) -> Tuple[np.ndarray, np.ndarray]:
        """外扩 margin 后的 (lo, hi) 角点"""
        return self.min_point - margin, self.max_point + margin

    def to_dict(self) -> Dict[str, Any]:
        """Scene JSON 中单个障碍物的格式 {'min', 'max', 'name'}"""
        return {'min': self.min_point.tolist(), 'max': self.max_point.tolist(),
                'name': self.name}

    def contains_point(self, point: np.ndarray, margin: float = 0.0) -> bool:
        lo, hi = self.inflated(margin)
        return bool(np.all((lo <= point) & (point <= hi)))

    def intersects_segment(self, p0: np.ndarray, p1: np.ndarray,
                           margin: float = 0.0) -> bool:
        """线段 p0→p1 与（外扩后的）box 是否相交（slab test）"""
        lo, hi = self.inflated(margin)
        d = p1 - p0
        t_enter, t_exit = 0.0, 1.0
        for i in range(len(p0)):
            if abs(d[i]) < 1e-12:
                if p0[i] < lo[i] or p0[i] > hi[i]:
                    return False
                continue
            ta = (lo[i] - p0[i]) / d[i]
            tb = (hi[i] - p0[i]) / d[i]
            if ta > tb:
                ta, tb = tb, ta
            t_enter = max(t_enter, ta)
            t_exit = min(t_exit, tb)
            if t_enter > t_exit:
                return False
        return True


class Scene:
    """障碍物场景

    Example:
        >>> scene = Scene()
        >>> scene.add_obstacle([45, 0], [55, 100], name="wall")
        >>> scene.n_obstacles
        1
    """

    def __init__(self) -> None:
        self._obstacles: List[Obstacle] = []

    @property
    def n_obstacles(self) -> int:
        return len(self._obstacles)

    def add_obstacle(self, min_point: Any, max_point: Any,
                     name: str = "") -> Obstacle:
        if not name:
            name = f"obstacle_{self.n_obstacles}"
        obs = Obstacle(min_point=min_point, max_point=max_point, name=name)
        self._obstacles.append(obs)
        logger.debug("添加障碍物 '%s': min=%s, max=%s", name,
                     obs.min_point.tolist(), obs.max_point.tolist())
        return obs

    def remove_obstacle(self, name: str) -> bool:
        """按名称移除障碍物，返回是否找到"""
        for i, obs in enumerate(self._obstacles):
            if obs.name == name:
                self._obstacles.pop(i)
                return True
        return False

    def get_obstacles(self) -> List[Obstacle]:
        return list(self._obstacles)

    def to_dict_list(self) -> List[Dict[str, Any]]:
        return [obs.to_dict() for obs in self._obstacles]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Scene':
        """从字典加载场景

        Args:
            data: {'obstacles': [{'min': [...], 'max': [...], 'name': ...}, ...]}
        """
        scene = cls()
        for item in data.get('obstacles', []):
            scene.add_obstacle(
                min_point=item['min'],
                max_point=item['max'],
                name=item.get('name', ''),
            )
        return scene

    @classmethod
    def from_json(cls, filepath: str) -> 'Scene':
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls.from_dict(data)

    def __repr__(self) -> str:
        return f"Scene(n_obstacles={self.n_obstacles})"


class SceneSpace(EuclideanSpace):
    """带 box 障碍物的欧氏配置空间

    边检测用精确的 slab test，不依赖采样分辨率。

    Args:
        bounds: 各维 [(lo, hi), ...]
        scene: 障碍物场景
        margin: 障碍物外扩的安全裕度
        seed: 采样随机数种子
    """

    def __init__(
        self,
        bounds: Sequence[Tuple[float, float]],
        scene: Optional[Scene] = None,
        margin: float = 0.0,
        seed: Optional[int] = None,
    ) -> None:
        super().__init__(bounds, seed=seed)
        self.scene = scene if scene is not None else Scene()
        self.margin = margin

    def is_state_free(self, state: State) -> bool:
        q = np.asarray(state, dtype=np.float64)
        if not self.in_bounds(q):
            return False
        return not any(obs.contains_point(q, self.margin)
                       for obs in self.scene.get_obstacles())

    def is_edge_free(self, a: State, b: State) -> bool:
        q_a = np.asarray(a, dtype=np.float64)
        q_b = np.asarray(b, dtype=np.float64)
        if not (self.in_bounds(q_a) and self.in_bounds(q_b)):
            return False
        return not any(obs.intersects_segment(q_a, q_b, self.margin)
                       for obs in self.scene.get_obstacles())
