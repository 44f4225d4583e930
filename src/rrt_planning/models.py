"""
rrt_planning/models.py - 规划器数据模型

定义 RRT 系列规划器共享的数据结构：TreeNode、PlannerConfig、
PlanningStatus、PlanningResult。
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .exceptions import IterationBudgetExhausted, PlanningTimeout
from .path_smoother import compute_path_length

REWIRE_POLICIES = ('shrinking', 'fixed')


@dataclass
class TreeNode:
    """搜索树中的一个节点

    只由 SearchTree 创建和修改；``parent`` / ``cost`` 仅在 rewire 时变化。

    Attributes:
        handle: 节点在树内的唯一整数标识（按插入顺序分配）
        state: 配置空间中的状态（对核心不透明）
        parent: 父节点 handle（根节点为 None）
        cost: 从根到该节点的累计代价
    """
    handle: int
    state: Any
    parent: Optional[int] = None
    cost: float = 0.0

    @property
    def is_root(self) -> bool:
        return self.parent is None


@dataclass
class PlannerConfig:
    """RRT 系列规划器参数配置

    Attributes:
        max_iterations: 最大采样迭代次数
        time_budget: 墙钟时间预算 (s)，None 表示不限时
        step_size: steer 的最大步长，同时是路径相邻点的最大距离
        goal_bias: 直接采样目标点的概率 [0, 1]（RRT / RRT*）
        goal_tolerance: 到目标点距离不超过该值即视为到达
        rewire_radius_policy: 'shrinking' (r ∝ (log n / n)^(1/d)) 或 'fixed'
        rewire_radius: rewire 半径上限，None 时取 step_size；实际半径不超过 step_size（RRT*）
        rewire_gamma: shrinking 策略的系数，None 时按单位球体积自动计算
        return_on_first_found: RRT* 找到第一条路径即返回
        connect_tolerance: RRT-Connect 判断两树相遇的距离阈值
        cell_size: 空间索引网格尺寸，None 时取 step_size
        seed: 规划器内部随机数种子（目标偏置 / shortcut）
        path_shortcut_iters: 路径 shortcut 迭代次数，0 表示不做后处理
        verbose: 是否周期性输出进度日志
    """
    max_iterations: int = 5000
    time_budget: Optional[float] = None
    step_size: float = 1.0
    goal_bias: float = 0.05
    goal_tolerance: float = 0.5
    rewire_radius_policy: str = 'shrinking'
    rewire_radius: Optional[float] = None
    rewire_gamma: Optional[float] = None
    return_on_first_found: bool = False
    connect_tolerance: float = 1e-6
    cell_size: Optional[float] = None
    seed: Optional[int] = None
    path_shortcut_iters: int = 0
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.max_iterations < 0:
            raise ValueError(f"max_iterations 必须 >= 0，得到 {self.max_iterations}")
        if self.time_budget is not None and self.time_budget < 0:
            raise ValueError(f"time_budget 必须 >= 0，得到 {self.time_budget}")
        if self.step_size <= 0:
            raise ValueError(f"step_size 必须 > 0，得到 {self.step_size}")
        if not 0.0 <= self.goal_bias <= 1.0:
            raise ValueError(f"goal_bias 必须在 [0, 1] 内，得到 {self.goal_bias}")
        if self.goal_tolerance < 0:
            raise ValueError(f"goal_tolerance 必须 >= 0，得到 {self.goal_tolerance}")
        if self.rewire_radius_policy not in REWIRE_POLICIES:
            raise ValueError(f"未知 rewire 半径策略: {self.rewire_radius_policy}")
        if self.rewire_radius is not None and self.rewire_radius <= 0:
            raise ValueError(f"rewire_radius 必须 > 0，得到 {self.rewire_radius}")
        if self.rewire_gamma is not None and self.rewire_gamma <= 0:
            raise ValueError(f"rewire_gamma 必须 > 0，得到 {self.rewire_gamma}")
        if self.connect_tolerance < 0:
            raise ValueError(f"connect_tolerance 必须 >= 0，得到 {self.connect_tolerance}")
        if self.cell_size is not None and self.cell_size <= 0:
            raise ValueError(f"cell_size 必须 > 0，得到 {self.cell_size}")
        if self.path_shortcut_iters < 0:
            raise ValueError(f"path_shortcut_iters 必须 >= 0，得到 {self.path_shortcut_iters}")

    @property
    def effective_cell_size(self) -> float:
        return self.cell_size if self.cell_size is not None else self.step_size

    @property
    def effective_rewire_radius(self) -> float:
        return self.rewire_radius if self.rewire_radius is not None else self.step_size

    # ── JSON 序列化 ──

    def to_dict(self) -> Dict[str, Any]:
        """转为字典"""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def to_json(self, filepath: str | Path) -> str:
        """保存到 JSON 文件

        Returns:
            保存的文件路径字符串
        """
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        return str(filepath)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlannerConfig':
        """从字典创建（忽略未知字段，缺失字段用默认值）"""
        valid_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)

    @classmethod
    def from_json(cls, filepath: str | Path) -> 'PlannerConfig':
        """从 JSON 文件加载"""
        filepath = Path(filepath)
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls.from_dict(data)


class PlanningStatus(str, Enum):
    """规划终止状态"""
    FOUND = 'found'
    ITERATION_BUDGET_EXHAUSTED = 'iteration_budget_exhausted'
    TIMEOUT = 'timeout'


@dataclass
class PlanningResult:
    """路径规划结果

    预算耗尽是正常结果（success=False + 对应 status），不是异常。

    Attributes:
        success: 是否找到路径
        status: 终止状态
        path: 状态序列 [start, ..., goal 附近]，失败时为空
        cost: 路径代价（oracle 距离之和），失败时为 inf
        n_iterations: 实际执行的迭代数
        n_nodes: 所有树的节点总数
        n_collision_checks: is_edge_free 调用次数
        computation_time: 总耗时 (s)
        first_solution_time: 首次找到解的耗时 (s)，未找到为 nan
        cost_history: 每次最优代价改进后的代价，单调不增；启用 shortcut 时
            末项为后处理后的代价，与 cost 一致
        trees: 本次规划生长的 SearchTree 列表（供检查 / 绘图）
        message: 描述信息
        metadata: 算法相关的附加统计
        timestamp: 时间戳
    """
    success: bool = False
    status: PlanningStatus = PlanningStatus.ITERATION_BUDGET_EXHAUSTED
    path: List[Any] = field(default_factory=list)
    cost: float = float('inf')
    n_iterations: int = 0
    n_nodes: int = 0
    n_collision_checks: int = 0
    computation_time: float = 0.0
    first_solution_time: float = float('nan')
    cost_history: List[float] = field(default_factory=list)
    trees: List[Any] = field(default_factory=list)
    message: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(
        default_factory=lambda: datetime.now().strftime('%Y%m%d_%H%M%S'))

    @property
    def n_waypoints(self) -> int:
        return len(self.path)

    def path_length(
        self,
        distance_fn: Optional[Callable[[Any, Any], float]] = None,
    ) -> float:
        """按 distance_fn（默认 L2）重新计算路径长度"""
        return compute_path_length(self.path, distance_fn)

    def raise_for_status(self) -> None:
        """未找到路径时抛出对应的预算异常"""
        if self.status is PlanningStatus.TIMEOUT:
            raise PlanningTimeout(self.message or "规划超时")
        if self.status is PlanningStatus.ITERATION_BUDGET_EXHAUSTED:
            raise IterationBudgetExhausted(self.message or "迭代次数用尽")

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "success": self.success,
            "status": self.status.value,
            "cost": self.cost,
            "n_waypoints": self.n_waypoints,
            "n_iterations": self.n_iterations,
            "n_nodes": self.n_nodes,
            "n_collision_checks": self.n_collision_checks,
            "computation_time": self.computation_time,
            "first_solution_time": self.first_solution_time,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        d.update(self.metadata)
        return d
