"""
rrt_planning - 基于采样的运动规划核心

给定配置空间 oracle（采样、距离、steer、碰撞检测）、起点和终点，
增量地生长搜索树并返回可行路径。核心不关心障碍物如何表示。

核心组件：
1. SpatialIndex: 增量哈希网格，精确最近邻 / 半径查询
2. SearchTree: arena 存储的搜索树，支持 rewire 代价传播
3. RRTPlanner: 基础 RRT
4. RRTStarPlanner: RRT*（choose-parent + rewire，渐近最优）
5. RRTConnectPlanner: 双向 RRT-Connect
6. PathExtractor: 路径回溯与逐边校验

附带：
- EuclideanSpace: 盒约束欧氏空间的部分 oracle 实现
- scene: 轴对齐盒障碍物的参考世界（测试 / 演示用）
- PathSmoother: shortcut + 重采样后处理

参考论文:
    LaValle, "Rapidly-exploring random trees: A new tool for path planning", 1998.
    Kuffner & LaValle, "RRT-Connect: An efficient approach to single-query
    path planning", ICRA 2000.
    Karaman & Frazzoli, "Sampling-based algorithms for optimal motion
    planning", IJRR 2011.
"""

from .exceptions import (
    PlanningError,
    InvalidStartOrGoal,
    EmptyIndexError,
    DuplicateHandleError,
    UnknownParentError,
    TreeCycleError,
    DisconnectedPathError,
    BudgetExhausted,
    IterationBudgetExhausted,
    PlanningTimeout,
)
from .models import TreeNode, PlannerConfig, PlanningStatus, PlanningResult
from .space import ConfigurationSpace, EuclideanSpace
from .spatial_index import SpatialIndex
from .tree import SearchTree
from .path_extractor import PathExtractor
from .path_smoother import PathSmoother, compute_path_length
from .base import BasePlanner
from .rrt import RRTPlanner
from .rrt_star import RRTStarPlanner, rewiring_radius
from .rrt_connect import RRTConnectPlanner
from .planning import ALGORITHMS, create_planner, plan

__version__ = "0.1.0"

__all__ = [
    # 异常
    'PlanningError',
    'InvalidStartOrGoal',
    'EmptyIndexError',
    'DuplicateHandleError',
    'UnknownParentError',
    'TreeCycleError',
    'DisconnectedPathError',
    'BudgetExhausted',
    'IterationBudgetExhausted',
    'PlanningTimeout',
    # 数据模型
    'TreeNode',
    'PlannerConfig',
    'PlanningStatus',
    'PlanningResult',
    # 配置空间
    'ConfigurationSpace',
    'EuclideanSpace',
    # 核心算法
    'SpatialIndex',
    'SearchTree',
    'PathExtractor',
    'PathSmoother',
    'compute_path_length',
    'BasePlanner',
    'RRTPlanner',
    'RRTStarPlanner',
    'rewiring_radius',
    'RRTConnectPlanner',
    # 入口
    'ALGORITHMS',
    'create_planner',
    'plan',
]
