"""
rrt_planning/planning.py - 算法注册表与统一入口
"""

import logging
from typing import Any, Dict, Optional, Type

from .base import BasePlanner
from .models import PlannerConfig, PlanningResult
from .rrt import RRTPlanner
from .rrt_connect import RRTConnectPlanner
from .rrt_star import RRTStarPlanner
from .space import ConfigurationSpace

logger = logging.getLogger(__name__)


ALGORITHMS: Dict[str, Type[BasePlanner]] = {
    "RRT": RRTPlanner,
    "RRT*": RRTStarPlanner,
    "RRTConnect": RRTConnectPlanner,
}


def create_planner(
    algorithm: str,
    space: ConfigurationSpace,
    config: Optional[PlannerConfig] = None,
) -> BasePlanner:
    """按名称创建规划器

    Args:
        algorithm: 'RRT' | 'RRT*' | 'RRTConnect'
        space: 配置空间 oracle
        config: 规划参数

    Raises:
        ValueError: 未知算法名
    """
    if algorithm not in ALGORITHMS:
        raise ValueError(f"Unknown algorithm: {algorithm}. "
                         f"Choose from {list(ALGORITHMS.keys())}")
    return ALGORITHMS[algorithm](space, config)


def plan(
    space: ConfigurationSpace,
    start: Any,
    goal: Any,
    config: Optional[PlannerConfig] = None,
    algorithm: str = "RRT",
) -> PlanningResult:
    """一次性规划：创建规划器并执行 ``plan(start, goal)``"""
    planner = create_planner(algorithm, space, config)
    logger.debug("使用 %s 规划", planner.name)
    return planner.plan(start, goal)
