"""
rrt_planning/exceptions.py - 规划异常

异常分两类：
- 内部一致性错误（EmptyIndexError / UnknownParentError / TreeCycleError /
  DisconnectedPathError / DuplicateHandleError）：说明调用方或实现有 bug，
  直接向上抛出，不重试。
- 预算耗尽（IterationBudgetExhausted / PlanningTimeout）：正常的"未找到路径"
  结果。``plan()`` 不抛出它们，而是返回带状态的 PlanningResult；
  需要异常语义时调用 ``PlanningResult.raise_for_status()``。

InvalidStartOrGoal 在任何迭代开始前抛出。
"""


class PlanningError(Exception):
    """所有规划相关异常的基类"""


class InvalidStartOrGoal(PlanningError):
    """起点或终点不在自由空间中"""


class EmptyIndexError(PlanningError, LookupError):
    """在空索引上查询最近邻"""


class DuplicateHandleError(PlanningError, KeyError):
    """同一 handle 重复插入索引"""


class UnknownParentError(PlanningError, KeyError):
    """引用了不在树中的节点"""


class TreeCycleError(PlanningError):
    """rewire 会在树中引入环（或重新挂接根节点）"""


class DisconnectedPathError(PlanningError):
    """回溯出的路径未通过校验

    Attributes:
        index: 出错边的起点在路径中的下标
        reason: 'step' (超过步长) 或 'collision' (边不可行)
    """

    def __init__(self, message: str, index: int = -1, reason: str = "") -> None:
        super().__init__(message)
        self.index = index
        self.reason = reason


class BudgetExhausted(PlanningError):
    """搜索已执行但在预算内未找到路径"""


class IterationBudgetExhausted(BudgetExhausted):
    """迭代次数用尽"""


class PlanningTimeout(BudgetExhausted):
    """墙钟时间用尽"""
