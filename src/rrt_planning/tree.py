"""
rrt_planning/tree.py - 搜索树

节点存放在以整数 handle 为键的 arena 中：父节点只存 handle，
子节点关系另存一份 handle → set 的邻接表，在 extend / rewire 时增量维护，
不使用互相引用的对象。最近邻查询委托给 SpatialIndex。
"""

import logging
from collections import deque
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple

import numpy as np

from .exceptions import TreeCycleError, UnknownParentError
from .models import TreeNode
from .spatial_index import SpatialIndex

logger = logging.getLogger(__name__)


class SearchTree:
    """RRT 搜索树

    只增不删。根节点 handle 恒为 0，代价为 0。

    Args:
        root_state: 根节点状态
        distance_fn: 状态间距离（传给 SpatialIndex）
        coords_fn: 状态 → 网格坐标（传给 SpatialIndex）
        cell_size: 空间索引网格尺寸

    Example:
        >>> tree = SearchTree(np.zeros(2))
        >>> h = tree.extend(tree.root, np.array([1.0, 0.0]), 1.0)
        >>> tree.cost(h)
        1.0
        >>> len(tree.path_to(h))
        2
    """

    def __init__(
        self,
        root_state: Any,
        distance_fn: Optional[Callable[[Any, Any], float]] = None,
        coords_fn: Optional[Callable[[Any], np.ndarray]] = None,
        cell_size: float = 1.0,
    ) -> None:
        self.index = SpatialIndex(cell_size=cell_size,
                                  distance_fn=distance_fn,
                                  coords_fn=coords_fn)
        self._nodes: Dict[int, TreeNode] = {}
        self._children: Dict[int, Set[int]] = {}
        self._next_handle = 0
        self.root = self._add_node(root_state, None, 0.0)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, handle: int) -> bool:
        return handle in self._nodes

    @property
    def n_nodes(self) -> int:
        return len(self._nodes)

    # ── 访问 ──

    def node(self, handle: int) -> TreeNode:
        return self._get(handle)

    def state(self, handle: int) -> Any:
        return self._get(handle).state

    def cost(self, handle: int) -> float:
        return self._get(handle).cost

    def parent(self, handle: int) -> Optional[int]:
        return self._get(handle).parent

    def children(self, handle: int) -> List[int]:
        """子节点 handle（升序）"""
        self._get(handle)
        return sorted(self._children[handle])

    def handles(self) -> List[int]:
        return list(self._nodes.keys())

    def nearest(self, state: Any) -> int:
        return self.index.nearest(state)

    def near(self, state: Any, radius: float) -> List[int]:
        return self.index.near(state, radius)

    # ── 生长 ──

    def extend(self, parent: int, state: Any, edge_cost: float) -> int:
        """在 parent 下添加子节点

        Args:
            parent: 父节点 handle
            state: 新节点状态
            edge_cost: parent → state 的边代价

        Returns:
            新节点的 handle

        Raises:
            UnknownParentError: parent 不在树中
        """
        if parent not in self._nodes:
            raise UnknownParentError(f"父节点 {parent} 不在树中")
        if edge_cost < 0:
            raise ValueError(f"边代价必须 >= 0，得到 {edge_cost}")

        cost = self._nodes[parent].cost + edge_cost
        handle = self._add_node(state, parent, cost)
        self._children[parent].add(handle)
        logger.debug("添加节点 %d (父=%d)，代价 %.4f", handle, parent, cost)
        return handle

    def rewire(self, child: int, new_parent: int, new_edge_cost: float) -> bool:
        """把 child 改挂到 new_parent 下，并把代价改进量传播给所有后代

        新代价不严格小于旧代价时不做任何修改。

        Returns:
            是否发生了 rewire

        Raises:
            UnknownParentError: child 或 new_parent 不在树中
            ValueError: new_edge_cost < 0
            TreeCycleError: child 是根节点，或 new_parent 在 child 的子树中
        """
        node = self._get(child)
        if new_parent not in self._nodes:
            raise UnknownParentError(f"新父节点 {new_parent} 不在树中")
        if new_edge_cost < 0:
            raise ValueError(f"边代价必须 >= 0，得到 {new_edge_cost}")
        if node.parent is None:
            raise TreeCycleError("根节点不能被 rewire")
        if self._is_in_subtree(new_parent, child):
            raise TreeCycleError(
                f"节点 {new_parent} 在 {child} 的子树中，rewire 会形成环")

        new_cost = self._nodes[new_parent].cost + new_edge_cost
        if not new_cost < node.cost:
            return False

        delta = node.cost - new_cost
        self._children[node.parent].discard(child)
        self._children[new_parent].add(child)
        node.parent = new_parent
        node.cost = new_cost

        n_updated = 0
        queue = deque(self._children[child])
        while queue:
            h = queue.popleft()
            self._nodes[h].cost -= delta
            n_updated += 1
            queue.extend(self._children[h])

        logger.debug("rewire 节点 %d → 父 %d，代价降低 %.4f，更新 %d 个后代",
                     child, new_parent, delta, n_updated)
        return True

    # ── 遍历 ──

    def path_to(self, handle: int) -> List[Any]:
        """从根到 handle 的状态序列"""
        path = []
        cur: Optional[int] = self._get(handle).handle
        while cur is not None:
            node = self._nodes[cur]
            path.append(node.state)
            cur = node.parent
        path.reverse()
        return path

    def iter_depth_first(self) -> Iterator[int]:
        """先序深度优先遍历，子节点按插入顺序"""
        stack = [self.root]
        while stack:
            h = stack.pop()
            yield h
            stack.extend(sorted(self._children[h], reverse=True))

    def descendants(self, handle: int) -> List[int]:
        self._get(handle)
        out: List[int] = []
        queue = deque(sorted(self._children[handle]))
        while queue:
            h = queue.popleft()
            out.append(h)
            queue.extend(sorted(self._children[h]))
        return out

    def edges(self) -> List[Tuple[Any, Any]]:
        """所有 (父状态, 子状态) 对，用于绘图"""
        return [
            (self._nodes[node.parent].state, node.state)
            for node in self._nodes.values() if node.parent is not None
        ]

    # ── 内部 ──

    def _get(self, handle: int) -> TreeNode:
        try:
            return self._nodes[handle]
        except KeyError:
            raise UnknownParentError(f"节点 {handle} 不在树中") from None

    def _add_node(self, state: Any, parent: Optional[int], cost: float) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self.index.insert(handle, state)
        self._nodes[handle] = TreeNode(handle=handle, state=state,
                                       parent=parent, cost=cost)
        self._children[handle] = set()
        return handle

    def _is_in_subtree(self, handle: int, ancestor: int) -> bool:
        cur: Optional[int] = handle
        while cur is not None:
            if cur == ancestor:
                return True
            cur = self._nodes[cur].parent
        return False
