"""
rrt_planning/spatial_index.py - 增量哈希网格最近邻索引

把状态坐标按固定 cell_size 离散化为网格单元，每个单元存放落在其中的
handle 列表。树只增不减，状态不可变，所以 handle 插入后永远留在同一个
单元里，不需要重新分桶。

最近邻查询从查询点所在单元开始按 Chebyshev 环向外扩展：
- 第 k 环中任意点与查询点至少在某一维相差 (k-1)·cell_size，
  当该下界超过当前最优距离时停止；
- 每个非空单元再用查询点到单元 box 的欧氏距离做剪枝；
- 当一环的单元数超过非空单元总数时（稀疏或高维网格），
  改为按下界排序扫描所有非空单元。

距离相等时返回较小的 handle（即更早插入的节点），
使结果与字典遍历顺序无关。
"""

import itertools
import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

import numpy as np

from .exceptions import DuplicateHandleError, EmptyIndexError

logger = logging.getLogger(__name__)

Cell = Tuple[int, ...]

# 浮点离散化误差的剪枝余量（相对 cell_size）
_EPS = 1e-9


def euclidean_distance(a: Any, b: Any) -> float:
    return float(np.linalg.norm(np.asarray(a, dtype=np.float64)
                                - np.asarray(b, dtype=np.float64)))


def as_coordinates(state: Any) -> np.ndarray:
    return np.asarray(state, dtype=np.float64).reshape(-1)


class SpatialIndex:
    """空间索引 (哈希 grid)

    Args:
        cell_size: 网格单元尺寸
        distance_fn: 状态间距离，默认 L2
        coords_fn: 状态 → 坐标向量，默认 ``np.asarray``

    剪枝要求 ``distance_fn(a, b)`` 不小于两者坐标的欧氏距离。

    Example:
        >>> index = SpatialIndex(cell_size=1.0)
        >>> index.insert(0, [0.0, 0.0])
        >>> index.insert(1, [3.0, 4.0])
        >>> index.nearest([2.5, 3.0])
        1
    """

    def __init__(
        self,
        cell_size: float = 1.0,
        distance_fn: Optional[Callable[[Any, Any], float]] = None,
        coords_fn: Optional[Callable[[Any], np.ndarray]] = None,
    ) -> None:
        if cell_size <= 0:
            raise ValueError(f"cell_size 必须 > 0，得到 {cell_size}")
        self.cell_size = float(cell_size)
        self._distance_fn = distance_fn or euclidean_distance
        self._coords_fn = coords_fn or as_coordinates
        self._grid: Dict[Cell, List[int]] = {}
        self._states: Dict[int, Any] = {}
        self._ndim: Optional[int] = None
        # 非空单元的索引范围
        self._cell_lo: Optional[np.ndarray] = None
        self._cell_hi: Optional[np.ndarray] = None

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, handle: int) -> bool:
        return handle in self._states

    @property
    def n_cells(self) -> int:
        """非空网格单元数"""
        return len(self._grid)

    def state(self, handle: int) -> Any:
        return self._states[handle]

    # ── 插入 ──

    def insert(self, handle: int, state: Any) -> None:
        """把 handle 放进其状态所在的单元

        Raises:
            DuplicateHandleError: handle 已存在
        """
        if handle in self._states:
            raise DuplicateHandleError(f"handle {handle} 已在索引中")

        coords = self._coords(state)
        cell = self._cell_of(coords)
        self._grid.setdefault(cell, []).append(handle)
        self._states[handle] = state

        cell_arr = np.array(cell, dtype=np.int64)
        if self._cell_lo is None:
            self._cell_lo = cell_arr.copy()
            self._cell_hi = cell_arr.copy()
        else:
            np.minimum(self._cell_lo, cell_arr, out=self._cell_lo)
            np.maximum(self._cell_hi, cell_arr, out=self._cell_hi)

    # ── 查询 ──

    def nearest(self, state: Any) -> int:
        """返回距离 state 最近的 handle（精确）

        Raises:
            EmptyIndexError: 索引为空
        """
        if not self._states:
            raise EmptyIndexError("空索引上无法查询最近邻")

        coords = self._coords(state)
        center = self._cell_of(coords)
        center_arr = np.array(center, dtype=np.int64)
        max_ring = int(max(np.max(center_arr - self._cell_lo),
                           np.max(self._cell_hi - center_arr), 0))

        best: Optional[int] = None
        best_d = float('inf')
        slack = _EPS * self.cell_size

        for k in range(max_ring + 1):
            if k >= 2 and (k - 1) * self.cell_size - slack > best_d:
                break
            if self._ring_size(k) > len(self._grid):
                return self._scan_nearest(state, coords, best, best_d)
            for cell in self._ring(center, k):
                bucket = self._grid.get(cell)
                if bucket is None:
                    continue
                if self._cell_lower_bound(coords, cell) - slack > best_d:
                    continue
                best, best_d = self._closest_in(state, bucket, best, best_d)

        return best

    def near(self, state: Any, radius: float) -> List[int]:
        """返回与 state 距离 <= radius 的全部 handle（按 handle 升序）"""
        if radius < 0:
            raise ValueError(f"radius 必须 >= 0，得到 {radius}")
        if not self._states:
            return []

        coords = self._coords(state)
        slack = _EPS * self.cell_size
        # 先在浮点域裁剪到非空单元范围再转整数，radius 为 inf 或极大时不会溢出
        lo = np.floor((coords - radius) / self.cell_size)
        hi = np.floor((coords + radius) / self.cell_size)
        if np.any(hi < self._cell_lo) or np.any(lo > self._cell_hi):
            return []
        lo = np.clip(lo, self._cell_lo, self._cell_hi).astype(np.int64)
        hi = np.clip(hi, self._cell_lo, self._cell_hi).astype(np.int64)

        n_box = 1
        for a, b in zip(lo, hi):
            n_box *= int(b - a) + 1

        if n_box > len(self._grid):
            cells = [cell for cell in self._grid
                     if self._cell_lower_bound(coords, cell) - slack <= radius]
        else:
            ranges = [range(int(a), int(b) + 1) for a, b in zip(lo, hi)]
            cells = [cell for cell in itertools.product(*ranges)
                     if cell in self._grid]

        result = [
            h for cell in cells for h in self._grid[cell]
            if self._distance_fn(state, self._states[h]) <= radius
        ]
        result.sort()
        return result

    # ── 内部 ──

    def _coords(self, state: Any) -> np.ndarray:
        coords = np.asarray(self._coords_fn(state), dtype=np.float64).reshape(-1)
        if self._ndim is None:
            self._ndim = coords.shape[0]
        elif coords.shape[0] != self._ndim:
            raise ValueError(
                f"期望 {self._ndim} 维坐标，得到 {coords.shape[0]} 维")
        return coords

    def _cell_of(self, coords: np.ndarray) -> Cell:
        return tuple(int(c) for c in np.floor(coords / self.cell_size))

    def _cell_lower_bound(self, coords: np.ndarray, cell: Cell) -> float:
        """查询点到单元 box 的欧氏距离"""
        cell_min = np.array(cell, dtype=np.float64) * self.cell_size
        cell_max = cell_min + self.cell_size
        gap = np.maximum(cell_min - coords, 0.0) + np.maximum(coords - cell_max, 0.0)
        return float(np.sqrt(np.dot(gap, gap)))

    def _ring_size(self, k: int) -> int:
        if k == 0:
            return 1
        return (2 * k + 1) ** self._ndim - (2 * k - 1) ** self._ndim

    def _ring(self, center: Cell, k: int) -> Iterator[Cell]:
        """枚举与 center 的 Chebyshev 距离恰为 k、且落在非空范围内的单元"""
        if k == 0:
            yield center
            return
        ranges = [
            range(max(-k, int(lo) - c), min(k, int(hi) - c) + 1)
            for c, lo, hi in zip(center, self._cell_lo, self._cell_hi)
        ]
        for offset in itertools.product(*ranges):
            if max(abs(o) for o in offset) == k:
                yield tuple(c + o for c, o in zip(center, offset))

    def _closest_in(
        self, state: Any, bucket: List[int],
        best: Optional[int], best_d: float,
    ) -> Tuple[Optional[int], float]:
        for h in bucket:
            d = self._distance_fn(state, self._states[h])
            if d < best_d or (d == best_d and best is not None and h < best):
                best, best_d = h, d
        return best, best_d

    def _scan_nearest(
        self, state: Any, coords: np.ndarray,
        best: Optional[int], best_d: float,
    ) -> int:
        slack = _EPS * self.cell_size
        bounded = sorted(
            (self._cell_lower_bound(coords, cell), cell) for cell in self._grid)
        for lb, cell in bounded:
            if lb - slack > best_d:
                break
            best, best_d = self._closest_in(state, self._grid[cell], best, best_d)
        return best
