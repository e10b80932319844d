"""Kd-tree node layout and neighbourhood queries over it."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np

from .containers import LimitedPriorityQueue


@dataclass(frozen=True)
class IndexSquaredDistance:
    """An index paired with a squared distance; ordered by the distance."""

    index: int = -1
    squared_distance: float = sys.float_info.max

    def __lt__(self, other: "IndexSquaredDistance") -> bool:
        if not isinstance(other, IndexSquaredDistance):
            return NotImplemented
        return self.squared_distance < other.squared_distance


@dataclass(frozen=True)
class KdTreeNode:
    """A kd-tree node.

    Inner nodes split along ``dim`` at ``split_value``; their two children
    are stored at ``first_child_id`` and ``first_child_id + 1``, the first
    holding the lower side. Leaves cover ``indices[start:start + size]``.
    """

    leaf: bool = False
    split_value: float = 0.0
    first_child_id: int = 0
    dim: int = 0
    start: int = 0
    size: int = 0


class KdTreeLayout:
    """The node, point and index arrays of a built kd-tree; node 0 is the root."""

    def __init__(
        self,
        nodes: Sequence[KdTreeNode],
        points,
        indices: Sequence[int],
    ) -> None:
        pts = np.asarray(points, dtype=float)
        if pts.ndim != 2:
            raise ValueError(f"points must be a 2D array, got shape {pts.shape}")
        self.nodes = tuple(nodes)
        self.points = pts
        self.indices = tuple(int(i) for i in indices)
        for idx in self.indices:
            if not 0 <= idx < len(pts):
                raise ValueError(f"index {idx} is out of the point range")

    @property
    def point_count(self) -> int:
        return len(self.points)

    def _query_point(self, index: int) -> np.ndarray:
        if not 0 <= index < self.point_count:
            raise IndexError(f"point index {index} is out of range")
        return self.points[index]

    def _squared_distance(self, point: np.ndarray, idx: int) -> float:
        diff = point - self.points[idx]
        return float(diff @ diff)

    def _descend(
        self, stack: list, node: KdTreeNode, point: np.ndarray
    ) -> None:
        """Replace the stack top by the far child and push the near one."""
        top = stack[-1]
        offset = float(point[node.dim] - node.split_value)
        if offset < 0:
            near, far = node.first_child_id, node.first_child_id + 1
        else:
            near, far = node.first_child_id + 1, node.first_child_id
        stack[-1] = IndexSquaredDistance(far, offset * offset)
        stack.append(IndexSquaredDistance(near, top.squared_distance))


class KNearestIndexQuery:
    """The ``k`` nearest neighbours of a stored point, closest first.

    The query point itself is never reported.
    """

    def __init__(self, tree: KdTreeLayout, k: int, index: int) -> None:
        if k < 0:
            raise ValueError(f"k must be non-negative, got {k}")
        self.tree = tree
        self.k = k
        self.index = index

    def _search(self) -> LimitedPriorityQueue:
        tree = self.tree
        point = tree._query_point(self.index)
        queue: LimitedPriorityQueue = LimitedPriorityQueue(
            self.k, key=lambda item: item.squared_distance
        )
        if self.k == 0 or not tree.nodes:
            return queue

        stack = [IndexSquaredDistance(0, 0.0)]
        while stack:
            qnode = stack[-1]
            node = tree.nodes[qnode.index]
            bound = queue.bottom().squared_distance if queue.is_full() else float("inf")
            if qnode.squared_distance < bound:
                if node.leaf:
                    stack.pop()
                    for i in range(node.start, node.start + node.size):
                        idx = tree.indices[i]
                        if idx == self.index:
                            continue
                        queue.push(
                            IndexSquaredDistance(idx, tree._squared_distance(point, idx))
                        )
                else:
                    tree._descend(stack, node, point)
            else:
                stack.pop()
        return queue

    def __iter__(self) -> Iterator[int]:
        return (item.index for item in self._search())


class RangeIndexQuery:
    """Stored points strictly closer than ``radius`` to a stored point.

    The query point itself is never reported.
    """

    def __init__(self, tree: KdTreeLayout, radius: float, index: int) -> None:
        self.tree = tree
        self.radius = float(radius)
        self.index = index

    def __iter__(self) -> Iterator[int]:
        tree = self.tree
        point = tree._query_point(self.index)
        return self._generate(tree, point, self.radius * self.radius)

    def _generate(
        self, tree: KdTreeLayout, point: np.ndarray, squared_radius: float
    ) -> Iterator[int]:
        if not tree.nodes:
            return
        stack = [IndexSquaredDistance(0, 0.0)]
        while stack:
            qnode = stack[-1]
            node = tree.nodes[qnode.index]
            if qnode.squared_distance < squared_radius:
                if node.leaf:
                    stack.pop()
                    for i in range(node.start, node.start + node.size):
                        idx = tree.indices[i]
                        if idx == self.index:
                            continue
                        if tree._squared_distance(point, idx) < squared_radius:
                            yield idx
                else:
                    tree._descend(stack, node, point)
            else:
                stack.pop()