"""
Static k-d tree over 2-D points, stored as three flat arrays.

Layout (N points):
    ids[0..N)  tree position -> original point index (a permutation of 0..N-1)
    xs[0..N)   x of ids[i]
    ys[0..N)   y of ids[i]

The tree itself is implicit. A node covers the position range [lo, hi); when
hi - lo > leaf_size its median m = lo + (hi - lo) // 2 is the split point, the
left child is [lo, m) and the right child is [m+1, hi). The split axis
alternates x, y, x, ... with depth. Queries replay the same range arithmetic,
so nothing but the three arrays is stored.

Usage:
    idx = PointIndex.build([(0, 0), (1, 1), (2, 2)], leaf_size=10)
    idx.range(0, 0, 1, 1)      -> [0, 1]   (order unspecified)
    idx.within(1, 1, 1.5)      -> [0, 1, 2]
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple, Union

import numpy as np

from common.types import Point


DEFAULT_LEAF_SIZE = 10

PointLike = Union[Point, Tuple[float, float], Sequence[float]]


def _as_coords(points: Union[np.ndarray, Iterable[PointLike]]) -> np.ndarray:
    """Normalize input to a fresh (N, 2) float64 array."""
    if isinstance(points, np.ndarray):
        arr = np.array(points, dtype=np.float64)
    else:
        arr = np.array(
            [p.as_tuple() if isinstance(p, Point) else tuple(p) for p in points],
            dtype=np.float64,
        )
    if arr.size == 0:
        return np.empty((0, 2), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"points must have shape (N, 2), got {arr.shape}")
    return arr


class PointIndex:
    """
    Immutable k-d tree for range and radius queries.

    Build cost is O(N log N): every level partitions its ranges with
    numpy.argpartition (introselect, linear time) instead of sorting.
    The arrays are flagged read-only once built; concurrent readers need no
    locking.
    """

    __slots__ = ("_ids", "_xs", "_ys", "_leaf_size", "_node_count")

    def __init__(self, points: Union[np.ndarray, Iterable[PointLike]], leaf_size: int = DEFAULT_LEAF_SIZE):
        if isinstance(leaf_size, bool) or not isinstance(leaf_size, (int, np.integer)) or leaf_size < 1:
            raise ValueError(f"leaf_size must be a positive integer, got {leaf_size!r}")
        coords = _as_coords(points)
        if not np.isfinite(coords).all():
            raise ValueError("points must have finite coordinates (no NaN/inf)")

        self._leaf_size = int(leaf_size)
        self._ids = np.arange(coords.shape[0], dtype=np.int64)
        self._xs = coords[:, 0].copy()
        self._ys = coords[:, 1].copy()
        self._node_count = self._partition()

        for a in (self._ids, self._xs, self._ys):
            a.setflags(write=False)

    @classmethod
    def build(cls, points: Union[np.ndarray, Iterable[PointLike]], leaf_size: int = DEFAULT_LEAF_SIZE) -> "PointIndex":
        return cls(points, leaf_size=leaf_size)

    # -------- construction --------

    def _partition(self) -> int:
        """Reorder ids/xs/ys into k-d order; returns the number of tree nodes."""
        ids, xs, ys = self._ids, self._xs, self._ys
        n = ids.shape[0]
        if n == 0:
            return 0
        leaf = self._leaf_size
        nodes = 0
        stack: List[Tuple[int, int, int]] = [(0, n, 0)]
        while stack:
            lo, hi, axis = stack.pop()
            nodes += 1
            if hi - lo <= leaf:
                continue
            m = lo + (hi - lo) // 2
            key = xs[lo:hi] if axis == 0 else ys[lo:hi]
            order = np.argpartition(key, m - lo, kind="introselect")
            ids[lo:hi] = ids[lo:hi][order]
            xs[lo:hi] = xs[lo:hi][order]
            ys[lo:hi] = ys[lo:hi][order]
            stack.append((lo, m, 1 - axis))
            if m + 1 < hi:
                stack.append((m + 1, hi, 1 - axis))
        return nodes

    # -------- queries --------

    def range(self, min_x: float, min_y: float, max_x: float, max_y: float) -> List[int]:
        """
        Original indices of all points with min_x <= x <= max_x and
        min_y <= y <= max_y. An inverted box yields []. Infinite bounds are fine.
        """
        n = self._ids.shape[0]
        if n == 0 or min_x > max_x or min_y > max_y:
            return []
        ids, xs, ys = self._ids, self._xs, self._ys
        leaf = self._leaf_size
        out: List[int] = []
        stack: List[Tuple[int, int, int]] = [(0, n, 0)]
        while stack:
            lo, hi, axis = stack.pop()
            if hi - lo <= leaf:
                sx = xs[lo:hi]
                sy = ys[lo:hi]
                mask = (sx >= min_x) & (sx <= max_x) & (sy >= min_y) & (sy <= max_y)
                if mask.any():
                    out.extend(ids[lo:hi][mask].tolist())
                continue

            m = lo + (hi - lo) // 2
            x = float(xs[m])
            y = float(ys[m])
            if min_x <= x <= max_x and min_y <= y <= max_y:
                out.append(int(ids[m]))

            if axis == 0:
                go_left, go_right = min_x <= x, max_x >= x
            else:
                go_left, go_right = min_y <= y, max_y >= y
            if go_left:
                stack.append((lo, m, 1 - axis))
            if go_right:
                stack.append((m + 1, hi, 1 - axis))
        return out

    def within(self, x: float, y: float, radius: float) -> List[int]:
        """
        Original indices of all points at Euclidean distance <= radius from
        (x, y). radius == 0 matches exactly coincident points only; a negative
        radius matches nothing.
        """
        n = self._ids.shape[0]
        if n == 0 or not radius >= 0:
            return []
        ids, xs, ys = self._ids, self._xs, self._ys
        leaf = self._leaf_size
        r2 = radius * radius
        out: List[int] = []
        stack: List[Tuple[int, int, int]] = [(0, n, 0)]
        while stack:
            lo, hi, axis = stack.pop()
            if hi - lo <= leaf:
                dx = xs[lo:hi] - x
                dy = ys[lo:hi] - y
                mask = dx * dx + dy * dy <= r2
                if mask.any():
                    out.extend(ids[lo:hi][mask].tolist())
                continue

            m = lo + (hi - lo) // 2
            mx = float(xs[m])
            my = float(ys[m])
            if (mx - x) * (mx - x) + (my - y) * (my - y) <= r2:
                out.append(int(ids[m]))

            split, c = (mx, x) if axis == 0 else (my, y)
            if c - radius <= split:
                stack.append((lo, m, 1 - axis))
            if c + radius >= split:
                stack.append((m + 1, hi, 1 - axis))
        return out

    def within_point(self, point: PointLike, radius: float) -> List[int]:
        px, py = point.as_tuple() if isinstance(point, Point) else (float(point[0]), float(point[1]))
        return self.within(px, py, radius)

    # -------- introspection --------

    def __len__(self) -> int:
        return int(self._ids.shape[0])

    def __repr__(self) -> str:
        return f"PointIndex(n={len(self)}, leaf_size={self._leaf_size})"

    @property
    def leaf_size(self) -> int:
        return self._leaf_size

    @property
    def node_count(self) -> int:
        return self._node_count

    @property
    def ids(self) -> np.ndarray:
        return self._ids

    @property
    def xs(self) -> np.ndarray:
        return self._xs

    @property
    def ys(self) -> np.ndarray:
        return self._ys
