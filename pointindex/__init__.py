"""
Point Index — static k-d tree over 2-D points.

Built once from a point array (numpy-backed, flat layout) and queried by
axis-aligned box (range) or by radius around a point (within).

Usage:
    from pointindex import PointIndex
    idx = PointIndex.build(points, leaf_size=10)
"""
from .kdbush import DEFAULT_LEAF_SIZE, PointIndex

__all__ = ["DEFAULT_LEAF_SIZE", "PointIndex"]
