from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from common.errors import ParseError
from common.types import BoundingBox, Point
from dataset.manager import DatasetManager
from dataset.store import FeatureStore, to_feature_collection
from query_api.parsing import parse_bbox, parse_point, parse_radius


class QuerySurface:
    """
    Turns box / radius descriptors into index queries against the active
    dataset and returns GeoJSON FeatureCollections.

    Each call takes exactly one snapshot from the manager and uses it for the
    query and the id -> feature mapping, so a concurrent reload cannot mix
    two datasets into one answer. Result features are in ascending id order.
    """

    def __init__(self, manager: DatasetManager):
        self.manager = manager

    @staticmethod
    def _collect(store: FeatureStore, ids: List[int]) -> Dict[str, Any]:
        return to_feature_collection(store.features_for(sorted(ids)))

    def features_in_bbox(self, bbox: BoundingBox) -> Dict[str, Any]:
        if not bbox.is_finite:
            raise ParseError("bbox components must be finite")
        store = self.manager.current()
        return self._collect(store, store.query_bounds(bbox))

    def features_near(self, point: Point, radius: float) -> Dict[str, Any]:
        # Point already rejects non-finite coordinates on construction
        if not math.isfinite(radius):
            raise ParseError("radius must be finite")
        if radius < 0:
            raise ParseError("radius must be >= 0")
        store = self.manager.current()
        return self._collect(store, store.query_radius(point, radius))

    # -------- text entry points (HTTP query strings) --------

    def bbox_query(self, bbox_text: Optional[str]) -> Dict[str, Any]:
        return self.features_in_bbox(parse_bbox(bbox_text))

    def radius_query(self, point_text: Optional[str], radius_text: Optional[str]) -> Dict[str, Any]:
        return self.features_near(parse_point(point_text), parse_radius(radius_text))
