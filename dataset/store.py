from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from common.errors import GeometryError
from common.types import BoundingBox, Feature, Point
from common.utils import iso_now_ms
from pointindex import DEFAULT_LEAF_SIZE, PointIndex


def to_feature_collection(features: Iterable[Feature]) -> Dict[str, Any]:
    """Wrap features into a GeoJSON FeatureCollection document."""
    return {
        "type": "FeatureCollection",
        "features": [f.to_geojson() for f in features],
    }


@dataclass(frozen=True)
class FeatureStore:
    """
    Immutable snapshot: the ordered feature list plus a PointIndex over it.

    Index original-index i is features[i]; the list is never reordered.
    Instances are shared between request threads without locking.
    """
    features: Tuple[Feature, ...] = field(repr=False)
    index: PointIndex = field(repr=False)
    version: int = 0
    loaded_at: str = ""
    sources: Tuple[str, ...] = ()

    @classmethod
    def build(
        cls,
        features: Sequence[Feature],
        *,
        leaf_size: int = DEFAULT_LEAF_SIZE,
        version: int = 0,
        sources: Iterable[str] = (),
    ) -> "FeatureStore":
        """
        Extract one point per feature and build the index.

        Raises GeometryError on the first feature without a Point geometry.
        """
        feats = tuple(features)
        points: List[Point] = []
        for i, f in enumerate(feats):
            if f.point is None:
                raise GeometryError(
                    f"feature #{i} has geometry {f.geometry_type!r}; only Point features can be indexed",
                    position=i,
                )
            points.append(f.point)
        return cls(
            features=feats,
            index=PointIndex.build(points, leaf_size=leaf_size),
            version=version,
            loaded_at=iso_now_ms(),
            sources=tuple(str(s) for s in sources),
        )

    def with_version(self, version: int) -> "FeatureStore":
        """Same data and index, new version stamp (used on publish)."""
        return FeatureStore(
            features=self.features,
            index=self.index,
            version=version,
            loaded_at=self.loaded_at,
            sources=self.sources,
        )

    def __len__(self) -> int:
        return len(self.features)

    # -------- queries --------

    def query_bounds(self, bbox: BoundingBox) -> List[int]:
        return self.index.range(bbox.min_x, bbox.min_y, bbox.max_x, bbox.max_y)

    def query_radius(self, point: Point, radius: float) -> List[int]:
        return self.index.within(point.x, point.y, radius)

    def features_for(self, indices: Iterable[int]) -> List[Feature]:
        n = len(self.features)
        out: List[Feature] = []
        for i in indices:
            assert 0 <= i < n, f"index {i} out of range for {n} features"
            out.append(self.features[i])
        return out

    def stats(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "features": len(self.features),
            "loaded_at": self.loaded_at,
            "leaf_size": self.index.leaf_size,
            "nodes": self.index.node_count,
            "sources": len(self.sources),
        }
