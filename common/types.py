from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
import math


def _finite_float(v: Any, what: str) -> float:
    f = float(v)
    if not math.isfinite(f):
        raise ValueError(f"{what} must be finite, got {v!r}")
    return f


@dataclass(frozen=True, slots=True)
class Point:
    """
    Planar coordinate pair.

    Attributes:
        x: easting / longitude.
        y: northing / latitude.

    NaN and +/-inf are rejected at construction; the index assumes finite input.
    """
    x: float
    y: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", _finite_float(self.x, "x"))
        object.__setattr__(self, "y", _finite_float(self.y, "y"))

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned box [min_x, max_x] x [min_y, max_y] (edges inclusive)."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def is_empty(self) -> bool:
        return self.min_x > self.max_x or self.min_y > self.max_y

    @property
    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in self.as_tuple())

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)

    def contains(self, p: Point) -> bool:
        return (self.min_x <= p.x <= self.max_x) and (self.min_y <= p.y <= self.max_y)


@dataclass(frozen=True, slots=True)
class Feature:
    """
    One record of the served dataset.

    Attributes:
        data: the decoded GeoJSON Feature object; returned to clients untouched.
        point: representative coordinate, None when the geometry is not a Point.
    """
    data: Dict[str, Any] = field(repr=False)
    point: Optional[Point] = None

    @classmethod
    def from_geojson(cls, obj: Dict[str, Any]) -> "Feature":
        """
        Build a Feature from a GeoJSON Feature object.

        Raises ValueError for a Point geometry with missing or non-finite
        coordinates. Other geometry types produce point=None.
        """
        if not isinstance(obj, dict) or obj.get("type") != "Feature":
            raise ValueError("not a GeoJSON Feature object")
        geom = obj.get("geometry")
        if not isinstance(geom, dict) or geom.get("type") != "Point":
            return cls(data=obj, point=None)
        coords = geom.get("coordinates")
        if not isinstance(coords, (list, tuple)) or len(coords) < 2:
            raise ValueError("Point geometry needs at least 2 coordinates")
        # a third (altitude) member is carried in `data` only
        return cls(data=obj, point=Point(coords[0], coords[1]))

    @property
    def geometry_type(self) -> Optional[str]:
        geom = self.data.get("geometry")
        return geom.get("type") if isinstance(geom, dict) else None

    def to_geojson(self) -> Dict[str, Any]:
        return self.data
