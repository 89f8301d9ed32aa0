from __future__ import annotations

import math
from typing import List, Optional

from common.errors import ParseError
from common.types import BoundingBox, Point


_ORDINALS = ("first", "second", "third", "fourth")


def _components(text: Optional[str], n: int, what: str) -> List[float]:
    if text is None or not text.strip():
        raise ParseError(f"{what} is required")
    parts = text.split(",")
    if len(parts) != n:
        raise ParseError(f"{what} string is not {n} components long")
    out: List[float] = []
    for i, raw in enumerate(parts):
        try:
            v = float(raw.strip())
        except ValueError:
            raise ParseError(f"could not decode {_ORDINALS[i]} {what} component: {raw!r}") from None
        if not math.isfinite(v):
            raise ParseError(f"{_ORDINALS[i]} {what} component must be finite, got {raw.strip()!r}")
        out.append(v)
    return out


def parse_bbox(text: Optional[str]) -> BoundingBox:
    """'minX,minY,maxX,maxY' -> BoundingBox. An inverted box parses fine and matches nothing."""
    min_x, min_y, max_x, max_y = _components(text, 4, "bbox")
    return BoundingBox(min_x, min_y, max_x, max_y)


def parse_point(text: Optional[str]) -> Point:
    """'x,y' -> Point."""
    x, y = _components(text, 2, "point")
    return Point(x, y)


def parse_radius(text: Optional[str]) -> float:
    """Single non-negative number."""
    if text is None or not str(text).strip():
        raise ParseError("radius is required")
    try:
        r = float(str(text).strip())
    except ValueError:
        raise ParseError(f"could not decode radius: {text!r}") from None
    if not math.isfinite(r):
        raise ParseError(f"radius must be finite, got {text!r}")
    if r < 0:
        raise ParseError(f"radius must be >= 0, got {text!r}")
    return r
