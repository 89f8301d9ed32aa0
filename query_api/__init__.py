"""
Query API — HTTP surface over the active dataset

- GET  /features?bbox=minX,minY,maxX,maxY   -> FeatureCollection (box query)
- GET  /nearest?point=x,y&radius=r          -> FeatureCollection (radius query)
- POST /admin/reload                        -> force a reload, report count / failure
- GET  /health, /stats

Entry point:
    python -m query_api.server --config config/params.yaml [SOURCES...]
"""
from .parsing import parse_bbox, parse_point, parse_radius
from .surface import QuerySurface

__all__ = ["QuerySurface", "parse_bbox", "parse_point", "parse_radius"]
