"""
Shared fixtures: small GeoJSON files on disk.
"""

import json
import os
import sys

import pytest

project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(project_root)


def point_feature(x, y, fid=None, **props):
    f = {"type": "Feature", "geometry": {"type": "Point", "coordinates": [x, y]}, "properties": props}
    if fid is not None:
        f["id"] = fid
    return f


def line_feature(coords, fid=None):
    return {"type": "Feature", "id": fid, "geometry": {"type": "LineString", "coordinates": coords}, "properties": {}}


def write_fc(path, features):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"type": "FeatureCollection", "features": features}))
    return path


SCENARIO_FEATURES = [
    point_feature(0, 0, fid="a"),
    point_feature(1, 1, fid="b"),
    point_feature(2, 2, fid="c"),
    point_feature(10, 10, fid="d"),
    point_feature(-5, -5, fid="e"),
]


@pytest.fixture
def scenario_file(tmp_path):
    """The five-point scenario as a FeatureCollection file."""
    return write_fc(tmp_path / "data" / "points.geojson", SCENARIO_FEATURES)
