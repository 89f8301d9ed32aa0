#!/usr/bin/env python3
"""
Write a GeoJSON FeatureCollection of random points for local testing.

Example:
  python scripts/make_sample_points.py --n 5000 --bbox -77.12,38.80,-76.90,38.99 --out data/features/sample.geojson
  python scripts/make_sample_points.py --n 100 --non-point 0.05 --out data/broken/sample.geojson
"""
from __future__ import annotations

import argparse
import json
import random
from pathlib import Path
from typing import Dict, List, Tuple

import numpy as np


def parse_bbox_arg(s: str) -> Tuple[float, float, float, float]:
    parts = [float(x) for x in s.split(",")]
    if len(parts) != 4:
        raise argparse.ArgumentTypeError("bbox must be minX,minY,maxX,maxY")
    return parts[0], parts[1], parts[2], parts[3]


def sample_features(
    n: int,
    bbox: Tuple[float, float, float, float],
    seed: int,
    non_point_share: float = 0.0,
) -> List[Dict]:
    rng = np.random.default_rng(seed)
    minx, miny, maxx, maxy = bbox
    xs = rng.uniform(minx, maxx, size=n)
    ys = rng.uniform(miny, maxy, size=n)
    picker = random.Random(seed)
    feats: List[Dict] = []
    for i, (x, y) in enumerate(zip(xs.tolist(), ys.tolist())):
        if non_point_share > 0 and picker.random() < non_point_share:
            geom = {"type": "LineString", "coordinates": [[x, y], [x + 1e-4, y + 1e-4]]}
        else:
            geom = {"type": "Point", "coordinates": [round(x, 7), round(y, 7)]}
        feats.append({"type": "Feature", "id": i, "geometry": geom, "properties": {"name": f"pt-{i:06d}"}})
    return feats


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--n", type=int, default=1000)
    ap.add_argument("--bbox", type=parse_bbox_arg, default=(-77.12, 38.80, -76.90, 38.99))
    ap.add_argument("--seed", type=int, default=42)
    ap.add_argument("--non-point", type=float, default=0.0, help="Share of LineString features (ingestion error demo)")
    ap.add_argument("--out", default="data/features/sample.geojson")
    args = ap.parse_args()

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    fc = {"type": "FeatureCollection", "features": sample_features(args.n, args.bbox, args.seed, args.non_point)}
    # write-then-rename so a watching server never reads half a file
    tmp = out.with_suffix(out.suffix + ".tmp")
    tmp.write_text(json.dumps(fc))
    tmp.replace(out)
    print(f"Wrote {args.n} features to {out}")


if __name__ == "__main__":
    main()
