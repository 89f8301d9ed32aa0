from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, List, Sequence, Tuple

from common.errors import IngestionError
from common.logging_setup import get_logger
from common.types import Feature


log = get_logger("dataset.loader")

FEATURE_SUFFIXES = (".geojson", ".json")
ON_ERROR_POLICIES = ("fail", "skip")


def iter_source_files(sources: Iterable[str]) -> List[Path]:
    """
    Expand sources into an ordered list of files.

        a/points.geojson      -> taken as-is, whatever the suffix
        a/dir/                -> every *.geojson / *.json below it, sorted by path

    Other files found under a directory are skipped with a warning.
    A source that does not exist raises IngestionError.
    """
    files: List[Path] = []
    for src in sources:
        p = Path(src)
        try:
            if p.is_file():
                files.append(p)
                continue
            if not p.is_dir():
                raise IngestionError("source does not exist", source=str(p))
            children = sorted(c for c in p.rglob("*") if c.is_file())
        except OSError as e:
            raise IngestionError(f"cannot list source: {e}", source=str(p)) from e
        for child in children:
            if child.suffix.lower() in FEATURE_SUFFIXES:
                files.append(child)
            else:
                log.warning("Skipping non-feature file", extra={"extra": {"path": str(child)}})
    return files


def _decode_features(doc: Any, source: str) -> List[Feature]:
    if not isinstance(doc, dict):
        raise IngestionError("top-level JSON value is not an object", source=source)
    kind = doc.get("type")
    if kind == "FeatureCollection":
        raw = doc.get("features")
        if not isinstance(raw, list):
            raise IngestionError("FeatureCollection has no 'features' array", source=source)
    elif kind == "Feature":
        raw = [doc]
    else:
        raise IngestionError(f"unsupported GeoJSON type {kind!r}", source=source)

    out: List[Feature] = []
    for i, obj in enumerate(raw):
        try:
            out.append(Feature.from_geojson(obj))
        except (TypeError, ValueError) as e:
            raise IngestionError(f"feature #{i}: {e}", source=source) from e
    return out


def read_features(path: Path) -> List[Feature]:
    """Decode one GeoJSON file (FeatureCollection or single Feature)."""
    source = str(path)
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise IngestionError(f"cannot read file: {e}", source=source) from e
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise IngestionError(f"invalid JSON: {e}", source=source) from e
    except (RecursionError, ValueError) as e:
        # nesting deeper than the decoder allows, or an oversized integer literal
        raise IngestionError(f"undecodable JSON: {type(e).__name__}", source=source) from e
    return _decode_features(doc, source)


def load_features(sources: Sequence[str], *, on_error: str = "fail") -> Tuple[List[Feature], List[Path]]:
    """
    Read every source and concatenate their features in order.

    Returns (features, files_used). With on_error="fail" the first bad file
    aborts the batch; with on_error="skip" bad files are logged and left out.
    """
    if on_error not in ON_ERROR_POLICIES:
        raise ValueError(f"on_error must be one of {ON_ERROR_POLICIES}, got {on_error!r}")

    features: List[Feature] = []
    used: List[Path] = []
    for path in iter_source_files(sources):
        try:
            chunk = read_features(path)
        except IngestionError as e:
            if on_error == "fail":
                raise
            log.warning("Skipped source", extra={"extra": {"path": str(path), "error": str(e)}})
            continue
        if on_error == "skip" and any(f.point is None for f in chunk):
            # otherwise FeatureStore.build would reject the whole batch
            log.warning("Skipped source with non-point features", extra={"extra": {"path": str(path)}})
            continue
        features.extend(chunk)
        used.append(path)
        log.debug("Read source", extra={"extra": {"path": str(path), "features": len(chunk)}})
    return features, used
