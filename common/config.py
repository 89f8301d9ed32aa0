from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_CONFIG_PATH = "config/params.yaml"

DEFAULTS: Dict[str, Any] = {
    "sources": ["data/features"],
    "index": {"leaf_size": 10},
    "reload": {"on_error": "fail"},
    "watch": {"enabled": True, "interval_s": 1.0, "debounce_s": 0.25},
    "server": {"host": "0.0.0.0", "port": 8000},
    "logging": {"level": "INFO"},
}


def _merge(base: Dict[str, Any], over: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in over.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Read the YAML config and merge it over DEFAULTS.

    A missing file is not an error: the defaults are returned so the server
    can start from CLI arguments alone. Env POINTSERVER_SOURCES (os.pathsep
    separated) replaces the `sources` list; explicit `overrides` win last.
    """
    cfg_path = Path(path or DEFAULT_CONFIG_PATH)
    P = copy.deepcopy(DEFAULTS)
    if cfg_path.exists():
        with cfg_path.open("r") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"{cfg_path}: top-level YAML must be a mapping")
        P = _merge(P, loaded)

    env_sources = os.environ.get("POINTSERVER_SOURCES")
    if env_sources:
        P["sources"] = [s for s in env_sources.split(os.pathsep) if s]

    if overrides:
        P = _merge(P, overrides)

    if isinstance(P.get("sources"), str):
        P["sources"] = [P["sources"]]
    return P
