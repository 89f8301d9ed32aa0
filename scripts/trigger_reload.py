#!/usr/bin/env python3
"""
Operator trigger: ask a running server to reload its dataset now.

Example:
  python scripts/trigger_reload.py --api http://127.0.0.1:8000
"""
from __future__ import annotations

import argparse
import sys
from typing import Dict, Tuple

import requests


def trigger_reload(base_url: str, timeout: float = 30.0) -> Tuple[bool, Dict]:
    """POST /admin/reload. Returns (ok, response_json)."""
    r = requests.post(base_url.rstrip("/") + "/admin/reload", timeout=timeout)
    try:
        body = r.json()
    except ValueError:
        body = {"error": "non_json_response", "detail": r.text[:200]}
    return r.status_code == 200, body


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--api", default="http://127.0.0.1:8000")
    ap.add_argument("--timeout", type=float, default=30.0)
    args = ap.parse_args()

    try:
        ok, body = trigger_reload(args.api, timeout=args.timeout)
    except requests.RequestException as e:
        print(f"Reload request failed: {e}", file=sys.stderr)
        return 2
    if ok:
        print(f"Reloaded: {body.get('features')} features (version {body.get('version')}, {body.get('elapsed_ms')} ms)")
        return 0
    print(f"Reload failed: {body.get('detail') or body.get('error')}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
