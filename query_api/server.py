from __future__ import annotations

import argparse
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.config import DEFAULT_CONFIG_PATH, load_config
from common.errors import DatasetUnavailableError, IngestionError, ParseError
from common.logging_setup import get_logger, setup_logging
from dataset.manager import DatasetManager
from dataset.watcher import SourceWatcher
from query_api.surface import QuerySurface


log = get_logger("query_api.server")

API_VERSION = "1.0.0"


def _error(status: int, error: str, detail: str) -> JSONResponse:
    return JSONResponse({"error": error, "detail": detail}, status_code=status)


async def query_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Every failure becomes an error response for this request only."""
    if isinstance(exc, ParseError):
        log.warning("Bad request", extra={"extra": {"path": request.url.path, "error": str(exc)}})
        return _error(400, "bad_request", str(exc))

    if isinstance(exc, DatasetUnavailableError):
        return _error(503, "dataset_unavailable", str(exc))

    log.exception("Request failed", extra={"extra": {"path": request.url.path}})
    return _error(500, "internal_error", str(exc))


def build_manager(P: Dict) -> DatasetManager:
    return DatasetManager(
        P.get("sources", []),
        leaf_size=int(P.get("index", {}).get("leaf_size", 10)),
        on_error=str(P.get("reload", {}).get("on_error", "fail")),
    )


def create_app(P: Dict, manager: Optional[DatasetManager] = None) -> FastAPI:
    """
    Build the HTTP app around a DatasetManager.

    Startup performs the first load. If it fails the server still comes up:
    queries answer 503 until a watch event or POST /admin/reload produces a
    dataset.
    """
    manager = manager or build_manager(P)
    surface = QuerySurface(manager)
    watch_cfg = P.get("watch", {})

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            manager.initialize()
        except IngestionError as e:
            log.error("Initial load failed; serving 503 until a reload succeeds", extra={"extra": {"error": str(e)}})

        watcher: Optional[SourceWatcher] = None
        if watch_cfg.get("enabled", False):
            watcher = SourceWatcher(
                manager.sources,
                lambda: manager.reload(reason="watch"),
                interval_s=float(watch_cfg.get("interval_s", 1.0)),
                debounce_s=float(watch_cfg.get("debounce_s", 0.25)),
            ).start()
        app.state.watcher = watcher
        try:
            yield
        finally:
            if watcher is not None:
                watcher.stop()

    app = FastAPI(title="Point Feature API", version=API_VERSION, lifespan=lifespan)
    app.state.manager = manager
    for exc_type in (ParseError, DatasetUnavailableError, Exception):
        app.add_exception_handler(exc_type, query_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/features")
    def features(bbox: Optional[str] = Query(None, description="minX,minY,maxX,maxY")):
        return surface.bbox_query(bbox)

    @app.get("/nearest")
    def nearest(
        point: Optional[str] = Query(None, description="x,y"),
        radius: Optional[str] = Query(None, description="search radius, same units as the coordinates"),
    ):
        return surface.radius_query(point, radius)

    @app.post("/admin/reload")
    def admin_reload():
        """Force an immediate reload; reports the new feature count or why it failed."""
        result = manager.reload(reason="admin")
        if not result.ok:
            return _error(500, "ingestion_failed", result.error or "reload failed")
        return {
            "status": "ok",
            "features": result.features,
            "version": result.version,
            "elapsed_ms": round(result.elapsed_ms, 3),
        }

    @app.get("/health")
    def health():
        last = manager.last_result
        try:
            dataset = manager.current().stats()
        except DatasetUnavailableError:
            dataset = None
        watcher = getattr(app.state, "watcher", None)
        return {
            "status": "ok" if dataset is not None else "degraded",
            "dataset": dataset,
            "last_reload": last.to_dict() if last else None,
            "watching": bool(watcher and watcher.running),
        }

    @app.get("/stats")
    def stats():
        return {"dataset": manager.current().stats()}

    return app


def app_from_config() -> FastAPI:
    """App factory for `uvicorn --factory query_api.server:app_from_config`."""
    return create_app(load_config())


# -------- local dev entrypoint --------
def main() -> None:
    ap = argparse.ArgumentParser(description="Serve range / radius queries over GeoJSON point features")
    ap.add_argument("sources", nargs="*", help="GeoJSON files or directories (overrides config sources)")
    ap.add_argument("--config", default=DEFAULT_CONFIG_PATH)
    ap.add_argument("--host", default=None)
    ap.add_argument("--port", type=int, default=None)
    ap.add_argument("--leaf-size", type=int, default=None)
    ap.add_argument("--no-watch", action="store_true", help="Disable file polling")
    args = ap.parse_args()

    overrides: Dict[str, Any] = {}
    if args.sources:
        overrides["sources"] = list(args.sources)
    if args.leaf_size is not None:
        overrides["index"] = {"leaf_size": args.leaf_size}
    if args.no_watch:
        overrides["watch"] = {"enabled": False}

    P = load_config(args.config, overrides)
    setup_logging(P.get("logging", {}).get("level"), force=True)
    server_cfg = P.get("server", {})
    uvicorn.run(
        create_app(P),
        host=args.host or server_cfg.get("host", "0.0.0.0"),
        port=int(args.port or server_cfg.get("port", 8000)),
    )


if __name__ == "__main__":
    main()
