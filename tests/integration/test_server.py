"""
Integration tests for the HTTP surface (query_api.server)
"""

import os
import sys
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.config import load_config
from dataset.store import FeatureStore
from query_api.server import create_app
from tests.conftest import point_feature, write_fc


def _config(tmp_path, sources, **watch):
    return load_config(
        str(tmp_path / "no-such-config.yaml"),
        {"sources": [str(s) for s in sources], "index": {"leaf_size": 2}, "watch": {"enabled": False, **watch}},
    )


@pytest.fixture
def client(tmp_path, scenario_file):
    app = create_app(_config(tmp_path, [scenario_file]))
    with TestClient(app) as c:
        yield c


def ids(resp):
    return [f["id"] for f in resp.json()["features"]]


class TestQueries:
    """GET /features and GET /nearest"""

    def test_features_bbox(self, client):
        """Box query returns matching features as a FeatureCollection"""
        r = client.get("/features", params={"bbox": "0,0,2,2"})
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("application/json")
        assert r.json()["type"] == "FeatureCollection"
        assert ids(r) == ["a", "b", "c"]

    def test_nearest(self, client):
        """Radius query around a point"""
        r = client.get("/nearest", params={"point": "1,1", "radius": "1.5"})
        assert r.status_code == 200
        assert ids(r) == ["a", "b", "c"]

    def test_payload_round_trips(self, client):
        """Feature payloads are returned verbatim"""
        r = client.get("/features", params={"bbox": "9,9,11,11"})
        assert r.json()["features"] == [point_feature(10, 10, fid="d")]

    def test_malformed_bbox_is_400(self, client):
        """'1,2,3' is a client error with a readable message"""
        r = client.get("/features", params={"bbox": "1,2,3"})
        assert r.status_code == 400
        assert r.json()["error"] == "bad_request"
        assert "4 components" in r.json()["detail"]

    def test_missing_params_are_400(self, client):
        """Missing query parameters are client errors"""
        assert client.get("/features").status_code == 400
        assert client.get("/nearest", params={"point": "1,1"}).status_code == 400

    def test_unexpected_error_is_json_500(self, tmp_path, scenario_file):
        """A failure inside a query becomes a JSON 500 for that request only"""
        app = create_app(_config(tmp_path, [scenario_file]))
        with TestClient(app, raise_server_exceptions=False) as c:
            with patch.object(FeatureStore, "query_bounds", side_effect=RuntimeError("boom")):
                r = c.get("/features", params={"bbox": "0,0,2,2"})
            assert r.status_code == 500
            assert r.json() == {"error": "internal_error", "detail": "boom"}
            assert ids(c.get("/features", params={"bbox": "0,0,2,2"})) == ["a", "b", "c"]

    @pytest.mark.parametrize("params", [
        {"point": "nan,1", "radius": "1"},
        {"point": "1,1", "radius": "inf"},
        {"point": "1,1", "radius": "-1"},
    ])
    def test_invalid_radius_queries_are_400(self, client, params):
        """Non-finite or negative values are rejected before the index"""
        assert client.get("/nearest", params=params).status_code == 400


class TestReload:
    """Administrative trigger and dataset swap"""

    def test_admin_reload_success(self, client, scenario_file):
        """Reload picks up new file content and reports the feature count"""
        write_fc(scenario_file, [point_feature(0.5, 0.5, fid="z")])
        r = client.post("/admin/reload")
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "ok"
        assert body["features"] == 1
        assert body["version"] == 2
        assert ids(client.get("/features", params={"bbox": "0,0,2,2"})) == ["z"]

    def test_admin_reload_failure_keeps_dataset(self, client, scenario_file):
        """A broken source is reported; queries still see the old data"""
        scenario_file.write_text("]]] not geojson")
        r = client.post("/admin/reload")
        assert r.status_code == 500
        assert r.json()["error"] == "ingestion_failed"
        assert "invalid JSON" in r.json()["detail"]
        assert ids(client.get("/features", params={"bbox": "0,0,2,2"})) == ["a", "b", "c"]
        health = client.get("/health").json()
        assert health["status"] == "ok"
        assert health["dataset"]["version"] == 1
        assert health["last_reload"]["ok"] is False


class TestStartup:
    """Startup without a usable dataset"""

    def test_failed_startup_serves_503_until_reload(self, tmp_path):
        """The server comes up degraded and recovers via the admin trigger"""
        src = tmp_path / "later.geojson"
        app = create_app(_config(tmp_path, [src]))
        with TestClient(app) as c:
            assert c.get("/features", params={"bbox": "0,0,1,1"}).status_code == 503
            assert c.get("/stats").status_code == 503
            assert c.get("/health").json()["status"] == "degraded"
            write_fc(src, [point_feature(0.5, 0.5, fid="p")])
            assert c.post("/admin/reload").status_code == 200
            assert ids(c.get("/features", params={"bbox": "0,0,1,1"})) == ["p"]

    def test_watcher_lifecycle(self, tmp_path, scenario_file):
        """With watching enabled the poll thread runs for the app's lifetime"""
        app = create_app(_config(tmp_path, [scenario_file], enabled=True, interval_s=0.05))
        with TestClient(app) as c:
            assert c.get("/health").json()["watching"] is True
            watcher = app.state.watcher
        assert not watcher.running

    def test_import_does_not_read_config(self):
        """Importing the server module builds no app; the factory reads config when called"""
        import query_api.server as server

        assert not hasattr(server, "app")
        with patch("query_api.server.load_config", side_effect=ValueError("not a mapping")) as mock_load:
            with pytest.raises(ValueError):
                server.app_from_config()
        mock_load.assert_called_once_with()

    def test_stats(self, client):
        """/stats reports the active snapshot"""
        s = client.get("/stats").json()["dataset"]
        assert s["features"] == 5
        assert s["leaf_size"] == 2
        assert s["version"] == 1
