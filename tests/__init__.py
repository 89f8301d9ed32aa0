"""
pointserver test suite

Structure:
- unit/: point index, dataset lifecycle, parsing/query surface, common helpers, scripts
- integration/: HTTP surface through FastAPI's TestClient
- conftest.py: GeoJSON fixtures written to tmp_path
"""
