# app/tests/test_web.py
"""Tests for single-page app serving."""
import pytest
from fastapi.testclient import TestClient

from app.main import app

INDEX_HTML = "<!doctype html><div id=\"root\"></div>"


@pytest.fixture
def dist(tmp_path, monkeypatch):
    """A built frontend in a temp directory."""
    root = tmp_path / "dist"
    (root / "assets").mkdir(parents=True)
    (root / "index.html").write_text(INDEX_HTML)
    (root / "assets" / "app.js").write_text("console.log('app')")
    (tmp_path / "secret.txt").write_text("do not serve")
    monkeypatch.setenv("STATIC_DIR", str(root))
    return root


@pytest.fixture
def client():
    return TestClient(app)


class TestSpaServing:
    """Tests for the catch-all static route."""

    def test_root_serves_index(self, client, dist):
        response = client.get("/")

        assert response.status_code == 200
        assert "id=\"root\"" in response.text

    def test_asset_served(self, client, dist):
        response = client.get("/assets/app.js")

        assert response.status_code == 200
        assert "console.log" in response.text

    def test_client_route_falls_back_to_index(self, client, dist):
        response = client.get("/history/123")

        assert response.status_code == 200
        assert response.text == INDEX_HTML

    def test_missing_asset_falls_back_to_index(self, client, dist):
        response = client.get("/assets/missing.js")
        assert response.text == INDEX_HTML

    def test_path_traversal_not_served(self, client, dist):
        response = client.get("/..%2Fsecret.txt")

        assert "do not serve" not in response.text

    def test_unknown_api_path_is_json_404(self, client, dist):
        response = client.get("/api/nope")

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}

    def test_frontend_not_built(self, client, tmp_path, monkeypatch):
        monkeypatch.setenv("STATIC_DIR", str(tmp_path / "empty"))
        response = client.get("/")

        assert response.status_code == 404
        assert response.json() == {"error": "Frontend not built"}
