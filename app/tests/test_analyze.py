# app/tests/test_analyze.py
"""Tests for the Gemini relay endpoint."""
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient

from app.gemini_client import DEFAULT_GEMINI_MODEL, get_endpoint
from app.main import app

PAYLOAD = {
    "contents": [{"parts": [{"text": "<rfq_document>a</rfq_document><bid_document>b</bid_document>"}]}],
    "systemInstruction": {"parts": [{"text": "You are the SmartProcure AI Auditor."}]},
    "generationConfig": {"responseMimeType": "application/json"},
}

PROVIDER_RESPONSE = {
    "candidates": [{"content": {"parts": [{"text": "{\"vendorName\": \"Acme\"}"}]}}],
    "usageMetadata": {"totalTokenCount": 42},
}


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "test-key")
    monkeypatch.delenv("GEMINI_MODEL", raising=False)


def _mock_response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    if body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


def _patch_gemini(response=None, side_effect=None):
    patcher = patch("app.gemini_client.httpx.AsyncClient")
    mock_client = patcher.start()
    post = AsyncMock(return_value=response, side_effect=side_effect)
    mock_client.return_value.__aenter__.return_value.post = post
    return patcher, post


class TestAnalyzeRelay:
    """Tests for POST /api/analyze."""

    def test_success_returns_provider_json_unchanged(self, client, api_key):
        patcher, post = _patch_gemini(_mock_response(200, PROVIDER_RESPONSE))
        try:
            response = client.post("/api/analyze", json=PAYLOAD)
        finally:
            patcher.stop()

        assert response.status_code == 200
        assert response.json() == PROVIDER_RESPONSE

    def test_forwards_body_and_key(self, client, api_key):
        patcher, post = _patch_gemini(_mock_response(200, PROVIDER_RESPONSE))
        try:
            client.post("/api/analyze", json=PAYLOAD)
        finally:
            patcher.stop()

        args, kwargs = post.call_args
        assert args[0] == get_endpoint(DEFAULT_GEMINI_MODEL)
        assert kwargs["params"] == {"key": "test-key"}
        assert kwargs["json"] == PAYLOAD

    def test_model_override(self, client, api_key, monkeypatch):
        monkeypatch.setenv("GEMINI_MODEL", "gemini-1.5-pro")
        patcher, post = _patch_gemini(_mock_response(200, PROVIDER_RESPONSE))
        try:
            client.post("/api/analyze", json=PAYLOAD)
        finally:
            patcher.stop()

        assert "gemini-1.5-pro:generateContent" in post.call_args[0][0]

    def test_optional_fields_not_forwarded_when_absent(self, client, api_key):
        patcher, post = _patch_gemini(_mock_response(200, PROVIDER_RESPONSE))
        try:
            client.post("/api/analyze", json={"contents": PAYLOAD["contents"]})
        finally:
            patcher.stop()

        assert post.call_args.kwargs["json"] == {"contents": PAYLOAD["contents"]}

    def test_provider_error_message_passed_through(self, client, api_key):
        body = {"error": {"code": 400, "message": "API key not valid."}}
        patcher, _ = _patch_gemini(_mock_response(400, body))
        try:
            response = client.post("/api/analyze", json=PAYLOAD)
        finally:
            patcher.stop()

        assert response.status_code == 500
        assert response.json() == {"error": "API key not valid."}

    def test_provider_error_without_message(self, client, api_key):
        patcher, _ = _patch_gemini(_mock_response(503, None))
        try:
            response = client.post("/api/analyze", json=PAYLOAD)
        finally:
            patcher.stop()

        assert response.status_code == 500
        assert response.json() == {"error": "Google API Error"}

    def test_transport_failure_is_500(self, client, api_key):
        patcher, _ = _patch_gemini(side_effect=httpx.ConnectError("connection refused"))
        try:
            response = client.post("/api/analyze", json=PAYLOAD)
        finally:
            patcher.stop()

        assert response.status_code == 500
        assert "connection refused" in response.json()["error"]

    def test_missing_key_is_500(self, client, monkeypatch):
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        response = client.post("/api/analyze", json=PAYLOAD)

        assert response.status_code == 500
        assert "GOOGLE_API_KEY" in response.json()["error"]

    def test_missing_contents_is_400(self, client, api_key):
        response = client.post("/api/analyze", json={"generationConfig": {}})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid request body"
        assert any("contents" in d["loc"] for d in data["detail"])

    def test_empty_contents_is_400(self, client, api_key):
        response = client.post("/api/analyze", json={"contents": []})
        assert response.status_code == 400

    def test_non_json_body_is_400(self, client, api_key):
        response = client.post("/api/analyze", content=b"not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 400
