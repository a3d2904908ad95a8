"""Tests for the Tuteliq REST client."""

import asyncio
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import requests

from tuteliq_mcp.client import HARM_ENDPOINTS, TuteliqClient
from tuteliq_mcp.errors import TuteliqAPIError


def _response(status: int, body: Any = None, content: bytes | None = None) -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status
    response.ok = 200 <= status < 400
    if content is None:
        content = b"{}" if body is None else b"x"
    response.content = content
    if body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


def _client(*responses: Any) -> tuple[TuteliqClient, MagicMock]:
    http = MagicMock(spec=requests.Session)
    http.headers = {}
    http.request.side_effect = list(responses)
    client = TuteliqClient("tq-key", base_url="https://api.example.test/", http=http)
    return client, http


class TestTuteliqClientSetup:
    def test_requires_api_key(self) -> None:
        with pytest.raises(ValueError, match="API key is required"):
            TuteliqClient("")

    def test_sets_auth_headers(self) -> None:
        client, http = _client()

        assert http.headers["Authorization"] == "Bearer tq-key"
        assert http.headers["Accept"] == "application/json"
        assert client.base_url == "https://api.example.test"


class TestTuteliqClientRequest:
    def test_posts_compacted_json_to_versioned_path(self) -> None:
        client, http = _client(_response(200, {"is_bullying": False}))

        result = asyncio.run(client.detect_bullying("hello"))

        assert result == {"is_bullying": False}
        args, kwargs = http.request.call_args
        assert args == ("POST", "https://api.example.test/api/v1/safety/bullying")
        assert kwargs["json"] == {"content": "hello"}
        assert kwargs["timeout"] == client.timeout

    def test_harm_endpoint_mapping(self) -> None:
        client, http = _client(_response(200, {"detected": False}))

        asyncio.run(client.detect_harm("romance_scam", "hi", include_evidence=True))

        args, kwargs = http.request.call_args
        assert args[1].endswith("/api/v1" + HARM_ENDPOINTS["romance_scam"])
        assert kwargs["json"] == {"content": "hi", "include_evidence": True}

    def test_unknown_harm_endpoint(self) -> None:
        client, http = _client()

        with pytest.raises(ValueError, match="Unknown detection endpoint"):
            asyncio.run(client.detect_harm("nonsense", "hi"))
        http.request.assert_not_called()

    def test_client_error_is_not_retried(self) -> None:
        client, http = _client(_response(401, {"error": {"message": "Invalid API key"}}))

        with patch("tuteliq_mcp.retry.time.sleep") as sleep_mock:
            with pytest.raises(TuteliqAPIError, match="Invalid API key") as exc_info:
                client.request("GET", "/webhooks")

        assert exc_info.value.status_code == 401
        assert http.request.call_count == 1
        sleep_mock.assert_not_called()

    def test_server_error_is_retried(self) -> None:
        client, http = _client(
            _response(503, {"message": "busy"}),
            _response(200, {"webhooks": []}),
        )

        with patch("tuteliq_mcp.retry.time.sleep") as sleep_mock:
            result = client.request("GET", "/webhooks")

        assert result == {"webhooks": []}
        assert http.request.call_count == 2
        sleep_mock.assert_called_once()

    def test_retries_exhausted_keep_status(self) -> None:
        client, http = _client(*(_response(429, {"detail": "slow down"}) for _ in range(3)))

        with patch("tuteliq_mcp.retry.time.sleep"):
            with pytest.raises(TuteliqAPIError, match="slow down") as exc_info:
                client.request("GET", "/webhooks")

        assert exc_info.value.status_code == 429
        assert http.request.call_count == 3

    def test_connection_failure_becomes_api_error(self) -> None:
        client, http = _client(*(requests.ConnectionError("refused") for _ in range(3)))

        with patch("tuteliq_mcp.retry.time.sleep"):
            with pytest.raises(TuteliqAPIError, match="refused") as exc_info:
                client.request("GET", "/webhooks")

        assert exc_info.value.status_code is None
        assert http.request.call_count == 3

    def test_empty_body_returns_empty_dict(self) -> None:
        client, _ = _client(_response(204, content=b""))

        assert asyncio.run(client.delete_webhook("wh_1")) == {}

    def test_invalid_json_body(self) -> None:
        client, _ = _client(_response(200, content=b"<html>"))

        with pytest.raises(TuteliqAPIError, match="invalid JSON"):
            client.request("GET", "/webhooks")

    def test_error_without_body_reports_status(self) -> None:
        client, _ = _client(_response(404, content=b""))

        with pytest.raises(TuteliqAPIError, match="HTTP 404"):
            client.request("GET", "/webhooks/missing")


class TestTuteliqClientEndpoints:
    def test_media_upload_is_multipart(self) -> None:
        client, http = _client(_response(200, {"overall_severity": "low"}))

        asyncio.run(client.analyze_voice(b"RIFF", "clip.wav", child_age=12))

        args, kwargs = http.request.call_args
        assert args[1].endswith("/api/v1/safety/voice")
        assert kwargs["files"] == {"file": ("clip.wav", b"RIFF")}
        assert kwargs["data"] == {"analysis_type": "all", "child_age": "12"}
        assert kwargs["json"] is None

    def test_update_webhook_uses_put_and_skips_unset_fields(self) -> None:
        client, http = _client(_response(200, {"id": "wh_1"}))

        asyncio.run(client.update_webhook("wh_1", is_active=False))

        args, kwargs = http.request.call_args
        assert args == ("PUT", "https://api.example.test/api/v1/webhooks/wh_1")
        assert kwargs["json"] == {"is_active": False}

    def test_generate_report_wraps_incident_type(self) -> None:
        client, http = _client(_response(200, {"summary": "s"}))
        messages = [{"sender": "a", "content": "b"}]

        asyncio.run(client.generate_report(messages, incident_type="bullying"))

        assert http.request.call_args.kwargs["json"] == {
            "messages": messages,
            "incident": {"type": "bullying"},
        }
