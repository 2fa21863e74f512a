"""Tests for the shared channel session."""

import io
import json
import urllib.error

import pytest

from imc_distribution import session as session_mod
from imc_distribution.errors import AuthenticationError, CapabilityError, ChannelError, ChannelTimeoutError
from imc_distribution.session import ChannelSession, extract_error


class FakeResponse:
    def __init__(self, body=b"", status=200, headers=None):
        self._body = body
        self.status = status
        self.headers = headers or {}

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def _http_error(code, payload):
    body = io.BytesIO(json.dumps(payload).encode("utf-8"))
    return urllib.error.HTTPError("https://api.example.com", code, "error", {}, body)


def _patch_urlopen(monkeypatch, outcome):
    seen = []

    def fake_urlopen(req, timeout=None):
        seen.append((req, timeout))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(session_mod.urllib.request, "urlopen", fake_urlopen)
    return seen


class TestExtractError:
    def test_graph_shape(self):
        payload = {"error": {"message": "(#3) Capability", "type": "OAuthException", "code": 3}}
        assert extract_error(payload) == (3, "(#3) Capability")

    def test_eventbrite_shape(self):
        payload = {"error": "NOT_AUTHORIZED", "error_description": "You are not authorized", "status_code": 403}
        assert extract_error(payload) == (403, "NOT_AUTHORIZED: You are not authorized")

    def test_success_payload(self):
        assert extract_error({"id": "1"}) is None
        assert extract_error([1, 2]) is None


class TestDryRun:
    def test_records_without_credentials(self):
        session = ChannelSession()
        result = session.post_json("press", "https://api.resend.com/emails", {"to": ["a@b.c"]},
                                   headers={"Authorization": "Bearer secret"})

        assert result == {"id": "mock-press-1", "mock": True}
        recorded = session.recorded[0]
        assert recorded.method == "POST"
        assert recorded.body == {"to": ["a@b.c"]}
        assert "Authorization" not in recorded.headers

    def test_form_and_bytes(self):
        session = ChannelSession()
        session.post_form("facebook", "https://graph.facebook.com/v25.0/1/events", {"name": "x"})
        assert session.get_bytes("linkedin", "https://cdn.example.com/a.jpg") == b""
        assert [r.channel for r in session.recorded] == ["facebook", "linkedin"]


class TestLive:
    def test_json_response(self, monkeypatch):
        seen = _patch_urlopen(monkeypatch, FakeResponse(b'{"id": "42"}'))
        result = ChannelSession(timeout=7, live=True).post_json("facebook", "https://graph.example.com", {})
        assert result == {"id": "42"}
        assert seen[0][1] == 7

    def test_empty_body_returns_headers(self, monkeypatch):
        _patch_urlopen(monkeypatch, FakeResponse(b"", 201, {"X-RestLi-Id": "urn:li:share:1"}))
        result = ChannelSession(live=True).post_json("linkedin", "https://api.linkedin.com/rest/posts", {})
        assert result == {"status": 201, "headers": {"x-restli-id": "urn:li:share:1"}}

    def test_capability_http_error(self, monkeypatch):
        _patch_urlopen(monkeypatch, _http_error(400, {"error": {"message": "Capability", "code": 3}}))
        with pytest.raises(CapabilityError) as exc_info:
            ChannelSession(live=True).post_form("facebook", "https://graph.example.com", {})
        assert exc_info.value.code == 3
        assert exc_info.value.status == 400

    def test_resend_style_http_error(self, monkeypatch):
        _patch_urlopen(monkeypatch, _http_error(401, {"statusCode": 401, "message": "API key is invalid"}))
        with pytest.raises(AuthenticationError):
            ChannelSession(live=True).post_json("press", "https://api.resend.com/emails", {})

    def test_error_in_ok_body(self, monkeypatch):
        _patch_urlopen(monkeypatch, FakeResponse(b'{"error": {"message": "Unknown", "code": 1}}'))
        with pytest.raises(ChannelError):
            ChannelSession(live=True).get_json("instagram", "https://graph.example.com")

    def test_timeout(self, monkeypatch):
        _patch_urlopen(monkeypatch, TimeoutError("timed out"))
        with pytest.raises(ChannelTimeoutError):
            ChannelSession(timeout=2, live=True).post_json("eventbrite", "https://api.example.com", {})

    def test_wrapped_timeout(self, monkeypatch):
        _patch_urlopen(monkeypatch, urllib.error.URLError(TimeoutError("timed out")))
        with pytest.raises(ChannelTimeoutError):
            ChannelSession(live=True).get_bytes("linkedin", "https://cdn.example.com/a.jpg")

    def test_connection_error(self, monkeypatch):
        _patch_urlopen(monkeypatch, urllib.error.URLError("Name or service not known"))
        with pytest.raises(ChannelError, match="connection error"):
            ChannelSession(live=True).post_json("press", "https://api.resend.com/emails", {})
