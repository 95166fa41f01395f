"""Tests for the synchronous HTTP client."""

from __future__ import annotations

import json
from typing import Optional

import httpx
import pytest
from pydantic import BaseModel

from bbcli.client import DEFAULT_BASE_URL, USER_AGENT, Client, Request
from bbcli.exceptions import APIError, TransportError
from bbcli.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


BASE = "https://api.example.com/2.0"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class Recorder:
    """MockTransport handler that records requests and returns a fixed response."""

    def __init__(self, response: Optional[httpx.Response] = None) -> None:
        self.response = response or httpx.Response(200, json={"ok": True})
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def _client(handler, token: str = "secret", **kwargs) -> Client:
    return Client(base_url=BASE, token=token, transport=httpx.MockTransport(handler), **kwargs)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_default_base_url(self) -> None:
        with Client() as client:
            assert client.base_url == DEFAULT_BASE_URL

    def test_trailing_slash_stripped_once(self) -> None:
        with Client(base_url="https://bb.internal/api/") as client:
            assert client.base_url == "https://bb.internal/api"

    def test_no_request_on_construction(self) -> None:
        recorder = Recorder()
        client = _client(recorder)
        client.close()
        assert recorder.requests == []

    def test_clients_are_independent(self) -> None:
        first = Recorder()
        second = Recorder()
        with _client(first, token="one") as a, _client(second, token="two") as b:
            a.get("/user")
            b.get("/user")
        assert first.last.headers["Authorization"] == "Bearer one"
        assert second.last.headers["Authorization"] == "Bearer two"


# ---------------------------------------------------------------------------
# URL and query
# ---------------------------------------------------------------------------


class TestURL:
    def test_relative_path_joined_to_base(self) -> None:
        recorder = Recorder()
        with _client(recorder) as client:
            client.get("/repositories/acme")
        assert str(recorder.last.url) == f"{BASE}/repositories/acme"

    def test_absolute_url_used_unchanged(self) -> None:
        recorder = Recorder()
        with _client(recorder) as client:
            client.get("https://other.example.com/2.0/repositories/acme?page=2")
        assert recorder.last.url.host == "other.example.com"
        assert recorder.last.url.params["page"] == "2"

    def test_query_order_preserved(self) -> None:
        recorder = Recorder()
        with _client(recorder) as client:
            client.get("/issues", [("b", "2"), ("a", "1"), ("b", "3")])
        assert str(recorder.last.url).endswith("/issues?b=2&a=1&b=3")

    def test_interleaved_keys_keep_order(self) -> None:
        recorder = Recorder()
        with _client(recorder) as client:
            client.get("/r", [("q", "a"), ("page", "2"), ("q", "b")])
        assert recorder.last.url.query == b"q=a&page=2&q=b"

    def test_query_appended_to_absolute_url_with_query(self) -> None:
        recorder = Recorder()
        with _client(recorder) as client:
            client.get("https://api.example.com/2.0/issues?page=2", [("pagelen", "5")])
        assert str(recorder.last.url) == "https://api.example.com/2.0/issues?page=2&pagelen=5"

    def test_mapping_query_with_multiple_values(self) -> None:
        recorder = Recorder()
        with _client(recorder) as client:
            client.get("/issues", {"state": ["new", "open"], "sort": "-id"})
        assert recorder.last.url.params.get_list("state") == ["new", "open"]
        assert recorder.last.url.params["sort"] == "-id"


# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------


class TestHeaders:
    def test_default_headers(self) -> None:
        recorder = Recorder()
        with _client(recorder) as client:
            client.get("/user")
        headers = recorder.last.headers
        assert headers["Accept"] == "application/json"
        assert headers["Authorization"] == "Bearer secret"
        assert headers["User-Agent"] == USER_AGENT
        assert "Content-Type" not in headers

    def test_empty_token_sends_no_authorization(self) -> None:
        recorder = Recorder()
        with _client(recorder, token="") as client:
            client.get("/repositories/acme")
        assert "Authorization" not in recorder.last.headers

    def test_content_type_only_with_body(self) -> None:
        recorder = Recorder()
        with _client(recorder) as client:
            client.post("/repositories/acme/widgets/issues", {"title": "x"})
        assert recorder.last.headers["Content-Type"] == "application/json"

    def test_caller_headers_override_defaults(self) -> None:
        recorder = Recorder(httpx.Response(200, text="log"))
        request = Request(
            "GET",
            "/log",
            headers={"Accept": "text/plain", "Authorization": "Basic abc"},
        )
        with _client(recorder) as client:
            client.do(request)
        assert recorder.last.headers["Accept"] == "text/plain"
        assert recorder.last.headers["Authorization"] == "Basic abc"

    def test_user_agent_not_overridable(self) -> None:
        recorder = Recorder()
        with _client(recorder) as client:
            client.do(Request("GET", "/user", headers={"User-Agent": "other/1.0"}))
        assert recorder.last.headers["User-Agent"] == USER_AGENT
        assert USER_AGENT.startswith("bbcli/")


# ---------------------------------------------------------------------------
# Body encoding
# ---------------------------------------------------------------------------


class _Update(BaseModel):
    title: Optional[str] = None
    state: Optional[str] = None


class TestBody:
    def test_json_body(self) -> None:
        recorder = Recorder(httpx.Response(201, json={"id": 1}))
        with _client(recorder) as client:
            response = client.post("/items", {"name": "test", "active": True})
        assert json.loads(recorder.last.content) == {"name": "test", "active": True}
        assert response.status_code == 201

    def test_pydantic_body_sends_only_set_fields(self) -> None:
        recorder = Recorder()
        with _client(recorder) as client:
            client.put("/items/1", _Update(state=""))
        assert json.loads(recorder.last.content) == {"state": ""}

    def test_no_body_sends_empty_content(self) -> None:
        recorder = Recorder(httpx.Response(204))
        with _client(recorder) as client:
            client.delete("/items/1")
        assert recorder.last.content == b""

    def test_unserialisable_body_is_transport_error_and_not_sent(self) -> None:
        recorder = Recorder()
        with _client(recorder) as client:
            with pytest.raises(TransportError, match="could not encode request body"):
                client.post("/items", {"when": object()})
        assert recorder.requests == []


# ---------------------------------------------------------------------------
# Outcome classification
# ---------------------------------------------------------------------------


class TestOutcome:
    @pytest.mark.parametrize("status", [200, 201, 204, 304])
    def test_success_and_redirect_range_returned(self, status: int) -> None:
        recorder = Recorder(httpx.Response(status, content=b"" if status in (204, 304) else b"{}"))
        with _client(recorder) as client:
            response = client.get("/thing")
        assert response.status_code == status

    def test_response_carries_body_and_headers(self) -> None:
        recorder = Recorder(httpx.Response(200, json={"a": 1}, headers={"X-Request-Id": "r1"}))
        with _client(recorder) as client:
            response = client.get("/thing")
        assert response.json() == {"a": 1}
        assert response.headers["x-request-id"] == "r1"

    def test_error_envelope_parsed(self) -> None:
        body = {
            "type": "error",
            "error": {
                "message": "Bad request",
                "detail": "Title is required",
                "fields": {"title": ["required", "too short"], "kind": "invalid"},
            },
        }
        recorder = Recorder(httpx.Response(400, json=body))
        with _client(recorder) as client:
            with pytest.raises(APIError) as exc_info:
                client.post("/issues", {})
        err = exc_info.value
        assert err.status_code == 400
        assert err.message == "Bad request"
        assert err.detail == "Title is required"
        assert err.fields == {"title": "required; too short", "kind": "invalid"}
        assert str(err) == "API error 400: Bad request - Title is required"
        assert err.exit_code == EXIT_GENERIC_FAILURE

    def test_error_response_attached(self) -> None:
        recorder = Recorder(httpx.Response(404, json={"error": {"message": "Repository not found"}}))
        with _client(recorder) as client:
            with pytest.raises(APIError) as exc_info:
                client.get("/repositories/acme/nope")
        err = exc_info.value
        assert err.response is not None
        assert err.response.status_code == 404
        assert b"Repository not found" in err.response.body
        assert str(err) == "API error 404: Repository not found"
        assert err.exit_code == EXIT_NOT_FOUND

    def test_non_json_error_falls_back_to_reason_phrase(self) -> None:
        recorder = Recorder(httpx.Response(503, text="<html>down</html>"))
        with _client(recorder) as client:
            with pytest.raises(APIError) as exc_info:
                client.get("/user")
        assert exc_info.value.message == "Service Unavailable"
        assert exc_info.value.detail == ""
        assert exc_info.value.exit_code == EXIT_SERVER_ERROR

    def test_envelope_without_message_falls_back_to_reason_phrase(self) -> None:
        recorder = Recorder(httpx.Response(401, json={"error": {"detail": "token expired"}}))
        with _client(recorder) as client:
            with pytest.raises(APIError) as exc_info:
                client.get("/user")
        assert exc_info.value.message == "Unauthorized"
        assert exc_info.value.exit_code == EXIT_AUTH_FAILURE


# ---------------------------------------------------------------------------
# Transport failures and timeouts
# ---------------------------------------------------------------------------


class TestTransport:
    def test_connect_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with _client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                client.get("/user")
        err = exc_info.value
        assert "could not reach API" in str(err)
        assert isinstance(err.__cause__, httpx.ConnectError)
        assert err.exit_code == EXIT_CONNECTION_ERROR

    def test_timeout_is_transport_error_not_api_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with _client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                client.get("/user")
        assert not isinstance(exc_info.value, APIError)
        assert isinstance(exc_info.value.__cause__, httpx.TimeoutException)

    def test_per_call_timeout_applied(self) -> None:
        recorder = Recorder()
        with _client(recorder, timeout=30.0) as client:
            client.do(Request("GET", "/user"), timeout=1.5)
            client.get("/user")
        first, second = recorder.requests
        assert first.extensions["timeout"]["read"] == 1.5
        assert second.extensions["timeout"]["read"] == 30.0
