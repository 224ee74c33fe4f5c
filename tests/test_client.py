"""Tests for the core APIClient request path."""

import json

import httpx
import pytest

from fmdata.core.client import APIClient, merge_headers
from fmdata.core.errors import ProtocolError, RemoteError, ValidationError
from fmdata.core.session import FRESHNESS_WINDOW
from fmdata.core.types import MultipartForm
from tests.conftest import DATABASE_URL, SESSIONS_URL, FakeClock, FakeTransport

TEST_URL = f"{DATABASE_URL}/test"
INVALID_TOKEN = {"messages": [{"code": "952", "message": "Invalid FileMaker Data API token (*)"}]}


class TestConfiguration:
    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch, transport: FakeTransport) -> None:
        monkeypatch.setenv("FM_DATA_URI", "https://env-host/")
        monkeypatch.setenv("FM_DATA_DATABASE", "envdb")
        monkeypatch.setenv("FM_DATA_USERNAME", "envuser")
        monkeypatch.setenv("FM_DATA_PASSWORD", "envpass")
        api = APIClient(transport=transport)
        assert api.uri == "https://env-host"
        assert api.database == "envdb"

    def test_arguments_override_environment(self, monkeypatch: pytest.MonkeyPatch, transport: FakeTransport) -> None:
        monkeypatch.setenv("FM_DATA_URI", "https://env-host")
        api = APIClient("https://arg-host", "db", "user", "pass", transport=transport)
        assert api.uri == "https://arg-host"

    def test_missing_settings(self, monkeypatch: pytest.MonkeyPatch, transport: FakeTransport) -> None:
        for name in ("FM_DATA_URI", "FM_DATA_DATABASE", "FM_DATA_USERNAME", "FM_DATA_PASSWORD"):
            monkeypatch.delenv(name, raising=False)
        with pytest.raises(ValidationError) as exc_info:
            APIClient("https://localhost", "db", transport=transport)
        assert exc_info.value.details["missing"] == ["FM_DATA_USERNAME", "FM_DATA_PASSWORD"]

    def test_allows_empty_password(self, monkeypatch: pytest.MonkeyPatch, transport: FakeTransport) -> None:
        monkeypatch.delenv("FM_DATA_PASSWORD", raising=False)
        api = APIClient("https://localhost", "db", "user", "", transport=transport)
        transport.login("foo")
        assert api.session.acquire() == "foo"
        assert transport.calls[0].headers["Authorization"] == "Basic dXNlcjo="


class TestRequest:
    def test_retrieves_token_on_first_request(self, api: APIClient, transport: FakeTransport) -> None:
        transport.login("foo")
        transport.add("GET", TEST_URL, body={"response": "test"})

        assert api.request("test") == "test"

        call = transport.calls_to("GET", TEST_URL)[0]
        assert call.headers == {"Authorization": "Bearer foo", "Content-Type": "application/json"}

    def test_successful_request_extends_token(self, api: APIClient, transport: FakeTransport, clock: FakeClock) -> None:
        transport.login("foo")
        transport.add("GET", TEST_URL, body={"response": "test"}, repeat=3)

        api.request("test")
        clock.now = FRESHNESS_WINDOW - 60
        api.request("test")
        clock.now = 2 * FRESHNESS_WINDOW - 120
        api.request("test")

        assert len(transport.calls_to("POST", SESSIONS_URL)) == 1

    def test_caller_headers_take_precedence(self, api: APIClient, transport: FakeTransport) -> None:
        transport.login("foo")
        transport.add("POST", TEST_URL, body={"response": {}})

        api.request("test", "POST", headers={"content-type": "text/plain"}, body=b"raw")

        call = transport.calls_to("POST", TEST_URL)[0]
        assert call.headers == {"content-type": "text/plain", "Authorization": "Bearer foo"}
        assert call.body == b"raw"

    def test_json_body_is_encoded(self, api: APIClient, transport: FakeTransport) -> None:
        transport.login("foo")
        transport.add("POST", TEST_URL, body={"response": {"recordId": "1"}})

        assert api.request("test", "POST", body={"fieldData": {"a": 1}}) == {"recordId": "1"}
        assert json.loads(transport.calls_to("POST", TEST_URL)[0].body) == {"fieldData": {"a": 1}}

    def test_multipart_body_leaves_content_type_to_transport(self, api: APIClient, transport: FakeTransport) -> None:
        transport.login("foo")
        transport.add("POST", TEST_URL, body={"response": {}})
        form = MultipartForm().add_file("upload", "a.txt", b"abc")

        api.request("test", "POST", body=form)

        call = transport.calls_to("POST", TEST_URL)[0]
        assert call.headers == {"Authorization": "Bearer foo"}
        assert call.body is form

    def test_empty_body_returns_none(self, api: APIClient, transport: FakeTransport) -> None:
        transport.login("foo")
        transport.add("GET", TEST_URL)
        assert api.request("test") is None

    def test_invalid_json_is_protocol_error(self, api: APIClient, transport: FakeTransport) -> None:
        transport.login("foo")
        transport.add("GET", TEST_URL, body=b"<html>")
        with pytest.raises(ProtocolError, match="Invalid JSON response"):
            api.request("test")

    def test_error_response(self, api: APIClient, transport: FakeTransport) -> None:
        transport.login("foo")
        transport.add("GET", TEST_URL, status=400, body={"messages": [{"code": "0", "message": "error"}]})
        with pytest.raises(RemoteError) as exc_info:
            api.request("test")
        assert exc_info.value.code == "0"
        assert exc_info.value.message == "error"
        assert len(transport.calls_to("GET", TEST_URL)) == 1

    def test_error_without_envelope(self, api: APIClient, transport: FakeTransport) -> None:
        transport.login("foo")
        transport.add("GET", TEST_URL, status=502, body=b"Bad Gateway")
        with pytest.raises(ProtocolError) as exc_info:
            api.request("test")
        assert exc_info.value.status == 502

    def test_transport_errors_propagate(self, api: APIClient, transport: FakeTransport) -> None:
        transport.login("foo")
        transport.fail("GET", TEST_URL, httpx.ConnectError("connection refused"))
        with pytest.raises(httpx.ConnectError):
            api.request("test")


class TestInvalidTokenRetry:
    def test_retries_with_new_token(self, api: APIClient, transport: FakeTransport) -> None:
        transport.login("foo")
        transport.login("bar")
        transport.add("GET", TEST_URL, status=401, body=INVALID_TOKEN)
        transport.add("GET", TEST_URL, body={"response": "test"})

        assert api.request("test") == "test"

        gets = transport.calls_to("GET", TEST_URL)
        assert [c.headers["Authorization"] for c in gets] == ["Bearer foo", "Bearer bar"]
        assert len(transport.calls_to("POST", SESSIONS_URL)) == 2

    def test_fails_when_token_is_rejected_twice(self, api: APIClient, transport: FakeTransport) -> None:
        transport.login("foo")
        transport.login("foo")
        transport.add("GET", TEST_URL, status=401, body=INVALID_TOKEN, repeat=3)

        with pytest.raises(RemoteError) as exc_info:
            api.request("test")

        assert exc_info.value.code == "952"
        assert len(transport.calls_to("GET", TEST_URL)) == 2

    def test_no_retry_when_disabled(self, api: APIClient, transport: FakeTransport) -> None:
        transport.login("foo")
        transport.add("GET", TEST_URL, status=401, body=INVALID_TOKEN)

        with pytest.raises(RemoteError):
            api.request("test", retry=False)

        assert len(transport.calls_to("GET", TEST_URL)) == 1
        assert api.session.token == "foo"


class TestHelpers:
    def test_merge_headers_is_case_insensitive(self) -> None:
        merged = merge_headers({"authorization": "Bearer mine"}, {"Authorization": "Bearer x", "Accept": "*/*"})
        assert merged == {"authorization": "Bearer mine", "Accept": "*/*"}

    def test_with_params_skips_none(self) -> None:
        assert APIClient.with_params("records", {"a": None, "b": 1}) == "records?b=1"
        assert APIClient.with_params("records", {"a": None}) == "records"
        assert APIClient.with_params("records?x=1", {"b": 2}) == "records?x=1&b=2"

    def test_close_releases_session(self, api: APIClient, transport: FakeTransport) -> None:
        transport.login("foo")
        transport.add("GET", TEST_URL, body={"response": {}})
        transport.add("DELETE", f"{SESSIONS_URL}/foo", body={"response": {}})
        api.request("test")
        api.close()
        assert len(transport.calls_to("DELETE", f"{SESSIONS_URL}/foo")) == 1
