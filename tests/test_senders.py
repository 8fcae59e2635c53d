"""
Tests for sender backends.

HttpxSender is exercised end-to-end through httpx.MockTransport. The requests
and aiohttp senders are tested at their boundaries without a network.
"""

import json
import logging

import aiohttp
import httpx
import pytest
import requests

from relay_sdk.config import RelaySettings
from relay_sdk.data_types import SendsFormParams
from relay_sdk.data_types import SendsJsonBody
from relay_sdk.data_types import SendsMultipartBody
from relay_sdk.exceptions import FatalRequestError
from relay_sdk.pending_request import build_pending_request
from relay_sdk.request import Request
from relay_sdk.transport import HttpxSender
from relay_sdk.transport import UnifiedResponse
from relay_sdk.transport import get_sender
from relay_sdk.transport.aiohttp import AiohttpSender
from relay_sdk.transport.base import build_request_options
from relay_sdk.transport.base import split_multipart
from relay_sdk.transport.requests import RequestsSender
from tests.fakes import ApiConnector
from tests.fakes import CreateUser
from tests.fakes import GetUser
from tests.fakes import JsonConnector
from tests.fakes import MixedConnector
from tests.fakes import UploadRaw


class Login(SendsFormParams, Request):
    method = "POST"
    endpoint = "/login"

    def default_data(self):
        return {"username": "ada", "password": "secret"}


class Upload(SendsMultipartBody, Request):
    method = "POST"
    endpoint = "/files"

    def default_data(self):
        return {"title": "notes", "file": ("notes.txt", b"hello", "text/plain")}


class RecordingHandler:
    """httpx.MockTransport handler that records requests."""

    def __init__(self, status=200, body=None):
        self.status = status
        self.body = {"ok": True} if body is None else body
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json=self.body)


def httpx_connector(connector_class=ApiConnector, handler=None):
    handler = handler or RecordingHandler()
    transport = httpx.MockTransport(handler)
    sender = HttpxSender(transport=transport, async_transport=transport)
    return connector_class(sender=sender), handler


class TestHttpxSender:
    def test_json_body(self):
        connector, handler = httpx_connector(JsonConnector)

        response = connector.send(CreateUser())

        request = handler.requests[0]
        assert request.method == "POST"
        assert str(request.url).startswith("https://api.test/users")
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {
            "source": "connector",
            "name": "Ada",
            "meta": {"version": 1, "admin": True},
        }
        assert response.ok()
        assert response.json() == {"ok": True}

    def test_query_and_headers(self):
        connector, handler = httpx_connector()

        connector.send(GetUser(5).with_query({"per_page": 25}))

        request = handler.requests[0]
        assert request.url.path == "/users/5"
        assert request.url.params["lang"] == "en"
        assert request.url.params["per_page"] == "25"
        assert request.headers["x-client"] == "connector"

    def test_config_timeout(self):
        connector, handler = httpx_connector()

        connector.send(GetUser(1).with_config({"timeout": 4.0, "connect_timeout": 1.5}))

        timeout = handler.requests[0].extensions["timeout"]
        assert timeout["read"] == 4.0
        assert timeout["connect"] == 1.5

    def test_supported_config_is_forwarded(self):
        connector, handler = httpx_connector()

        connector.send(GetUser(1).with_config({"extensions": {"trace": "abc"}}))

        assert handler.requests[0].extensions["trace"] == "abc"

    def test_unsupported_config_is_logged(self, caplog: pytest.LogCaptureFixture):
        """
        Test that config keys the httpx client cannot take per request are reported.

        Expected behavior:
        - The request is still sent
        - A warning names the ignored key
        """
        caplog.set_level(logging.WARNING, logger="relay_sdk.sender.httpx")
        connector, handler = httpx_connector()

        response = connector.send(GetUser(1).with_config({"verify": False}))

        assert response.ok()
        assert len(handler.requests) == 1
        assert "httpx sender ignores unsupported config keys: verify" in caplog.text

    def test_json_list_body(self):
        class CreateMany(SendsJsonBody, Request):
            method = "POST"
            endpoint = "/users/batch"

            def default_data(self):
                return [{"name": "a"}, {"name": "b"}]

        connector, handler = httpx_connector()

        connector.send(CreateMany())

        assert json.loads(handler.requests[0].content) == [{"name": "a"}, {"name": "b"}]

    def test_form_body(self):
        connector, handler = httpx_connector()

        connector.send(Login())

        request = handler.requests[0]
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        assert request.content == b"username=ada&password=secret"

    def test_multipart_body(self):
        connector, handler = httpx_connector()

        connector.send(Upload())

        request = handler.requests[0]
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b'name="title"' in request.content
        assert b'filename="notes.txt"' in request.content
        assert b"hello" in request.content

    def test_raw_body(self):
        connector, handler = httpx_connector(MixedConnector)

        connector.send(UploadRaw().with_data(b"<user/>"))

        assert handler.requests[0].content == b"<user/>"

    def test_error_status_becomes_response(self):
        """
        Test that HTTP error statuses are returned, not raised.

        Expected behavior:
        - The response reports the failure
        - The sender exception is kept on the response
        """
        connector, _ = httpx_connector(handler=RecordingHandler(status=422, body={"error": "invalid"}))

        response = connector.send(GetUser(1))

        assert response.status == 422
        assert isinstance(response.sender_exception, httpx.HTTPStatusError)
        exception = response.to_exception()
        assert exception.__cause__ is response.sender_exception

    def test_transport_error_is_fatal(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        connector, _ = httpx_connector(handler=handler)

        with pytest.raises(FatalRequestError) as exc_info:
            connector.send(GetUser(1))

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert exc_info.value.pending_request.url == "https://api.test/users/1"

    @pytest.mark.asyncio
    async def test_send_async(self):
        connector, handler = httpx_connector(JsonConnector)

        async with connector:
            response = await connector.send_async(CreateUser())

        assert response.ok()
        assert json.loads(handler.requests[0].content)["name"] == "Ada"

    @pytest.mark.asyncio
    async def test_dispatch_sync_and_async(self):
        handler = RecordingHandler(body={"id": 1})
        transport = httpx.MockTransport(handler)
        sender = HttpxSender(transport=transport, async_transport=transport)

        sync_response = sender.dispatch(build_pending_request(ApiConnector(), GetUser(1)))
        async_response = await sender.dispatch(
            build_pending_request(ApiConnector(), GetUser(2)), asynchronous=True
        )

        assert sync_response.json("id") == 1
        assert async_response.json("id") == 1
        assert [request.url.path for request in handler.requests] == ["/users/1", "/users/2"]
        await sender.aclose()

    @pytest.mark.asyncio
    async def test_async_transport_error_is_fatal(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        connector, _ = httpx_connector(handler=handler)

        with pytest.raises(FatalRequestError):
            await connector.send_async(GetUser(1))


def _requests_response(status=200, content=b'{"ok": true}', reason="OK"):
    response = requests.Response()
    response.status_code = status
    response._content = content
    response.headers["Content-Type"] = "application/json"
    response.encoding = "utf-8"
    response.reason = reason
    response.url = "https://api.test/users/1"
    return response


class TestRequestsSender:
    @pytest.fixture
    def sender(self):
        sender = RequestsSender(timeout=20.0, connect_timeout=5.0)
        yield sender
        sender.close()

    def test_request_kwargs(self, sender, monkeypatch: pytest.MonkeyPatch):
        calls = []

        def fake_request(**kwargs):
            calls.append(kwargs)
            return _requests_response()

        monkeypatch.setattr(sender._session, "request", fake_request)
        connector = JsonConnector(sender=sender)

        response = connector.send(CreateUser())

        kwargs = calls[0]
        assert kwargs["method"] == "POST"
        assert kwargs["url"] == "https://api.test/users"
        assert kwargs["json"]["name"] == "Ada"
        assert kwargs["params"] == {"lang": "en", "per_page": 10}
        # connector config sets timeout=10; connect timeout falls back to the sender default
        assert kwargs["timeout"] == (5.0, 10)
        assert kwargs["allow_redirects"] is False
        assert response.json("ok") is True

    def test_config_passthrough(self, sender, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture):
        calls = []

        def fake_request(**kwargs):
            calls.append(kwargs)
            return _requests_response()

        monkeypatch.setattr(sender._session, "request", fake_request)
        caplog.set_level(logging.WARNING, logger="relay_sdk.sender.requests")

        ApiConnector(sender=sender).send(GetUser(1).with_config({"verify": False, "trace_id": "abc"}))

        assert calls[0]["verify"] is False
        assert "trace_id" not in calls[0]
        assert "requests sender ignores unsupported config keys: trace_id" in caplog.text

    def test_error_status(self, sender, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(
            sender._session, "request", lambda **kwargs: _requests_response(404, b"missing", "Not Found")
        )

        response = ApiConnector(sender=sender).send(GetUser(1))

        assert response.status == 404
        assert isinstance(response.sender_exception, requests.HTTPError)

    def test_connection_error_is_fatal(self, sender, monkeypatch: pytest.MonkeyPatch):
        def refuse(**kwargs):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(sender._session, "request", refuse)

        with pytest.raises(FatalRequestError):
            ApiConnector(sender=sender).send(GetUser(1))

    @pytest.mark.asyncio
    async def test_send_async_runs_in_executor(self, sender, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(sender._session, "request", lambda **kwargs: _requests_response())

        response = await ApiConnector(sender=sender).send_async(GetUser(1))

        assert response.ok()


class TestAiohttpSender:
    def test_multipart_uses_form_data(self):
        sender = AiohttpSender()
        pending = build_pending_request(ApiConnector(), Upload())

        kwargs = sender._request_kwargs(pending)

        assert isinstance(kwargs["data"], aiohttp.FormData)
        assert kwargs["timeout"].total == 10
        assert kwargs["timeout"].connect == 10.0

    def test_json_kwargs(self):
        sender = AiohttpSender(connect_timeout=2.0)
        pending = build_pending_request(JsonConnector(), CreateUser())

        kwargs = sender._request_kwargs(pending)

        assert kwargs["json"]["name"] == "Ada"
        assert kwargs["timeout"].connect == 2.0
        assert kwargs["params"] == {"lang": "en", "per_page": 10}

    def test_config_passthrough(self):
        sender = AiohttpSender()
        pending = build_pending_request(ApiConnector(), GetUser(1).with_config({"ssl": False}))

        kwargs = sender._request_kwargs(pending)

        assert kwargs["ssl"] is False

    @pytest.mark.asyncio
    async def test_connection_error_is_fatal(self):
        class LocalConnector(ApiConnector):
            base_url = "http://127.0.0.1:1"

        connector = LocalConnector(sender=AiohttpSender(timeout=2.0, connect_timeout=1.0))

        with pytest.raises(FatalRequestError):
            await connector.send_async(GetUser(1))


class TestGetSender:
    @pytest.mark.parametrize(
        "name, sender_class",
        [("httpx", HttpxSender), ("HTTPX", HttpxSender), ("requests", RequestsSender), ("aiohttp", AiohttpSender)],
    )
    def test_known_senders(self, name, sender_class):
        sender = get_sender(name, RelaySettings())

        assert isinstance(sender, sender_class)
        sender.close()

    def test_unknown_sender(self):
        with pytest.raises(ValueError, match="Unknown sender"):
            get_sender("curl")

    def test_settings_are_applied(self):
        sender = get_sender("requests", RelaySettings(timeout=7.0, connect_timeout=2.0, follow_redirects=True))

        pending = build_pending_request(ApiConnector(), GetUser(1))
        pending.config.remove("timeout")
        kwargs = sender._request_kwargs(pending)

        assert kwargs["timeout"] == (2.0, 7.0)
        assert kwargs["allow_redirects"] is True


class TestTransportHelpers:
    def test_split_multipart(self):
        fields, files = split_multipart({"title": "x", "raw": b"1", "doc": ("a.txt", b"2")})

        assert fields == {"title": "x"}
        assert set(files) == {"raw", "doc"}

    def test_build_request_options_without_body(self):
        pending = build_pending_request(ApiConnector(), GetUser(1))

        options = build_request_options(pending)

        assert options["method"] == "GET"
        assert options["params"] == {"lang": "en", "per_page": 10}
        assert not {"json", "form", "multipart", "content"} & set(options)

    def test_unified_response_json(self):
        assert UnifiedResponse(200, content=b"").json() is None
        assert UnifiedResponse(200, content=b'{"a": 1}').json() == {"a": 1}
        assert UnifiedResponse(200, content="é".encode()).text == "é"
