"""
Tests for middleware functionality.

This module tests the middleware system including:
- Pipe ordering (append, prepend, merge)
- Early responses set from request pipes
- Response pipe replacement
- Error handling in pipes
- Logging middleware functionality
"""

import logging

import pytest

from relay_sdk.auth import TokenAuthenticator
from relay_sdk.exceptions import ClientException
from relay_sdk.exceptions import MiddlewarePipeError
from relay_sdk.logging_middleware import LoggingMiddleware
from relay_sdk.middleware import MiddlewarePipeline
from relay_sdk.mock import MockResponse
from relay_sdk.pending_request import build_pending_request
from tests.fakes import ApiConnector
from tests.fakes import GetUser
from tests.fakes import make_connector


class SpyMiddleware:
    """
    Spy middleware for testing middleware behavior.

    This middleware records all requests and responses for testing purposes.
    It implements the Middleware protocol and provides access to the recorded data.
    """

    def __init__(self):
        self.requests = []
        self.responses = []

    def on_request(self, pending_request):
        self.requests.append(
            {
                "method": pending_request.method.value,
                "url": pending_request.url,
                "headers": pending_request.headers.all(),
            }
        )

    def on_response(self, response):
        self.responses.append(response.status)


@pytest.fixture
def pending():
    return build_pending_request(ApiConnector(), GetUser(1))


def _response(pending_request, status=200, body=None):
    return pending_request.create_response(MockResponse(body or {"ok": True}, status=status).to_unified())


def test_pipes_run_in_registration_order(pending):
    calls = []
    pipeline = MiddlewarePipeline()
    pipeline.add_request_pipe(lambda p: calls.append("second"))
    pipeline.add_request_pipe(lambda p: calls.append("third"))
    pipeline.add_request_pipe(lambda p: calls.append("first"), prepend=True)

    pipeline.execute_request_pipeline(pending)

    assert calls == ["first", "second", "third"]


def test_merge_preserves_relative_order(pending):
    calls = []
    connector_pipes = MiddlewarePipeline().add_request_pipe(lambda p: calls.append("q1"))
    request_pipes = (
        MiddlewarePipeline()
        .add_request_pipe(lambda p: calls.append("p1"))
        .add_request_pipe(lambda p: calls.append("p2"))
    )

    pipeline = MiddlewarePipeline().merge(connector_pipes).merge(request_pipes)
    pipeline.execute_request_pipeline(pending)

    assert calls == ["q1", "p1", "p2"]
    assert len(pipeline) == 3


def test_copy_is_independent():
    pipeline = MiddlewarePipeline().add_request_pipe(lambda p: None)

    clone = pipeline.copy()
    clone.add_response_pipe(lambda r: None)

    assert len(pipeline) == 1
    assert len(clone) == 2


def test_early_response_does_not_stop_later_pipes(pending):
    """
    Test that setting an early response leaves the rest of the chain running.

    Expected behavior:
    - The pipe after the one that set the early response still runs
    - It observes the early response
    """
    seen = []
    early = _response(pending, body={"cached": True})
    pipeline = MiddlewarePipeline()
    pipeline.add_request_pipe(lambda p: p.set_early_response(early))
    pipeline.add_request_pipe(lambda p: seen.append(p.early_response))

    pipeline.execute_request_pipeline(pending)

    assert seen == [early]
    assert pending.early_response is early


def test_request_pipe_returning_response_sets_early_response(pending):
    early = _response(pending, status=204)
    pipeline = MiddlewarePipeline().add_request_pipe(lambda p: early)

    pipeline.execute_request_pipeline(pending)

    assert pending.has_early_response()
    assert pending.early_response is early


def test_request_pipe_return_values_are_ignored_otherwise(pending):
    """HeaderBag.add returns the bag; that must not replace the pending request."""
    pipeline = MiddlewarePipeline().add_request_pipe(lambda p: p.headers.add("X-Id", "1"))

    result = pipeline.execute_request_pipeline(pending)

    assert result is pending
    assert pending.headers.get("x-id") == "1"
    assert not pending.has_early_response()


def test_response_pipe_can_replace_response(pending):
    original = _response(pending)
    replacement = _response(pending, status=202)
    pipeline = MiddlewarePipeline()
    pipeline.add_response_pipe(lambda r: replacement)
    pipeline.add_response_pipe(lambda r: None)

    assert pipeline.execute_response_pipeline(original) is replacement


def test_failing_response_pipe_is_wrapped(pending):
    def broken(response):
        raise KeyError("missing")

    pipeline = MiddlewarePipeline().add_response_pipe(broken)

    with pytest.raises(MiddlewarePipeError) as exc_info:
        pipeline.execute_response_pipeline(_response(pending))

    assert exc_info.value.pipeline == "response"
    assert isinstance(exc_info.value.__cause__, KeyError)


def test_sdk_errors_propagate_unwrapped(pending):
    pipeline = MiddlewarePipeline().add_response_pipe(lambda r: r.throw())

    with pytest.raises(ClientException) as exc_info:
        pipeline.execute_response_pipeline(_response(pending, status=404))

    assert exc_info.value.status == 404


def test_middleware_objects_register_both_hooks():
    """
    Test that middleware objects are wired into both chains.

    Expected behavior:
    - on_request sees the merged request
    - on_response sees the final response
    """
    spy = SpyMiddleware()
    connector, sender = make_connector()
    connector.middleware.add(spy)

    connector.send(GetUser(5))

    assert spy.requests == [
        {
            "method": "GET",
            "url": "https://api.test/users/5",
            "headers": {"Accept": "application/json", "X-Client": "connector"},
        }
    ]
    assert spy.responses == [200]
    assert sender.send_count == 1


def test_logging_middleware_logs(caplog: pytest.LogCaptureFixture):
    """
    Test that LoggingMiddleware logs requests and responses.

    This test verifies that:
    - Request method, URL and query are logged
    - Sensitive headers are masked
    - Response status and timing are logged
    """
    caplog.set_level(logging.INFO, logger="relay_sdk.middleware.logging")
    connector, _ = make_connector()
    connector.with_auth(TokenAuthenticator("secret-token"))
    connector.middleware.add(LoggingMiddleware())

    connector.send(GetUser(9))

    assert "Request: GET https://api.test/users/9" in caplog.text
    assert "'lang': 'en'" in caplog.text
    assert "secret-token" not in caplog.text
    assert "'Authorization': '***'" in caplog.text
    assert "Response: 200" in caplog.text
    assert "elapsed=" in caplog.text


def test_logging_middleware_respects_level(caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.INFO, logger="relay_sdk.middleware.logging")
    connector, _ = make_connector()
    connector.middleware.add(LoggingMiddleware(level=logging.DEBUG))

    connector.send(GetUser(9))

    assert "Request:" not in caplog.text
