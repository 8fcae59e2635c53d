"""
Request mocking.

A ``MockClient`` holds fake responses. When one is attached to a pending
request (explicitly, on the request or on the connector), a
``MockResponsePipe`` is placed at the top of the request pipeline. It looks up
a matching ``MockResponse`` and sets it as the early response, so the sender
is never called.

Responses are matched in this order:
1. by request class (``{GetUser: MockResponse(...)}``)
2. by URL glob (``{"https://api.test/users/*": MockResponse(...)}``)
3. from the sequence, first in first out (``[MockResponse(...), ...]``)

Any registered value may also be a callable taking the pending request and
returning a ``MockResponse``.

With ``strict=True`` (the default) an unmatched request raises
``NoMockResponseFoundError``; with ``strict=False`` it goes to the real sender.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Mapping
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING
from typing import Any
from typing import Callable
from typing import Optional
from typing import Union

from relay_sdk.exceptions import NoMockResponseFoundError
from relay_sdk.transport.base import UnifiedResponse

if TYPE_CHECKING:
    from relay_sdk.pending_request import PendingRequest
    from relay_sdk.response import Response

logger = logging.getLogger("relay_sdk.mock")

MockValue = Union["MockResponse", Callable[["PendingRequest"], "MockResponse"]]


class MockResponse:
    """
    A canned HTTP response.

    Args:
        body: dict/list (sent as JSON), str or bytes
        status: HTTP status code
        headers: Response headers
    """

    def __init__(
        self,
        body: Any = None,
        status: int = 200,
        headers: Optional[Mapping[str, str]] = None,
    ):
        self.body = body
        self.status = status
        self.headers = dict(headers or {})

    def content(self) -> bytes:
        if self.body is None:
            return b""
        if isinstance(self.body, bytes):
            return self.body
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return json.dumps(self.body).encode("utf-8")

    def to_unified(self) -> UnifiedResponse:
        headers = dict(self.headers)
        if isinstance(self.body, (dict, list)) and not any(
            name.lower() == "content-type" for name in headers
        ):
            headers["Content-Type"] = "application/json"
        return UnifiedResponse(status_code=self.status, headers=headers, content=self.content())

    def __repr__(self) -> str:
        return f"MockResponse(status={self.status}, body={self.body!r})"


class MockClient:
    """
    Source of mock responses plus a history of mocked exchanges.

    Example:
        mock = MockClient({GetUser: MockResponse({"id": 1})})
        response = connector.send(GetUser(1), mock_client=mock)
        mock.assert_sent(GetUser)
    """

    def __init__(
        self,
        responses: Union[list[MockValue], Mapping[Any, MockValue], None] = None,
        strict: bool = True,
    ):
        self.strict = strict
        self._sequence: list[MockValue] = []
        self._by_class: dict[type, MockValue] = {}
        self._by_url: dict[str, MockValue] = {}
        self._recorded: list[Response] = []
        self._lock = threading.Lock()
        if responses:
            self.add_responses(responses)

    def add_response(self, response: MockValue, match: Union[type, str, None] = None) -> "MockClient":
        """Register a response for a request class, a URL glob, or the sequence."""
        if match is None:
            self._sequence.append(response)
        elif isinstance(match, type):
            self._by_class[match] = response
        elif isinstance(match, str):
            self._by_url[match] = response
        else:
            raise TypeError(f"Unsupported mock matcher: {match!r}")
        return self

    def add_responses(self, responses: Union[list[MockValue], Mapping[Any, MockValue]]) -> "MockClient":
        if isinstance(responses, Mapping):
            for match, response in responses.items():
                self.add_response(response, match)
        else:
            for response in responses:
                self.add_response(response)
        return self

    def is_empty(self) -> bool:
        return not (self._sequence or self._by_class or self._by_url)

    def find_match(self, pending_request: PendingRequest) -> Optional[MockResponse]:
        """Return the mock response for ``pending_request``, or ``None``."""
        with self._lock:
            value = self._match_class(pending_request)
            if value is None:
                value = self._match_url(pending_request)
            if value is None and self._sequence:
                value = self._sequence.pop(0)
        if value is None:
            return None
        if callable(value) and not isinstance(value, MockResponse):
            value = value(pending_request)
        return value

    def _match_class(self, pending_request: PendingRequest) -> Optional[MockValue]:
        for cls in type(pending_request.request).__mro__:
            if cls in self._by_class:
                return self._by_class[cls]
        return None

    def _match_url(self, pending_request: PendingRequest) -> Optional[MockValue]:
        for pattern, value in self._by_url.items():
            if fnmatchcase(pending_request.url, pattern):
                return value
        return None

    def record(self, response: Response) -> None:
        with self._lock:
            self._recorded.append(response)

    @property
    def recorded(self) -> list[Response]:
        return list(self._recorded)

    def last_response(self) -> Optional[Response]:
        return self._recorded[-1] if self._recorded else None

    def _matches(self, response: Response, match: Any) -> bool:
        if isinstance(match, type):
            return isinstance(response.request, match)
        if isinstance(match, str):
            return fnmatchcase(response.pending_request.url, match)
        return bool(match(response))

    def assert_sent(self, match: Any) -> None:
        """Raise ``AssertionError`` unless a recorded response matches a request class, URL glob or predicate."""
        if not any(self._matches(r, match) for r in self._recorded):
            raise AssertionError(f"No mocked request matched {match!r}")

    def assert_not_sent(self, match: Any) -> None:
        if any(self._matches(r, match) for r in self._recorded):
            raise AssertionError(f"A mocked request matched {match!r}")

    def assert_sent_count(self, count: int) -> None:
        if len(self._recorded) != count:
            raise AssertionError(f"Expected {count} mocked requests, got {len(self._recorded)}")

    def assert_nothing_sent(self) -> None:
        self.assert_sent_count(0)


class MockResponsePipe:
    """Request pipe that turns a matching mock response into the early response."""

    def __init__(self, mock_client: MockClient):
        self.mock_client = mock_client

    def __call__(self, pending_request: PendingRequest) -> None:
        mock_response = self.mock_client.find_match(pending_request)

        if mock_response is None:
            if self.mock_client.strict:
                raise NoMockResponseFoundError(
                    f"No mock response found for {pending_request.method.value} {pending_request.url}",
                    details=type(pending_request.request).__name__,
                )
            logger.info(
                f"No mock response for {pending_request.method.value} {pending_request.url}; "
                "passing through to the sender"
            )
            return None

        response = pending_request.create_response(mock_response.to_unified())
        response.is_mocked = True
        self.mock_client.record(response)
        pending_request.set_early_response(response)
        logger.debug(f"Mocked {pending_request.method.value} {pending_request.url} -> {mock_response.status}")
        return None
