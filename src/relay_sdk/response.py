"""
Response object returned by connectors.

A response wraps the normalized transport response, the pending request that
produced it and, when the sender reported an HTTP error, the sender exception.
Requests may select a subclass through ``response_class``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Any
from typing import Optional

from pydantic import BaseModel

from relay_sdk.bags import HeaderBag
from relay_sdk.exceptions import ClientException
from relay_sdk.exceptions import RequestException
from relay_sdk.exceptions import ServerException
from relay_sdk.transport.base import UnifiedResponse

if TYPE_CHECKING:
    from relay_sdk.pending_request import PendingRequest


class Response:
    """
    Typed view on a finished HTTP exchange.

    Attributes:
        pending_request (PendingRequest): The request that produced this response.
        raw (UnifiedResponse): Normalized transport response.
        sender_exception (BaseException | None): Error reported by the sender for
            HTTP error statuses.
        is_mocked (bool): True when the response came from a mock client.
    """

    def __init__(
        self,
        pending_request: PendingRequest,
        raw: UnifiedResponse,
        sender_exception: Optional[BaseException] = None,
    ):
        self.pending_request = pending_request
        self.raw = raw
        self.sender_exception = sender_exception
        self.is_mocked = False
        self._headers = HeaderBag(raw.headers)

    @property
    def request(self) -> Any:
        return self.pending_request.request

    @property
    def connector(self) -> Any:
        return self.pending_request.connector

    @property
    def status(self) -> int:
        return self.raw.status_code

    @property
    def headers(self) -> HeaderBag:
        return self._headers

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self._headers.get(name, default)

    def body(self) -> bytes:
        return self.raw.content

    @property
    def text(self) -> str:
        return self.raw.text

    def json(self, key: Optional[str] = None, default: Any = None) -> Any:
        """
        Decode the body as JSON.

        Args:
            key: Optional top-level key to return instead of the whole document
            default: Returned when ``key`` is missing
        """
        data = self.raw.json()
        if key is None:
            return data
        if isinstance(data, dict):
            return data.get(key, default)
        return default

    def dto(self) -> Optional[BaseModel]:
        """Validate the JSON body into the request's ``dto_model``, if it declares one."""
        model = getattr(self.request, "dto_model", None)
        if model is None:
            return None
        return model.model_validate(self.json())

    def successful(self) -> bool:
        return 200 <= self.status < 300

    def ok(self) -> bool:
        return self.status == 200

    def redirect(self) -> bool:
        return 300 <= self.status < 400

    def client_error(self) -> bool:
        return 400 <= self.status < 500

    def server_error(self) -> bool:
        return self.status >= 500

    def failed(self) -> bool:
        return self.client_error() or self.server_error()

    def to_exception(self) -> Optional[RequestException]:
        """Return the exception matching a failed response, or ``None``."""
        if not self.failed():
            return None
        if self.server_error():
            exception: RequestException = ServerException(self)
        else:
            exception = ClientException(self)
        exception.__cause__ = self.sender_exception
        return exception

    def throw(self) -> "Response":
        """Raise ``to_exception()`` for failed responses; return self otherwise."""
        exception = self.to_exception()
        if exception is not None:
            raise exception
        return self

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} {self.status} "
            f"{self.pending_request.method.value} {self.pending_request.url}>"
        )
