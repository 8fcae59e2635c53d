from __future__ import annotations

import json as jsonlib
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING
from typing import Any
from typing import Awaitable
from typing import Optional
from typing import Union

from relay_sdk.enums import DataType

if TYPE_CHECKING:
    from relay_sdk.pending_request import PendingRequest
    from relay_sdk.response import Response


class UnifiedResponse:
    """
    Unified response wrapper that handles differences between HTTP clients.
    Provides a consistent, fully-read view regardless of the underlying transport.
    """

    def __init__(
        self,
        status_code: int,
        headers: Optional[Mapping[str, str]] = None,
        content: bytes = b"",
        reason: str = "",
        raw: Any = None,
        encoding: str = "utf-8",
    ):
        self.status_code = status_code
        self.headers = dict(headers or {})
        self.content = content
        self.reason = reason
        self.encoding = encoding
        self._response = raw

    @classmethod
    def from_httpx(cls, response) -> "UnifiedResponse":
        return cls(
            status_code=response.status_code,
            headers=dict(response.headers),
            content=response.content,
            reason=response.reason_phrase,
            raw=response,
            encoding=response.encoding or "utf-8",
        )

    @classmethod
    def from_requests(cls, response) -> "UnifiedResponse":
        return cls(
            status_code=response.status_code,
            headers=dict(response.headers),
            content=response.content,
            reason=response.reason or "",
            raw=response,
            encoding=response.encoding or "utf-8",
        )

    @property
    def text(self) -> str:
        return self.content.decode(self.encoding, errors="replace")

    def json(self) -> Any:
        """
        Unified JSON parsing, independent of the client that produced the body.
        """
        return jsonlib.loads(self.content) if self.content else None


def build_request_options(pending_request: PendingRequest) -> dict[str, Any]:
    """
    Translate a pending request into transport-neutral request options.

    The body key depends on the data type:
    JSON -> ``json``, FORM -> ``form``, MULTIPART -> ``multipart``, MIXED -> ``content``.
    """
    options: dict[str, Any] = {
        "method": pending_request.method.value,
        "url": pending_request.url,
        "headers": pending_request.headers.all(),
        "params": pending_request.query.all() or None,
        "config": pending_request.config.all(),
    }

    data = pending_request.data.all()
    data_type = pending_request.data_type

    if data_type is DataType.JSON:
        options["json"] = data
    elif data_type is DataType.FORM:
        options["form"] = data
    elif data_type is DataType.MULTIPART:
        options["multipart"] = data
    elif data_type is DataType.MIXED:
        options["content"] = data

    return options


def split_multipart(data: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Split multipart data into plain fields and file parts.

    File parts are bytes, file objects or ``(filename, content[, content_type])`` tuples.
    """
    fields: dict[str, Any] = {}
    files: dict[str, Any] = {}
    for name, value in data.items():
        if isinstance(value, (bytes, tuple)) or hasattr(value, "read"):
            files[name] = value
        else:
            fields[name] = value
    return fields, files


SENDER_CONFIG_KEYS = frozenset({"timeout", "connect_timeout", "follow_redirects"})


def passthrough_config(
    config: Mapping[str, Any], supported: frozenset, logger: logging.Logger, sender_name: str
) -> dict[str, Any]:
    """
    Pick the config keys a sender forwards to its client as request kwargs.

    Keys that are neither timeouts/redirects nor in ``supported`` are logged as
    ignored instead of being dropped silently.
    """
    forwarded = {key: value for key, value in config.items() if key in supported}
    ignored = sorted(set(config) - SENDER_CONFIG_KEYS - set(forwarded))
    if ignored:
        logger.warning(f"{sender_name} sender ignores unsupported config keys: {', '.join(ignored)}")
    return forwarded


class BaseSender:
    """
    Abstract sender interface for the Relay SDK.
    All HTTP client backends should inherit from this class.

    Supported senders:
    - httpx: Native sync and async HTTP client
    - aiohttp: Native async HTTP client
    - requests: Sync HTTP client wrapped in an async interface
    """

    name = "base"
    passthrough_keys: frozenset = frozenset()

    def send(self, pending_request: PendingRequest) -> Response:
        """
        Send a pending request and build its response.
        Override this method in sender implementations.
        """
        raise NotImplementedError("Sender implementations must override this method.")

    async def send_async(self, pending_request: PendingRequest) -> Response:
        """
        Async send method for all senders.
        Override this method in sender implementations.
        """
        raise NotImplementedError("Sender implementations must override this method.")

    def dispatch(
        self, pending_request: PendingRequest, asynchronous: bool = False
    ) -> Union[Response, Awaitable[Response]]:
        """Send synchronously, or return an awaitable when ``asynchronous`` is set."""
        if asynchronous:
            return self.send_async(pending_request)
        return self.send(pending_request)

    def close(self) -> None:
        pass

    async def aclose(self) -> None:
        pass
