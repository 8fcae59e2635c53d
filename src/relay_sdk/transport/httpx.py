import logging
from collections.abc import Mapping
from typing import Any
from typing import Optional

import httpx

from relay_sdk.exceptions import FatalRequestError

from .base import BaseSender
from .base import UnifiedResponse
from .base import build_request_options
from .base import passthrough_config
from .base import split_multipart

logger = logging.getLogger("relay_sdk.sender.httpx")


class HttpxSender(BaseSender):
    """
    Sync and async sender implementation using httpx.Client / httpx.AsyncClient.

    Args:
        timeout (float): Default read/write timeout in seconds
        connect_timeout (float): Default connect timeout in seconds
        follow_redirects (bool): Default redirect policy
        transport (httpx.BaseTransport | None): Custom sync transport (e.g. httpx.MockTransport)
        async_transport (httpx.AsyncBaseTransport | None): Custom async transport
    """

    name = "httpx"
    passthrough_keys = frozenset({"auth", "extensions"})

    def __init__(
        self,
        timeout: float = 30.0,
        connect_timeout: float = 10.0,
        follow_redirects: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._timeout = timeout
        self._connect_timeout = connect_timeout
        self._follow_redirects = follow_redirects
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout, connect=connect_timeout),
            follow_redirects=follow_redirects,
            transport=transport,
        )
        self._async_transport = async_transport
        self._async_client: Optional[httpx.AsyncClient] = None

    def _get_async_client(self) -> httpx.AsyncClient:
        if self._async_client is None:
            self._async_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=self._connect_timeout),
                follow_redirects=self._follow_redirects,
                transport=self._async_transport,
            )
        return self._async_client

    def _request_kwargs(self, pending_request) -> dict[str, Any]:
        options = build_request_options(pending_request)
        config = options["config"]

        kwargs: dict[str, Any] = {
            "method": options["method"],
            "url": options["url"],
            "headers": options["headers"],
            "params": options["params"],
        }

        if "timeout" in config or "connect_timeout" in config:
            kwargs["timeout"] = httpx.Timeout(
                config.get("timeout", self._timeout),
                connect=config.get("connect_timeout", self._connect_timeout),
            )
        if "follow_redirects" in config:
            kwargs["follow_redirects"] = config["follow_redirects"]
        kwargs.update(passthrough_config(config, self.passthrough_keys, logger, self.name))

        if "json" in options:
            kwargs["json"] = options["json"]
        elif "form" in options:
            kwargs["data"] = options["form"]
        elif "multipart" in options:
            fields, files = split_multipart(options["multipart"])
            kwargs["data"] = fields
            kwargs["files"] = files
        elif "content" in options and options["content"] is not None:
            content = options["content"]
            if isinstance(content, Mapping):
                kwargs["data"] = content
            else:
                kwargs["content"] = content

        return kwargs

    def _create_response(self, pending_request, response: httpx.Response):
        sender_exception = None
        if response.is_error:
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as err:
                sender_exception = err
        return pending_request.create_response(UnifiedResponse.from_httpx(response), sender_exception)

    def send(self, pending_request):
        kwargs = self._request_kwargs(pending_request)
        logger.debug(f"{kwargs['method']} {kwargs['url']}")
        try:
            response = self._client.request(**kwargs)
        except httpx.TransportError as err:
            raise FatalRequestError(
                f"{kwargs['method']} {kwargs['url']} failed: {err}", pending_request=pending_request
            ) from err
        return self._create_response(pending_request, response)

    async def send_async(self, pending_request):
        kwargs = self._request_kwargs(pending_request)
        logger.debug(f"{kwargs['method']} {kwargs['url']} (async)")
        try:
            response = await self._get_async_client().request(**kwargs)
        except httpx.TransportError as err:
            raise FatalRequestError(
                f"{kwargs['method']} {kwargs['url']} failed: {err}", pending_request=pending_request
            ) from err
        return self._create_response(pending_request, response)

    def close(self) -> None:
        self._client.close()

    async def aclose(self) -> None:
        self._client.close()
        if self._async_client is not None:
            await self._async_client.aclose()
