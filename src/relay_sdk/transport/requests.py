import asyncio
import logging
from typing import Any

import requests

from relay_sdk.exceptions import FatalRequestError

from .base import BaseSender
from .base import UnifiedResponse
from .base import build_request_options
from .base import passthrough_config
from .base import split_multipart

logger = logging.getLogger("relay_sdk.sender.requests")


class RequestsSender(BaseSender):
    """
    Sync sender implementation using requests.Session.

    The async interface runs the synchronous call in a thread pool so it does
    not block the event loop.

    Note: This is a compatibility layer for users who need requests. For async
    workloads, prefer httpx or aiohttp.
    """

    name = "requests"
    passthrough_keys = frozenset({"verify", "cert", "proxies", "stream", "auth", "cookies"})

    def __init__(self, timeout: float = 30.0, connect_timeout: float = 10.0, follow_redirects: bool = False):
        self._timeout = timeout
        self._connect_timeout = connect_timeout
        self._follow_redirects = follow_redirects
        self._session = requests.Session()

    def _request_kwargs(self, pending_request) -> dict[str, Any]:
        options = build_request_options(pending_request)
        config = options["config"]

        kwargs: dict[str, Any] = {
            "method": options["method"],
            "url": options["url"],
            "headers": options["headers"],
            "params": options["params"] or {},
            "timeout": (
                config.get("connect_timeout", self._connect_timeout),
                config.get("timeout", self._timeout),
            ),
            "allow_redirects": config.get("follow_redirects", self._follow_redirects),
        }
        kwargs.update(passthrough_config(config, self.passthrough_keys, logger, self.name))

        if "json" in options:
            kwargs["json"] = options["json"]
        elif "form" in options:
            kwargs["data"] = options["form"]
        elif "multipart" in options:
            fields, files = split_multipart(options["multipart"])
            kwargs["data"] = fields
            kwargs["files"] = files
        elif "content" in options:
            kwargs["data"] = options["content"]

        return kwargs

    def send(self, pending_request):
        kwargs = self._request_kwargs(pending_request)
        logger.debug(f"{kwargs['method']} {kwargs['url']}")
        try:
            response = self._session.request(**kwargs)
        except requests.RequestException as err:
            raise FatalRequestError(
                f"{kwargs['method']} {kwargs['url']} failed: {err}", pending_request=pending_request
            ) from err

        sender_exception = None
        if response.status_code >= 400:
            try:
                response.raise_for_status()
            except requests.HTTPError as err:
                sender_exception = err
        return pending_request.create_response(UnifiedResponse.from_requests(response), sender_exception)

    async def send_async(self, pending_request):
        """
        Async wrapper around the synchronous send.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.send, pending_request)

    def close(self) -> None:
        self._session.close()

    async def aclose(self) -> None:
        """
        Async wrapper for closing the session.
        """
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._session.close)
