"""
Aiohttp sender implementation for Relay SDK.

Aiohttp is a mature async HTTP client. A session is opened per exchange so
the sender can also be driven synchronously through ``asyncio.run``.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from relay_sdk.exceptions import FatalRequestError

from .base import BaseSender
from .base import UnifiedResponse
from .base import build_request_options
from .base import passthrough_config
from .base import split_multipart

logger = logging.getLogger("relay_sdk.sender.aiohttp")


def _form_data(data: Mapping[str, Any]) -> aiohttp.FormData:
    fields, files = split_multipart(data)
    form = aiohttp.FormData()
    for name, value in fields.items():
        form.add_field(name, str(value))
    for name, value in files.items():
        if isinstance(value, tuple):
            filename, content, *rest = value
            form.add_field(name, content, filename=filename, content_type=rest[0] if rest else None)
        else:
            form.add_field(name, value, filename=name)
    return form


class AiohttpSender(BaseSender):
    """
    Async sender implementation using aiohttp.ClientSession.
    """

    name = "aiohttp"
    passthrough_keys = frozenset({"ssl", "proxy", "proxy_auth", "auth", "cookies"})

    def __init__(self, timeout: float = 30.0, connect_timeout: float = 10.0, follow_redirects: bool = False):
        self._timeout = timeout
        self._connect_timeout = connect_timeout
        self._follow_redirects = follow_redirects

    def _request_kwargs(self, pending_request) -> dict[str, Any]:
        options = build_request_options(pending_request)
        config = options["config"]

        kwargs: dict[str, Any] = {
            "method": options["method"],
            "url": options["url"],
            "headers": options["headers"],
            "params": options["params"],
            "timeout": aiohttp.ClientTimeout(
                total=config.get("timeout", self._timeout),
                connect=config.get("connect_timeout", self._connect_timeout),
            ),
            "allow_redirects": config.get("follow_redirects", self._follow_redirects),
        }
        kwargs.update(passthrough_config(config, self.passthrough_keys, logger, self.name))

        if "json" in options:
            kwargs["json"] = options["json"]
        elif "form" in options:
            kwargs["data"] = options["form"]
        elif "multipart" in options:
            kwargs["data"] = _form_data(options["multipart"])
        elif "content" in options:
            kwargs["data"] = options["content"]

        return kwargs

    async def send_async(self, pending_request):
        kwargs = self._request_kwargs(pending_request)
        logger.debug(f"{kwargs['method']} {kwargs['url']} (async)")
        try:
            async with aiohttp.ClientSession() as session:
                async with session.request(**kwargs) as response:
                    content = await response.read()
                    sender_exception = None
                    if response.status >= 400:
                        try:
                            response.raise_for_status()
                        except aiohttp.ClientResponseError as err:
                            sender_exception = err
                    raw = UnifiedResponse(
                        status_code=response.status,
                        headers=dict(response.headers),
                        content=content,
                        reason=response.reason or "",
                        raw=response,
                        encoding=response.charset or "utf-8",
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise FatalRequestError(
                f"{kwargs['method']} {kwargs['url']} failed: {err}", pending_request=pending_request
            ) from err

        return pending_request.create_response(raw, sender_exception)

    def send(self, pending_request):
        """Run the async exchange on a private event loop."""
        return asyncio.run(self.send_async(pending_request))
