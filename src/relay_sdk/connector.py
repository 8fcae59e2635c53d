"""
Connectors describe an API: its base URL and the headers, query parameters,
config, body data, middleware, authentication and plugins shared by every
request sent through it.

Example usage:
    from relay_sdk import Connector, Request, TokenAuthenticator
    from relay_sdk.plugins.builtin import AcceptsJson

    class GitHub(AcceptsJson, Connector):
        base_url = "https://api.github.com"

        def default_auth(self):
            return TokenAuthenticator(os.environ["GITHUB_TOKEN"])

    class GetRepository(Request):
        method = "GET"

        def __init__(self, owner, repo):
            self.owner, self.repo = owner, repo

        def resolve_endpoint(self):
            return f"/repos/{self.owner}/{self.repo}"

    with GitHub() as github:
        response = github.send(GetRepository("encode", "httpx"))
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Optional

from tenacity import AsyncRetrying
from tenacity import Retrying
from tenacity import retry_if_exception_type
from tenacity import stop_after_attempt
from tenacity import wait_exponential

from relay_sdk.config import RelaySettings
from relay_sdk.exceptions import FatalRequestError
from relay_sdk.pending_request import PendingRequest
from relay_sdk.pending_request import build_pending_request
from relay_sdk.properties import HasRequestProperties
from relay_sdk.transport import BaseSender
from relay_sdk.transport import get_sender

if TYPE_CHECKING:
    from relay_sdk.mock import MockClient
    from relay_sdk.request import Request
    from relay_sdk.response import Response

logger = logging.getLogger("relay_sdk.connector")


class Connector(HasRequestProperties):
    """
    Reusable API base configuration.

    A connector is a read-only template while requests are built from it, so
    one instance can serve many concurrent requests.

    Args:
        settings (RelaySettings | None): Sender and retry defaults. Defaults to
            ``RelaySettings()`` (environment variables with the RELAY_ prefix).
        sender (BaseSender | None): Sender instance; built from
            ``settings.sender`` when omitted.
    """

    base_url: str = ""
    response_class = None

    def __init__(self, settings: Optional[RelaySettings] = None, sender: Optional[BaseSender] = None):
        if settings is not None:
            self.__dict__["_settings"] = settings
        if sender is not None:
            self.__dict__["_sender"] = sender

    def resolve_base_url(self) -> str:
        return self.base_url

    @property
    def settings(self) -> RelaySettings:
        return self._lazy("_settings", RelaySettings)

    def default_sender(self) -> BaseSender:
        return get_sender(self.settings.sender, self.settings)

    def sender(self) -> BaseSender:
        return self._lazy("_sender", self.default_sender)

    def with_sender(self, sender: BaseSender) -> "Connector":
        self.__dict__["_sender"] = sender
        return self

    def create_pending_request(
        self, request: Request, mock_client: Optional[MockClient] = None
    ) -> PendingRequest:
        return build_pending_request(self, request, mock_client=mock_client)

    def _retrying_options(self) -> dict:
        return {
            "stop": stop_after_attempt(self.settings.retry_attempts),
            "wait": wait_exponential(multiplier=self.settings.retry_backoff, max=5),
            "retry": retry_if_exception_type(FatalRequestError),
            "reraise": True,
        }

    def send(self, request: Request, mock_client: Optional[MockClient] = None) -> Response:
        """
        Build a pending request, dispatch it and run the response pipeline.

        Connectivity failures (``FatalRequestError``) are retried up to
        ``settings.retry_attempts`` times, each attempt with a freshly built
        pending request. HTTP error statuses are returned as responses.

        Args:
            request (Request): Endpoint to call
            mock_client (MockClient | None): Overrides the request's and connector's mock client

        Returns:
            Response: Instance of the selected response class
        """
        for attempt in Retrying(**self._retrying_options()):
            with attempt:
                pending_request = self.create_pending_request(request, mock_client)
                pending_request.mark_dispatched()

                if pending_request.has_early_response():
                    logger.debug(f"Early response for {pending_request.method.value} {pending_request.url}")
                    response = pending_request.early_response
                else:
                    response = self.sender().send(pending_request)

                return pending_request.execute_response_pipeline(response)

    async def send_async(self, request: Request, mock_client: Optional[MockClient] = None) -> Response:
        """
        Async variant of ``send``.

        The pending request is assembled synchronously before anything is
        awaited; only the network exchange and the response pipeline run
        after the await.
        """
        async for attempt in AsyncRetrying(**self._retrying_options()):
            with attempt:
                pending_request = self.create_pending_request(request, mock_client)
                pending_request.mark_dispatched()

                if pending_request.has_early_response():
                    logger.debug(f"Early response for {pending_request.method.value} {pending_request.url}")
                    response = pending_request.early_response
                else:
                    response = await self.sender().send_async(pending_request)

                return pending_request.execute_response_pipeline(response)

    def close(self) -> None:
        if "_sender" in self.__dict__:
            self.sender().close()

    async def aclose(self) -> None:
        """
        Gracefully close the sender's sessions and connection pools.
        """
        if "_sender" in self.__dict__:
            await self.sender().aclose()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
