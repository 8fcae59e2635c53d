"""
Built-in plugins for the Relay SDK.

Plugin mixins are inherited by connectors or requests:

    class Api(AcceptsJson, AlwaysThrowOnErrors, Connector):
        base_url = "https://api.example.com"

Composed plugins are returned from ``default_plugins()``:

    class Api(Connector):
        def default_plugins(self):
            return [HeadersPlugin({"User-Agent": "relay-sdk"})]
"""

import logging
from typing import Any
from typing import Optional

from ..logging_middleware import LoggingMiddleware
from . import Plugin
from . import PluginMixin

logger = logging.getLogger(__name__)


class AcceptsJson(PluginMixin):
    """Sends ``Accept: application/json``."""

    def boot_accepts_json(self, pending_request) -> None:
        pending_request.headers.add("Accept", "application/json")


class AlwaysThrowOnErrors(PluginMixin):
    """Raises ``ClientException``/``ServerException`` for 4xx/5xx responses."""

    def boot_always_throw_on_errors(self, pending_request) -> None:
        pending_request.middleware.add_response_pipe(lambda response: response.throw())


class HasTimeout(PluginMixin):
    """
    Applies ``connect_timeout`` and ``request_timeout`` class attributes to the config.

    Missing attributes fall back to the connector's settings.
    """

    connect_timeout: Optional[float] = None
    request_timeout: Optional[float] = None

    def boot_has_timeout(self, pending_request) -> None:
        settings = pending_request.connector.settings
        pending_request.config.merge(
            {
                "connect_timeout": (
                    self.connect_timeout if self.connect_timeout is not None else settings.connect_timeout
                ),
                "timeout": self.request_timeout if self.request_timeout is not None else settings.timeout,
            }
        )


class LogsTraffic(PluginMixin):
    """Registers a ``LoggingMiddleware`` as the first request and response pipe."""

    def boot_logs_traffic(self, pending_request) -> None:
        pending_request.middleware.add(LoggingMiddleware(), prepend=True)


class HeadersPlugin(Plugin):
    """
    Adds static headers, overriding merged values.

    Args:
        headers: Headers to add
    """

    def __init__(self, headers: dict[str, Any]):
        self.headers = dict(headers)

    def boot(self, pending_request) -> None:
        pending_request.headers.merge(self.headers)
        logger.debug(f"Added headers {sorted(self.headers)}")
