"""
Request properties shared by connectors and requests.

Both connectors and requests declare headers, query parameters, config, body
data, middleware, an authenticator and plugins. Declarations come from the
``default_*`` hooks and can be adjusted per instance through the lazily created
bags (``connector.headers.add(...)``) or the ``with_*`` helpers.

``request_properties()`` returns copies, so a single connector can be used to
build many pending requests concurrently as long as it is not mutated while
doing so.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import TYPE_CHECKING
from typing import Any
from typing import Optional

from relay_sdk.bags import HeaderBag
from relay_sdk.bags import PropertyBag
from relay_sdk.bags import snapshot
from relay_sdk.middleware import MiddlewarePipeline

if TYPE_CHECKING:
    from relay_sdk.auth import Authenticator
    from relay_sdk.mock import MockClient
    from relay_sdk.pending_request import PendingRequest
    from relay_sdk.plugins import Plugin


@dataclass
class RequestProperties:
    """Snapshot of everything a connector or request contributes to a pending request."""

    headers: dict[str, Any] = field(default_factory=dict)
    query: dict[str, Any] = field(default_factory=dict)
    config: dict[str, Any] = field(default_factory=dict)
    data: Any = None
    middleware: MiddlewarePipeline = field(default_factory=MiddlewarePipeline)


class HasRequestProperties:
    def default_headers(self) -> dict[str, Any]:
        return {}

    def default_query(self) -> dict[str, Any]:
        return {}

    def default_config(self) -> dict[str, Any]:
        return {}

    def default_data(self) -> Any:
        return None

    def default_middleware(self) -> list[Any]:
        """Middleware objects (``on_request``/``on_response``) registered on every request."""
        return []

    def default_auth(self) -> Optional[Authenticator]:
        return None

    def default_plugins(self) -> list[Plugin]:
        """Composed plugins booted after this object's plugin mixins."""
        return []

    def boot(self, pending_request: PendingRequest) -> None:
        """Hook called once while a pending request is assembled."""

    def _lazy(self, name: str, factory):
        # Subclasses are free to define __init__ without calling super().
        if name not in self.__dict__:
            self.__dict__[name] = factory()
        return self.__dict__[name]

    @property
    def headers(self) -> HeaderBag:
        return self._lazy("_headers", lambda: HeaderBag(self.default_headers()))

    @property
    def query(self) -> PropertyBag:
        return self._lazy("_query", lambda: PropertyBag(self.default_query()))

    @property
    def config(self) -> PropertyBag:
        return self._lazy("_config", lambda: PropertyBag(self.default_config()))

    @property
    def data(self) -> Any:
        return self._lazy("_data", lambda: snapshot(self.default_data()))

    @data.setter
    def data(self, value: Any) -> None:
        self.__dict__["_data"] = value

    @property
    def middleware(self) -> MiddlewarePipeline:
        def build() -> MiddlewarePipeline:
            pipeline = MiddlewarePipeline()
            for middleware in self.default_middleware():
                pipeline.add(middleware)
            return pipeline

        return self._lazy("_middleware", build)

    def get_authenticator(self) -> Optional[Authenticator]:
        return self.__dict__.get("_authenticator") or self.default_auth()

    def get_mock_client(self) -> Optional[MockClient]:
        return self.__dict__.get("_mock_client")

    def with_headers(self, headers: dict[str, Any]):
        self.headers.merge(headers)
        return self

    def with_query(self, query: dict[str, Any]):
        self.query.merge(query)
        return self

    def with_config(self, config: dict[str, Any]):
        self.config.merge(config)
        return self

    def with_data(self, data: Any):
        self.data = data
        return self

    def with_auth(self, authenticator: Optional[Authenticator]):
        self.__dict__["_authenticator"] = authenticator
        return self

    def with_mock_client(self, mock_client: Optional[MockClient]):
        self.__dict__["_mock_client"] = mock_client
        return self

    def request_properties(self) -> RequestProperties:
        return RequestProperties(
            headers=self.headers.all(),
            query=self.query.all(),
            config=self.config.all(),
            data=snapshot(self.data),
            middleware=self.middleware.copy(),
        )
