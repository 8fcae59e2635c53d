"""
Requests describe a single endpoint on top of a connector.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Optional
from typing import Union

from pydantic import BaseModel

from relay_sdk.connector import Connector
from relay_sdk.enums import Method
from relay_sdk.exceptions import RelayError
from relay_sdk.properties import HasRequestProperties

if TYPE_CHECKING:
    from relay_sdk.mock import MockClient
    from relay_sdk.response import Response


class Request(HasRequestProperties):
    """
    Single-endpoint descriptor.

    Class attributes:
        method: HTTP method, any casing
        endpoint: Path appended to the connector's base URL (or an absolute URL)
        response_class: ``Response`` subclass to build, overriding the connector's
        dto_model: pydantic model used by ``Response.dto()``
        connector_class: Connector built by ``get_connector()`` when none was attached
    """

    method: Union[Method, str] = Method.GET
    endpoint: str = ""
    response_class = None
    dto_model: Optional[type[BaseModel]] = None
    connector_class: Optional[type[Connector]] = None

    def resolve_endpoint(self) -> str:
        return self.endpoint

    def with_connector(self, connector: Connector) -> "Request":
        self.__dict__["_connector"] = connector
        return self

    def get_connector(self) -> Connector:
        """
        Return the originating connector.

        Raises:
            RelayError: If no connector is attached and no ``connector_class`` is declared.
        """
        if "_connector" not in self.__dict__:
            if self.connector_class is None:
                raise RelayError(
                    f"{type(self).__name__} has no connector. Attach one with with_connector() "
                    "or declare connector_class."
                )
            self.__dict__["_connector"] = self.connector_class()
        return self.__dict__["_connector"]

    def send(self, mock_client: Optional[MockClient] = None) -> Response:
        return self.get_connector().send(self, mock_client=mock_client)

    async def send_async(self, mock_client: Optional[MockClient] = None) -> Response:
        return await self.get_connector().send_async(self, mock_client=mock_client)


class SoloRequest(Request):
    """
    Request that needs no connector of its own; ``endpoint`` must be an absolute URL.

    Example:
        class Health(SoloRequest):
            endpoint = "https://status.example.com/health"

        Health().send()
    """

    connector_class = Connector
