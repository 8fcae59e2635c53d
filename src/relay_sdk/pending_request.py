"""
Pending request assembly.

A ``PendingRequest`` is the fully merged, ready-to-send form of a
connector/request pair. It is built once per dispatch attempt by running these
steps, strictly in order and exactly once:

1. merge headers, query, config and middleware (connector first, request wins)
2. resolve the data type and merge body data
3. run the authenticator (request-level replaces connector-level)
4. call ``boot()`` on the connector, then on the request
5. boot plugin mixins and composed plugins (connector, then request)
6. register default middleware (the mock pipe, at the top, when mocking)
7. execute the request pipeline (a pending request returned by a pipe is
   adopted: its URL, method, bags and early response replace these)

If any step raises, the exception propagates out of the constructor and no
pending request is returned. After dispatch, the caller runs
``execute_response_pipeline()`` on the response.

Example:
    pending = build_pending_request(connector, GetUser(1))
    if pending.has_early_response():
        response = pending.early_response
    else:
        response = sender.send(pending)
    response = pending.execute_response_pipeline(response)
"""

from __future__ import annotations

import logging
from typing import Any
from typing import Callable
from typing import Optional

from relay_sdk.bags import DataBag
from relay_sdk.bags import HeaderBag
from relay_sdk.bags import PropertyBag
from relay_sdk.data_types import merge_data
from relay_sdk.data_types import resolve_data_type
from relay_sdk.enums import DataType
from relay_sdk.enums import Method
from relay_sdk.enums import PendingRequestStage
from relay_sdk.exceptions import InvalidResponseClassError
from relay_sdk.exceptions import PendingRequestError
from relay_sdk.middleware import MiddlewarePipeline
from relay_sdk.mock import MockClient
from relay_sdk.mock import MockResponsePipe
from relay_sdk.plugins import boot_plugins
from relay_sdk.response import Response
from relay_sdk.transport.base import UnifiedResponse

logger = logging.getLogger("relay_sdk.pending_request")

_STAGES = list(PendingRequestStage)


def join_url(base_url: str, endpoint: str) -> str:
    """Join a base URL and an endpoint with exactly one slash; absolute endpoints win."""
    if "://" in endpoint:
        return endpoint
    if not endpoint:
        return base_url
    if not base_url:
        return endpoint
    return base_url.rstrip("/") + "/" + endpoint.lstrip("/")


def resolve_response_class(connector: Any, request: Any) -> type[Response]:
    """
    Pick the request's response class, then the connector's, then ``Response``.

    Raises:
        InvalidResponseClassError: If the selected class does not extend ``Response``.
    """
    response_class = (
        getattr(request, "response_class", None)
        or getattr(connector, "response_class", None)
        or Response
    )
    if not (isinstance(response_class, type) and issubclass(response_class, Response)):
        raise InvalidResponseClassError(
            f"The response class must extend {Response.__name__}, got {response_class!r}.",
            details=response_class,
        )
    return response_class


class PendingRequest:
    """
    Fully resolved request descriptor, built from a connector and a request.

    Attributes:
        connector (Connector): The connector the request is sent through.
        request (Request): The endpoint being called.
        url (str): Base URL joined with the endpoint.
        method (Method): Upper-cased HTTP method.
        headers (HeaderBag): Merged headers.
        query (PropertyBag): Merged query parameters.
        config (PropertyBag): Merged sender config (timeout, follow_redirects...).
        data (DataBag): Merged body data.
        data_type (DataType | None): Body encoding.
        middleware (MiddlewarePipeline): Request and response pipes of this request only.
        mock_client (MockClient | None): Mock client, when mocking.
        response_class (type[Response]): Class used by ``create_response``.
        stage (PendingRequestStage): Last completed stage.
    """

    def __init__(self, connector: Any, request: Any, mock_client: Optional[MockClient] = None):
        self.connector = connector
        self.request = request
        self.stage = PendingRequestStage.CREATED

        self.headers = HeaderBag()
        self.query = PropertyBag()
        self.config = PropertyBag()
        self.data = DataBag()
        self.data_type: Optional[DataType] = None
        self.middleware = MiddlewarePipeline()
        self._early_response: Optional[Response] = None

        try:
            self.method = Method.from_value(request.method)
        except ValueError as err:
            raise PendingRequestError(
                f"Invalid HTTP method {request.method!r}", request=request, stage=self.stage
            ) from err
        self.url = join_url(connector.resolve_base_url(), request.resolve_endpoint())
        self.response_class = resolve_response_class(connector, request)

        if mock_client is None:
            mock_client = request.get_mock_client()
        if mock_client is None:
            mock_client = connector.get_mock_client()
        self.mock_client = mock_client

        self._connector_properties = connector.request_properties()
        self._request_properties = request.request_properties()

        steps: list[tuple[Callable[[], None], PendingRequestStage]] = [
            (self._merge_request_properties, PendingRequestStage.PROPERTIES_MERGED),
            (self._merge_data, PendingRequestStage.DATA_RESOLVED),
            (self._run_authenticator, PendingRequestStage.AUTHENTICATED),
            (self._boot_connector_and_request, PendingRequestStage.BOOTED),
            (self._boot_plugins, PendingRequestStage.PLUGINS_BOOTED),
            (self._register_default_middleware, PendingRequestStage.MIDDLEWARE_REGISTERED),
            (self._execute_request_pipeline, PendingRequestStage.REQUEST_PIPELINE_EXECUTED),
        ]
        for step, stage in steps:
            try:
                step()
            except PendingRequestError as err:
                if err.request is None:
                    err.request = request
                if err.stage is None:
                    err.stage = self.stage
                raise
            self._advance(stage)

    def _advance(self, stage: PendingRequestStage) -> None:
        if _STAGES.index(stage) != _STAGES.index(self.stage) + 1:
            raise PendingRequestError(
                f"Cannot move a pending request from {self.stage.value} to {stage.value}",
                request=self.request,
                stage=self.stage,
            )
        self.stage = stage
        logger.debug(f"{type(self.request).__name__}: {stage.value}")

    def _merge_request_properties(self) -> None:
        connector_properties = self._connector_properties
        request_properties = self._request_properties

        self.headers.merge(connector_properties.headers, request_properties.headers)
        self.query.merge(connector_properties.query, request_properties.query)
        self.config.merge(connector_properties.config, request_properties.config)

        self.middleware.merge(connector_properties.middleware)
        self.middleware.merge(request_properties.middleware)

    def _merge_data(self) -> None:
        self.data_type = resolve_data_type(self.connector, self.request)
        merge_data(
            self.data,
            self.data_type,
            self._connector_properties.data,
            self._request_properties.data,
            request=self.request,
        )

    def _run_authenticator(self) -> None:
        authenticator = self.request.get_authenticator() or self.connector.get_authenticator()
        if authenticator is not None:
            authenticator.apply(self)

    def _boot_connector_and_request(self) -> None:
        self.connector.boot(self)
        self.request.boot(self)

    def _boot_plugins(self) -> None:
        boot_plugins(self, self.connector, self.request)

    def _register_default_middleware(self) -> None:
        if self.is_mocking():
            self.middleware.add_request_pipe(MockResponsePipe(self.mock_client), prepend=True)

    def _execute_request_pipeline(self) -> None:
        result = self.middleware.execute_request_pipeline(self)
        if result is not self:
            self._adopt(result)

    def _adopt(self, other: "PendingRequest") -> None:
        # The response pipes and the stage stay those of this pending request.
        logger.debug(f"{type(self.request).__name__}: adopting {other!r} returned by a request pipe")
        self.method = other.method
        self.url = other.url
        self.headers = other.headers
        self.query = other.query
        self.config = other.config
        self.data = other.data
        self.data_type = other.data_type
        self.response_class = other.response_class
        if other.has_early_response():
            self._early_response = other.early_response

    def is_mocking(self) -> bool:
        return self.mock_client is not None

    @property
    def early_response(self) -> Optional[Response]:
        return self._early_response

    def has_early_response(self) -> bool:
        return self._early_response is not None

    def set_early_response(self, response: Optional[Response]) -> "PendingRequest":
        """Use ``response`` instead of dispatching; later request pipes still run."""
        if self.is_dispatched():
            raise PendingRequestError(
                "The early response cannot change after dispatch.",
                request=self.request,
                stage=self.stage,
            )
        self._early_response = response
        return self

    def create_response(
        self, raw: UnifiedResponse, sender_exception: Optional[BaseException] = None
    ) -> Response:
        """Build the selected response class for a transport response."""
        return self.response_class(self, raw, sender_exception)

    def is_dispatched(self) -> bool:
        return _STAGES.index(self.stage) >= _STAGES.index(PendingRequestStage.DISPATCHED)

    def mark_dispatched(self) -> "PendingRequest":
        """Lock the bags; called right before the sender runs or the early response is used."""
        self._advance(PendingRequestStage.DISPATCHED)
        self.headers.lock()
        self.query.lock()
        self.config.lock()
        self.data.lock()
        return self

    def execute_response_pipeline(self, response: Response) -> Response:
        """
        Run the response pipes and return the final response.

        Raises:
            PendingRequestError: If called twice, or before the request pipeline ran.
        """
        if self.stage is PendingRequestStage.REQUEST_PIPELINE_EXECUTED:
            self.mark_dispatched()
        if self.stage is not PendingRequestStage.DISPATCHED:
            raise PendingRequestError(
                f"Cannot run the response pipeline at stage {self.stage.value}.",
                request=self.request,
                stage=self.stage,
            )
        response = self.middleware.execute_response_pipeline(response)
        self._advance(PendingRequestStage.RESPONSE_PIPELINE_EXECUTED)
        self._advance(PendingRequestStage.DONE)
        return response

    def __repr__(self) -> str:
        return f"<PendingRequest {self.method.value} {self.url} ({self.stage.value})>"


def build_pending_request(
    connector: Any, request: Any, mock_client: Optional[MockClient] = None
) -> PendingRequest:
    """
    Assemble a pending request for ``request`` sent through ``connector``.

    Args:
        connector: Connector providing the base URL and defaults
        request: Request describing the endpoint
        mock_client: Mock client taking precedence over the request's and connector's

    Raises:
        IncompatibleDataTypeError: Connector and request declare different body types
        UndeclaredDataTypeError: Body data without a body type
        BootIntrospectionError: Plugin mixins could not be enumerated
        MiddlewarePipeError: A request pipe raised
    """
    return PendingRequest(connector, request, mock_client=mock_client)
