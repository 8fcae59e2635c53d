"""
Relay SDK - declarative HTTP API client framework.

This SDK provides:
- Connectors and requests describing APIs and endpoints
- Deterministic merging of headers, query, config and body data
- Authenticators, plugin mixins and composed plugins
- Request and response middleware pipelines
- Request mocking with early responses
- Multiple HTTP sender support (httpx, aiohttp, requests), sync and async
"""

from .auth import Authenticator
from .auth import BasicAuthenticator
from .auth import HeaderAuthenticator
from .auth import QueryAuthenticator
from .auth import TokenAuthenticator
from .bags import DataBag
from .bags import HeaderBag
from .bags import PropertyBag
from .config import RelaySettings
from .connector import Connector
from .data_types import SendsFormParams
from .data_types import SendsJsonBody
from .data_types import SendsMixedBody
from .data_types import SendsMultipartBody
from .data_types import SendsXMLBody
from .enums import DataType
from .enums import Method
from .enums import PendingRequestStage
from .exceptions import BootIntrospectionError
from .exceptions import FatalRequestError
from .exceptions import IncompatibleDataTypeError
from .exceptions import InvalidBodyDataError
from .exceptions import MiddlewarePipeError
from .exceptions import PendingRequestError
from .exceptions import RelayError
from .exceptions import RequestException
from .exceptions import UndeclaredDataTypeError
from .middleware import Middleware
from .middleware import MiddlewarePipeline
from .mock import MockClient
from .mock import MockResponse
from .pending_request import PendingRequest
from .pending_request import build_pending_request
from .plugins import Plugin
from .plugins import PluginMixin
from .request import Request
from .request import SoloRequest
from .response import Response

__version__ = "1.0.0"

__all__ = [
    "Authenticator",
    "BasicAuthenticator",
    "BootIntrospectionError",
    "Connector",
    "DataBag",
    "DataType",
    "FatalRequestError",
    "HeaderAuthenticator",
    "HeaderBag",
    "IncompatibleDataTypeError",
    "InvalidBodyDataError",
    "Method",
    "Middleware",
    "MiddlewarePipeError",
    "MiddlewarePipeline",
    "MockClient",
    "MockResponse",
    "PendingRequest",
    "PendingRequestError",
    "PendingRequestStage",
    "Plugin",
    "PluginMixin",
    "PropertyBag",
    "QueryAuthenticator",
    "RelayError",
    "RelaySettings",
    "Request",
    "RequestException",
    "Response",
    "SendsFormParams",
    "SendsJsonBody",
    "SendsMixedBody",
    "SendsMultipartBody",
    "SendsXMLBody",
    "SoloRequest",
    "TokenAuthenticator",
    "UndeclaredDataTypeError",
    "build_pending_request",
]
