"""
Custom exceptions for the Relay SDK.
Provides meaningful error classes for client consumers.
"""

from typing import Any
from typing import Optional


class RelayError(Exception):
    """
    Base exception for all SDK-level failures.

    Args:
        message (str): Short explanation of the error.
        details (Any | None): Optional structured details (e.g., the offending value).
    """

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.details = details


class PendingRequestError(RelayError):
    """
    Raised while a pending request is being assembled.

    Args:
        message (str): Short explanation of the error.
        request (Any | None): The request being built when the error happened.
        stage (PendingRequestStage | None): The last stage the pending request completed.
        details (Any | None): Optional structured details.
    """

    def __init__(
        self,
        message: str,
        request: Optional[Any] = None,
        stage: Optional[Any] = None,
        details: Optional[Any] = None,
    ):
        super().__init__(message, details=details)
        self.request = request
        self.stage = stage


class IncompatibleDataTypeError(PendingRequestError):
    """Connector and request declare different body encodings."""


class UndeclaredDataTypeError(PendingRequestError):
    """Body data was provided without a body encoding marker."""


class InvalidBodyDataError(PendingRequestError):
    """Body data does not fit the declared body encoding (e.g. a list sent as form params)."""


class BootIntrospectionError(PendingRequestError):
    """Plugin mixins of a connector or request type could not be enumerated."""


class MiddlewarePipeError(PendingRequestError):
    """
    A request or response pipe raised.

    Attributes:
        pipe: The callable that failed.
        pipeline (str): ``"request"`` or ``"response"``.
    """

    def __init__(
        self,
        message: str,
        pipe: Any = None,
        pipeline: str = "request",
        request: Optional[Any] = None,
        stage: Optional[Any] = None,
    ):
        super().__init__(message, request=request, stage=stage)
        self.pipe = pipe
        self.pipeline = pipeline


class DataBagError(RelayError):
    """Body data does not fit the data type of its bag."""


class LockedBagError(RelayError):
    """A property bag was modified after dispatch began."""


class InvalidResponseClassError(RelayError):
    """The selected response class does not extend ``Response``."""


class AuthenticationError(RelayError):
    """An authenticator could not apply its credentials."""


class NoMockResponseFoundError(RelayError):
    """A strict mock client had no response for the pending request."""


class FatalRequestError(RelayError):
    """
    The sender could not complete the exchange (DNS, refused connection, timeout...).

    No HTTP response exists for these failures, so they are raised instead of
    being converted into a ``Response``.
    """

    def __init__(self, message: str, pending_request: Optional[Any] = None):
        super().__init__(message)
        self.pending_request = pending_request


class RequestException(RelayError):
    """
    An HTTP error response, raised from ``Response.throw()``.

    Attributes:
        response (Response): The failed response.
    """

    def __init__(self, response: Any, message: Optional[str] = None):
        super().__init__(
            message or f"Request failed with status {response.status}",
            details=response.text,
        )
        self.response = response
        self.status = response.status


class ClientException(RequestException):
    """4xx response."""


class ServerException(RequestException):
    """5xx response."""
