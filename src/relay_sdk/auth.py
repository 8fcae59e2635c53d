"""
This module provides the authenticators that inject credentials into a
pending request:
- bearer / custom-prefix tokens in the Authorization header
- HTTP basic credentials
- arbitrary API-key headers
- API-key query parameters.

Authenticators run after the connector and request properties have been
merged and before any plugin or middleware, so those observe the final
authentication state. A request-level authenticator replaces the
connector-level one.
"""

import base64
import logging
from abc import ABC
from abc import abstractmethod

from relay_sdk.exceptions import AuthenticationError

logger = logging.getLogger("relay_sdk.auth")


class Authenticator(ABC):
    """Strategy object that mutates a pending request to add credentials."""

    @abstractmethod
    def apply(self, pending_request) -> None:
        """
        Add credentials to ``pending_request``.

        Args:
            pending_request (PendingRequest): Request being assembled (headers, query
                and config are modifiable)

        Raises:
            AuthenticationError: If the credentials are unusable.
        """


def _require(value: str, what: str) -> str:
    if value is None or not str(value).strip():
        raise AuthenticationError(f"{what} is missing or empty")
    return value


class TokenAuthenticator(Authenticator):
    """
    Sends ``Authorization: <prefix> <token>``.

    Example:
        connector.with_auth(TokenAuthenticator("secret"))  # Authorization: Bearer secret
    """

    def __init__(self, token: str, prefix: str = "Bearer"):
        self.token = token
        self.prefix = prefix

    def apply(self, pending_request) -> None:
        token = _require(self.token, "Token")
        value = f"{self.prefix} {token}" if self.prefix else token
        pending_request.headers.add("Authorization", value)
        logger.debug(f"Applied {self.prefix or 'raw'} token authentication")


class BasicAuthenticator(Authenticator):
    """Sends HTTP basic credentials."""

    def __init__(self, username: str, password: str):
        self.username = username
        self.password = password

    def apply(self, pending_request) -> None:
        username = _require(self.username, "Username")
        credentials = f"{username}:{self.password or ''}".encode()
        pending_request.headers.add(
            "Authorization", "Basic " + base64.b64encode(credentials).decode("ascii")
        )
        logger.debug("Applied basic authentication")


class HeaderAuthenticator(Authenticator):
    """Sends an API key in a custom header, e.g. ``X-Api-Key``."""

    def __init__(self, header: str, value: str):
        self.header = header
        self.value = value

    def apply(self, pending_request) -> None:
        pending_request.headers.add(self.header, _require(self.value, self.header))
        logger.debug(f"Applied header authentication ({self.header})")


class QueryAuthenticator(Authenticator):
    """Sends an API key as a query parameter."""

    def __init__(self, parameter: str, value: str):
        self.parameter = parameter
        self.value = value

    def apply(self, pending_request) -> None:
        pending_request.query.add(self.parameter, _require(self.value, self.parameter))
        logger.debug(f"Applied query authentication ({self.parameter})")
