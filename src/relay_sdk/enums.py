"""
Enumerations shared across the SDK.
"""

from enum import Enum


class Method(str, Enum):
    """HTTP methods a request may declare."""

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    CONNECT = "CONNECT"
    TRACE = "TRACE"

    @classmethod
    def from_value(cls, value: "str | Method") -> "Method":
        """Resolve a method from any casing, e.g. ``"post"`` -> ``Method.POST``."""
        if isinstance(value, Method):
            return value
        return cls(str(value).upper())


class DataType(str, Enum):
    """Body encoding strategy of a pending request."""

    JSON = "json"
    FORM = "form"
    MULTIPART = "multipart"
    MIXED = "mixed"

    def is_arrayable(self) -> bool:
        """Whether connector and request data are merged key-by-key."""
        return self is not DataType.MIXED


class PendingRequestStage(str, Enum):
    """Construction and dispatch stages of a pending request, in order."""

    CREATED = "created"
    PROPERTIES_MERGED = "properties_merged"
    DATA_RESOLVED = "data_resolved"
    AUTHENTICATED = "authenticated"
    BOOTED = "booted"
    PLUGINS_BOOTED = "plugins_booted"
    MIDDLEWARE_REGISTERED = "middleware_registered"
    REQUEST_PIPELINE_EXECUTED = "request_pipeline_executed"
    DISPATCHED = "dispatched"
    RESPONSE_PIPELINE_EXECUTED = "response_pipeline_executed"
    DONE = "done"
