"""
Body encoding markers and the data type resolver.

A connector or request declares how its body is encoded by inheriting from one
of the ``Sends*`` markers:

    class CreateUser(SendsJsonBody, Request):
        ...
"""

import logging
from typing import Any
from typing import Optional

from relay_sdk.bags import DataBag
from relay_sdk.enums import DataType
from relay_sdk.exceptions import DataBagError
from relay_sdk.exceptions import IncompatibleDataTypeError
from relay_sdk.exceptions import InvalidBodyDataError
from relay_sdk.exceptions import UndeclaredDataTypeError
from relay_sdk.plugins import PluginMixin

logger = logging.getLogger("relay_sdk.data_types")


class SendsJsonBody:
    """Body is sent as JSON."""


class SendsFormParams:
    """Body is sent as ``application/x-www-form-urlencoded``."""


class SendsMultipartBody:
    """Body is sent as ``multipart/form-data``."""


class SendsMixedBody:
    """Body is sent raw (string, bytes or stream)."""


class SendsXMLBody(PluginMixin):
    """Body is a raw XML document."""

    def boot_sends_xml_body(self, pending_request) -> None:
        if not pending_request.headers.has("Content-Type"):
            pending_request.headers.add("Content-Type", "application/xml")


# Checked in this order; the first match wins.
_MARKERS: tuple[tuple[tuple[type, ...], DataType], ...] = (
    ((SendsJsonBody,), DataType.JSON),
    ((SendsFormParams,), DataType.FORM),
    ((SendsMultipartBody,), DataType.MULTIPART),
    ((SendsMixedBody, SendsXMLBody), DataType.MIXED),
)


def determine_data_type(obj: Any) -> Optional[DataType]:
    """Return the data type declared by a single connector or request."""
    for markers, data_type in _MARKERS:
        if isinstance(obj, markers):
            return data_type
    return None


def resolve_data_type(connector: Any, request: Any) -> Optional[DataType]:
    """
    Resolve the data type of a connector/request pair.

    The request's declaration takes precedence; the connector's is the
    fallback.

    Raises:
        IncompatibleDataTypeError: If both declare a data type and they differ.
    """
    request_type = determine_data_type(request)
    connector_type = determine_data_type(connector)

    if request_type is not None and connector_type is not None and request_type != connector_type:
        raise IncompatibleDataTypeError(
            f"Request data type ({request_type.value}) and connector data type "
            f"({connector_type.value}) cannot be mixed.",
            request=request,
        )

    return request_type if request_type is not None else connector_type


def merge_data(
    bag: DataBag,
    data_type: Optional[DataType],
    connector_data: Any,
    request_data: Any,
    request: Any = None,
) -> DataBag:
    """
    Fill ``bag`` with the connector's and the request's body data.

    Keyed types merge field by field, request winning. JSON lists and MIXED
    bodies are not merged: a non-empty request body replaces the connector's.

    Raises:
        UndeclaredDataTypeError: If there is data but no data type.
        InvalidBodyDataError: If the data does not fit the data type.
    """
    if data_type is None:
        if not (DataBag._is_empty_value(connector_data) and DataBag._is_empty_value(request_data)):
            raise UndeclaredDataTypeError(
                "You have provided data without a data type marker on your request or connector.",
                request=request,
            )
        return bag

    bag.set_type(data_type)

    try:
        if data_type.is_arrayable():
            bag.merge(connector_data, request_data)
        else:
            body = connector_data if DataBag._is_empty_value(request_data) else request_data
            bag.set(body)
    except DataBagError as err:
        raise InvalidBodyDataError(str(err), request=request, details=err.details) from err

    logger.debug(f"Resolved {data_type.value} body for {type(request).__name__}")
    return bag
