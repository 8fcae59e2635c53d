"""
Middleware pipeline for pending requests.

A pipeline holds two ordered chains:

- request pipes, called with the ``PendingRequest`` before dispatch. A pipe may
  return a new pending request (later pipes receive it, and the assembler
  adopts its URL, bags and early response), return a ``Response`` (which
  becomes the early response), call ``pending_request.set_early_response(...)``,
  or return ``None`` after mutating the pending request in place.
- response pipes, called with the ``Response`` after dispatch. A pipe may
  return a replacement response or ``None``.

Pipes run in registration order. Setting an early response does not stop the
remaining request pipes; the caller decides afterwards whether to dispatch.

Any object with ``on_request``/``on_response`` methods (see ``Middleware``)
can be registered at once with ``MiddlewarePipeline.add()``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any
from typing import Callable
from typing import Optional
from typing import Protocol
from typing import Union

from relay_sdk.exceptions import MiddlewarePipeError
from relay_sdk.exceptions import RelayError

if TYPE_CHECKING:
    from relay_sdk.pending_request import PendingRequest
    from relay_sdk.response import Response

logger = logging.getLogger("relay_sdk.middleware")

RequestPipe = Callable[["PendingRequest"], Union["PendingRequest", "Response", None]]
ResponsePipe = Callable[["Response"], Optional["Response"]]


class Middleware(Protocol):
    def on_request(self, pending_request: PendingRequest) -> Optional[PendingRequest]:
        """
        Called before the HTTP request is dispatched.

        This can be used to:
        - Log request details (current: LoggingMiddleware)
        - Add or modify headers, query parameters or config
        - Short-circuit dispatch with ``pending_request.set_early_response()``
        - Cancel or abort execution (by raising)

        Args:
            pending_request (PendingRequest): The fully merged request (modifiable)
        """

    def on_response(self, response: Response) -> Optional[Response]:
        """
        Called after the response is received (or the early response is chosen).

        This can be used to:
        - Log response status and timing (current: LoggingMiddleware)
        - Modify, inspect or replace the response
        - Raise on failed responses (current: AlwaysThrowOnErrors)

        Args:
            response (Response): Response built by the sender or the mock client
        """


def _pipe_name(pipe: Any) -> str:
    return getattr(pipe, "__qualname__", None) or type(pipe).__name__


class MiddlewarePipeline:
    """
    Ordered request and response pipes.

    Example:
        pipeline = MiddlewarePipeline()
        pipeline.add_request_pipe(lambda pending: pending.headers.add("X-Id", "1"))
        pipeline.add_response_pipe(log_status, prepend=True)
    """

    def __init__(self):
        self.request_pipes: list[RequestPipe] = []
        self.response_pipes: list[ResponsePipe] = []

    def add_request_pipe(self, pipe: RequestPipe, prepend: bool = False) -> "MiddlewarePipeline":
        """Register a request pipe at the end (default) or the start of the chain."""
        if prepend:
            self.request_pipes.insert(0, pipe)
        else:
            self.request_pipes.append(pipe)
        return self

    def add_response_pipe(self, pipe: ResponsePipe, prepend: bool = False) -> "MiddlewarePipeline":
        """Register a response pipe at the end (default) or the start of the chain."""
        if prepend:
            self.response_pipes.insert(0, pipe)
        else:
            self.response_pipes.append(pipe)
        return self

    def add(self, middleware: Middleware, prepend: bool = False) -> "MiddlewarePipeline":
        """Register the ``on_request``/``on_response`` hooks of a middleware object."""
        if hasattr(middleware, "on_request"):
            self.add_request_pipe(middleware.on_request, prepend=prepend)
        if hasattr(middleware, "on_response"):
            self.add_response_pipe(middleware.on_response, prepend=prepend)
        return self

    def merge(self, other: Optional["MiddlewarePipeline"]) -> "MiddlewarePipeline":
        """Append the pipes of ``other``, preserving their relative order."""
        if other is None:
            return self
        self.request_pipes.extend(other.request_pipes)
        self.response_pipes.extend(other.response_pipes)
        return self

    def copy(self) -> "MiddlewarePipeline":
        return MiddlewarePipeline().merge(self)

    def execute_request_pipeline(self, pending_request: PendingRequest) -> PendingRequest:
        """
        Run every request pipe in order.

        Raises:
            MiddlewarePipeError: If a pipe raises a non-SDK exception.
        """
        from relay_sdk.pending_request import PendingRequest
        from relay_sdk.response import Response

        current = pending_request
        for pipe in list(self.request_pipes):
            result = self._call(pipe, current, "request", pending_request)
            if isinstance(result, Response):
                current.set_early_response(result)
            elif isinstance(result, PendingRequest):
                current = result
        return current

    def execute_response_pipeline(self, response: Response) -> Response:
        """
        Run every response pipe in order and return the final response.

        Raises:
            MiddlewarePipeError: If a pipe raises a non-SDK exception.
        """
        from relay_sdk.response import Response

        current = response
        for pipe in list(self.response_pipes):
            result = self._call(pipe, current, "response", response.pending_request)
            if isinstance(result, Response):
                current = result
        return current

    @staticmethod
    def _call(pipe: Callable, subject: Any, pipeline: str, pending_request: Any) -> Any:
        try:
            return pipe(subject)
        except RelayError:
            raise
        except Exception as err:
            name = _pipe_name(pipe)
            logger.error(f"{pipeline.capitalize()} pipe {name} failed: {err}")
            raise MiddlewarePipeError(
                f"{pipeline.capitalize()} pipe {name} raised {type(err).__name__}: {err}",
                pipe=pipe,
                pipeline=pipeline,
                request=getattr(pending_request, "request", None),
                stage=getattr(pending_request, "stage", None),
            ) from err

    def __len__(self) -> int:
        return len(self.request_pipes) + len(self.response_pipes)
