"""
Logging middleware for Relay SDK.

This module provides LoggingMiddleware, a built-in middleware that logs
all HTTP requests and responses with timing information. Useful for
debugging, monitoring, and understanding SDK behavior.

Features:
- Request logging with method, URL, headers, query and body type
- Response logging with status code, mock flag and timing
- Automatic timing measurement
- Sensitive headers are masked
"""

import logging
import time

logger = logging.getLogger("relay_sdk.middleware.logging")

SENSITIVE_HEADERS = frozenset({"authorization", "proxy-authorization", "cookie", "x-api-key"})


def _masked(headers: dict) -> dict:
    return {
        name: ("***" if name.lower() in SENSITIVE_HEADERS else value)
        for name, value in headers.items()
    }


class LoggingMiddleware:
    """
    Middleware for logging HTTP requests and responses.
    Uses standard Python logging.

    A new instance is registered for every pending request (see ``LogsTraffic``),
    so the timer is never shared between requests.
    """

    def __init__(self, level: int = logging.INFO):
        self.level = level
        self._start_time = None

    def on_request(self, pending_request):
        self._start_time = time.monotonic()
        data_type = pending_request.data_type.value if pending_request.data_type else None
        logger.log(
            self.level,
            f"Request: {pending_request.method.value} {pending_request.url} "
            f"| headers={_masked(pending_request.headers.all())} "
            f"| query={pending_request.query.all()} | body={data_type}",
        )

    def on_response(self, response):
        elapsed = (time.monotonic() - self._start_time) if self._start_time else None
        logger.log(
            self.level,
            f"Response: {response.status}"
            + (" (mocked)" if response.is_mocked else "")
            + (f" | elapsed={elapsed:.3f}s" if elapsed is not None else ""),
        )
