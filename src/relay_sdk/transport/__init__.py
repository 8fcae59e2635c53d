"""
Sender layer for Relay SDK.

This module provides a unified sender interface that abstracts different HTTP clients.
The SDK supports multiple sender backends for flexibility:

- httpx: Modern sync + async HTTP client (default, recommended)
- aiohttp: Async HTTP client with advanced features
- requests: Sync HTTP client wrapped in an async interface

All senders implement the same interface, making them interchangeable.
"""

from typing import Optional

from relay_sdk.config import RelaySettings

from .base import BaseSender
from .base import UnifiedResponse
from .httpx import HttpxSender

AVAILABLE_SENDERS = ("httpx", "aiohttp", "requests")


def get_sender(name: str, settings: Optional[RelaySettings] = None) -> BaseSender:
    """
    Get sender instance by name.

    Available senders:
    - httpx: Sync and async HTTP client (default)
    - aiohttp: Async HTTP client
    - requests: Sync HTTP client (wrapped in async interface)
    """
    settings = settings or RelaySettings()
    options = {
        "timeout": settings.timeout,
        "connect_timeout": settings.connect_timeout,
        "follow_redirects": settings.follow_redirects,
    }
    name = name.lower()
    if name == "httpx":
        return HttpxSender(**options)
    elif name == "aiohttp":
        try:
            from .aiohttp import AiohttpSender

            return AiohttpSender(**options)
        except ImportError as err:
            raise ImportError(
                "aiohttp sender requires aiohttp package. Install with: pip install relay-sdk[aiohttp]"
            ) from err
    elif name == "requests":
        try:
            from .requests import RequestsSender

            return RequestsSender(**options)
        except ImportError as err:
            raise ImportError(
                "requests sender requires requests package. Install with: pip install relay-sdk[requests]"
            ) from err
    else:
        raise ValueError(f"Unknown sender: {name}. Available: {', '.join(AVAILABLE_SENDERS)}")


__all__ = [
    "AVAILABLE_SENDERS",
    "BaseSender",
    "HttpxSender",
    "UnifiedResponse",
    "get_sender",
]
