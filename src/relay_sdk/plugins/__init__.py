"""
Plugin architecture for cross-cutting request building behaviour.

Two kinds of plugins exist:

- Plugin mixins: classes deriving from ``PluginMixin`` that a connector or
  request inherits from. Each mixin may define a boot hook named
  ``boot_<snake_case_class_name>`` (``AcceptsJson`` -> ``boot_accepts_json``),
  which is called once with the pending request.
- Composed plugins: ``Plugin`` instances returned by ``default_plugins()`` on a
  connector or request. Each exposes ``boot(pending_request)``.

Boot order is connector first, then request. Within one owner, mixins boot in
MRO (declaration) order, followed by composed plugins in list order.
"""

from __future__ import annotations

import inspect
import logging
import re
from abc import ABC
from abc import abstractmethod
from typing import TYPE_CHECKING
from typing import Any

from ..exceptions import BootIntrospectionError

if TYPE_CHECKING:
    from ..pending_request import PendingRequest

logger = logging.getLogger("relay_sdk.plugins")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


class PluginMixin:
    """
    Marker base class for plugin mixins.

    Example:
        class AddsTraceId(PluginMixin):
            def boot_adds_trace_id(self, pending_request):
                pending_request.headers.add("X-Trace-Id", new_trace_id())
    """


class Plugin(ABC):
    """
    Base class for composed plugins.

    Plugins can modify any part of the pending request before the request
    pipeline runs: headers, query, config, data or middleware.
    """

    @abstractmethod
    def boot(self, pending_request: PendingRequest) -> None:
        """
        Apply the plugin to a pending request.

        Args:
            pending_request: The request being assembled
        """


def boot_hook_name(mixin: type) -> str:
    """Return the conventional boot hook name of a mixin class."""
    return "boot_" + _CAMEL_BOUNDARY.sub("_", mixin.__name__).lower()


def discover_plugin_mixins(owner: Any) -> list[type]:
    """
    Enumerate the plugin mixins of ``owner``'s concrete type in MRO order.

    Raises:
        BootIntrospectionError: If the type hierarchy cannot be inspected.
    """
    owner_type = type(owner)
    try:
        mro = inspect.getmro(owner_type)
    except (AttributeError, TypeError) as err:
        raise BootIntrospectionError(
            f"Unable to enumerate plugin mixins of {owner_type!r}", details=owner_type
        ) from err

    return [
        cls
        for cls in mro
        if isinstance(cls, type)
        and issubclass(cls, PluginMixin)
        and cls is not PluginMixin
        and boot_hook_name(cls) in vars(cls)
    ]


def _boot_owner(pending_request: PendingRequest, owner: Any) -> None:
    for mixin in discover_plugin_mixins(owner):
        hook_name = boot_hook_name(mixin)
        hook = getattr(owner, hook_name)
        if not callable(hook):
            raise BootIntrospectionError(
                f"{type(owner).__name__}.{hook_name} is not callable",
                request=pending_request.request,
                stage=pending_request.stage,
            )
        logger.debug(f"Booting plugin mixin {mixin.__name__} on {type(owner).__name__}")
        hook(pending_request)

    for plugin in owner.default_plugins():
        boot = getattr(plugin, "boot", None)
        if not callable(boot):
            raise BootIntrospectionError(
                f"Plugin {plugin!r} of {type(owner).__name__} has no boot() method",
                request=pending_request.request,
                stage=pending_request.stage,
            )
        logger.debug(f"Booting plugin {type(plugin).__name__} on {type(owner).__name__}")
        boot(pending_request)


def boot_plugins(pending_request: PendingRequest, connector: Any, request: Any) -> None:
    """Boot every plugin of the connector, then every plugin of the request."""
    _boot_owner(pending_request, connector)
    _boot_owner(pending_request, request)


__all__ = [
    "Plugin",
    "PluginMixin",
    "boot_hook_name",
    "boot_plugins",
    "discover_plugin_mixins",
]
