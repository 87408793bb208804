"""Abstract base class for authentication plugins.

Auth schemes and strategies are not implemented by specroute. Documents name
them through vendor extensions and specroute hands each one to the router:

- ``x-specroute-auth-schemes`` (document level) maps a scheme name to a
  plugin reference;
- ``x-specroute-auth-strategy`` (on a security scheme) names the plugin that
  implements that scheme as a strategy.

A plugin is any object with an awaitable ``register(router, options)``
method. Subclassing :class:`AuthPlugin` is the convenient way to get one.

See Also:
    :mod:`specroute.auth.plugins` for how references are loaded and
    registered.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from types import ModuleType
from typing import TYPE_CHECKING, Any

from specroute.exceptions import PluginError

if TYPE_CHECKING:
    from specroute.routes.table import Router


class AuthPlugin(ABC):
    """Base class for auth-scheme and auth-strategy plugins.

    :meth:`register` receives the router and the options specroute derived
    from the document. For a scheme plugin the options are ``{"name": ...}``;
    for a strategy plugin they also carry ``scheme`` (the security scheme
    type), ``lookup`` (the key name) and ``where`` (its location).

    Example::

        class HeaderKey(AuthPlugin):
            async def register(self, router, options):
                router.auth_strategy(options["name"], options["scheme"], options)
    """

    @property
    def name(self) -> str:
        """Return the plugin name used in log messages."""
        return type(self).__name__

    @abstractmethod
    async def register(self, router: Router, options: dict[str, Any]) -> None:
        """Register the scheme or strategy with *router*."""
        ...


def as_plugin(capability: Any, reference: str) -> Any:
    """Turn a loaded capability into a plugin instance.

    A module contributes its ``plugin`` attribute; a class is instantiated
    with no arguments. The result must have an awaitable ``register``.

    Raises:
        PluginError: If *capability* does not yield a usable plugin.
    """
    if isinstance(capability, ModuleType):
        capability = getattr(capability, "plugin", None)
        if capability is None:
            raise PluginError(f"Plugin module '{reference}' has no 'plugin' attribute")
    if inspect.isclass(capability):
        try:
            capability = capability()
        except Exception as exc:
            raise PluginError(f"Cannot instantiate plugin '{reference}': {exc}") from exc

    register = getattr(capability, "register", None)
    if not inspect.iscoroutinefunction(register):
        raise PluginError(f"Plugin '{reference}' has no async register(router, options) method")
    return capability
