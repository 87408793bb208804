"""Router protocol and the in-memory route table.

specroute does not serve HTTP. It hands compiled
:class:`~specroute.models.RouteDescriptor` objects to a *router*, any object
implementing :class:`Router`. :class:`RouteTable` is the implementation
shipped with the package: it stores routes, exposed accessors and auth
registrations in memory, which is what the CLI and the tests use and what a
server adapter can iterate to register routes with a real framework.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

from specroute.exceptions import SpecrouteError
from specroute.models import HTTPMethod, RouteDescriptor

if TYPE_CHECKING:
    from specroute.plugin import ApiAccessor

logger = logging.getLogger(__name__)


@runtime_checkable
class Router(Protocol):
    """What :func:`specroute.plugin.register` needs from a host router."""

    def route(self, descriptor: RouteDescriptor) -> None:
        """Register one compiled route."""
        ...

    def expose(self, accessor: ApiAccessor) -> None:
        """Make the document accessor available to the host application."""
        ...

    async def register(self, plugin: Any, options: dict[str, Any]) -> None:
        """Register an auth scheme or strategy plugin."""
        ...


class RouteTable:
    """In-memory :class:`Router`.

    Routes are kept in registration order. Registering a second route with
    the same method, path and virtual host is an error.

    Example::

        table = RouteTable()
        accessor = await register(table, {"api": "openapi.yaml", "handlers": "routes"})
        for route in table:
            print(route.method.value, route.path)
    """

    def __init__(self) -> None:
        self._routes: list[RouteDescriptor] = []
        self._index: dict[tuple[HTTPMethod, str, Optional[str]], RouteDescriptor] = {}
        self.accessors: list[ApiAccessor] = []
        self.plugins: list[tuple[Any, dict[str, Any]]] = []
        self.schemes: dict[str, Any] = {}
        self.strategies: dict[str, dict[str, Any]] = {}

    def __iter__(self) -> Iterator[RouteDescriptor]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    @property
    def routes(self) -> list[RouteDescriptor]:
        return list(self._routes)

    # ------------------------------------------------------------------
    # Router protocol
    # ------------------------------------------------------------------

    def route(self, descriptor: RouteDescriptor) -> None:
        key = (descriptor.method, descriptor.path, descriptor.vhost)
        if key in self._index:
            raise SpecrouteError(
                f"Route {descriptor.method.value.upper()} {descriptor.path} is already registered"
            )
        self._index[key] = descriptor
        self._routes.append(descriptor)

    def expose(self, accessor: ApiAccessor) -> None:
        self.accessors.append(accessor)

    async def register(self, plugin: Any, options: dict[str, Any]) -> None:
        await plugin.register(self, options)
        self.plugins.append((plugin, options))

    # ------------------------------------------------------------------
    # Auth registration, called back by plugins
    # ------------------------------------------------------------------

    def auth_scheme(self, name: str, implementation: Any) -> None:
        """Record an auth scheme implementation under *name*."""
        self.schemes[name] = implementation
        logger.debug("Auth scheme '%s' registered", name)

    def auth_strategy(self, name: str, scheme: str, options: Optional[dict[str, Any]] = None) -> None:
        """Record a strategy *name* implemented by *scheme*."""
        self.strategies[name] = {"scheme": scheme, **(options or {})}
        logger.debug("Auth strategy '%s' (%s) registered", name, scheme)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find(
        self, method: str, path: str, vhost: Optional[str] = None
    ) -> Optional[RouteDescriptor]:
        """Return the route registered for a method and path template, if any."""
        return self._index.get((HTTPMethod(method.lower()), path, vhost))
