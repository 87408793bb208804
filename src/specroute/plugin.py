"""Registration entry point -- compile a document and hand it to a router.

:func:`register` runs the whole startup pass for one document:

1. validate the options (:func:`specroute.config.validate_options`);
2. load and parse the document;
3. register the auth scheme and strategy plugins it names;
4. build the handler tree and compile the route table;
5. build the documentation route;
6. expose the :class:`ApiAccessor` and hand every route to the router.

Routes reach the router only after the whole table compiled; any failure
before that propagates and leaves the router without routes from this
document.

Example::

    table = RouteTable()
    accessor = await register(table, {"api": "openapi.yaml", "handlers": "routes"})
    accessor.set_host("api.example.com")
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Union

from specroute import __version__
from specroute.auth.plugins import register_auth_plugins
from specroute.config import api_basedir, caller_directory, validate_options
from specroute.handlers.registry import CapabilityRegistry
from specroute.handlers.resolver import resolve_handler_tree
from specroute.models import ApiDocument, PluginOptions, RouteDescriptor
from specroute.parser.document import build_document
from specroute.parser.loader import load_source
from specroute.routes.compiler import compile_routes
from specroute.routes.docs import build_docs_route
from specroute.routes.table import Router

logger = logging.getLogger(__name__)


class ApiAccessor:
    """Narrow view of the live document exposed to the host application.

    :meth:`set_host` is the only mutation the document allows after
    registration.
    """

    def __init__(self, document: ApiDocument) -> None:
        self._document = document

    def get_api(self) -> ApiDocument:
        """Return the live document."""
        return self._document

    def set_host(self, host: str) -> None:
        """Replace the document's host."""
        self._document.host = host


class Compiled:
    """Everything one registration produced, before it reaches a router."""

    def __init__(
        self,
        document: ApiDocument,
        raw: dict[str, Any],
        docs_route: RouteDescriptor,
        routes: list[RouteDescriptor],
    ) -> None:
        self.document = document
        self.raw = raw
        self.docs_route = docs_route
        self.routes = routes


async def compile_api(
    options: PluginOptions,
    *,
    router: Optional[Router] = None,
    caller_dir: Optional[Path] = None,
    registry: Optional[CapabilityRegistry] = None,
) -> Compiled:
    """Load, compile and build the docs route for validated *options*.

    Auth plugins are registered with *router* when one is given; without a
    router (the CLI's dry runs) they are not loaded at all.
    """
    registry = registry or CapabilityRegistry()
    caller_dir = caller_dir or caller_directory()

    raw = load_source(options.api)
    document = build_document(raw)
    basedir = api_basedir(options, caller_dir)
    logger.debug("Loaded %s %s (base path %r)", document.title, document.version, document.base_path)

    if router is not None:
        await register_auth_plugins(router, document, basedir, registry)

    tree = await resolve_handler_tree(
        options.handlers,
        document,
        basedir=basedir,
        extensions=options.extensions,
        registry=registry,
    )
    routes = compile_routes(
        document,
        tree,
        cors=options.cors,
        vhost=options.vhost,
        output_validation=options.outputvalidation,
    )
    docs_route = build_docs_route(
        raw, document.base_path, options.docs, cors=options.cors, vhost=options.vhost
    )
    return Compiled(document, raw, docs_route, routes)


async def register(
    router: Router,
    options: Union[PluginOptions, Mapping[str, Any]],
    *,
    registry: Optional[CapabilityRegistry] = None,
) -> ApiAccessor:
    """Compile the document named by *options* and register it with *router*.

    Args:
        router: The host router.
        options: Registration options; see :class:`~specroute.models.PluginOptions`.
        registry: Capability registry for handler and plugin references. Pass
            one with pre-linked capabilities to avoid dynamic imports.

    Returns:
        The accessor that was exposed to the router.

    Raises:
        ConfigError: If the options are invalid.
        SpecParseError: If the document cannot be loaded.
        PluginError: If an auth plugin fails.
        HandlerError: If a handler cannot be loaded.
        SecuritySchemeError: If an operation names an undefined scheme.
    """
    caller_dir = caller_directory()
    validated = validate_options(options, caller_dir)
    compiled = await compile_api(validated, router=router, caller_dir=caller_dir, registry=registry)

    accessor = ApiAccessor(compiled.document)
    router.expose(accessor)
    router.route(compiled.docs_route)
    for route in compiled.routes:
        router.route(route)

    logger.info(
        "Registered %s: %d route(s) plus docs at %s",
        compiled.document.title,
        len(compiled.routes),
        compiled.docs_route.path,
    )
    return accessor


class SpecroutePlugin:
    """Plugin object for routers that register plugins rather than call functions.

    ``await router.register(SpecroutePlugin(), options)`` is equivalent to
    ``await register(router, options)``. The same router may register it any
    number of times, once per document.
    """

    name = "specroute"
    version = __version__
    multiple = True

    async def register(self, router: Router, options: Mapping[str, Any]) -> ApiAccessor:
        return await register(router, options)
